"""Topic suggestion endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from radar.core.db import get_db_session
from radar.core.errors import AccountRequiredError
from radar.repositories.content_store import SqlAlchemyContentStore
from radar.routers.api.models import TopicSuggestionRequest, TopicSuggestionResponse
from radar.services.topic_suggestion import suggest_topic

router = APIRouter(prefix="/topics", tags=["topics"])


@router.post("/suggest", response_model=TopicSuggestionResponse)
def suggest(
    request: TopicSuggestionRequest,
    db: Annotated[Session, Depends(get_db_session)],
) -> TopicSuggestionResponse:
    if not request.account_id:
        raise AccountRequiredError("account_id is required")

    topics = SqlAlchemyContentStore(db).list_topics(request.account_id)
    return TopicSuggestionResponse(
        topic_id=suggest_topic(request.title, request.description, topics)
    )
