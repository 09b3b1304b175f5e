"""Per-source-type fetch endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from radar.core.db import get_db_session
from radar.core.deps import get_http
from radar.core.errors import AccountRequiredError
from radar.core.logging import get_logger
from radar.models.contracts import SourceType
from radar.repositories.content_store import SqlAlchemyContentStore
from radar.routers.api.models import FetchCycleResponse, FetchRequest
from radar.scraping.base import BaseFetchCycle
from radar.scraping.polymarket import PolymarketFetchCycle
from radar.scraping.rss import RssFetchCycle
from radar.scraping.youtube import YoutubeFetchCycle
from radar.services.http import HttpService

logger = get_logger(__name__)

router = APIRouter(prefix="/fetch", tags=["fetch"])

CYCLE_CLASSES: dict[SourceType, type[BaseFetchCycle]] = {
    SourceType.RSS: RssFetchCycle,
    SourceType.YOUTUBE: YoutubeFetchCycle,
    SourceType.POLYMARKET: PolymarketFetchCycle,
}


def _run(
    source_type: SourceType, request: FetchRequest, db: Session, http: HttpService
) -> FetchCycleResponse:
    if not request.account_id:
        raise AccountRequiredError("account_id is required")

    cycle = CYCLE_CLASSES[source_type](store=SqlAlchemyContentStore(db), http=http)
    result = cycle.run(request.account_id, source_id=request.source_id)
    return FetchCycleResponse.model_validate(result.to_dict())


@router.post("/rss", response_model=FetchCycleResponse)
def fetch_rss(
    request: FetchRequest,
    db: Annotated[Session, Depends(get_db_session)],
    http: Annotated[HttpService, Depends(get_http)],
) -> FetchCycleResponse:
    """Poll every active RSS/Atom source of the account."""
    return _run(SourceType.RSS, request, db, http)


@router.post("/youtube", response_model=FetchCycleResponse)
def fetch_youtube(
    request: FetchRequest,
    db: Annotated[Session, Depends(get_db_session)],
    http: Annotated[HttpService, Depends(get_http)],
) -> FetchCycleResponse:
    """Poll every active YouTube channel of the account."""
    return _run(SourceType.YOUTUBE, request, db, http)


@router.post("/polymarket", response_model=FetchCycleResponse)
def fetch_polymarket(
    request: FetchRequest,
    db: Annotated[Session, Depends(get_db_session)],
    http: Annotated[HttpService, Depends(get_http)],
) -> FetchCycleResponse:
    """Refresh trending prediction markets for every active Polymarket source."""
    return _run(SourceType.POLYMARKET, request, db, http)
