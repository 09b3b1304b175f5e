"""Pydantic models for API endpoints."""

from pydantic import BaseModel, Field

from radar.models.content import DiscoveredFeed


class FetchRequest(BaseModel):
    """Body of the per-type fetch endpoints."""

    account_id: str | None = Field(None, description="Account whose sources are fetched")
    source_id: str | None = Field(None, description="Restrict the cycle to one source")


class SourceErrorResponse(BaseModel):
    source_id: str
    message: str


class FetchCycleResponse(BaseModel):
    source_type: str
    sources_processed: int
    sources_succeeded: int
    sources_failed: int
    items_fetched: int
    items_inserted: int
    items_updated: int
    items_skipped: int
    items_filtered_out: int
    items_failed: int
    per_source_errors: list[SourceErrorResponse] = Field(default_factory=list)
    cancelled: bool = False


class CronFetchResponse(BaseModel):
    accounts: int = Field(..., description="Accounts with at least one active source")
    results: dict[str, dict[str, FetchCycleResponse]] = Field(default_factory=dict)


class UrlRequest(BaseModel):
    url: str | None = Field(None, description="Page, feed or profile URL")


class DiscoveryResponse(BaseModel):
    feeds: list[DiscoveredFeed]
    page_title: str | None = None


class TopicSuggestionRequest(BaseModel):
    account_id: str | None = None
    title: str = ""
    description: str | None = None


class TopicSuggestionResponse(BaseModel):
    topic_id: str | None = None
