"""Canonical content records produced by the extractors."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from radar.models.contracts import ContentType, FeedFormat, SourceType
from radar.models.metadata import SourceMetadata


class NormalizedItem(BaseModel):
    """Source-independent content record; ``external_id`` is the dedup key."""

    external_id: str = Field(..., min_length=1)
    type: ContentType
    title: str
    summary: str | None = None
    content: str | None = None
    url: str
    thumbnail_url: str | None = None
    author: str | None = None
    published_at: datetime | None = None
    duration_seconds: int | None = Field(default=None, ge=0)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("title")
    @classmethod
    def default_title(cls, value: str) -> str:
        return value.strip() or "Untitled"


class LoadedSource(BaseModel):
    """A source row decoded for one fetch cycle."""

    model_config = ConfigDict(frozen=True)

    id: str
    account_id: str
    type: SourceType
    name: str
    url: str
    channel_id: str | None = None
    topic_id: str | None = None
    metadata: SourceMetadata
    last_fetched_at: datetime | None = None

    @property
    def label(self) -> str:
        """Name used in human-readable error strings."""
        return self.name or self.url or self.id


class DiscoveredFeed(BaseModel):
    url: str
    title: str | None = None
    type: FeedFormat


class DiscoveryResult(BaseModel):
    feeds: list[DiscoveredFeed] = Field(default_factory=list)
    page_title: str | None = None
