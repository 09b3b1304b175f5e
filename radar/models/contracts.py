"""Canonical domain enums shared across the pipeline and API surfaces."""

from __future__ import annotations

from enum import StrEnum


class ContentType(StrEnum):
    """Rendering discriminator assigned by extractors."""

    ARTICLE = "article"
    VIDEO = "video"
    PREDICTION = "prediction"


class SourceType(StrEnum):
    """Configured upstream source kinds."""

    RSS = "rss"
    YOUTUBE = "youtube"
    TWITTER = "twitter"
    POLYMARKET = "polymarket"


class FeedFormat(StrEnum):
    """Syndication formats recognised by feed discovery."""

    RSS = "rss"
    ATOM = "atom"


# Content types whose stored rows are refreshed on every fetch
LIVE_CONTENT_TYPES: frozenset[ContentType] = frozenset({ContentType.PREDICTION})

# Source types with a fetch cycle
FETCHABLE_SOURCE_TYPES: tuple[SourceType, ...] = (
    SourceType.RSS,
    SourceType.YOUTUBE,
    SourceType.POLYMARKET,
)
