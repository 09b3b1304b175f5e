"""RSS/Atom feed extraction and fetch cycle."""

from __future__ import annotations

import contextlib
import threading
from calendar import timegm
from datetime import UTC, datetime
from typing import Any

import feedparser

from radar.core.errors import FeedParseError
from radar.core.logging import get_logger
from radar.core.settings import get_settings
from radar.models.content import LoadedSource, NormalizedItem
from radar.models.contracts import ContentType, SourceType
from radar.models.fetch_results import FetchCycleResult
from radar.models.metadata import RssSourceMetadata
from radar.repositories.content_store import ContentStore
from radar.scraping.base import BaseFetchCycle
from radar.services.thumbnails import entry_to_thumbnail_fields, resolve_thumbnail
from radar.utils.error_logger import log_feed_error
from radar.utils.text_scanner import strip_tags

ENCODING_OVERRIDE_EXCEPTIONS = tuple(
    exc
    for exc in (
        getattr(feedparser, "CharacterEncodingOverride", None),
        getattr(getattr(feedparser, "exceptions", None), "CharacterEncodingOverride", None),
    )
    if isinstance(exc, type)
)

DEFAULT_ITEM_LIMIT = 20
SUMMARY_CHARS = 300

logger = get_logger(__name__)


def _entry_datetime(entry: Any) -> datetime | None:
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if not parsed:
        return None
    with contextlib.suppress(TypeError, ValueError, OverflowError):
        return datetime.fromtimestamp(timegm(parsed), tz=UTC)
    return None


def _entry_content(entry: Any) -> str | None:
    for block in entry.get("content") or []:
        value = block.get("value")
        if value:
            return value
    return entry.get("description") or None


def _entry_summary(entry: Any, content: str | None) -> str | None:
    snippet = strip_tags(entry.get("summary"))
    if snippet:
        return snippet
    if content:
        return content[:SUMMARY_CHARS]
    return None


def _entry_categories(entry: Any) -> list[str]:
    return [tag.get("term") for tag in entry.get("tags") or [] if tag.get("term")]


def parse_feed(raw: str | bytes, feed_url: str | None = None) -> Any:
    """
    Parse a feed document with feedparser.

    Raises:
        FeedParseError: the document is not a usable feed
    """
    parsed = feedparser.parse(raw)
    if parsed.bozo:
        bozo_exc = parsed.get("bozo_exception")
        if ENCODING_OVERRIDE_EXCEPTIONS and isinstance(bozo_exc, ENCODING_OVERRIDE_EXCEPTIONS):
            logger.debug(f"Feed {feed_url} has encoding declaration mismatch: {bozo_exc}")
        elif not parsed.entries:
            raise FeedParseError(f"Malformed feed: {bozo_exc}")
        else:
            logger.warning(f"Feed {feed_url} may be ill-formed: {bozo_exc}")
    if not parsed.get("version") and not parsed.entries:
        raise FeedParseError("Document is not an RSS or Atom feed")
    return parsed


def normalize_entry(entry: Any) -> NormalizedItem | None:
    """Map one feedparser entry onto a NormalizedItem; ``None`` without an id or link."""
    link = (entry.get("link") or "").strip()
    external_id = (entry.get("id") or entry.get("guid") or link or "").strip()
    if not external_id:
        return None

    content = _entry_content(entry)
    return NormalizedItem(
        external_id=external_id,
        type=ContentType.ARTICLE,
        title=entry.get("title") or "Untitled",
        summary=_entry_summary(entry, content),
        content=content,
        url=link,
        thumbnail_url=resolve_thumbnail(entry_to_thumbnail_fields(entry)),
        author=entry.get("author") or None,
        published_at=_entry_datetime(entry),
        metadata={"categories": _entry_categories(entry)},
    )


def extract_feed_items(
    raw: str | bytes, source: LoadedSource | None = None, limit: int = DEFAULT_ITEM_LIMIT
) -> list[NormalizedItem]:
    """Parse a feed document and normalize its first ``limit`` entries in feed order."""
    parsed = parse_feed(raw, source.url if source else None)

    items: list[NormalizedItem] = []
    for entry in parsed.entries[:limit]:
        item = normalize_entry(entry)
        if item is None:
            logger.debug("Skipping feed entry without guid or link")
            continue
        items.append(item)
    return items


class RssFetchCycle(BaseFetchCycle):
    """Polls RSS/Atom sources."""

    source_type = SourceType.RSS

    def fetch_items(
        self,
        source: LoadedSource,
        store: ContentStore,
        result: FetchCycleResult,
        cancel_event: threading.Event | None = None,
    ) -> list[NormalizedItem]:
        limit = get_settings().rss_item_limit
        if isinstance(source.metadata, RssSourceMetadata) and source.metadata.item_limit:
            limit = source.metadata.item_limit

        response = self.http.fetch(
            source.url,
            headers={"Accept": "application/rss+xml, application/atom+xml, application/xml"},
        )
        try:
            return extract_feed_items(response.content, source, limit)
        except FeedParseError as e:
            log_feed_error(
                "rss_cycle", source.url, e, feed_name=source.name, source_id=source.id
            )
            raise
