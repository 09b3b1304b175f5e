"""
YouTube channel resolution.

Turns any channel URL (``/channel/UC...``, ``/@handle``, ``/c/custom``,
``/user/legacy``) into a canonical ``UC...`` channel id. Strategies run in a
fixed order: the public channel page first (no API quota), then Data API
lookups when a key is configured. Every non-id identifier is tried as a
handle, then as a legacy username, then through search. A strategy that
raises is logged and the next one is tried.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal

from radar.core.errors import ChannelResolutionError
from radar.core.logging import get_logger
from radar.core.settings import get_settings
from radar.services.http import HttpService, get_http_service
from radar.utils.error_logger import log_error
from radar.utils.text_scanner import decode_html_entities, find_channel_id_in_page, truncate

logger = get_logger(__name__)

YOUTUBE_API_BASE = "https://www.googleapis.com/youtube/v3"

IdentifierType = Literal["id", "handle", "custom", "user"]

_CHANNEL_URL_PATTERNS: tuple[tuple[re.Pattern[str], IdentifierType], ...] = (
    (re.compile(r"youtube\.com/channel/([a-zA-Z0-9_-]+)"), "id"),
    (re.compile(r"youtube\.com/@([a-zA-Z0-9_.-]+)"), "handle"),
    (re.compile(r"youtube\.com/c/([a-zA-Z0-9_-]+)"), "custom"),
    (re.compile(r"youtube\.com/user/([a-zA-Z0-9_-]+)"), "user"),
)


@dataclass(frozen=True)
class ChannelIdentifier:
    identifier: str
    identifier_type: IdentifierType

    @property
    def is_channel_id(self) -> bool:
        return self.identifier.startswith("UC")

    def page_url(self) -> str:
        prefix = {"id": "channel/", "handle": "@", "custom": "c/", "user": "user/"}
        return f"https://www.youtube.com/{prefix[self.identifier_type]}{self.identifier}"


@dataclass
class ChannelDetails:
    channel_id: str
    name: str
    url: str
    image_url: str | None = None
    description: str | None = None
    subscriber_count: int | None = None


def parse_channel_url(url: str) -> ChannelIdentifier | None:
    """Match a YouTube channel URL against the known path shapes."""
    if not url:
        return None
    for pattern, identifier_type in _CHANNEL_URL_PATTERNS:
        match = pattern.search(url)
        if match:
            return ChannelIdentifier(match.group(1), identifier_type)
    return None


def is_youtube_url(url: str) -> bool:
    lowered = (url or "").lower()
    return "youtube.com" in lowered or "youtu.be" in lowered


ResolutionStrategy = Callable[[ChannelIdentifier], str | None]


class ChannelResolver:
    """Resolve channel URLs to ``UC...`` ids using an ordered strategy list."""

    def __init__(self, http: HttpService | None = None, api_key: str | None = None):
        self.http = http or get_http_service()
        self.api_key = api_key if api_key is not None else get_settings().youtube_api_key

    @property
    def strategies(self) -> list[ResolutionStrategy]:
        strategies: list[ResolutionStrategy] = [self._from_channel_page]
        if self.api_key:
            strategies.extend([self._from_handle_api, self._from_username_api, self._from_search_api])
        return strategies

    def resolve(self, url: str) -> str | None:
        """Return the channel id for ``url`` or ``None`` when every strategy fails."""
        identifier = parse_channel_url(url)
        if identifier is None:
            logger.info(f"Not a recognised YouTube channel URL: {url}")
            return None
        if identifier.is_channel_id:
            return identifier.identifier

        for strategy in self.strategies:
            try:
                channel_id = strategy(identifier)
            except Exception as e:
                log_error(
                    "channel_resolver",
                    e,
                    operation=strategy.__name__.lstrip("_"),
                    context={"url": url, "identifier": identifier.identifier},
                    level=logging.WARNING,
                )
                continue
            if channel_id:
                logger.info(
                    f"Resolved {url} to {channel_id} via {strategy.__name__.lstrip('_')}"
                )
                return channel_id

        logger.warning(f"Could not resolve YouTube channel for {url}")
        return None

    def resolve_or_raise(self, url: str) -> str:
        channel_id = self.resolve(url)
        if not channel_id:
            raise ChannelResolutionError("Could not determine channel ID")
        return channel_id

    def _from_channel_page(self, identifier: ChannelIdentifier) -> str | None:
        html, _ = self.http.fetch_text(identifier.page_url())
        return find_channel_id_in_page(html)

    def _api_get(self, endpoint: str, params: dict[str, Any]) -> dict[str, Any]:
        payload = self.http.fetch_json(
            f"{YOUTUBE_API_BASE}/{endpoint}", params={**params, "key": self.api_key}
        )
        if isinstance(payload, dict) and payload.get("error"):
            message = payload["error"].get("message", "YouTube API error")
            raise ChannelResolutionError(message)
        return payload if isinstance(payload, dict) else {}

    def _from_handle_api(self, identifier: ChannelIdentifier) -> str | None:
        data = self._api_get("channels", {"forHandle": identifier.identifier, "part": "id"})
        return _first_item(data).get("id")

    def _from_username_api(self, identifier: ChannelIdentifier) -> str | None:
        data = self._api_get("channels", {"forUsername": identifier.identifier, "part": "id"})
        return _first_item(data).get("id")

    def _from_search_api(self, identifier: ChannelIdentifier) -> str | None:
        data = self._api_get(
            "search",
            {"q": identifier.identifier, "type": "channel", "part": "snippet", "maxResults": 1},
        )
        return (_first_item(data).get("id") or {}).get("channelId")

    def fetch_channel_details(self, channel_id: str) -> ChannelDetails | None:
        """Look up display details for a resolved channel (requires an API key)."""
        if not self.api_key:
            return None
        data = self._api_get("channels", {"id": channel_id, "part": "snippet,statistics"})
        item = _first_item(data)
        if not item:
            return None

        snippet = item.get("snippet") or {}
        thumbnails = snippet.get("thumbnails") or {}
        image_url = next(
            (
                thumbnails[size]["url"]
                for size in ("high", "medium", "default")
                if isinstance(thumbnails.get(size), dict) and thumbnails[size].get("url")
            ),
            None,
        )
        subscribers = (item.get("statistics") or {}).get("subscriberCount")

        return ChannelDetails(
            channel_id=channel_id,
            name=decode_html_entities(snippet.get("title")) or channel_id,
            url=f"https://www.youtube.com/channel/{channel_id}",
            image_url=image_url,
            description=truncate(decode_html_entities(snippet.get("description")), 300) or None,
            subscriber_count=int(subscribers) if str(subscribers or "").isdigit() else None,
        )


def _first_item(data: dict[str, Any]) -> dict[str, Any]:
    items = data.get("items") or []
    return items[0] if items and isinstance(items[0], dict) else {}
