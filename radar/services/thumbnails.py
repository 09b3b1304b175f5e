"""
Thumbnail resolution for feed entries.

Publishers put preview images in many places. ``resolve_thumbnail`` walks an
ordered list of strategies over a plain mapping and returns the first URL
found. The mapping uses the element names feeds use (``enclosure``,
``media:thumbnail``, ``media:content``, ``media:group``, ``image``,
``content:encoded``, ``content``, ``description``, ``summary``);
``entry_to_thumbnail_fields`` builds it from a feedparser entry.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import urlparse

from radar.core.logging import get_logger
from radar.utils.text_scanner import find_first_img_src, find_og_image

logger = get_logger(__name__)

IMAGE_EXTENSION_PATTERN = re.compile(r"\.(jpe?g|png|gif|webp|svg)$", re.IGNORECASE)
IMAGE_PATH_HINTS = ("/images/", "/img/", "/media/", "wp-content/uploads")

HTML_FIELDS = ("content:encoded", "content", "description", "summary")

ThumbnailStrategy = Callable[[Mapping[str, Any]], str | None]


def is_image_url(url: Any) -> bool:
    """True for URLs with an image extension (query ignored) or an image-ish path."""
    if not isinstance(url, str) or not url.strip():
        return False
    path = urlparse(url.strip()).path
    if IMAGE_EXTENSION_PATTERN.search(path):
        return True
    lowered = url.lower()
    return any(hint in lowered for hint in IMAGE_PATH_HINTS)


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _url_of(node: Any) -> str | None:
    """Read a URL from the shapes XML-to-dict converters produce."""
    if isinstance(node, str):
        return node.strip() or None
    if not isinstance(node, Mapping):
        return None
    attrs = node.get("$")
    if isinstance(attrs, Mapping) and isinstance(attrs.get("url"), str):
        return attrs["url"].strip() or None
    for key in ("url", "href"):
        value = node.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _attr(node: Any, name: str) -> str:
    if not isinstance(node, Mapping):
        return ""
    attrs = node.get("$")
    if isinstance(attrs, Mapping) and isinstance(attrs.get(name), str):
        return attrs[name]
    value = node.get(name)
    return value if isinstance(value, str) else ""


def _from_enclosure(item: Mapping[str, Any]) -> str | None:
    for enclosure in _as_list(item.get("enclosure")):
        url = _url_of(enclosure)
        if not url:
            continue
        if _attr(enclosure, "type").lower().startswith("image/") or is_image_url(url):
            return url
    return None


def _first_thumbnail(value: Any) -> str | None:
    for node in _as_list(value):
        url = _url_of(node)
        if url:
            return url
    return None


def _first_image_content(value: Any) -> str | None:
    for node in _as_list(value):
        url = _url_of(node)
        if not url:
            continue
        medium = _attr(node, "medium").lower()
        mime = _attr(node, "type").lower()
        if medium == "image" or mime.startswith("image/") or is_image_url(url):
            return url
    return None


def _from_media_thumbnail(item: Mapping[str, Any]) -> str | None:
    return _first_thumbnail(item.get("media:thumbnail"))


def _from_media_content(item: Mapping[str, Any]) -> str | None:
    return _first_image_content(item.get("media:content"))


def _from_media_group(item: Mapping[str, Any]) -> str | None:
    for group in _as_list(item.get("media:group")):
        if not isinstance(group, Mapping):
            continue
        url = _first_thumbnail(group.get("media:thumbnail")) or _first_image_content(
            group.get("media:content")
        )
        if url:
            return url
    return None


def _from_image(item: Mapping[str, Any]) -> str | None:
    return _url_of(item.get("image"))


def _html_fields(item: Mapping[str, Any]) -> list[str]:
    return [value for key in HTML_FIELDS if isinstance(value := item.get(key), str) and value]


def _from_inline_img(item: Mapping[str, Any]) -> str | None:
    for html in _html_fields(item):
        url = find_first_img_src(html)
        if url:
            return url
    return None


def _from_og_image(item: Mapping[str, Any]) -> str | None:
    for html in _html_fields(item):
        url = find_og_image(html)
        if url:
            return url
    return None


# Priority order: first strategy returning a URL wins
THUMBNAIL_STRATEGIES: tuple[ThumbnailStrategy, ...] = (
    _from_enclosure,
    _from_media_thumbnail,
    _from_media_content,
    _from_media_group,
    _from_image,
    _from_inline_img,
    _from_og_image,
)


def resolve_thumbnail(item: Mapping[str, Any]) -> str | None:
    """Return the best thumbnail URL for a feed entry, or ``None``."""
    for strategy in THUMBNAIL_STRATEGIES:
        try:
            url = strategy(item)
        except Exception as e:
            logger.debug(f"Thumbnail strategy {strategy.__name__} failed: {e}")
            continue
        if url:
            return url
    return None


def entry_to_thumbnail_fields(entry: Mapping[str, Any]) -> dict[str, Any]:
    """Map a feedparser entry onto the element names ``resolve_thumbnail`` reads."""
    enclosures = list(entry.get("enclosures") or [])
    enclosures.extend(
        link for link in entry.get("links") or [] if link.get("rel") == "enclosure"
    )

    content_values = [
        block.get("value") for block in entry.get("content") or [] if block.get("value")
    ]

    return {
        "enclosure": enclosures,
        "media:thumbnail": entry.get("media_thumbnail"),
        "media:content": entry.get("media_content"),
        "image": entry.get("image"),
        "content:encoded": content_values[0] if content_values else None,
        "description": entry.get("description"),
        "summary": entry.get("summary"),
    }
