"""
Best-effort scanning of HTML and XML snippets.

Every regex/substring heuristic the pipeline applies to markup lives here so
the extraction rules can be tested in one place. None of these functions
raise on malformed input; they return ``None`` or an empty result instead.
"""

from __future__ import annotations

import re
from urllib.parse import urljoin

from radar.models.contracts import FeedFormat

# Entities YouTube and feed publishers actually emit
_NAMED_ENTITIES: dict[str, str] = {
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
    "&#x27;": "'",
    "&#x2f;": "/",
    "&#47;": "/",
    "&apos;": "'",
    "&nbsp;": " ",
}
_ENTITY_PATTERN = re.compile(r"&(?:#\d+|#x[\da-f]+|\w+);", re.IGNORECASE)

_IMG_SRC_PATTERN = re.compile(r"<img[^>]+src=[\"']([^\"']+)[\"']", re.IGNORECASE)
_OG_IMAGE_PATTERNS = (
    re.compile(
        r"<meta[^>]+property=[\"']og:image[\"'][^>]+content=[\"']([^\"']+)[\"']", re.IGNORECASE
    ),
    re.compile(
        r"<meta[^>]+content=[\"']([^\"']+)[\"'][^>]+property=[\"']og:image[\"']", re.IGNORECASE
    ),
)

_CHANNEL_ID_PATTERNS = (
    re.compile(r"\"channelId\":\"(UC[\w-]{22})\""),
    re.compile(r"channel_id=(UC[\w-]{22})"),
    re.compile(
        r"<link[^>]+rel=[\"']canonical[\"'][^>]+href=[\"'][^\"']*/channel/(UC[\w-]{22})",
        re.IGNORECASE,
    ),
    re.compile(r"\"browseId\":\"(UC[\w-]{22})\""),
)

_PAGE_TITLE_PATTERN = re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE)
_FEED_LINK_PATTERN = re.compile(
    r"<link[^>]+(?:type=[\"']application/(?:rss|atom)\+xml[\"'])[^>]*>", re.IGNORECASE
)
_HREF_PATTERN = re.compile(r"href=[\"']([^\"']+)[\"']", re.IGNORECASE)
_LINK_TITLE_PATTERN = re.compile(r"title=[\"']([^\"']+)[\"']", re.IGNORECASE)

_ATOM_NAMESPACE = 'xmlns="http://www.w3.org/2005/Atom"'
_ATOM_TITLE_PATTERN = re.compile(r"<feed[^>]*>[\s\S]*?<title[^>]*>([^<]+)</title>", re.IGNORECASE)
_RSS_TITLE_PATTERN = re.compile(
    r"<channel>[\s\S]*?<title>(?:<!\[CDATA\[)?([^\]<]+)(?:\]\]>)?</title>", re.IGNORECASE
)

_TAG_PATTERN = re.compile(r"<[^>]+>")
_WHITESPACE_PATTERN = re.compile(r"\s+")


def _decode_entity(match: re.Match[str]) -> str:
    entity = match.group(0)
    lowered = entity.lower()
    if lowered in _NAMED_ENTITIES:
        return _NAMED_ENTITIES[lowered]
    try:
        if lowered.startswith("&#x"):
            return chr(int(lowered[3:-1], 16))
        if lowered.startswith("&#"):
            return chr(int(lowered[2:-1]))
    except (ValueError, OverflowError):
        return entity
    return entity


def decode_html_entities(text: str | None) -> str:
    """Decode the fixed entity table plus numeric ``&#NNN;`` / ``&#xHH;`` references."""
    if not text:
        return ""
    return _ENTITY_PATTERN.sub(_decode_entity, text)


def strip_tags(html: str | None) -> str:
    """Drop markup and collapse whitespace."""
    if not html:
        return ""
    return _WHITESPACE_PATTERN.sub(" ", _TAG_PATTERN.sub(" ", html)).strip()


def truncate(text: str | None, limit: int = 300) -> str:
    """Cut ``text`` to ``limit`` characters, ending in ``...`` when shortened."""
    if not text:
        return ""
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


def find_first_img_src(html: str | None) -> str | None:
    if not html:
        return None
    match = _IMG_SRC_PATTERN.search(html)
    return match.group(1) if match else None


def find_og_image(html: str | None) -> str | None:
    """Return the ``og:image`` meta content, accepting either attribute order."""
    if not html:
        return None
    for pattern in _OG_IMAGE_PATTERNS:
        match = pattern.search(html)
        if match:
            return match.group(1)
    return None


def find_channel_id_in_page(html: str | None) -> str | None:
    """Scan a YouTube channel page for an embedded ``UC...`` channel id."""
    if not html:
        return None
    for pattern in _CHANNEL_ID_PATTERNS:
        match = pattern.search(html)
        if match:
            return match.group(1)
    return None


def extract_page_title(html: str | None) -> str | None:
    if not html:
        return None
    match = _PAGE_TITLE_PATTERN.search(html)
    if not match:
        return None
    title = decode_html_entities(match.group(1)).strip()
    return title or None


def extract_feed_links(html: str | None, base_url: str) -> list[tuple[str, str | None, FeedFormat]]:
    """
    Find ``<link type="application/rss+xml|atom+xml">`` tags in a page.

    Relative hrefs are resolved against ``base_url``. Duplicate URLs keep their
    first occurrence.

    Returns:
        List of ``(absolute_url, title, format)`` tuples in document order.
    """
    if not html:
        return []

    found: list[tuple[str, str | None, FeedFormat]] = []
    seen: set[str] = set()
    for tag in _FEED_LINK_PATTERN.findall(html):
        href_match = _HREF_PATTERN.search(tag)
        if not href_match:
            continue
        href = decode_html_entities(href_match.group(1)).strip()
        if not href:
            continue
        absolute = urljoin(base_url, href)
        if absolute in seen:
            continue
        seen.add(absolute)

        title_match = _LINK_TITLE_PATTERN.search(tag)
        title = decode_html_entities(title_match.group(1)).strip() if title_match else None
        feed_format = FeedFormat.ATOM if "atom" in tag.lower() else FeedFormat.RSS
        found.append((absolute, title or None, feed_format))
    return found


def sniff_feed(text: str | None, content_type: str | None = None) -> FeedFormat | None:
    """
    Decide whether a response body is a syndication feed.

    The body qualifies when it starts with ``<?xml``/``<rss``/``<feed`` or the
    content type mentions xml. Atom needs a ``<feed`` root plus the Atom
    namespace; RSS needs ``<rss`` or ``<channel>``.
    """
    if not text:
        return None
    head = text.lstrip()
    looks_like_xml = head.startswith(("<?xml", "<rss", "<feed"))
    if not looks_like_xml and "xml" not in (content_type or "").lower():
        return None

    if "<feed" in text and _ATOM_NAMESPACE in text:
        return FeedFormat.ATOM
    if "<rss" in text or "<channel>" in text:
        return FeedFormat.RSS
    return None


def extract_feed_title(text: str | None, feed_format: FeedFormat) -> str | None:
    if not text:
        return None
    pattern = _ATOM_TITLE_PATTERN if feed_format == FeedFormat.ATOM else _RSS_TITLE_PATTERN
    match = pattern.search(text)
    if not match:
        return None
    title = decode_html_entities(match.group(1)).strip()
    return title or None


_ENTRY_PATTERN = re.compile(r"<entry>([\s\S]*?)</entry>")
_VIDEO_ID_PATTERN = re.compile(r"<yt:videoId>([^<]+)</yt:videoId>")
_ENTRY_TITLE_PATTERN = re.compile(r"<title>([^<]*)</title>")
_PUBLISHED_PATTERN = re.compile(r"<published>([^<]+)</published>")
_MEDIA_DESCRIPTION_PATTERN = re.compile(r"<media:description>([\s\S]*?)</media:description>")
_AUTHOR_NAME_PATTERN = re.compile(r"<author>\s*<name>([^<]+)</name>")


def scan_youtube_feed_entries(xml: str | None) -> list[dict[str, str | None]]:
    """
    Pull the fields of each ``<entry>`` out of a YouTube channel Atom feed.

    Entries without ``<yt:videoId>`` are dropped. Text fields come back
    entity-decoded; ``published`` is the raw timestamp string.
    """
    if not xml:
        return []

    entries: list[dict[str, str | None]] = []
    for body in _ENTRY_PATTERN.findall(xml):
        video_id_match = _VIDEO_ID_PATTERN.search(body)
        if not video_id_match or not video_id_match.group(1).strip():
            continue

        title_match = _ENTRY_TITLE_PATTERN.search(body)
        published_match = _PUBLISHED_PATTERN.search(body)
        description_match = _MEDIA_DESCRIPTION_PATTERN.search(body)
        author_match = _AUTHOR_NAME_PATTERN.search(body)

        entries.append(
            {
                "video_id": video_id_match.group(1).strip(),
                "title": decode_html_entities(title_match.group(1)).strip() if title_match else "",
                "published": published_match.group(1).strip() if published_match else None,
                "description": (
                    decode_html_entities(description_match.group(1)).strip()
                    if description_match
                    else ""
                ),
                "author": (
                    decode_html_entities(author_match.group(1)).strip() if author_match else None
                ),
            }
        )
    return entries
