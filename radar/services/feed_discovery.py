"""RSS/Atom feed discovery for arbitrary page URLs.

Discovery runs three passes and stops at the first that yields feeds:

1. the URL itself is a feed;
2. the page advertises feeds via ``<link type="application/rss+xml">`` tags;
3. well-known feed paths, probed under the page path before the site root.
"""

from __future__ import annotations

from urllib.parse import urlparse

from radar.core.errors import FetchError
from radar.core.logging import get_logger
from radar.models.content import DiscoveredFeed, DiscoveryResult
from radar.services.http import HttpService, get_http_service
from radar.utils.text_scanner import (
    extract_feed_links,
    extract_feed_title,
    extract_page_title,
    sniff_feed,
)

logger = get_logger(__name__)

COMMON_FEED_PATHS: tuple[str, ...] = (
    "/feed/",
    "/feed",
    "/rss/",
    "/rss",
    "/feed.xml",
    "/rss.xml",
    "/atom.xml",
    "/index.xml",
    "/feeds/posts/default",  # Blogger
    "?feed=rss2",  # WordPress
)

FEED_ACCEPT = "application/rss+xml, application/atom+xml, application/xml, text/xml"
HTML_ACCEPT = "text/html,application/xhtml+xml"


class FeedDiscoverer:
    """Find the syndication feeds behind a page URL."""

    def __init__(self, http: HttpService | None = None):
        self.http = http or get_http_service()

    def discover(self, page_url: str) -> DiscoveryResult:
        try:
            parsed = urlparse((page_url or "").strip())
        except ValueError:
            parsed = None
        if parsed is None or parsed.scheme not in ("http", "https") or not parsed.netloc:
            logger.info(f"Skipping feed discovery for invalid URL: {page_url!r}")
            return DiscoveryResult()

        page_url = page_url.strip()
        direct = self.probe(page_url)
        if direct:
            return DiscoveryResult(feeds=[direct], page_title=direct.title)

        origin = f"{parsed.scheme}://{parsed.netloc}"
        page_title: str | None = None
        feeds: list[DiscoveredFeed] = []

        try:
            html, _ = self.http.fetch_text(page_url, headers={"Accept": HTML_ACCEPT})
            page_title = extract_page_title(html)
            feeds = [
                DiscoveredFeed(url=url, title=title, type=feed_format)
                for url, title, feed_format in extract_feed_links(html, origin + "/")
            ]
        except FetchError as e:
            logger.info(f"Could not fetch {page_url} for feed links: {e}")

        if not feeds:
            guessed = self._probe_common_paths(origin, parsed.path.rstrip("/"))
            if guessed:
                feeds.append(guessed)

        logger.info(
            f"Discovered {len(feeds)} feed(s) for {page_url}",
            extra={
                "component": "feed_discovery",
                "operation": "discover",
                "context_data": {"page_url": page_url, "feeds": [f.url for f in feeds]},
            },
        )
        return DiscoveryResult(feeds=feeds, page_title=page_title)

    def _probe_common_paths(self, origin: str, base_path: str) -> DiscoveredFeed | None:
        bases = [origin + base_path]
        if base_path:
            bases.append(origin)

        for base in bases:
            for suffix in COMMON_FEED_PATHS:
                feed = self.probe(base + suffix)
                if feed:
                    return feed
        return None

    def probe(self, url: str) -> DiscoveredFeed | None:
        """Fetch ``url`` and describe it when the body is an RSS or Atom feed."""
        try:
            text, content_type = self.http.fetch_text(url, headers={"Accept": FEED_ACCEPT})
        except FetchError:
            return None

        feed_format = sniff_feed(text, content_type)
        if feed_format is None:
            return None
        return DiscoveredFeed(url=url, title=extract_feed_title(text, feed_format), type=feed_format)
