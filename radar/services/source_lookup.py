"""Identify what a pasted URL points at before it is saved as a source."""

from __future__ import annotations

import re
from urllib.parse import urlparse

from pydantic import BaseModel

from radar.core.errors import RadarError
from radar.core.logging import get_logger
from radar.models.contracts import SourceType
from radar.services.channel_resolver import ChannelResolver, is_youtube_url, parse_channel_url
from radar.services.feed_discovery import FeedDiscoverer

logger = get_logger(__name__)

TWITTER_HOSTS: tuple[str, ...] = ("twitter.com", "x.com")
_TWITTER_USERNAME_PATTERN = re.compile(r"(?:twitter\.com|x\.com)/([a-zA-Z0-9_]+)", re.IGNORECASE)


class SourceInfo(BaseModel):
    type: SourceType
    name: str
    url: str
    image_url: str | None = None
    description: str | None = None
    channel_id: str | None = None
    username: str | None = None
    feed_url: str | None = None
    subscriber_count: int | None = None


def is_twitter_url(url: str) -> bool:
    try:
        host = (urlparse(url if "://" in url else f"https://{url}").hostname or "").lower()
    except ValueError:
        return False
    return any(host == domain or host.endswith(f".{domain}") for domain in TWITTER_HOSTS)


class SourceLookupService:
    """Classify a URL as a YouTube channel, an X profile or an RSS/Atom site."""

    def __init__(self, resolver: ChannelResolver, discoverer: FeedDiscoverer):
        self.resolver = resolver
        self.discoverer = discoverer

    def lookup(self, url: str) -> SourceInfo | None:
        """
        Describe ``url`` as a prospective source.

        Returns ``None`` when nothing usable is found.

        Raises:
            ValueError: the URL names a platform but no channel or profile in it
        """
        url = url.strip()
        if is_youtube_url(url):
            return self.lookup_youtube(url)
        if is_twitter_url(url):
            return self.lookup_twitter(url)
        return self.lookup_rss(url)

    def lookup_youtube(self, url: str) -> SourceInfo | None:
        identifier = parse_channel_url(url)
        if identifier is None:
            raise ValueError("Could not extract channel from YouTube URL")

        channel_id = self.resolver.resolve(url)
        if not channel_id:
            return None

        try:
            details = self.resolver.fetch_channel_details(channel_id)
        except RadarError as e:
            logger.warning(f"Channel details lookup failed for {channel_id}: {e}")
            details = None

        if details is None:
            return SourceInfo(
                type=SourceType.YOUTUBE,
                name=identifier.identifier,
                url=f"https://www.youtube.com/channel/{channel_id}",
                channel_id=channel_id,
            )

        return SourceInfo(
            type=SourceType.YOUTUBE,
            name=details.name,
            url=details.url,
            image_url=details.image_url,
            description=details.description,
            channel_id=details.channel_id,
            subscriber_count=details.subscriber_count,
        )

    def lookup_twitter(self, url: str) -> SourceInfo:
        match = _TWITTER_USERNAME_PATTERN.search(url)
        if not match:
            raise ValueError("Could not extract username from Twitter/X URL")

        username = match.group(1)
        return SourceInfo(
            type=SourceType.TWITTER,
            name=f"@{username}",
            url=f"https://x.com/{username}",
            username=username,
            description="Twitter/X profile - name will be updated when content is fetched",
        )

    def lookup_rss(self, url: str) -> SourceInfo | None:
        result = self.discoverer.discover(url)
        if not result.feeds:
            return None

        feed = result.feeds[0]
        return SourceInfo(
            type=SourceType.RSS,
            name=feed.title or result.page_title or "RSS Feed",
            url=url,
            feed_url=feed.url,
        )
