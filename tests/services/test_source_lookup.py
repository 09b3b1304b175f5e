"""Tests for pasted-URL source lookup."""

import pytest

from radar.core.errors import FetchError
from radar.models.contracts import SourceType
from radar.services.channel_resolver import YOUTUBE_API_BASE, ChannelResolver
from radar.services.feed_discovery import FeedDiscoverer
from radar.services.source_lookup import SourceLookupService, is_twitter_url

CHANNEL_ID = "UCabcdefghijklmnopqrstuv"


def _service(http, api_key=""):
    return SourceLookupService(ChannelResolver(http, api_key=api_key), FeedDiscoverer(http))


def test_twitter_profile(fake_http):
    info = _service(fake_http).lookup("https://twitter.com/some_user/status/1")

    assert info.type == SourceType.TWITTER
    assert info.name == "@some_user"
    assert info.url == "https://x.com/some_user"
    assert info.username == "some_user"
    assert fake_http.calls == []


def test_youtube_url_without_channel_is_rejected(fake_http):
    with pytest.raises(ValueError):
        _service(fake_http).lookup("https://www.youtube.com/watch?v=abc")


def test_youtube_without_api_key_returns_basic_info(fake_http):
    info = _service(fake_http).lookup(f"https://www.youtube.com/channel/{CHANNEL_ID}")

    assert info.type == SourceType.YOUTUBE
    assert info.channel_id == CHANNEL_ID
    assert info.name == CHANNEL_ID
    assert info.url == f"https://www.youtube.com/channel/{CHANNEL_ID}"


def test_youtube_with_details(fake_http):
    fake_http.add(
        f"{YOUTUBE_API_BASE}/channels",
        json={"items": [{"snippet": {"title": "Channel Name"}, "statistics": {}}]},
    )

    info = _service(fake_http, api_key="key").lookup(f"https://youtube.com/channel/{CHANNEL_ID}")

    assert info.name == "Channel Name"
    assert info.subscriber_count is None


def test_unresolvable_youtube_channel(fake_http):
    assert _service(fake_http).lookup("https://www.youtube.com/@ghost") is None


def test_rss_site_uses_feed_title(fake_http):
    fake_http.add(
        "https://blog.example.com",
        '<html><head><title>Blog Home</title>'
        '<link type="application/rss+xml" href="/index.xml"></head></html>',
    )

    info = _service(fake_http).lookup("https://blog.example.com")

    assert info.type == SourceType.RSS
    assert info.name == "Blog Home"
    assert info.feed_url == "https://blog.example.com/index.xml"
    assert info.url == "https://blog.example.com"


def test_site_without_feeds(fake_http):
    assert _service(fake_http).lookup("https://nothing.example.com") is None


def test_details_api_failure_falls_back_to_basic_info(fake_http):
    fake_http.add(
        f"{YOUTUBE_API_BASE}/channels",
        error=FetchError("HTTP 403 for channels", status_code=403),
    )

    info = _service(fake_http, api_key="key").lookup(f"https://www.youtube.com/channel/{CHANNEL_ID}")

    assert info.type == SourceType.YOUTUBE
    assert info.channel_id == CHANNEL_ID
    assert info.name == CHANNEL_ID


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://x.com/radar_app", True),
        ("https://mobile.twitter.com/radar_app", True),
        ("twitter.com/radar_app", True),
        ("https://blog.dropbox.com/topics/x", False),
        ("https://netflix.com/browse", False),
        ("http://[::1/blog", False),
    ],
)
def test_twitter_detection_uses_the_host(url, expected):
    assert is_twitter_url(url) is expected


def test_site_with_x_com_suffix_is_treated_as_rss(fake_http):
    fake_http.add(
        "https://blog.dropbox.com",
        '<html><head><link type="application/rss+xml" href="/feed.xml"></head></html>',
    )

    info = _service(fake_http).lookup("https://blog.dropbox.com")

    assert info.type == SourceType.RSS
    assert info.feed_url == "https://blog.dropbox.com/feed.xml"
