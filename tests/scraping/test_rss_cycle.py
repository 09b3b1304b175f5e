"""Tests for RSS/Atom extraction and the RSS fetch cycle."""

import pytest

from radar.core.errors import FeedParseError
from radar.models.contracts import ContentType
from radar.models.schema import ContentItem, Source
from radar.scraping.rss import RssFetchCycle, extract_feed_items

RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <title>Example Blog</title>
    <link>https://example.com</link>
    <item>
      <title>First post</title>
      <link>https://example.com/posts/1</link>
      <guid isPermaLink="false">post-1</guid>
      <author>writer@example.com (Writer)</author>
      <category>Tech</category>
      <description>&lt;p&gt;Hello &lt;b&gt;world&lt;/b&gt;&lt;/p&gt;</description>
      <pubDate>Mon, 06 Oct 2025 10:00:00 GMT</pubDate>
      <enclosure url="https://cdn.example.com/cover.jpg" type="image/jpeg" length="1234"/>
      <media:thumbnail url="https://cdn.example.com/thumb.jpg"/>
    </item>
    <item>
      <title>Second post</title>
      <link>https://example.com/posts/2</link>
      <description>&lt;img src="https://example.com/inline.png"&gt; Body text</description>
    </item>
    <item>
      <title>Third post</title>
      <link>https://example.com/posts/3</link>
    </item>
  </channel>
</rss>
"""

ATOM_FEED = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom Example</title>
  <entry>
    <id>tag:example.org,2025:1</id>
    <title>Atom entry</title>
    <link href="https://example.org/entry/1"/>
    <updated>2025-10-05T08:00:00Z</updated>
    <content type="html">&lt;p&gt;Full body&lt;/p&gt;</content>
  </entry>
</feed>
"""


def test_extracts_rss_items_in_feed_order():
    items = extract_feed_items(RSS_FEED)

    assert [item.external_id for item in items] == [
        "post-1",
        "https://example.com/posts/2",
        "https://example.com/posts/3",
    ]
    first = items[0]
    assert first.type == ContentType.ARTICLE
    assert first.title == "First post"
    assert first.summary == "Hello world"
    assert first.url == "https://example.com/posts/1"
    assert first.thumbnail_url == "https://cdn.example.com/cover.jpg"
    assert first.published_at.year == 2025
    assert first.metadata["categories"] == ["Tech"]


def test_inline_image_thumbnail_and_missing_fields():
    items = extract_feed_items(RSS_FEED)

    assert items[1].thumbnail_url == "https://example.com/inline.png"
    assert items[2].thumbnail_url is None
    assert items[2].summary is None
    assert items[2].published_at is None


def test_item_limit():
    assert len(extract_feed_items(RSS_FEED, limit=2)) == 2


def test_atom_entries():
    (item,) = extract_feed_items(ATOM_FEED)

    assert item.external_id == "tag:example.org,2025:1"
    assert item.url == "https://example.org/entry/1"
    assert "Full body" in item.content


def test_malformed_document_raises():
    with pytest.raises(FeedParseError):
        extract_feed_items("this is not a feed at all")


def test_cycle_isolates_a_malformed_feed(fake_http, make_source, store, db_session):
    first = make_source("rss", "https://a.example.com/feed", name="Feed A")
    broken = make_source("rss", "https://b.example.com/feed", name="Feed B")
    third = make_source("rss", "https://c.example.com/feed", name="Feed C")
    fake_http.add(first.url, RSS_FEED, content_type="application/rss+xml")
    fake_http.add(broken.url, "<html><body>Moved</body>", content_type="text/html")
    fake_http.add(third.url, ATOM_FEED, content_type="application/atom+xml")

    result = RssFetchCycle(store=store, http=fake_http).run("acct-1")

    assert result.sources_processed == 3
    assert result.sources_succeeded == 2
    assert result.sources_failed == 1
    assert result.items_fetched == 4
    assert result.items_inserted == 4
    assert [error.source_id for error in result.per_source_errors] == [broken.id]
    assert result.per_source_errors[0].message.startswith("Feed B: ")
    assert db_session.get(Source, broken.id).last_fetched_at is None
    assert db_session.get(Source, third.id).last_fetched_at is not None


def test_second_run_skips_stored_articles(fake_http, make_source, store, db_session):
    source = make_source("rss", "https://a.example.com/feed", name="Feed A")
    fake_http.add(source.url, RSS_FEED, content_type="application/rss+xml")
    cycle = RssFetchCycle(store=store, http=fake_http)

    cycle.run("acct-1")
    result = cycle.run("acct-1")

    assert result.items_inserted == 0
    assert result.items_skipped == 3
    assert db_session.query(ContentItem).count() == 3


def test_network_failure_is_a_source_error(fake_http, make_source, store):
    make_source("rss", "https://down.example.com/feed", name="Down")

    result = RssFetchCycle(store=store, http=fake_http).run("acct-1")

    assert result.sources_failed == 1
    assert "HTTP 404" in result.per_source_errors[0].message


def test_source_metadata_item_limit(fake_http, make_source, store):
    source = make_source(
        "rss", "https://a.example.com/feed", name="Feed A", metadata={"itemLimit": 1}
    )
    fake_http.add(source.url, RSS_FEED, content_type="application/rss+xml")

    result = RssFetchCycle(store=store, http=fake_http).run("acct-1")

    assert result.items_inserted == 1
