"""Tests for insert-or-update reconciliation."""

import threading
from datetime import UTC, datetime

import pytest
from sqlalchemy.exc import OperationalError

from radar.core.errors import PersistenceError
from radar.models.content import NormalizedItem
from radar.models.contracts import ContentType
from radar.models.schema import ContentItem, Source
from radar.repositories.content_store import load_source
from radar.services.content_upsert import ContentUpsertCoordinator

NOW = datetime(2025, 10, 1, 12, 0, tzinfo=UTC)


def _article(external_id: str, title: str = "Post") -> NormalizedItem:
    return NormalizedItem(
        external_id=external_id,
        type=ContentType.ARTICLE,
        title=title,
        url=f"https://example.com/{external_id}",
    )


def _market(yes_price: float, volume: float = 1000.0) -> NormalizedItem:
    return NormalizedItem(
        external_id="polymarket:42",
        type=ContentType.PREDICTION,
        title="Will it happen?",
        summary=f"Yes: {round(yes_price * 100)}%",
        url="https://polymarket.com/event/it",
        metadata={
            "volume": volume,
            "volume24hr": 10.0,
            "liquidity": 5.0,
            "markets": [],
            "tags": [{"slug": "politics"}],
            "endDate": "2026-01-01T00:00:00Z",
            "currentYesPrice": yes_price,
        },
    )


@pytest.fixture
def rss_source(make_source):
    return load_source(make_source("rss", "https://example.com/feed.xml", name="Example"))


@pytest.fixture
def coordinator(store):
    return ContentUpsertCoordinator(store, clock=lambda: NOW)


def test_inserts_new_items_and_stamps_source(coordinator, rss_source, db_session):
    stats = coordinator.reconcile("acct-1", rss_source, [_article("a"), _article("b")])

    assert (stats.inserted, stats.updated, stats.skipped, stats.errors) == (2, 0, 0, 0)
    assert db_session.query(ContentItem).count() == 2
    assert db_session.get(Source, rss_source.id).last_fetched_at is not None


def test_static_items_are_skipped_on_refetch(coordinator, rss_source, db_session):
    coordinator.reconcile("acct-1", rss_source, [_article("a", "Original")])

    stats = coordinator.reconcile("acct-1", rss_source, [_article("a", "Edited upstream")])

    assert (stats.inserted, stats.updated, stats.skipped) == (0, 0, 1)
    row = db_session.query(ContentItem).one()
    assert row.title == "Original"


def test_same_external_id_is_separate_per_account(coordinator, rss_source, db_session):
    coordinator.reconcile("acct-1", rss_source, [_article("a")])
    stats = coordinator.reconcile("acct-2", rss_source, [_article("a")])

    assert stats.inserted == 1
    assert db_session.query(ContentItem).count() == 2


def test_live_items_refresh_and_carry_previous_price(coordinator, make_source, db_session):
    source = load_source(make_source("polymarket", "https://polymarket.com", name="Markets"))

    coordinator.reconcile("acct-1", source, [_market(0.40)])
    first = db_session.query(ContentItem).one().item_metadata
    assert first["currentYesPrice"] == 0.40
    assert "previousYesPrice" not in first

    stats = coordinator.reconcile("acct-1", source, [_market(0.55, volume=2500.0)])

    assert (stats.inserted, stats.updated) == (0, 1)
    db_session.expire_all()
    row = db_session.query(ContentItem).one()
    assert row.summary == "Yes: 55%"
    assert row.item_metadata["currentYesPrice"] == 0.55
    assert row.item_metadata["previousYesPrice"] == 0.40
    assert row.item_metadata["volume"] == 2500.0
    assert row.item_metadata["tags"] == [{"slug": "politics"}]
    assert row.item_metadata["lastUpdated"] == NOW.isoformat()


class _RacingStore:
    """Store whose insert always loses a race with another writer."""

    def __init__(self, duplicate: bool):
        self.duplicate = duplicate
        self.stamped = []

    def find(self, account_id, external_id):
        return None

    def insert(self, account_id, source, item):
        raise PersistenceError("UNIQUE constraint failed", duplicate=self.duplicate)

    def mark_fetched(self, source_id, fetched_at):
        self.stamped.append(source_id)


def test_duplicate_insert_race_counts_as_skipped(rss_source):
    store = _RacingStore(duplicate=True)

    stats = ContentUpsertCoordinator(store).reconcile("acct-1", rss_source, [_article("a")])

    assert (stats.skipped, stats.errors) == (1, 0)


def test_item_errors_do_not_abort_the_batch(rss_source):
    store = _RacingStore(duplicate=False)

    stats = ContentUpsertCoordinator(store).reconcile(
        "acct-1", rss_source, [_article("a"), _article("b")]
    )

    assert stats.errors == 2
    assert stats.error_details[0].startswith("Example: error saving a:")
    assert store.stamped == [rss_source.id]


def test_cancelled_batch_is_not_stamped(coordinator, rss_source, db_session):
    cancel = threading.Event()
    cancel.set()

    stats = coordinator.reconcile("acct-1", rss_source, [_article("a")], cancel)

    assert stats.inserted == 0
    assert db_session.get(Source, rss_source.id).last_fetched_at is None


def test_store_reports_duplicates(store, rss_source):
    store.insert("acct-1", rss_source, _article("a"))

    with pytest.raises(PersistenceError) as exc_info:
        store.insert("acct-1", rss_source, _article("a"))

    assert exc_info.value.duplicate is True


def test_store_lookup_errors_become_persistence_errors(store, mocker):
    mocker.patch.object(
        store.db,
        "query",
        side_effect=OperationalError("SELECT", {}, Exception("database is locked")),
    )

    with pytest.raises(PersistenceError, match="database is locked"):
        store.find("acct-1", "a")


def test_failed_lookups_are_counted_per_item(store, rss_source, db_session, mocker):
    real_find = store.find
    mocker.patch.object(
        store,
        "find",
        side_effect=[PersistenceError("Failed to look up a: database is locked"), None],
    )

    stats = ContentUpsertCoordinator(store, clock=lambda: NOW).reconcile(
        "acct-1", rss_source, [_article("a"), _article("b")]
    )

    assert (stats.inserted, stats.errors) == (1, 1)
    assert "database is locked" in stats.error_details[0]
    assert real_find("acct-1", "b") is not None
    assert db_session.get(Source, rss_source.id).last_fetched_at is not None


class _BrokenStore:
    """Store raising something other than PersistenceError."""

    def find(self, account_id, external_id):
        raise RuntimeError("connection reset")

    def mark_fetched(self, source_id, fetched_at):
        raise RuntimeError("connection reset")


def test_unexpected_store_errors_are_contained(rss_source):
    stats = ContentUpsertCoordinator(_BrokenStore()).reconcile("acct-1", rss_source, [_article("a")])

    assert stats.errors == 1
    assert stats.error_details == ["Example: error saving a: connection reset"]
