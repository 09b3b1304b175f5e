"""Reconcile freshly extracted items against stored content.

An unseen ``(account_id, external_id)`` is inserted. A seen one is either
refreshed (live content such as prediction markets, whose odds move) or left
alone (articles and videos never change once stored). The pipeline never
deletes rows.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any

from radar.core.errors import PersistenceError
from radar.core.logging import get_logger
from radar.models.content import LoadedSource, NormalizedItem
from radar.models.contracts import LIVE_CONTENT_TYPES, ContentType
from radar.models.fetch_results import UpsertStats
from radar.models.schema import ContentItem
from radar.repositories.content_store import ContentStore

logger = get_logger(__name__)

# Metadata keys refreshed on every fetch of a live item
LIVE_METADATA_KEYS: tuple[str, ...] = ("volume", "volume24hr", "liquidity", "markets", "endDate")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def live_update_fields(row: ContentItem, item: NormalizedItem, now: datetime) -> dict[str, Any]:
    """
    Build the column updates for a re-fetched live item.

    ``previousYesPrice`` carries the stored ``currentYesPrice`` forward so the
    UI can show a price delta; on the first refresh it equals the current
    price.
    """
    stored = dict(row.item_metadata or {})
    current_yes = item.metadata.get("currentYesPrice")
    previous_yes = stored.get("currentYesPrice")

    metadata = dict(stored)
    for key in LIVE_METADATA_KEYS:
        metadata[key] = item.metadata.get(key)
    metadata["lastUpdated"] = now.isoformat()
    metadata["currentYesPrice"] = current_yes
    metadata["previousYesPrice"] = previous_yes if previous_yes is not None else current_yes

    return {"summary": item.summary, "item_metadata": metadata}


class ContentUpsertCoordinator:
    """Insert-or-update driver shared by every fetch cycle."""

    def __init__(self, store: ContentStore, clock: Callable[[], datetime] = _utcnow):
        self.store = store
        self.clock = clock

    def reconcile(
        self,
        account_id: str,
        source: LoadedSource,
        items: Iterable[NormalizedItem],
        cancel_event: threading.Event | None = None,
    ) -> UpsertStats:
        """
        Persist ``items`` for one source, committing each independently.

        Item failures are counted and logged; they never abort the batch. The
        source's ``last_fetched_at`` is stamped once the batch completes, even
        when some items failed, but not when the batch was cancelled.
        """
        stats = UpsertStats()

        for item in items:
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"Cancelled while reconciling source {source.id}")
                return stats
            self._reconcile_item(account_id, source, item, stats)

        try:
            self.store.mark_fetched(source.id, self.clock())
        except Exception as e:
            logger.error(
                f"Failed to stamp last_fetched_at for {source.label}: {e}",
                extra={"component": "content_upsert", "source_id": source.id},
            )

        logger.info(
            f"Reconciled {source.label}: inserted={stats.inserted} updated={stats.updated} "
            f"skipped={stats.skipped} errors={stats.errors}"
        )
        return stats

    def _reconcile_item(
        self, account_id: str, source: LoadedSource, item: NormalizedItem, stats: UpsertStats
    ) -> None:
        try:
            existing = self.store.find(account_id, item.external_id)
            if existing is None:
                self.store.insert(account_id, source, item)
                stats.inserted += 1
                return

            if ContentType(existing.type) in LIVE_CONTENT_TYPES:
                self.store.update(existing, live_update_fields(existing, item, self.clock()))
                stats.updated += 1
            else:
                logger.debug(f"Already stored: {item.external_id}")
                stats.skipped += 1

        except PersistenceError as e:
            if e.duplicate:
                # Another writer inserted the same key between find and insert
                logger.debug(f"Duplicate insert race for {item.external_id}")
                stats.skipped += 1
                return
            self._record_item_error(source, item, stats, e)
        except Exception as e:
            self._record_item_error(source, item, stats, e)

    def _record_item_error(
        self, source: LoadedSource, item: NormalizedItem, stats: UpsertStats, error: Exception
    ) -> None:
        logger.error(
            f"Error saving item {item.external_id}: {error}",
            extra={
                "component": "content_upsert",
                "operation": "reconcile_item",
                "source_id": source.id,
                "context_data": {"external_id": item.external_id, "url": item.url},
            },
        )
        stats.errors += 1
        stats.error_details.append(f"{source.label}: error saving {item.external_id}: {error}")
