import threading
from abc import ABC, abstractmethod

from radar.core.db import get_db
from radar.core.errors import AccountRequiredError
from radar.core.logging import get_logger
from radar.models.content import LoadedSource, NormalizedItem
from radar.models.contracts import SourceType
from radar.models.fetch_results import FetchCycleResult
from radar.repositories.content_store import ContentStore, SqlAlchemyContentStore
from radar.services.content_upsert import ContentUpsertCoordinator
from radar.services.http import HttpService, get_http_service
from radar.utils.error_logger import increment_fetch_metric, log_error, log_fetch_event

logger = get_logger(__name__)

"""
Fetch cycle conventions:
------------------------
One cycle polls every active source of a single type for one account:

1) Sources are processed sequentially; items in feed order.
2) Anything raised while fetching or extracting a source fails only that
   source. The failure is recorded as ``"{source name}: {message}"`` and the
   cycle moves on.
3) Extracted items go through ContentUpsertCoordinator, which commits each
   item on its own and stamps ``last_fetched_at`` once the source is done.
4) A set cancel event stops the cycle before the next source or item; the
   partial result is returned with ``cancelled=True``.
"""


class BaseFetchCycle(ABC):
    """Base class for per-source-type fetch cycles."""

    source_type: SourceType

    def __init__(self, store: ContentStore | None = None, http: HttpService | None = None):
        self._store = store
        self.http = http or get_http_service()

    @property
    def name(self) -> str:
        return self.source_type.value

    @abstractmethod
    def fetch_items(
        self,
        source: LoadedSource,
        store: ContentStore,
        result: FetchCycleResult,
        cancel_event: threading.Event | None = None,
    ) -> list[NormalizedItem]:
        """
        Fetch and normalize one source's upstream items.

        Raise on failure; the caller turns the exception into a per-source
        error. Implementations may bump ``result.items_filtered_out``.
        """
        pass

    def run(
        self,
        account_id: str | None,
        source_id: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> FetchCycleResult:
        """Run one cycle for ``account_id`` and return its unified result."""
        if not account_id or not str(account_id).strip():
            raise AccountRequiredError(f"{self.name} fetch cycle requires an account_id")

        if self._store is not None:
            return self._run(self._store, account_id, source_id, cancel_event)

        with get_db() as db:
            return self._run(SqlAlchemyContentStore(db), account_id, source_id, cancel_event)

    def _run(
        self,
        store: ContentStore,
        account_id: str,
        source_id: str | None,
        cancel_event: threading.Event | None,
    ) -> FetchCycleResult:
        result = FetchCycleResult(source_type=self.name)
        sources = store.list_sources(account_id, self.source_type, source_id=source_id)
        coordinator = ContentUpsertCoordinator(store)

        log_fetch_event(
            service=self.name,
            event="cycle_started",
            account_id=account_id,
            source_filter=source_id,
            sources=len(sources),
        )

        for source in sources:
            if _is_cancelled(cancel_event):
                result.cancelled = True
                break

            result.sources_processed += 1
            try:
                items = self.fetch_items(source, store, result, cancel_event)
            except Exception as e:
                self._fail_source(result, source, account_id, e, "fetch_source")
                continue

            result.items_fetched += len(items)
            try:
                stats = coordinator.reconcile(account_id, source, items, cancel_event)
            except Exception as e:
                self._fail_source(result, source, account_id, e, "reconcile_source")
                continue
            result.absorb(source.id, stats)
            result.sources_succeeded += 1

            if _is_cancelled(cancel_event):
                result.cancelled = True
                break

        log_fetch_event(
            service=self.name,
            event="cycle_finished",
            metric="cycles_cancelled" if result.cancelled else "cycles_completed",
            account_id=account_id,
            **{k: v for k, v in result.to_dict().items() if k != "per_source_errors"},
            errors=len(result.per_source_errors),
        )
        logger.info(
            f"{self.name} cycle for {account_id}: {result.sources_succeeded} succeeded, "
            f"{result.sources_failed} failed, {result.items_inserted} inserted, "
            f"{result.items_updated} updated"
        )
        return result

    def _fail_source(
        self,
        result: FetchCycleResult,
        source: LoadedSource,
        account_id: str,
        error: Exception,
        operation: str,
    ) -> None:
        log_error(
            f"{self.name}_cycle",
            error,
            operation=operation,
            context={"url": source.url, "account_id": account_id},
            source_id=source.id,
        )
        result.record_failure(source.id, f"{source.label}: {error}")
        increment_fetch_metric(self.name, "source_failed")


def _is_cancelled(cancel_event: threading.Event | None) -> bool:
    return cancel_event is not None and cancel_event.is_set()
