import threading
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor

from radar.core.db import get_db
from radar.core.errors import AccountRequiredError
from radar.core.logging import get_logger
from radar.models.contracts import FETCHABLE_SOURCE_TYPES, SourceType
from radar.models.fetch_results import FetchCycleResult
from radar.repositories.content_store import SqlAlchemyContentStore
from radar.scraping.base import BaseFetchCycle
from radar.scraping.polymarket import PolymarketFetchCycle
from radar.scraping.rss import RssFetchCycle
from radar.scraping.youtube import YoutubeFetchCycle
from radar.utils.error_logger import log_error, log_fetch_event

logger = get_logger(__name__)

CycleFactory = Callable[[], BaseFetchCycle]

DEFAULT_CYCLE_FACTORIES: dict[SourceType, CycleFactory] = {
    SourceType.RSS: RssFetchCycle,
    SourceType.YOUTUBE: YoutubeFetchCycle,
    SourceType.POLYMARKET: PolymarketFetchCycle,
}


class FetchRunner:
    """Runs the per-type fetch cycles for one or many accounts."""

    def __init__(
        self,
        cycle_factories: dict[SourceType, CycleFactory] | None = None,
        max_workers: int = len(FETCHABLE_SOURCE_TYPES),
    ):
        self.cycle_factories = cycle_factories or DEFAULT_CYCLE_FACTORIES
        self.max_workers = max_workers

    def run_cycle(
        self,
        source_type: SourceType,
        account_id: str | None,
        source_id: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> FetchCycleResult:
        """Run a single source type's cycle; a crash becomes a failed result."""
        if not account_id:
            raise AccountRequiredError("account_id is required")

        cycle = self.cycle_factories[source_type]()
        try:
            return cycle.run(account_id, source_id=source_id, cancel_event=cancel_event)
        except AccountRequiredError:
            raise
        except Exception as e:
            log_error(
                "fetch_runner",
                e,
                operation="run_cycle",
                context={"source_type": source_type.value, "account_id": account_id},
            )
            result = FetchCycleResult(source_type=source_type.value)
            result.record_failure(source_id or "*", f"{source_type.value} cycle failed: {e}")
            return result

    def run_account(
        self,
        account_id: str | None,
        source_types: Iterable[SourceType] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> dict[str, FetchCycleResult]:
        """Run the cycles for one account concurrently, one worker per source type."""
        if not account_id:
            raise AccountRequiredError("account_id is required")

        types = list(source_types or self.cycle_factories)
        logger.info(f"Running {', '.join(t.value for t in types)} cycles for {account_id}")

        with ThreadPoolExecutor(
            max_workers=max(1, min(self.max_workers, len(types))),
            thread_name_prefix="fetch-cycle",
        ) as pool:
            futures = {
                source_type: pool.submit(
                    self.run_cycle, source_type, account_id, None, cancel_event
                )
                for source_type in types
            }
            results = {source_type.value: future.result() for source_type, future in futures.items()}

        total_inserted = sum(r.items_inserted for r in results.values())
        log_fetch_event(
            service="runner",
            event="account_finished",
            account_id=account_id,
            inserted=total_inserted,
            failed_sources=sum(r.sources_failed for r in results.values()),
        )
        return results

    def run_all_accounts(
        self,
        source_types: Iterable[SourceType] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> dict[str, dict[str, FetchCycleResult]]:
        """Cron fan-out: every account with at least one active source, sequentially."""
        accounts = self._list_accounts()
        logger.info(f"Fan-out over {len(accounts)} account(s)")
        types = list(source_types) if source_types else None

        results: dict[str, dict[str, FetchCycleResult]] = {}
        for account_id in accounts:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Fan-out cancelled")
                break
            results[account_id] = self.run_account(account_id, types, cancel_event)
        return results

    def _list_accounts(self) -> list[str]:
        with get_db() as db:
            return SqlAlchemyContentStore(db).list_accounts_with_active_sources()
