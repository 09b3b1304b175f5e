#!/usr/bin/env python3
"""
Run fetch cycles from the command line.

Fetches one account's sources (optionally a single source or a subset of
source types), or every account with active sources when --all-accounts is
given. Ctrl-C stops the cycles after the current item; committed items stay.
"""

import argparse
import os
import signal
import sys
import threading

# Add parent directory so we can import from radar
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from radar.core.db import init_db
from radar.core.logging import get_logger, setup_logging
from radar.models.contracts import FETCHABLE_SOURCE_TYPES, SourceType
from radar.models.fetch_results import FetchCycleResult
from radar.scraping.runner import FetchRunner

logger = get_logger(__name__)


def _log_result(result: FetchCycleResult) -> None:
    logger.info(f"\n{result.source_type}:")
    logger.info(
        "  Sources: %s processed, %s succeeded, %s failed",
        result.sources_processed,
        result.sources_succeeded,
        result.sources_failed,
    )
    logger.info(
        "  Items: %s fetched, %s inserted, %s updated, %s skipped, %s filtered out, %s failed",
        result.items_fetched,
        result.items_inserted,
        result.items_updated,
        result.items_skipped,
        result.items_filtered_out,
        result.items_failed,
    )
    for error in result.per_source_errors:
        logger.warning(f"  [{error.source_id}] {error.message}")
    if result.cancelled:
        logger.warning("  Cycle was cancelled before finishing")


def main():
    parser = argparse.ArgumentParser(description="Run source fetch cycles")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--account", help="Account whose sources are fetched")
    target.add_argument(
        "--all-accounts",
        action="store_true",
        help="Fetch every account with at least one active source",
    )
    parser.add_argument("--source-id", help="Only fetch this source (requires --account)")
    parser.add_argument(
        "--types",
        nargs="*",
        choices=[t.value for t in FETCHABLE_SOURCE_TYPES],
        help="Source types to fetch. If not specified, runs all.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.source_id and not args.account:
        parser.error("--source-id requires --account")

    # Setup logging
    log_level = "DEBUG" if args.debug else "INFO"
    setup_logging(level=log_level)

    logger.info("=" * 60)
    logger.info("Radar fetch cycles")
    logger.info("=" * 60)

    init_db()

    cancel_event = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: cancel_event.set())

    runner = FetchRunner()
    types = [SourceType(t) for t in args.types] if args.types else list(FETCHABLE_SOURCE_TYPES)

    if args.all_accounts:
        by_account = runner.run_all_accounts(types, cancel_event=cancel_event)
    elif args.source_id:
        by_account = {
            args.account: {
                t.value: runner.run_cycle(t, args.account, args.source_id, cancel_event)
                for t in types
            }
        }
    else:
        by_account = {args.account: runner.run_account(args.account, types, cancel_event)}

    exit_code = 0
    for account_id, results in by_account.items():
        logger.info("\n" + "=" * 60)
        logger.info(f"Account {account_id}")
        for result in results.values():
            _log_result(result)
            if result.sources_failed:
                exit_code = 1

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
