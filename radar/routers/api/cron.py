"""Scheduler entry point: run every fetch cycle for every account."""

from typing import Annotated

from fastapi import APIRouter, Depends

from radar.core.deps import get_fetch_runner, require_cron_secret
from radar.core.logging import get_logger
from radar.routers.api.models import CronFetchResponse, FetchCycleResponse
from radar.scraping.runner import FetchRunner

logger = get_logger(__name__)

router = APIRouter(prefix="/cron", tags=["cron"])


@router.post(
    "/fetch-sources",
    response_model=CronFetchResponse,
    dependencies=[Depends(require_cron_secret)],
)
def fetch_sources(runner: Annotated[FetchRunner, Depends(get_fetch_runner)]) -> CronFetchResponse:
    results = runner.run_all_accounts()
    logger.info(f"Cron fetch finished for {len(results)} account(s)")
    return CronFetchResponse(
        accounts=len(results),
        results={
            account_id: {
                source_type: FetchCycleResponse.model_validate(result.to_dict())
                for source_type, result in cycles.items()
            }
            for account_id, cycles in results.items()
        },
    )
