"""Scheduled jobs triggered by the platform scheduler."""

import hmac
import time
from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from project_ledger.config import settings
from project_ledger.deps import DbSession, ReportCacheDep
from project_ledger.logger import get_logger
from project_ledger.schemas import PrecomputeResponse
from project_ledger.services.precompute import precompute_reports
from project_ledger.utils import raise_unauthorized

router = APIRouter(prefix="/cron", tags=["cron"])
logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def require_cron_secret(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> None:
    """Reject callers that do not present ``Bearer <CRON_SECRET>``.

    With no secret configured every call is rejected.
    """
    secret = settings.cron_secret
    if not secret or credentials is None:
        raise_unauthorized("Unauthorized")
    if not hmac.compare_digest(credentials.credentials.encode(), secret.encode()):
        logger.warning("Rejected cron call with invalid token")
        raise_unauthorized("Unauthorized")


@router.get(
    "/precompute",
    response_model=PrecomputeResponse,
    dependencies=[Depends(require_cron_secret)],
)
async def precompute(db: DbSession, cache: ReportCacheDep) -> PrecomputeResponse:
    """Warm the cache for the most requested reports."""
    started = time.perf_counter()
    results = await precompute_reports(db, cache)
    duration_ms = round((time.perf_counter() - started) * 1000)

    failed = [result.report for result in results if result.status != "success"]
    logger.info(
        "Pre-computed reports",
        count=len(results),
        failed=failed,
        duration_ms=duration_ms,
    )

    return PrecomputeResponse(
        success=True,
        timestamp=datetime.now(UTC),
        duration=f"{duration_ms}ms",
        results=results,
    )
