"""Health check endpoints for monitoring and deployment verification."""

import time

from fastapi import APIRouter, Depends, Response, status

from src.api.deps import get_db
from src.core.config import get_settings
from src.core.stripe import check_stripe_configuration
from src.core.supabase import Database
from src.schemas.common import CheckResult, HealthResponse, HealthStatus, ReadinessResponse

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness check",
    description="Basic health check to verify the service is running. Used for liveness probes.",
)
async def health_check() -> HealthResponse:
    """Return basic health status.

    This endpoint should always return 200 if the service is running.
    It does not check external dependencies.
    """
    settings = get_settings()
    return HealthResponse(status=HealthStatus.HEALTHY, version=settings.app_version, environment=settings.app_env)


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    responses={
        200: {"description": "All dependencies healthy"},
        503: {"description": "One or more dependencies unhealthy"},
    },
    summary="Readiness check",
    description="Check if all dependencies are available. Used for readiness probes.",
)
async def readiness_check(response: Response, db: Database = Depends(get_db)) -> ReadinessResponse:
    """Check readiness of all dependencies.

    Verifies that the service can handle requests by checking:
    - Database connectivity (Supabase)
    - Stripe keys for checkout and webhooks

    Returns 503 if any dependency is unhealthy.
    """
    checks: list[CheckResult] = []

    # Check database connection
    start_time = time.perf_counter()
    db_result = await db.check_connection() if db.is_open else {"healthy": False, "error": "Database handle is not open"}
    latency_ms = (time.perf_counter() - start_time) * 1000

    checks.append(
        CheckResult(
            name="database",
            healthy=db_result["healthy"],
            latency_ms=round(latency_ms, 2),
            error=db_result.get("error"),
        )
    )

    stripe_result = check_stripe_configuration()
    checks.append(
        CheckResult(
            name="stripe",
            healthy=stripe_result["healthy"],
            error=stripe_result.get("error"),
        )
    )

    readiness = ReadinessResponse.from_checks(checks)
    if readiness.status is HealthStatus.UNHEALTHY:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return readiness
