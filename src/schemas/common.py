"""Response shapes shared by every router: health probes and the error body."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    """Liveness probe body; says nothing about the database or Stripe."""

    status: HealthStatus
    version: str = Field(description="Deployed application version")
    environment: str = Field(description="APP_ENV of the running instance")
    timestamp: datetime = Field(default_factory=utc_now)


class CheckResult(BaseModel):
    """Outcome of one readiness dependency check."""

    name: str = Field(description="Dependency name, e.g. database or stripe")
    healthy: bool
    latency_ms: float | None = Field(default=None, description="Round trip, for checks that make one")
    error: str | None = Field(default=None, description="Why the dependency is unavailable")


class ReadinessResponse(BaseModel):
    """Readiness probe body. Unhealthy whenever any check fails."""

    status: HealthStatus
    checks: list[CheckResult] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utc_now)

    @classmethod
    def from_checks(cls, checks: list[CheckResult]) -> "ReadinessResponse":
        healthy = all(check.healthy for check in checks)
        return cls(status=HealthStatus.HEALTHY if healthy else HealthStatus.UNHEALTHY, checks=checks)


class ErrorDetail(BaseModel):
    """One field-level or item-level problem, e.g. loc=["items", "soap-1"]."""

    loc: list[str | int] | None = None
    msg: str
    type: str


class ErrorResponse(BaseModel):
    """Body of every error response the API returns.

    `error` is the machine-readable type (not_found, unknown_item,
    no_price_available, ...); `message` is safe to show to a shopper and never
    carries provider internals.
    """

    error: str
    message: str
    details: list[ErrorDetail] | None = None
    request_id: str | None = None
    timestamp: datetime = Field(default_factory=utc_now)

    @classmethod
    def from_exception(
        cls,
        error_type: str,
        message: str,
        details: list[dict[str, Any]] | None = None,
        request_id: str | None = None,
    ) -> "ErrorResponse":
        """Build the body from an APIError's fields.

        Detail dicts missing `msg` or `type` are filled in rather than rejected,
        so a sloppy raise site still renders.
        """
        return cls(
            error=error_type,
            message=message,
            details=[
                ErrorDetail(loc=d.get("loc"), msg=d.get("msg", str(d)), type=d.get("type", error_type))
                for d in details
            ]
            if details
            else None,
            request_id=request_id,
        )
