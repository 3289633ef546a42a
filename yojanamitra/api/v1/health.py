"""Health check endpoints for YojanaMitra API v1.

Provides liveness and readiness probes.  Readiness reports whether the
scheme catalogue backing the matcher was loaded.
"""

from __future__ import annotations

import time

import structlog
from fastapi import APIRouter, Request
from pydantic import BaseModel, ConfigDict, Field

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Basic health check response."""

    model_config = ConfigDict(populate_by_name=True)

    status: str
    version: str
    uptime_seconds: float = Field(alias="uptimeSeconds")
    schemes_loaded: int = Field(default=0, alias="schemesLoaded")


class ReadinessResponse(BaseModel):
    """Readiness check response with individual component statuses."""

    status: str
    checks: dict[str, str]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Liveness probe.

    Returns 200 if the application process is running and able to
    handle requests.  Does *not* check the catalogue.
    """
    start_time: float = getattr(request.app.state, "start_time", time.time())
    uptime = time.time() - start_time

    return HealthResponse(
        status="healthy",
        version=request.app.version,
        uptime_seconds=round(uptime, 2),
        schemes_loaded=len(getattr(request.app.state, "scheme_candidates", None) or []),
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(request: Request) -> ReadinessResponse:
    """Readiness probe.

    The matching engine itself has no dependencies; the service is ready
    once the candidate catalogue and the matcher are in place.
    """
    checks: dict[str, str] = {}
    all_ok = True

    candidates = getattr(request.app.state, "scheme_candidates", None)
    if candidates:
        checks["catalogue"] = f"ok ({len(candidates)} schemes loaded)"
    else:
        checks["catalogue"] = "no_data"
        all_ok = False

    if getattr(request.app.state, "matcher", None) is not None:
        checks["matcher"] = "ok"
    else:
        checks["matcher"] = "not_initialised"
        all_ok = False

    status = "ready" if all_ok else "degraded"

    logger.info("health.readiness_check", status=status, checks=checks)

    return ReadinessResponse(status=status, checks=checks)
