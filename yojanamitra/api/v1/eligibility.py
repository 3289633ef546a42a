"""Eligibility matching API endpoints for YojanaMitra v1.

Provides endpoints for:
    * Matching a citizen profile against candidate schemes (eligible +
      near-miss with explanations)
    * Looking up the citizen-facing reason and action for a failed
      dimension code
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field, field_validator

from yojanamitra.models.enums import Dimension
from yojanamitra.models.match import NearMissExplanation
from yojanamitra.models.scheme import (
    RECOGNIZED_PARSERS,
    EligibilityDescriptor,
    SchemeCandidate,
)
from yojanamitra.models.user_profile import UserProfile
from yojanamitra.services.candidates import SchemeMatcher
from yojanamitra.services.eligibility import (
    DEFAULT_LIMIT,
    DEFAULT_NEAR_MISS_MAX,
    action_for,
    explain,
    match,
    reason_for,
    tier_of,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

router = APIRouter(prefix="/eligibility", tags=["eligibility"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class MatchRequest(BaseModel):
    """Profile to match, with an optional explicit candidate list."""

    model_config = ConfigDict(populate_by_name=True)

    profile: UserProfile
    candidates: list[SchemeCandidate] | None = None
    limit: int | None = Field(default=None, ge=0)
    near_miss_max: int | None = Field(default=None, ge=0, alias="nearMissMax")

    @field_validator("candidates")
    @classmethod
    def _unique_ids(cls, value: list[SchemeCandidate] | None) -> list[SchemeCandidate] | None:
        # Explanations look descriptors up by id.
        if value is not None:
            seen: set[str] = set()
            for candidate in value:
                if candidate.id in seen:
                    raise ValueError(f"duplicate scheme id: {candidate.id}")
                seen.add(candidate.id)
        return value


class MatchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    eligible: list[str]
    near_miss: list[NearMissExplanation] = Field(alias="nearMiss")
    total_eligible: int = Field(alias="totalEligible")
    total_near_miss: int = Field(alias="totalNearMiss")


class ReasonResponse(BaseModel):
    code: str
    reason: str
    action: str | None = None
    tier: str | None = None


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/match", response_model=MatchResponse)
async def match_profile(body: MatchRequest, request: Request) -> MatchResponse:
    """Classify candidate schemes for a profile.

    With ``candidates`` in the body the engine runs over exactly those.
    Otherwise candidates come from the server's catalogue, narrowed to
    the profile's state.
    """
    if body.candidates is not None:
        candidates = body.candidates
        result = match(
            body.profile,
            candidates,
            limit=DEFAULT_LIMIT if body.limit is None else body.limit,
            near_miss_max=(
                DEFAULT_NEAR_MISS_MAX if body.near_miss_max is None else body.near_miss_max
            ),
            recognized_parsers=_recognized_parsers(request),
        )
    else:
        matcher: SchemeMatcher | None = getattr(request.app.state, "matcher", None)
        if matcher is None:
            raise HTTPException(
                status_code=503,
                detail="Scheme catalogue is not available. Send candidates in the request.",
            )
        candidates = getattr(request.app.state, "scheme_candidates", [])
        result = await matcher.match_profile(
            body.profile, limit=body.limit, near_miss_max=body.near_miss_max
        )

    descriptors: dict[str, EligibilityDescriptor | None] = {
        c.id: c.eligibility for c in candidates
    }
    near_miss = [
        explain(entry, descriptors.get(entry.scheme_id)) for entry in result.near_miss
    ]

    logger.info(
        "api.eligibility.matched",
        state=body.profile.state,
        eligible=len(result.eligible),
        near_miss=len(near_miss),
    )

    return MatchResponse(
        eligible=result.eligible,
        near_miss=near_miss,
        total_eligible=len(result.eligible),
        total_near_miss=len(near_miss),
    )


@router.get("/reasons", response_model=list[ReasonResponse])
async def list_reasons() -> list[ReasonResponse]:
    """Reason and suggested action for every dimension code."""
    return [_reason_entry(dimension) for dimension in Dimension]


@router.get("/reasons/{code}", response_model=ReasonResponse)
async def get_reason(code: str) -> ReasonResponse:
    """Reason and action for one code.  Unknown codes get the generic reason."""
    try:
        dimension = Dimension(code)
    except ValueError:
        return ReasonResponse(code=code, reason=reason_for(code), action=action_for(code))
    return _reason_entry(dimension)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _reason_entry(dimension: Dimension) -> ReasonResponse:
    # Without a concrete scheme the special-category tier depends on data.
    tier: str | None = None
    if dimension is not Dimension.SPECIAL_CATEGORY:
        tier = tier_of(dimension, EligibilityDescriptor()).value
    return ReasonResponse(
        code=dimension.value,
        reason=reason_for(dimension),
        action=action_for(dimension),
        tier=tier,
    )


def _recognized_parsers(request: Request) -> frozenset[str]:
    recognized: Any = getattr(request.app.state, "recognized_parsers", None)
    if recognized is None:
        return RECOGNIZED_PARSERS
    return frozenset(recognized)
