"""Citizen-facing text for failed dimensions.

Static lookup tables.  Every dimension has a reason; only dimensions in
the fixable tier carry a suggested action.  Unknown codes fall back to a
generic reason instead of failing, so stored near-miss data written by
older releases still renders.
"""

from __future__ import annotations

from typing import Final

from yojanamitra.models.enums import Dimension, Tier
from yojanamitra.models.match import FailedDimension, NearMissEntry, NearMissExplanation
from yojanamitra.models.scheme import EligibilityDescriptor
from yojanamitra.services.eligibility.tiers import tier_of

GENERIC_REASON: Final[str] = "You do not meet one of this scheme's eligibility conditions."

_REASONS: Final[dict[str, str]] = {
    Dimension.FARMER_TYPE: "This scheme is meant for a different type of farmer or occupation.",
    Dimension.LAND_OWNERSHIP: "This scheme requires a different land ownership status.",
    Dimension.AGE_RANGE: "Your age group is outside this scheme's age limit.",
    Dimension.CASTE: "This scheme is reserved for specific caste categories.",
    Dimension.INCOME_RANGE: "Your annual family income is outside this scheme's income limit.",
    Dimension.BPL: "A BPL (Below Poverty Line) ration card is mandatory for this scheme.",
    Dimension.WOMAN_ONLY: "This scheme is only for women.",
    Dimension.SPECIAL_CATEGORY: "This scheme is restricted to a special category you did not select.",
}

_ACTIONS: Final[dict[str, str]] = {
    Dimension.FARMER_TYPE: (
        "If your main occupation has changed, update your farmer type "
        "in your profile and register again."
    ),
    Dimension.LAND_OWNERSHIP: (
        "Schemes like this accept leased land: register a lease agreement "
        "with your village revenue office."
    ),
    Dimension.BPL: (
        "Apply for a BPL ration card at your Gram Panchayat or the "
        "block food and supplies office."
    ),
}


def reason_for(code: str) -> str:
    return _REASONS.get(code, GENERIC_REASON)


def action_for(code: str) -> str | None:
    return _ACTIONS.get(code)


def explain(
    entry: NearMissEntry, descriptor: EligibilityDescriptor | None = None
) -> NearMissExplanation:
    """Render every failed dimension of ``entry`` with tier, reason and action.

    ``descriptor`` is only needed to sub-classify the special-category
    tier; without it that tier is left unset.
    """
    failures: list[FailedDimension] = []
    for code in entry.failed:
        tier: Tier | None = None
        if descriptor is not None:
            tier = tier_of(code, descriptor)
        failures.append(
            FailedDimension(
                code=str(code),
                tier=tier,
                reason=reason_for(code),
                action=action_for(code),
            )
        )
    return NearMissExplanation(
        scheme_id=entry.scheme_id,
        fail_count=entry.fail_count,
        failures=failures,
    )
