"""Eligibility matching and near-miss classification for YojanaMitra.

Pipeline per scheme::

    comparator.allows  ->  evaluator.evaluate  ->  tiers.tier_of  ->  engine.match

``reasons`` turns failed dimension codes into citizen-facing text.

Public API::

    from yojanamitra.services.eligibility import (
        action_for,
        match,
        reason_for,
    )
"""

from __future__ import annotations

from yojanamitra.services.eligibility.comparator import allows
from yojanamitra.services.eligibility.engine import (
    DEFAULT_CANDIDATE_WINDOW,
    DEFAULT_LIMIT,
    DEFAULT_NEAR_MISS_MAX,
    classify,
    match,
    region_prefilter,
)
from yojanamitra.services.eligibility.evaluator import evaluate
from yojanamitra.services.eligibility.reasons import (
    GENERIC_REASON,
    action_for,
    explain,
    reason_for,
)
from yojanamitra.services.eligibility.tiers import has_structural, tier_of

__all__ = [
    "DEFAULT_CANDIDATE_WINDOW",
    "DEFAULT_LIMIT",
    "DEFAULT_NEAR_MISS_MAX",
    "GENERIC_REASON",
    "action_for",
    "allows",
    "classify",
    "evaluate",
    "explain",
    "has_structural",
    "match",
    "reason_for",
    "region_prefilter",
    "tier_of",
]
