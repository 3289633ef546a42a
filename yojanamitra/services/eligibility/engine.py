"""Eligibility matching and near-miss classification.

Architecture:
    * A cheap region pre-filter narrows the catalogue to active schemes
      that are nationwide or belong to the citizen's state.  It is a
      recall-preserving optimisation used by candidate sources; the
      field-level pass below never looks at the region.
    * The field-level pass evaluates every candidate against the
      citizen's profile and sorts it into one of three verdicts:

      ======================================  ===========
      failed dimensions                       verdict
      ======================================  ===========
      0                                       ELIGIBLE
      1-2, none structural                    NEAR_MISS
      1-2, at least one structural            DISCARD
      3 or more                               DISCARD
      ======================================  ===========

    * Eligible and near-miss lists are capped independently.  A full
      eligible list never stops the near-miss list from filling, and
      vice versa.

The pass is synchronous, pure and deterministic: identical inputs give
identical output, in candidate order.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Final

import structlog

from yojanamitra.models.enums import Dimension, Verdict
from yojanamitra.models.match import MatchResult, NearMissEntry
from yojanamitra.models.scheme import RECOGNIZED_PARSERS, SchemeCandidate
from yojanamitra.models.user_profile import UserProfile
from yojanamitra.services.eligibility.evaluator import evaluate
from yojanamitra.services.eligibility.tiers import has_structural

logger = structlog.get_logger(__name__)

DEFAULT_LIMIT: Final[int] = 200
DEFAULT_NEAR_MISS_MAX: Final[int] = 30
DEFAULT_CANDIDATE_WINDOW: Final[int] = 5000
MAX_NEAR_MISS_FAILURES: Final[int] = 2


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def classify(
    profile: UserProfile,
    candidate: SchemeCandidate,
    recognized_parsers: frozenset[str] = RECOGNIZED_PARSERS,
) -> tuple[Verdict, list[Dimension]]:
    """Return the verdict for one candidate together with its failed dimensions."""
    descriptor = candidate.eligibility
    failed = evaluate(profile, descriptor, recognized_parsers)

    if descriptor is None or not failed:
        return Verdict.ELIGIBLE, failed
    if len(failed) > MAX_NEAR_MISS_FAILURES:
        return Verdict.DISCARD, failed
    if has_structural(failed, descriptor):
        return Verdict.DISCARD, failed
    return Verdict.NEAR_MISS, failed


def match(
    profile: UserProfile,
    candidates: Iterable[SchemeCandidate],
    limit: int = DEFAULT_LIMIT,
    near_miss_max: int = DEFAULT_NEAR_MISS_MAX,
    *,
    recognized_parsers: frozenset[str] = RECOGNIZED_PARSERS,
) -> MatchResult:
    """Partition ``candidates`` into eligible ids and near-miss entries.

    Parameters
    ----------
    profile:
        The citizen's profile.  Never mutated.
    candidates:
        Schemes to classify, already narrowed by the caller if desired.
    limit:
        Maximum number of eligible scheme ids to return.
    near_miss_max:
        Maximum number of near-miss entries to return.
    recognized_parsers:
        Provenance tags whose descriptors are enforced.  Anything else
        is treated as unclassified.

    Returns
    -------
    MatchResult
        Eligible ids and near-miss entries, both in candidate order.
    """
    result = MatchResult()
    visited = 0
    discarded = 0

    for candidate in candidates:
        if len(result.eligible) >= limit and len(result.near_miss) >= near_miss_max:
            break
        visited += 1

        verdict, failed = classify(profile, candidate, recognized_parsers)

        if verdict is Verdict.ELIGIBLE:
            if len(result.eligible) < limit:
                result.eligible.append(candidate.id)
        elif verdict is Verdict.NEAR_MISS:
            if len(result.near_miss) < near_miss_max:
                result.near_miss.append(
                    NearMissEntry(
                        scheme_id=candidate.id,
                        failed=failed,
                        fail_count=len(failed),
                    )
                )
        else:
            discarded += 1

    logger.info(
        "eligibility.match_complete",
        state=profile.state,
        visited=visited,
        eligible=len(result.eligible),
        near_miss=len(result.near_miss),
        discarded=discarded,
    )
    return result


# ---------------------------------------------------------------------------
# Region pre-filter
# ---------------------------------------------------------------------------


def region_prefilter(
    candidates: Iterable[SchemeCandidate],
    state: str,
    window: int = DEFAULT_CANDIDATE_WINDOW,
) -> list[SchemeCandidate]:
    """Keep active schemes that are nationwide or mention ``state`` in their region.

    The state is matched as an escaped, case-insensitive substring, the
    same way the document store query does it.  At most ``window``
    candidates are returned, in input order.
    """
    pattern = re.compile(re.escape(state.strip()), re.IGNORECASE)
    kept: list[SchemeCandidate] = []

    for candidate in candidates:
        if len(kept) >= window:
            break
        if not candidate.is_active:
            continue
        if candidate.is_nationwide or (
            candidate.region is not None and pattern.search(candidate.region)
        ):
            kept.append(candidate)

    return kept
