"""Candidate sources and the matching service built on them.

The matching engine never does I/O.  A :class:`CandidateSource` fetches
the pre-filtered candidate window for a region (from a document store,
or from memory in development and tests), and :class:`SchemeMatcher`
runs the engine over it.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

import structlog

from yojanamitra.models.match import MatchResult
from yojanamitra.models.scheme import RECOGNIZED_PARSERS, SchemeCandidate
from yojanamitra.models.user_profile import UserProfile
from yojanamitra.services.eligibility.engine import (
    DEFAULT_CANDIDATE_WINDOW,
    DEFAULT_LIMIT,
    DEFAULT_NEAR_MISS_MAX,
    match,
    region_prefilter,
)

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Candidate source protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class CandidateSource(Protocol):
    """Async source of active scheme candidates for a region."""

    async def fetch(self, region: str, limit: int) -> list[SchemeCandidate]: ...


# ---------------------------------------------------------------------------
# In-memory source
# ---------------------------------------------------------------------------


class InMemoryCandidateSource:
    """Serves candidates from a list held in memory.

    Applies the same region pre-filter a document-store query would.
    """

    __slots__ = ("_candidates",)

    def __init__(self, candidates: Iterable[SchemeCandidate]) -> None:
        self._candidates = list(candidates)

    @property
    def size(self) -> int:
        return len(self._candidates)

    async def fetch(self, region: str, limit: int) -> list[SchemeCandidate]:
        return region_prefilter(self._candidates, region, window=limit)


# ---------------------------------------------------------------------------
# Matching service
# ---------------------------------------------------------------------------


class SchemeMatcher:
    """Two-pass matcher: region pre-filter via the source, then field matching.

    Parameters
    ----------
    source:
        Where candidates come from.
    limit, near_miss_max:
        Caps applied to the eligible and near-miss lists.
    window:
        Maximum number of candidates requested from the source.
    recognized_parsers:
        Provenance tags whose descriptors are enforced.
    """

    def __init__(
        self,
        source: CandidateSource,
        *,
        limit: int = DEFAULT_LIMIT,
        near_miss_max: int = DEFAULT_NEAR_MISS_MAX,
        window: int = DEFAULT_CANDIDATE_WINDOW,
        recognized_parsers: frozenset[str] = RECOGNIZED_PARSERS,
    ) -> None:
        self._source = source
        self._limit = limit
        self._near_miss_max = near_miss_max
        self._window = window
        self._recognized_parsers = recognized_parsers

    async def match_profile(
        self,
        profile: UserProfile,
        *,
        limit: int | None = None,
        near_miss_max: int | None = None,
    ) -> MatchResult:
        """Fetch candidates for the profile's state and classify them."""
        candidates = await self._source.fetch(profile.state, self._window)
        logger.debug(
            "matcher.candidates_fetched",
            state=profile.state,
            count=len(candidates),
        )
        return match(
            profile,
            candidates,
            limit=self._limit if limit is None else limit,
            near_miss_max=self._near_miss_max if near_miss_max is None else near_miss_max,
            recognized_parsers=self._recognized_parsers,
        )
