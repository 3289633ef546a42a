"""Tests for the eligibility matching engine.

Covers the single-dimension comparator, the per-scheme evaluator,
remediation tiers, verdict classification, the capped ``match`` pass
with its independent eligible / near-miss lists, and the region
pre-filter.
"""

from __future__ import annotations

from typing import Any

import pytest

from yojanamitra.models.enums import Dimension, SpecialCategory, Tier, Verdict
from yojanamitra.models.scheme import EligibilityDescriptor, SchemeCandidate
from yojanamitra.models.user_profile import UserProfile
from yojanamitra.services.eligibility import (
    allows,
    classify,
    evaluate,
    has_structural,
    match,
    region_prefilter,
    tier_of,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _descriptor(parsed_by: str | None = "groq", **overrides: Any) -> EligibilityDescriptor:
    return EligibilityDescriptor(parsed_by=parsed_by, **overrides)


def _candidate(
    scheme_id: str,
    descriptor: EligibilityDescriptor | None = None,
    *,
    level: str = "Central",
    region: str | None = None,
    is_active: bool = True,
) -> SchemeCandidate:
    return SchemeCandidate(
        id=scheme_id,
        name=scheme_id,
        level=level,
        region=region,
        is_active=is_active,
        eligibility=descriptor,
    )


def _eligible(scheme_id: str) -> SchemeCandidate:
    return _candidate(scheme_id, _descriptor())


def _near_miss(scheme_id: str) -> SchemeCandidate:
    return _candidate(scheme_id, _descriptor(allowed_farmer_types=["crop_farmer"]))


def _discard(scheme_id: str) -> SchemeCandidate:
    return _candidate(scheme_id, _descriptor(allowed_castes=["sc"]))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def bare_profile() -> UserProfile:
    """Only the mandatory state is known."""
    return UserProfile(state="Punjab")


@pytest.fixture
def dairy_profile() -> UserProfile:
    """General-caste dairy farmer without land, not BPL."""
    return UserProfile(
        state="Punjab",
        farmer_type="dairy",
        land_ownership="none",
        age_range="41_60",
        caste="general",
        income_range="1_3L",
        is_bpl=False,
        special_category=[],
    )


# ---------------------------------------------------------------------------
# Comparator
# ---------------------------------------------------------------------------


class TestAllows:
    def test_unknown_profile_value_passes(self) -> None:
        assert allows(["sc"], None) is True

    def test_empty_profile_value_passes(self) -> None:
        assert allows(["sc"], "") is True

    def test_all_sentinel_passes(self) -> None:
        assert allows(["all"], "general") is True

    def test_all_sentinel_mixed_with_values_passes(self) -> None:
        assert allows(["sc", "all"], "general") is True

    def test_member_passes(self) -> None:
        assert allows(["sc", "st"], "st") is True

    def test_non_member_fails(self) -> None:
        assert allows(["sc", "st"], "general") is False

    def test_empty_allowed_set_fails_known_value(self) -> None:
        assert allows([], "general") is False


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------


class TestEvaluate:
    def test_missing_descriptor_has_no_failures(self, dairy_profile: UserProfile) -> None:
        assert evaluate(dairy_profile, None) == []

    @pytest.mark.parametrize("parsed_by", [None, "manual", "regex", "GROQ"])
    def test_unclassified_descriptor_has_no_failures(
        self, dairy_profile: UserProfile, parsed_by: str | None
    ) -> None:
        descriptor = _descriptor(
            parsed_by=parsed_by,
            allowed_farmer_types=["crop_farmer"],
            allowed_castes=["sc"],
            bpl_required=True,
        )
        assert evaluate(dairy_profile, descriptor) == []

    def test_custom_recognized_parsers(self, dairy_profile: UserProfile) -> None:
        descriptor = _descriptor(parsed_by="manual", allowed_farmer_types=["crop_farmer"])
        failed = evaluate(dairy_profile, descriptor, frozenset({"manual"}))
        assert failed == [Dimension.FARMER_TYPE]

    def test_unrestricted_descriptor_passes_everyone(self, dairy_profile: UserProfile) -> None:
        assert evaluate(dairy_profile, _descriptor()) == []

    def test_bare_profile_passes_every_restriction_but_none_of_the_flags(
        self, bare_profile: UserProfile
    ) -> None:
        descriptor = _descriptor(
            allowed_farmer_types=["crop_farmer"],
            allowed_land_ownership=["owned"],
            allowed_age_ranges=["18_40"],
            allowed_castes=["sc"],
            allowed_income_ranges=["below_1L"],
            bpl_required=True,
            woman_only=True,
            allowed_special_categories=["disability"],
        )
        assert evaluate(bare_profile, descriptor) == []

    def test_failures_follow_dimension_order(self, dairy_profile: UserProfile) -> None:
        descriptor = _descriptor(
            allowed_farmer_types=["crop_farmer"],
            allowed_land_ownership=["owned"],
            allowed_age_ranges=["18_40"],
            allowed_castes=["sc"],
            allowed_income_ranges=["below_1L"],
            bpl_required=True,
            woman_only=True,
            allowed_special_categories=["disability"],
        )
        assert evaluate(dairy_profile, descriptor) == list(Dimension)

    def test_caste_not_disclosed_skips_caste(self) -> None:
        profile = UserProfile(state="Punjab", caste="not_disclosed")
        assert evaluate(profile, _descriptor(allowed_castes=["sc"])) == []

    def test_caste_mismatch_fails(self) -> None:
        profile = UserProfile(state="Punjab", caste="obc")
        assert evaluate(profile, _descriptor(allowed_castes=["sc", "st"])) == [Dimension.CASTE]

    def test_unanswered_caste_passes(self, bare_profile: UserProfile) -> None:
        assert bare_profile.caste_disclosed
        assert evaluate(bare_profile, _descriptor(allowed_castes=["sc"])) == []

    def test_declared_categories_drive_woman_and_special_checks(self) -> None:
        profile = UserProfile(state="Punjab", special_category=["disability"])
        descriptor = _descriptor(woman_only=True, allowed_special_categories=["disability"])
        assert profile.has_category(SpecialCategory.DISABILITY)
        assert not profile.has_category(SpecialCategory.WOMAN)
        assert evaluate(profile, descriptor) == [Dimension.WOMAN_ONLY]

    def test_bpl_unknown_passes(self, bare_profile: UserProfile) -> None:
        assert evaluate(bare_profile, _descriptor(bpl_required=True)) == []

    def test_bpl_explicit_no_fails(self) -> None:
        profile = UserProfile(state="Punjab", is_bpl=False)
        assert evaluate(profile, _descriptor(bpl_required=True)) == [Dimension.BPL]

    def test_bpl_yes_passes(self) -> None:
        profile = UserProfile(state="Punjab", is_bpl=True)
        assert evaluate(profile, _descriptor(bpl_required=True)) == []

    def test_bpl_not_required_ignores_profile(self) -> None:
        profile = UserProfile(state="Punjab", is_bpl=False)
        assert evaluate(profile, _descriptor(bpl_required=False)) == []

    def test_woman_only_with_declared_woman_passes(self) -> None:
        profile = UserProfile(state="Punjab", special_category=["woman"])
        assert evaluate(profile, _descriptor(woman_only=True)) == []

    def test_woman_only_with_declared_none_fails(self) -> None:
        profile = UserProfile(state="Punjab", special_category=[])
        assert evaluate(profile, _descriptor(woman_only=True)) == [Dimension.WOMAN_ONLY]

    def test_woman_only_with_undeclared_categories_passes(self, bare_profile: UserProfile) -> None:
        assert evaluate(bare_profile, _descriptor(woman_only=True)) == []

    def test_special_category_needs_one_overlap(self) -> None:
        profile = UserProfile(state="Kerala", special_category=["woman", "youth"])
        descriptor = _descriptor(allowed_special_categories=["youth", "disability"])
        assert evaluate(profile, descriptor) == []

    def test_special_category_without_overlap_fails(self) -> None:
        profile = UserProfile(state="Kerala", special_category=["woman"])
        descriptor = _descriptor(allowed_special_categories=["youth"])
        assert evaluate(profile, descriptor) == [Dimension.SPECIAL_CATEGORY]

    def test_empty_descriptor_lists_mean_unrestricted(self, dairy_profile: UserProfile) -> None:
        descriptor = EligibilityDescriptor.model_validate({
            "allowedFarmerTypes": [],
            "allowedCastes": None,
            "parsedBy": "gemini",
        })
        assert evaluate(dairy_profile, descriptor) == []


# ---------------------------------------------------------------------------
# Tiers
# ---------------------------------------------------------------------------


class TestTiers:
    @pytest.mark.parametrize(
        ("dimension", "tier"),
        [
            (Dimension.FARMER_TYPE, Tier.FIXABLE),
            (Dimension.LAND_OWNERSHIP, Tier.FIXABLE),
            (Dimension.BPL, Tier.FIXABLE),
            (Dimension.AGE_RANGE, Tier.TIME_BASED),
            (Dimension.INCOME_RANGE, Tier.AMBIGUOUS),
            (Dimension.CASTE, Tier.STRUCTURAL),
            (Dimension.WOMAN_ONLY, Tier.STRUCTURAL),
        ],
    )
    def test_fixed_tiers(self, dimension: Dimension, tier: Tier) -> None:
        assert tier_of(dimension, _descriptor()) is tier

    def test_accepts_wire_code(self) -> None:
        assert tier_of("allowedFarmerTypes", _descriptor()) is Tier.FIXABLE

    @pytest.mark.parametrize(
        ("required", "tier"),
        [
            (["disability"], Tier.STRUCTURAL),
            (["woman"], Tier.STRUCTURAL),
            (["youth", "disability"], Tier.STRUCTURAL),
            (["youth"], Tier.TIME_BASED),
        ],
    )
    def test_special_category_tier_depends_on_scheme(
        self, required: list[str], tier: Tier
    ) -> None:
        descriptor = _descriptor(allowed_special_categories=required)
        assert tier_of(Dimension.SPECIAL_CATEGORY, descriptor) is tier

    def test_special_category_tier_without_known_group_is_ambiguous(self) -> None:
        assert tier_of(Dimension.SPECIAL_CATEGORY, _descriptor()) is Tier.AMBIGUOUS

    def test_has_structural(self) -> None:
        descriptor = _descriptor()
        assert has_structural([Dimension.BPL, Dimension.CASTE], descriptor) is True
        assert has_structural([Dimension.BPL, Dimension.AGE_RANGE], descriptor) is False
        assert has_structural([], descriptor) is False


# ---------------------------------------------------------------------------
# Verdicts
# ---------------------------------------------------------------------------


class TestClassify:
    def test_no_failures_is_eligible(self, dairy_profile: UserProfile) -> None:
        verdict, failed = classify(dairy_profile, _eligible("a"))
        assert verdict is Verdict.ELIGIBLE
        assert failed == []

    def test_missing_descriptor_is_eligible(self, dairy_profile: UserProfile) -> None:
        verdict, _ = classify(dairy_profile, _candidate("a", None))
        assert verdict is Verdict.ELIGIBLE

    def test_one_fixable_failure_is_near_miss(self, dairy_profile: UserProfile) -> None:
        verdict, failed = classify(dairy_profile, _near_miss("a"))
        assert verdict is Verdict.NEAR_MISS
        assert failed == [Dimension.FARMER_TYPE]

    def test_two_non_structural_failures_is_near_miss(self, dairy_profile: UserProfile) -> None:
        candidate = _candidate(
            "a", _descriptor(allowed_age_ranges=["18_40"], allowed_income_ranges=["below_1L"])
        )
        verdict, failed = classify(dairy_profile, candidate)
        assert verdict is Verdict.NEAR_MISS
        assert failed == [Dimension.AGE_RANGE, Dimension.INCOME_RANGE]

    def test_three_fixable_failures_is_discard(self, dairy_profile: UserProfile) -> None:
        candidate = _candidate(
            "a",
            _descriptor(
                allowed_farmer_types=["crop_farmer"],
                allowed_land_ownership=["owned"],
                bpl_required=True,
            ),
        )
        verdict, failed = classify(dairy_profile, candidate)
        assert verdict is Verdict.DISCARD
        assert len(failed) == 3

    def test_single_structural_failure_is_discard(self, dairy_profile: UserProfile) -> None:
        verdict, _ = classify(dairy_profile, _discard("a"))
        assert verdict is Verdict.DISCARD

    def test_woman_only_failure_is_discard(self, dairy_profile: UserProfile) -> None:
        verdict, failed = classify(dairy_profile, _candidate("a", _descriptor(woman_only=True)))
        assert verdict is Verdict.DISCARD
        assert failed == [Dimension.WOMAN_ONLY]

    def test_youth_only_failure_is_near_miss(self, dairy_profile: UserProfile) -> None:
        candidate = _candidate("a", _descriptor(allowed_special_categories=["youth"]))
        verdict, failed = classify(dairy_profile, candidate)
        assert verdict is Verdict.NEAR_MISS
        assert failed == [Dimension.SPECIAL_CATEGORY]

    def test_disability_only_failure_is_discard(self, dairy_profile: UserProfile) -> None:
        candidate = _candidate("a", _descriptor(allowed_special_categories=["disability"]))
        verdict, _ = classify(dairy_profile, candidate)
        assert verdict is Verdict.DISCARD


# ---------------------------------------------------------------------------
# match()
# ---------------------------------------------------------------------------


class TestMatch:
    def test_scenario_unset_caste_is_eligible(self, bare_profile: UserProfile) -> None:
        candidate = _candidate(
            "sc-st", _descriptor(allowed_castes=["sc", "st"], allowed_farmer_types=["all"])
        )
        result = match(bare_profile, [candidate])
        assert result.eligible == ["sc-st"]
        assert result.near_miss == []

    def test_scenario_dairy_farmer_near_miss(self) -> None:
        profile = UserProfile(state="Punjab", farmer_type="dairy", land_ownership="none")
        candidate = _candidate(
            "crop-only",
            _descriptor(
                parsed_by="gemini",
                allowed_farmer_types=["crop_farmer"],
                allowed_land_ownership=["all"],
            ),
        )
        result = match(profile, [candidate])
        assert result.eligible == []
        assert len(result.near_miss) == 1
        entry = result.near_miss[0]
        assert entry.scheme_id == "crop-only"
        assert entry.failed == [Dimension.FARMER_TYPE]
        assert entry.fail_count == 1

    def test_scenario_structural_failure_discards(self) -> None:
        profile = UserProfile(state="Punjab", is_bpl=False, caste="general")
        candidate = _candidate(
            "sc-bpl",
            _descriptor(bpl_required=True, allowed_castes=["sc"], allowed_farmer_types=["all"]),
        )
        result = match(profile, [candidate])
        assert result.eligible == []
        assert result.near_miss == []

    def test_scenario_youth_is_eligible(self) -> None:
        profile = UserProfile(state="Kerala", special_category=["youth"])
        candidate = _candidate("youth", _descriptor(allowed_special_categories=["youth"]))
        result = match(profile, [candidate])
        assert result.eligible == ["youth"]

    def test_scenario_empty_candidates(self, dairy_profile: UserProfile) -> None:
        result = match(dairy_profile, [])
        assert result.eligible == []
        assert result.near_miss == []

    def test_preserves_candidate_order(self, dairy_profile: UserProfile) -> None:
        candidates = [
            _eligible("e1"),
            _near_miss("n1"),
            _discard("d1"),
            _eligible("e2"),
            _near_miss("n2"),
        ]
        result = match(dairy_profile, candidates)
        assert result.eligible == ["e1", "e2"]
        assert [e.scheme_id for e in result.near_miss] == ["n1", "n2"]

    def test_eligible_cap(self, dairy_profile: UserProfile) -> None:
        candidates = [_eligible(f"e{i}") for i in range(10)]
        result = match(dairy_profile, candidates, limit=3)
        assert result.eligible == ["e0", "e1", "e2"]

    def test_near_miss_cap(self, dairy_profile: UserProfile) -> None:
        candidates = [_near_miss(f"n{i}") for i in range(10)]
        result = match(dairy_profile, candidates, near_miss_max=4)
        assert [e.scheme_id for e in result.near_miss] == ["n0", "n1", "n2", "n3"]

    def test_full_eligible_list_does_not_stop_near_misses(
        self, dairy_profile: UserProfile
    ) -> None:
        candidates = [_eligible("e1"), _eligible("e2"), _eligible("e3"), _near_miss("n1")]
        result = match(dairy_profile, candidates, limit=1, near_miss_max=5)
        assert result.eligible == ["e1"]
        assert [e.scheme_id for e in result.near_miss] == ["n1"]

    def test_full_near_miss_list_does_not_stop_eligible(
        self, dairy_profile: UserProfile
    ) -> None:
        candidates = [_near_miss("n1"), _near_miss("n2"), _eligible("e1"), _eligible("e2")]
        result = match(dairy_profile, candidates, limit=5, near_miss_max=1)
        assert result.eligible == ["e1", "e2"]
        assert [e.scheme_id for e in result.near_miss] == ["n1"]

    def test_zero_caps_return_nothing(self, dairy_profile: UserProfile) -> None:
        result = match(dairy_profile, [_eligible("e1"), _near_miss("n1")], 0, 0)
        assert result.eligible == []
        assert result.near_miss == []

    def test_accepts_generator(self, dairy_profile: UserProfile) -> None:
        result = match(dairy_profile, (_eligible(f"e{i}") for i in range(3)))
        assert result.eligible == ["e0", "e1", "e2"]

    def test_unclassified_schemes_are_eligible(self, dairy_profile: UserProfile) -> None:
        candidate = _candidate(
            "manual", _descriptor(parsed_by="manual", allowed_castes=["sc"], woman_only=True)
        )
        assert match(dairy_profile, [candidate]).eligible == ["manual"]

    def test_recognized_parsers_override(self, dairy_profile: UserProfile) -> None:
        candidate = _near_miss("n1")
        result = match(dairy_profile, [candidate], recognized_parsers=frozenset({"gemini"}))
        assert result.eligible == ["n1"]

    def test_deterministic(self, dairy_profile: UserProfile) -> None:
        candidates = [_eligible("e1"), _near_miss("n1"), _discard("d1"), _near_miss("n2")]
        first = match(dairy_profile, candidates)
        second = match(dairy_profile, candidates)
        assert first.model_dump() == second.model_dump()

    def test_profile_is_not_mutated(self, dairy_profile: UserProfile) -> None:
        before = dairy_profile.model_dump()
        match(dairy_profile, [_eligible("e1"), _near_miss("n1"), _discard("d1")])
        assert dairy_profile.model_dump() == before

    def test_every_near_miss_has_one_or_two_non_structural_failures(
        self, dairy_profile: UserProfile
    ) -> None:
        candidates = [
            _near_miss("n1"),
            _discard("d1"),
            _candidate("w", _descriptor(woman_only=True, allowed_farmer_types=["dairy"])),
            _candidate("y", _descriptor(allowed_special_categories=["youth"])),
            _candidate(
                "three",
                _descriptor(
                    allowed_farmer_types=["crop_farmer"],
                    allowed_age_ranges=["18_40"],
                    allowed_income_ranges=["3_8L"],
                ),
            ),
        ]
        by_id = {c.id: c for c in candidates}
        result = match(dairy_profile, candidates)

        assert [e.scheme_id for e in result.near_miss] == ["n1", "y"]
        for entry in result.near_miss:
            assert 1 <= entry.fail_count <= 2
            assert entry.fail_count == len(entry.failed)
            assert not has_structural(entry.failed, by_id[entry.scheme_id].eligibility)

    def test_eligible_and_near_miss_are_disjoint(self, dairy_profile: UserProfile) -> None:
        candidates = [_eligible("a"), _near_miss("b"), _eligible("c"), _near_miss("d")]
        result = match(dairy_profile, candidates)
        assert set(result.eligible).isdisjoint(e.scheme_id for e in result.near_miss)

    def test_special_category_declared_woman(self) -> None:
        profile = UserProfile(state="Punjab", special_category=[SpecialCategory.WOMAN])
        candidate = _candidate(
            "mahila", _descriptor(woman_only=True, allowed_special_categories=["woman"])
        )
        assert match(profile, [candidate]).eligible == ["mahila"]


# ---------------------------------------------------------------------------
# Region pre-filter
# ---------------------------------------------------------------------------


class TestRegionPrefilter:
    @pytest.fixture
    def catalogue(self) -> list[SchemeCandidate]:
        return [
            _candidate("central", _descriptor(), level="Central"),
            _candidate("all-level", _descriptor(), level="all"),
            _candidate("punjab", _descriptor(), level="State", region="Punjab"),
            _candidate("kerala", _descriptor(), level="State", region="Kerala"),
            _candidate("inactive", _descriptor(), level="Central", is_active=False),
            _candidate("no-region", _descriptor(), level="State"),
        ]

    def test_keeps_nationwide_and_matching_state(
        self, catalogue: list[SchemeCandidate]
    ) -> None:
        kept = region_prefilter(catalogue, "Punjab")
        assert [c.id for c in kept] == ["central", "all-level", "punjab"]

    def test_case_insensitive_substring(self, catalogue: list[SchemeCandidate]) -> None:
        kept = region_prefilter(catalogue, "  kerala ")
        assert [c.id for c in kept] == ["central", "all-level", "kerala"]

    def test_state_is_escaped(self) -> None:
        candidates = [_candidate("odd", _descriptor(), level="State", region="Jammu (J&K)")]
        assert [c.id for c in region_prefilter(candidates, "(J&K)")] == ["odd"]
        assert region_prefilter(candidates, ".*") == []

    def test_window_caps_result(self, catalogue: list[SchemeCandidate]) -> None:
        assert len(region_prefilter(catalogue, "Punjab", window=2)) == 2
