"""Remediation tiers for failed dimensions.

A tier says how (or whether) a citizen could get past a failed
dimension, and decides whether a scheme is worth surfacing as "almost
eligible".  Structural failures are never surfaced: they are either
impossible to act on or too sensitive to suggest.
"""

from __future__ import annotations

from typing import Final

from yojanamitra.models.enums import Dimension, SpecialCategory, Tier
from yojanamitra.models.scheme import EligibilityDescriptor

_FIXED_TIERS: Final[dict[Dimension, Tier]] = {
    Dimension.FARMER_TYPE: Tier.FIXABLE,  # re-register occupation type
    Dimension.LAND_OWNERSHIP: Tier.FIXABLE,  # lease land
    Dimension.AGE_RANGE: Tier.TIME_BASED,
    Dimension.CASTE: Tier.STRUCTURAL,
    Dimension.INCOME_RANGE: Tier.AMBIGUOUS,
    Dimension.BPL: Tier.FIXABLE,  # apply for a BPL card
    Dimension.WOMAN_ONLY: Tier.STRUCTURAL,
}

_STRUCTURAL_CATEGORIES: Final[frozenset[SpecialCategory]] = frozenset({
    SpecialCategory.DISABILITY,
    SpecialCategory.WOMAN,
})


def tier_of(dimension: Dimension, descriptor: EligibilityDescriptor) -> Tier:
    """Classify a failed ``dimension`` of the scheme behind ``descriptor``."""
    dimension = Dimension(dimension)
    if dimension is Dimension.SPECIAL_CATEGORY:
        return _special_category_tier(descriptor)
    return _FIXED_TIERS[dimension]


def _special_category_tier(descriptor: EligibilityDescriptor) -> Tier:
    required = descriptor.allowed_special_categories
    if any(category in required for category in _STRUCTURAL_CATEGORIES):
        return Tier.STRUCTURAL
    if SpecialCategory.YOUTH in required:
        return Tier.TIME_BASED
    return Tier.AMBIGUOUS


def has_structural(
    dimensions: list[Dimension], descriptor: EligibilityDescriptor
) -> bool:
    return any(tier_of(d, descriptor) is Tier.STRUCTURAL for d in dimensions)
