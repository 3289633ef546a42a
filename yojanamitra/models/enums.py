from __future__ import annotations

from enum import StrEnum
from typing import Final, Literal

# Sentinel used inside allowed-value lists: the dimension is unrestricted.
ALL: Final = "all"
AllSentinel = Literal["all"]


class FarmerType(StrEnum):
    __slots__ = ()

    CROP_FARMER = "crop_farmer"
    DAIRY = "dairy"
    FISHERMAN = "fisherman"
    LABOURER = "labourer"
    ENTREPRENEUR = "entrepreneur"
    OTHER = "other"


class LandOwnership(StrEnum):
    __slots__ = ()

    OWNED = "owned"
    LEASED = "leased"
    NONE = "none"


class AgeRange(StrEnum):
    __slots__ = ()

    BELOW_18 = "below_18"
    FROM_18_TO_40 = "18_40"
    FROM_41_TO_60 = "41_60"
    ABOVE_60 = "above_60"


class Caste(StrEnum):
    __slots__ = ()

    GENERAL = "general"
    SC = "sc"
    ST = "st"
    OBC = "obc"
    NOT_DISCLOSED = "not_disclosed"  # profile-only: "prefer not to say"


class IncomeRange(StrEnum):
    """Annual family income brackets (L = lakh rupees)."""

    __slots__ = ()

    BELOW_1L = "below_1L"
    FROM_1_TO_3L = "1_3L"
    FROM_3_TO_8L = "3_8L"
    ABOVE_8L = "above_8L"


class SpecialCategory(StrEnum):
    __slots__ = ()

    DISABILITY = "disability"
    WOMAN = "woman"
    YOUTH = "youth"


class Dimension(StrEnum):
    """Eligibility axes, in the order the evaluator checks them.

    Values are the wire codes persisted with near-miss results.
    """

    __slots__ = ()

    FARMER_TYPE = "allowedFarmerTypes"
    LAND_OWNERSHIP = "allowedLandOwnership"
    AGE_RANGE = "allowedAgeRanges"
    CASTE = "allowedCastes"
    INCOME_RANGE = "allowedIncomeRanges"
    BPL = "bplRequired"
    WOMAN_ONLY = "womanOnly"
    SPECIAL_CATEGORY = "allowedSpecialCategories"


class Tier(StrEnum):
    """How a citizen could get past a failed dimension."""

    __slots__ = ()

    FIXABLE = "fixable"
    TIME_BASED = "time_based"
    AMBIGUOUS = "ambiguous"
    STRUCTURAL = "structural"


class Verdict(StrEnum):
    __slots__ = ()

    ELIGIBLE = "eligible"
    NEAR_MISS = "near_miss"
    DISCARD = "discard"
