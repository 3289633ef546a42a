from yojanamitra.models.enums import (
    ALL,
    AgeRange,
    Caste,
    Dimension,
    FarmerType,
    IncomeRange,
    LandOwnership,
    SpecialCategory,
    Tier,
    Verdict,
)
from yojanamitra.models.match import (
    FailedDimension,
    MatchResult,
    NearMissEntry,
    NearMissExplanation,
)
from yojanamitra.models.scheme import (
    NATIONWIDE_LEVELS,
    RECOGNIZED_PARSERS,
    EligibilityDescriptor,
    SchemeCandidate,
)
from yojanamitra.models.user_profile import UserProfile

__all__ = [
    "ALL",
    "AgeRange",
    "Caste",
    "Dimension",
    "EligibilityDescriptor",
    "FailedDimension",
    "FarmerType",
    "IncomeRange",
    "LandOwnership",
    "MatchResult",
    "NATIONWIDE_LEVELS",
    "NearMissEntry",
    "NearMissExplanation",
    "RECOGNIZED_PARSERS",
    "SchemeCandidate",
    "SpecialCategory",
    "Tier",
    "UserProfile",
    "Verdict",
]
