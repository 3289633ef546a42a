from __future__ import annotations

from datetime import datetime
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from yojanamitra.models.enums import (
    ALL,
    AgeRange,
    AllSentinel,
    Caste,
    FarmerType,
    IncomeRange,
    LandOwnership,
    SpecialCategory,
)

# Classifier sources whose output the engine trusts.
RECOGNIZED_PARSERS: Final[frozenset[str]] = frozenset({"gemini", "groq"})

# Scheme levels that apply to every state.
NATIONWIDE_LEVELS: Final[frozenset[str]] = frozenset({"central", "all"})

_LIST_DIMENSIONS: Final[tuple[str, ...]] = (
    "allowed_farmer_types",
    "allowed_land_ownership",
    "allowed_age_ranges",
    "allowed_castes",
    "allowed_income_ranges",
    "allowed_special_categories",
)


def _unrestricted() -> list[Any]:
    return [ALL]


class EligibilityDescriptor(BaseModel):
    """Structured eligibility of one scheme, written by an upstream classifier.

    Every list dimension holds the allowed values or the ``"all"``
    sentinel.  ``parsed_by`` records which classifier produced the data;
    without a recognized tag the descriptor counts as unclassified and
    restricts nothing.
    """

    model_config = ConfigDict(populate_by_name=True)

    allowed_farmer_types: list[FarmerType | AllSentinel] = Field(
        default_factory=_unrestricted, alias="allowedFarmerTypes"
    )
    allowed_land_ownership: list[LandOwnership | AllSentinel] = Field(
        default_factory=_unrestricted, alias="allowedLandOwnership"
    )
    allowed_age_ranges: list[AgeRange | AllSentinel] = Field(
        default_factory=_unrestricted, alias="allowedAgeRanges"
    )
    allowed_castes: list[Caste | AllSentinel] = Field(
        default_factory=_unrestricted, alias="allowedCastes"
    )
    allowed_income_ranges: list[IncomeRange | AllSentinel] = Field(
        default_factory=_unrestricted, alias="allowedIncomeRanges"
    )
    bpl_required: bool = Field(default=False, alias="bplRequired")
    woman_only: bool = Field(default=False, alias="womanOnly")
    allowed_special_categories: list[SpecialCategory | AllSentinel] = Field(
        default_factory=_unrestricted, alias="allowedSpecialCategories"
    )
    parsed_by: str | None = Field(default=None, alias="parsedBy")
    parsed_at: datetime | None = Field(default=None, alias="parsedAt")

    @field_validator(*_LIST_DIMENSIONS, mode="before")
    @classmethod
    def _empty_means_unrestricted(cls, value: Any) -> Any:
        # An empty list only ever comes from a missing classification.
        if value is None or (isinstance(value, list | tuple) and len(value) == 0):
            return [ALL]
        return value

    def is_classified(self, recognized: frozenset[str] = RECOGNIZED_PARSERS) -> bool:
        return self.parsed_by is not None and self.parsed_by in recognized


class SchemeCandidate(BaseModel):
    """The slice of a scheme record the matching engine needs.

    Accepts the document-store field names (``_id``, ``state``,
    ``isActive``, ``structured``) as aliases.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    name: str | None = None
    region: str | None = Field(default=None, alias="state")
    level: str | None = None
    is_active: bool = Field(default=True, alias="isActive")
    eligibility: EligibilityDescriptor | None = Field(default=None, alias="structured")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        # ObjectId and integer ids from the store become plain strings.
        if value is not None and not isinstance(value, str):
            return str(value)
        return value

    @property
    def is_nationwide(self) -> bool:
        return (self.level or "").strip().lower() in NATIONWIDE_LEVELS
