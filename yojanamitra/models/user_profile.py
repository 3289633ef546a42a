"""Citizen profile used for scheme matching.

Every field except ``state`` is optional.  A missing answer means
"unknown" and the matching engine gives the citizen the benefit of the
doubt on that dimension, so partially completed chat flows and web forms
can still be matched.

Field names accept both the snake_case Python names and the camelCase
names the chat flow and web form send (``farmerType``, ``isBPL``...).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from yojanamitra.models.enums import (
    AgeRange,
    Caste,
    FarmerType,
    IncomeRange,
    LandOwnership,
    SpecialCategory,
)


class UserProfile(BaseModel):
    """Self-declared profile of one citizen.

    ``special_category=None`` means the question was never answered;
    an empty list means the citizen answered "none of these".  The two
    are evaluated differently.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    state: str = Field(min_length=1)
    farmer_type: FarmerType | None = Field(default=None, alias="farmerType")
    land_ownership: LandOwnership | None = Field(default=None, alias="landOwnership")
    age_range: AgeRange | None = Field(default=None, alias="ageRange")
    caste: Caste | None = None
    income_range: IncomeRange | None = Field(default=None, alias="incomeRange")
    is_bpl: bool | None = Field(default=None, alias="isBPL")
    special_category: list[SpecialCategory] | None = Field(default=None, alias="specialCategory")

    @field_validator("state")
    @classmethod
    def _strip_state(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("state must not be blank")
        return stripped

    @property
    def caste_disclosed(self) -> bool:
        return self.caste is not Caste.NOT_DISCLOSED

    def has_category(self, category: SpecialCategory) -> bool:
        return category in (self.special_category or [])
