from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from yojanamitra.models.enums import Dimension, Tier


class NearMissEntry(BaseModel):
    """A scheme the citizen fails on one or two fixable-ish dimensions."""

    model_config = ConfigDict(populate_by_name=True)

    scheme_id: str = Field(alias="schemeId")
    failed: list[Dimension]
    fail_count: int = Field(alias="failCount")


class MatchResult(BaseModel):
    """Output of one matching run; built fresh for every call."""

    model_config = ConfigDict(populate_by_name=True)

    eligible: list[str] = Field(default_factory=list)
    near_miss: list[NearMissEntry] = Field(default_factory=list, alias="nearMiss")


class FailedDimension(BaseModel):
    """One failed dimension rendered for the citizen."""

    code: str
    tier: Tier | None = None
    reason: str
    action: str | None = None


class NearMissExplanation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    scheme_id: str = Field(alias="schemeId")
    fail_count: int = Field(alias="failCount")
    failures: list[FailedDimension] = Field(default_factory=list)
