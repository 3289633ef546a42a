"""Runs every dimension check for one (profile, scheme) pair.

Checks run in the fixed order of :class:`Dimension`, so the list of
failed dimensions is reproducible and ties on failure count break the
same way every time.

Missing data is never held against the citizen:

* an unclassified (or absent) descriptor restricts nothing,
* an unanswered profile question passes its dimension,
* a caste of ``not_disclosed`` skips the caste dimension entirely.
"""

from __future__ import annotations

from yojanamitra.models.enums import ALL, Dimension, SpecialCategory
from yojanamitra.models.scheme import RECOGNIZED_PARSERS, EligibilityDescriptor
from yojanamitra.models.user_profile import UserProfile
from yojanamitra.services.eligibility.comparator import allows


def evaluate(
    profile: UserProfile,
    descriptor: EligibilityDescriptor | None,
    recognized_parsers: frozenset[str] = RECOGNIZED_PARSERS,
) -> list[Dimension]:
    """Return the dimensions ``profile`` fails for ``descriptor``.

    An empty list means the citizen is fully eligible.
    """
    if descriptor is None or not descriptor.is_classified(recognized_parsers):
        return []

    failed: list[Dimension] = []

    # -- 1-3. Occupation, land, age ----------------------------------------
    if not allows(descriptor.allowed_farmer_types, profile.farmer_type):
        failed.append(Dimension.FARMER_TYPE)
    if not allows(descriptor.allowed_land_ownership, profile.land_ownership):
        failed.append(Dimension.LAND_OWNERSHIP)
    if not allows(descriptor.allowed_age_ranges, profile.age_range):
        failed.append(Dimension.AGE_RANGE)

    # -- 4. Caste (skipped when the citizen preferred not to say) ----------
    if profile.caste_disclosed and not allows(descriptor.allowed_castes, profile.caste):
        failed.append(Dimension.CASTE)

    # -- 5. Income ---------------------------------------------------------
    if not allows(descriptor.allowed_income_ranges, profile.income_range):
        failed.append(Dimension.INCOME_RANGE)

    # -- 6. BPL: only an explicit "no" fails -------------------------------
    if descriptor.bpl_required and profile.is_bpl is False:
        failed.append(Dimension.BPL)

    # -- 7. Woman only -----------------------------------------------------
    declared = profile.special_category
    if (
        descriptor.woman_only
        and declared is not None
        and not profile.has_category(SpecialCategory.WOMAN)
    ):
        failed.append(Dimension.WOMAN_ONLY)

    # -- 8. Special categories: need at least one overlap ------------------
    allowed_special = descriptor.allowed_special_categories
    if (
        ALL not in allowed_special
        and declared is not None
        and not any(profile.has_category(tag) for tag in allowed_special)
    ):
        failed.append(Dimension.SPECIAL_CATEGORY)

    return failed
