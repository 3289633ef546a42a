"""Single-dimension predicate used by the scheme evaluator."""

from __future__ import annotations

from collections.abc import Collection

from yojanamitra.models.enums import ALL


def allows(allowed_values: Collection[str], profile_value: str | None) -> bool:
    """Return whether ``profile_value`` satisfies ``allowed_values``.

    An unknown profile value always passes: a check that cannot be
    evaluated cannot fail.  The ``"all"`` sentinel lifts the restriction.
    """
    if not profile_value:
        return True
    return ALL in allowed_values or profile_value in allowed_values
