"""Loading of the scheme candidate catalogue.

Reads scheme records (document-store shape: ``_id``, ``state``,
``level``, ``isActive``, ``structured``) from a JSON file into validated
:class:`SchemeCandidate` instances.  Designed to run once at application
startup to back the in-memory candidate source.
"""

from __future__ import annotations

import json
from pathlib import Path

import structlog
from pydantic import ValidationError

from yojanamitra.models.scheme import SchemeCandidate

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

_DATA_DIR: Path = Path(__file__).resolve().parent / "schemes"
_SAMPLE_SCHEMES_PATH: Path = _DATA_DIR / "sample_schemes.json"


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_candidates(path: Path | None = None) -> list[SchemeCandidate]:
    """Load scheme candidates from a JSON file.

    Parameters
    ----------
    path:
        Path to the JSON file.  Defaults to the bundled
        ``sample_schemes.json``.

    Returns
    -------
    list[SchemeCandidate]
        Parsed candidates, in file order.  Records that fail validation
        are skipped with a warning, as are repeats of an id already
        loaded.

    Raises
    ------
    FileNotFoundError
        If the JSON file does not exist.
    json.JSONDecodeError
        If the JSON is malformed.
    """
    file_path = path or _SAMPLE_SCHEMES_PATH

    if not file_path.exists():
        raise FileNotFoundError(f"Scheme catalogue not found: {file_path}")

    with file_path.open("r", encoding="utf-8") as f:
        raw_schemes: list[dict] = json.load(f)

    candidates: list[SchemeCandidate] = []
    seen: set[str] = set()
    for raw in raw_schemes:
        try:
            candidate = SchemeCandidate.model_validate(raw)
        except ValidationError:
            logger.warning(
                "seed.parse_error",
                scheme_id=raw.get("_id", "unknown"),
                exc_info=True,
            )
            continue
        if candidate.id in seen:
            logger.warning("seed.duplicate_id", scheme_id=candidate.id)
            continue
        seen.add(candidate.id)
        candidates.append(candidate)

    logger.info("seed.loaded_candidates", count=len(candidates), source=str(file_path))
    return candidates
