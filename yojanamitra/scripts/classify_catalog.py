"""Fill structured eligibility for a JSON scheme catalogue.

Usage::

    python -m yojanamitra.scripts.classify_catalog catalogue.json [--out out.json] [--force]

Schemes whose ``structured.parsedBy`` is already a recognized classifier
are skipped unless ``--force`` is given, so the script is safe to re-run
after a partial failure.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import structlog

from config.settings import settings
from yojanamitra.services.classifier import (
    EligibilityClassifier,
    RetryPolicy,
    parse_scheme_texts,
)

logger = structlog.get_logger(__name__)


def select_pending(
    records: list[dict[str, Any]], recognized: frozenset[str], *, force: bool
) -> list[dict[str, Any]]:
    """Records that still need classification."""
    if force:
        return [r for r in records if r.get("isActive", True)]
    return [
        r
        for r in records
        if r.get("isActive", True)
        and (r.get("structured") or {}).get("parsedBy") not in recognized
    ]


async def run(path: Path, out: Path, *, force: bool) -> int:
    if not settings.groq_api_key:
        logger.error("classify_catalog.missing_api_key")
        return 1

    with path.open("r", encoding="utf-8") as f:
        records: list[dict[str, Any]] = json.load(f)

    recognized = frozenset(settings.recognized_parsers)
    pending = parse_scheme_texts(select_pending(records, recognized, force=force))
    if not pending:
        logger.info("classify_catalog.nothing_to_do", total=len(records))
        return 0

    classifier = EligibilityClassifier(
        api_key=settings.groq_api_key,
        model=settings.groq_model,
        url=settings.groq_url,
        policy=RetryPolicy(max_retries=settings.classifier_max_retries),
        timeout=settings.classifier_timeout_seconds,
    )
    try:
        report = await classifier.classify_catalog(
            pending,
            batch_size=settings.classifier_batch_size,
            calls_per_minute=settings.classifier_calls_per_minute,
        )
    finally:
        await classifier.close()

    for record in records:
        descriptor = report.descriptors.get(str(record.get("_id")))
        if descriptor is not None:
            record["structured"] = descriptor.model_dump(mode="json", by_alias=True)

    with out.open("w", encoding="utf-8") as f:
        json.dump(records, f, ensure_ascii=False, indent=2)

    logger.info(
        "classify_catalog.done",
        processed=report.processed,
        failed=report.failed,
        output=str(out),
    )
    return 0 if report.failed == 0 else 2


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("catalogue", type=Path)
    parser.add_argument("--out", type=Path, default=None, help="defaults to overwriting the input")
    parser.add_argument("--force", action="store_true", help="re-classify every active scheme")
    args = parser.parse_args(argv)

    return asyncio.run(run(args.catalogue, args.out or args.catalogue, force=args.force))


if __name__ == "__main__":
    sys.exit(main())
