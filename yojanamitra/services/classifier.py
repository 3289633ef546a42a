"""Client for the upstream eligibility classifier (Groq chat completions).

Reads a scheme's free-text eligibility section and asks the model to
fill an :class:`EligibilityDescriptor`.  Only scheme text is sent; no
citizen data ever leaves the server.

Retry & pacing
--------------
Backoff behaviour lives in an explicit :class:`RetryPolicy` handed to
the client.  The adaptive penalty added after rate limiting is held on
the client instance:

  - 429 / 503 / transport errors / unusable responses are retried.
  - A ``Retry-After`` header wins over the policy's linear wait.
  - Every 429 grows the penalty added between catalogue batches; every
    success shrinks it again.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Final

import httpx
import orjson
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt

from yojanamitra.models.enums import (
    ALL,
    AgeRange,
    Caste,
    FarmerType,
    IncomeRange,
    LandOwnership,
    SpecialCategory,
)
from yojanamitra.models.scheme import EligibilityDescriptor

logger = structlog.get_logger(__name__)

PROVENANCE: Final[str] = "groq"

SYSTEM_PROMPT: Final[str] = """\
You classify eligibility rules of Indian agriculture and welfare schemes.
Read the eligibility text of each scheme and return a JSON object.

Use ONLY these exact values:

  farmerTypes       : "crop_farmer" | "dairy" | "fisherman" | "labourer" | "entrepreneur" | "other"
  landOwnership     : "owned" | "leased" | "none"
  ageRanges         : "below_18" | "18_40" | "41_60" | "above_60"
  castes            : "general" | "sc" | "st" | "obc"
  incomeRanges      : "below_1L" | "1_3L" | "3_8L" | "above_8L"
  specialCategories : "disability" | "woman" | "youth"

Rules:
1. Use ["all"] for any field the scheme does not restrict.
2. allowedFarmerTypes: restrict only when the scheme names specific
   occupations ("fishermen only" -> ["fisherman"]; "farmers" -> ["all"]).
3. allowedLandOwnership: restrict only when ownership is required or
   excluded ("must own land" -> ["owned"]; "landless eligible" -> ["all"]).
4. allowedAgeRanges: list every range the age window covers
   ("18 to 60 years" -> ["18_40","41_60"]).
5. allowedCastes: list every caste named as eligible ("SC/ST" -> ["sc","st"]).
6. allowedIncomeRanges: list every range under the income limit
   ("below 3 lakh" -> ["below_1L","1_3L"]).
7. bplRequired: true ONLY when a BPL card is mandatory.
8. womanOnly: true ONLY when the scheme is exclusively for women.
9. allowedSpecialCategories: restrict only when the scheme is exclusively
   for a special group ("only persons with disability" -> ["disability"]).

Return ONLY this JSON shape, one item per input scheme, in input order:
{"schemes": [{"allowedFarmerTypes": [...], "allowedLandOwnership": [...],
"allowedAgeRanges": [...], "allowedCastes": [...], "allowedIncomeRanges": [...],
"bplRequired": false, "womanOnly": false, "allowedSpecialCategories": [...]}]}"""

# Wire field -> accepted values, looked up case-insensitively.
_VOCABULARY: Final[dict[str, dict[str, str]]] = {
    "allowedFarmerTypes": {v.value.lower(): v.value for v in FarmerType},
    "allowedLandOwnership": {v.value.lower(): v.value for v in LandOwnership},
    "allowedAgeRanges": {v.value.lower(): v.value for v in AgeRange},
    "allowedCastes": {
        v.value.lower(): v.value for v in Caste if v is not Caste.NOT_DISCLOSED
    },
    "allowedIncomeRanges": {v.value.lower(): v.value for v in IncomeRange},
    "allowedSpecialCategories": {v.value.lower(): v.value for v in SpecialCategory},
}


class ClassifierError(Exception):
    """The classifier returned something that cannot be used."""


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class SchemeText(BaseModel):
    """A scheme as sent to the classifier: its id, name and eligibility text."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    name: str
    eligibility_md: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, str):
            return str(value)
        return value


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """How the classifier client backs off.

    ``max_retries`` counts retries after the first attempt.  Without a
    ``Retry-After`` header the n-th retry waits ``base_wait_seconds * n``,
    capped at ``max_wait_seconds``.
    """

    max_retries: int = 4
    base_wait_seconds: float = 20.0
    max_wait_seconds: float = 90.0
    penalty_step_seconds: float = 8.0
    max_penalty_seconds: float = 60.0
    penalty_relief_seconds: float = 2.0
    retry_statuses: frozenset[int] = frozenset({429, 503})

    def is_retryable(self, exc: BaseException) -> bool:
        if isinstance(exc, httpx.HTTPStatusError):
            return exc.response.status_code in self.retry_statuses
        return isinstance(exc, httpx.TransportError | ClassifierError)

    def wait_seconds(self, attempt: int, exc: BaseException | None) -> float:
        if isinstance(exc, httpx.HTTPStatusError):
            retry_after = _parse_retry_after(exc.response.headers.get("retry-after"))
            if retry_after > 0:
                return retry_after
        return min(self.base_wait_seconds * attempt, self.max_wait_seconds)


@dataclass(slots=True)
class ClassificationReport:
    """Outcome of classifying a whole catalogue."""

    processed: int = 0
    failed: int = 0
    descriptors: dict[str, EligibilityDescriptor] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Payload normalisation
# ---------------------------------------------------------------------------


def normalize_descriptor_payload(raw: dict[str, Any]) -> dict[str, Any]:
    """Clean one classifier item into descriptor-shaped wire data.

    Values outside the vocabulary are dropped.  A list that ends up
    empty, or that contains ``"all"``, becomes ``["all"]``.
    """
    normalized: dict[str, Any] = {}

    for wire_name, vocabulary in _VOCABULARY.items():
        values = raw.get(wire_name)
        if not isinstance(values, list):
            normalized[wire_name] = [ALL]
            continue

        kept: list[str] = []
        for value in values:
            key = str(value).strip().lower()
            if key == ALL:
                kept = [ALL]
                break
            canonical = vocabulary.get(key)
            if canonical is not None and canonical not in kept:
                kept.append(canonical)
        normalized[wire_name] = kept or [ALL]

    normalized["bplRequired"] = raw.get("bplRequired") is True
    normalized["womanOnly"] = raw.get("womanOnly") is True
    return normalized


# ---------------------------------------------------------------------------
# EligibilityClassifier
# ---------------------------------------------------------------------------


class EligibilityClassifier:
    """Fills eligibility descriptors from scheme text via Groq.

    Parameters
    ----------
    api_key:
        Groq API key.
    model:
        Chat model name.
    url:
        Chat completions endpoint.
    policy:
        Backoff rules.  Defaults to :class:`RetryPolicy()`.
    client:
        Optional pre-built ``httpx.AsyncClient`` (tests inject one with
        a mock transport).  When omitted the classifier owns its client.
    sleep:
        Awaitable sleep used for backoff and pacing.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "llama-3.3-70b-versatile",
        url: str = "https://api.groq.com/openai/v1/chat/completions",
        *,
        policy: RetryPolicy | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._url = url
        self._policy = policy or RetryPolicy()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._sleep = sleep
        self._penalty_seconds = 0.0

    @property
    def penalty_seconds(self) -> float:
        return self._penalty_seconds

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the underlying HTTP client if this classifier created it."""
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def classify(self, batch: Sequence[SchemeText]) -> list[EligibilityDescriptor]:
        """Classify one batch of schemes, retrying per the policy.

        Raises the last error once retries are exhausted.
        """
        if not batch:
            return []

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._policy.max_retries + 1),
            wait=self._wait,
            retry=retry_if_exception(self._policy.is_retryable),
            before_sleep=self._log_retry,
            sleep=self._sleep,
            reraise=True,
        )

        items: list[dict[str, Any]] = []
        async for attempt in retrying:
            with attempt:
                try:
                    items = await self._request(batch)
                except httpx.HTTPStatusError as exc:
                    if exc.response.status_code == 429:
                        self._penalty_seconds = min(
                            self._penalty_seconds + self._policy.penalty_step_seconds,
                            self._policy.max_penalty_seconds,
                        )
                    raise

        self._penalty_seconds = max(
            0.0, self._penalty_seconds - self._policy.penalty_relief_seconds
        )

        parsed_at = datetime.now(UTC)
        descriptors: list[EligibilityDescriptor] = []
        for item in items:
            payload = normalize_descriptor_payload(item)
            payload["parsedBy"] = PROVENANCE
            payload["parsedAt"] = parsed_at
            descriptors.append(EligibilityDescriptor.model_validate(payload))
        return descriptors

    async def classify_catalog(
        self,
        schemes: Sequence[SchemeText],
        *,
        batch_size: int = 3,
        calls_per_minute: int = 20,
    ) -> ClassificationReport:
        """Classify every scheme in batches, paced to ``calls_per_minute``.

        A batch that still fails after all retries is counted as failed
        and skipped; the run continues with the next batch.
        """
        report = ClassificationReport()
        interval = 60.0 / calls_per_minute
        batches = [
            list(schemes[i : i + batch_size]) for i in range(0, len(schemes), batch_size)
        ]

        for index, batch in enumerate(batches):
            start = time.monotonic()
            try:
                descriptors = await self.classify(batch)
            except (httpx.HTTPError, ClassifierError) as exc:
                logger.error(
                    "classifier.batch_failed",
                    batch=index + 1,
                    size=len(batch),
                    error=str(exc),
                )
                report.failed += len(batch)
            else:
                for scheme, descriptor in zip(batch, descriptors, strict=True):
                    report.descriptors[scheme.id] = descriptor
                report.processed += len(batch)

            logger.info(
                "classifier.progress",
                batch=index + 1,
                batches=len(batches),
                processed=report.processed,
                failed=report.failed,
            )

            if index < len(batches) - 1:
                remaining = interval + self._penalty_seconds - (time.monotonic() - start)
                if remaining > 0:
                    await self._sleep(remaining)

        return report

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _request(self, batch: Sequence[SchemeText]) -> list[dict[str, Any]]:
        user_content = "\n\n".join(
            f"--- SCHEME {i + 1} ---\nName: {scheme.name}\n"
            f"Eligibility:\n{scheme.eligibility_md or '(not specified)'}"
            for i, scheme in enumerate(batch)
        )
        body = {
            "model": self._model,
            "temperature": 0.1,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": user_content},
            ],
        }

        response = await self._client.post(
            self._url,
            json=body,
            headers={"Authorization": f"Bearer {self._api_key}"},
        )
        response.raise_for_status()

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ClassifierError("Malformed completion envelope") from exc
        if not content:
            raise ClassifierError("Empty response from classifier")

        try:
            parsed = orjson.loads(content)
        except orjson.JSONDecodeError as exc:
            raise ClassifierError(f"Classifier returned invalid JSON: {content[:200]}") from exc

        items = parsed.get("schemes") if isinstance(parsed, dict) else None
        if not isinstance(items, list):
            raise ClassifierError(f"Expected {{'schemes': [...]}}, got: {content[:200]}")
        if len(items) != len(batch):
            raise ClassifierError(f"Expected {len(batch)} results, got {len(items)}")
        if not all(isinstance(item, dict) for item in items):
            raise ClassifierError("Every classified scheme must be a JSON object")
        return items

    def _wait(self, retry_state: RetryCallState) -> float:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        return self._policy.wait_seconds(retry_state.attempt_number, exc)

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        status = exc.response.status_code if isinstance(exc, httpx.HTTPStatusError) else None
        logger.warning(
            "classifier.retrying",
            attempt=retry_state.attempt_number,
            max_retries=self._policy.max_retries,
            status=status,
            wait_seconds=retry_state.upcoming_sleep,
        )


def _parse_retry_after(value: str | None) -> float:
    if not value:
        return 0.0
    try:
        return max(float(value), 0.0)
    except ValueError:
        return 0.0


def parse_scheme_texts(raw: Sequence[dict[str, Any]]) -> list[SchemeText]:
    """Validate raw scheme records, skipping those without id or name."""
    texts: list[SchemeText] = []
    for record in raw:
        try:
            texts.append(SchemeText.model_validate(record))
        except ValidationError:
            logger.warning("classifier.invalid_scheme_record", scheme_id=record.get("_id"))
    return texts
