"""YojanaMitra service layer -- matching engine, candidate sources, classifier client."""

from __future__ import annotations

from yojanamitra.services.candidates import (
    CandidateSource,
    InMemoryCandidateSource,
    SchemeMatcher,
)
from yojanamitra.services.classifier import (
    ClassificationReport,
    ClassifierError,
    EligibilityClassifier,
    RetryPolicy,
    normalize_descriptor_payload,
)

__all__ = [
    "CandidateSource",
    "ClassificationReport",
    "ClassifierError",
    "EligibilityClassifier",
    "InMemoryCandidateSource",
    "RetryPolicy",
    "SchemeMatcher",
    "normalize_descriptor_payload",
]
