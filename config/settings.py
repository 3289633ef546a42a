"""Application settings loaded from environment variables.

Uses pydantic-settings for validation and type coercion. App-specific
settings use the ``YOJANAMITRA_`` prefix; third-party credentials use
their canonical environment variable names via ``validation_alias``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(StrEnum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Central configuration for the YojanaMitra service.

    Environment variables are loaded from a ``.env`` file when present.
    App-specific keys are prefixed with ``YOJANAMITRA_``; the Groq keys
    use their standard names (configured via ``validation_alias``).
    """

    model_config = SettingsConfigDict(
        env_prefix="YOJANAMITRA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # ── App ────────────────────────────────────────────────────────────
    env: Literal["development", "production"] = "development"

    # ── API ────────────────────────────────────────────────────────────
    api_host: str = Field(default="0.0.0.0", validation_alias="API_HOST")
    api_port: int = Field(default=8000, validation_alias="API_PORT")

    # ── Logging ────────────────────────────────────────────────────────
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field(default="json", validation_alias="LOG_FORMAT")

    # ── Matching ───────────────────────────────────────────────────────
    match_limit: int = Field(default=200, ge=0)
    near_miss_max: int = Field(default=30, ge=0)
    candidate_window: int = Field(default=5000, ge=1)
    recognized_parsers: list[str] = Field(default_factory=lambda: ["gemini", "groq"])
    catalog_path: str | None = None  # None -> bundled sample catalog

    # ── Upstream eligibility classifier (Groq) ─────────────────────────
    groq_api_key: str = Field(default="", validation_alias="GROQ_API_KEY")
    groq_model: str = Field(default="llama-3.3-70b-versatile", validation_alias="GROQ_MODEL")
    groq_url: str = "https://api.groq.com/openai/v1/chat/completions"
    classifier_batch_size: int = Field(default=3, ge=1)
    classifier_calls_per_minute: int = Field(default=20, ge=1)
    classifier_max_retries: int = Field(default=4, ge=0)
    classifier_timeout_seconds: float = 60.0

    # ── Derived Properties ─────────────────────────────────────────────

    @property
    def is_production(self) -> bool:
        return self.env == Environment.PRODUCTION


# Module-level singleton: import ``settings`` everywhere.
settings = Settings()
