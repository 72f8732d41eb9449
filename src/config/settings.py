# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific settings: HITL policy
thresholds, validation rules, ingestion folder, LLM provider and logging.
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Application ===
    app_name: str = "AMRSP"
    api_version: str = "1.0.0"
    cors_origins: str = "http://localhost:4200"

    # === HITL review policy ===
    hitl_confidence_threshold: float = 0.25
    plagiarism_threshold_percent: float = 25.0
    safety_flag_confidence: float = 0.5
    extraction_confidence_ok: float = 0.90
    extraction_confidence_failed: float = 0.10

    # === Validation rules ===
    validation_min_pages: int = 8
    validation_max_pages: int = 25
    validation_required_sections: str = "Title,Abstract,Keywords,Authors,References"

    # === Ingestion ===
    ingestion_watch_folder: Path = Path(tempfile.gettempdir()) / "amrsp-inbox"
    ingestion_formats: str = "pdf,docx,doc"
    upload_max_size_mb: int = 50

    # === Content safety / plagiarism ===
    content_safety_extra_terms: str = ""
    plagiarism_shingle_size: int = 5

    # === RAG / Q&A / Summary ===
    rag_chunk_size: int = 500
    qna_top_k: int = 3
    qna_history_turns: int = 10
    qna_max_sessions: int = 1000
    summary_max_words: int = 250

    # === LLM provider ===
    llm_provider: Literal["none", "openai", "azure_openai"] = "none"
    llm_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.2
    llm_max_tokens: int = 1024
    openai_api_key: str = ""
    azure_openai_endpoint: str = ""
    azure_openai_api_key: str = ""
    azure_openai_api_version: str = "2024-06-01"

    # === Batch ===
    batch_concurrency: int = 4

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator(
        "hitl_confidence_threshold",
        "safety_flag_confidence",
        "extraction_confidence_ok",
        "extraction_confidence_failed",
    )
    @classmethod
    def validate_fraction(cls, v: float, info) -> float:  # noqa: N805
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"{info.field_name} must be within [0, 1]")
        return v

    @field_validator("plagiarism_threshold_percent")
    @classmethod
    def validate_percent(cls, v: float) -> float:  # noqa: N805
        if not 0.0 <= v <= 100.0:
            raise ValueError("plagiarism_threshold_percent must be within [0, 100]")
        return v

    @field_validator("batch_concurrency", "rag_chunk_size", "qna_top_k", "qna_max_sessions")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:  # noqa: N805
        if v < 1:
            raise ValueError(f"{info.field_name} must be >= 1")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.validation_min_pages > self.validation_max_pages:
            errors.append(
                "VALIDATION_MIN_PAGES must be <= VALIDATION_MAX_PAGES"
            )

        if self.llm_provider == "openai" and not self.openai_api_key:
            errors.append("LLM_PROVIDER=openai requires OPENAI_API_KEY")

        if self.llm_provider == "azure_openai" and not (
            self.azure_openai_endpoint and self.azure_openai_api_key
        ):
            errors.append(
                "LLM_PROVIDER=azure_openai requires AZURE_OPENAI_ENDPOINT "
                "and AZURE_OPENAI_API_KEY"
            )

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def validation_required_sections_list(self) -> list[str]:
        """Parse comma-separated required sections."""
        return [
            s.strip() for s in self.validation_required_sections.split(",") if s.strip()
        ]

    @property
    def ingestion_formats_list(self) -> list[str]:
        """Parse comma-separated ingestion formats (lowercase, no dot)."""
        return [
            f.strip().lower().lstrip(".")
            for f in self.ingestion_formats.split(",")
            if f.strip()
        ]

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def content_safety_extra_terms_list(self) -> list[str]:
        return [
            t.strip().lower()
            for t in self.content_safety_extra_terms.split(",")
            if t.strip()
        ]

    @property
    def upload_max_size_bytes(self) -> int:
        return self.upload_max_size_mb * 1024 * 1024


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or the CLI).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
