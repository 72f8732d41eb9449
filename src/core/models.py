# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

No module redefines these types — all imports come from core.models.
Every model serializes with camelCase aliases (the HTTP wire format) and
accepts either snake_case or camelCase on input.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")

Actor = Literal["system", "admin", "user"]
SafetyCategory = Literal["HateSpeech", "Violence", "SexualContent", "SelfHarm"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model with camelCase aliases for JSON transport."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# === STEP OUTCOMES ===


class StepOutcome(CamelModel, Generic[T]):
    """Result of one pipeline stage.

    A succeeded outcome always carries a payload and no error. A failed
    outcome always carries an error; it may still carry a payload (e.g. a
    validation report listing the rules that failed).
    """

    model_config = ConfigDict(frozen=True)

    succeeded: bool
    payload: T | None = None
    error: str | None = None
    elapsed_ms: int = 0

    @model_validator(mode="after")
    def _check_invariants(self) -> StepOutcome[T]:
        if self.succeeded and (self.payload is None or self.error is not None):
            raise ValueError("succeeded outcome requires a payload and no error")
        if not self.succeeded and not self.error:
            raise ValueError("failed outcome requires an error message")
        return self

    @classmethod
    def ok(cls, payload: T, elapsed_ms: int = 0) -> StepOutcome[T]:
        return cls(succeeded=True, payload=payload, elapsed_ms=elapsed_ms)

    @classmethod
    def fail(
        cls, error: str, elapsed_ms: int = 0, payload: T | None = None,
    ) -> StepOutcome[T]:
        return cls(succeeded=False, payload=payload, error=error, elapsed_ms=elapsed_ms)


class StageOutcome(CamelModel):
    """Named, JSON-shaped StepOutcome as stored in a PipelineReport."""

    model_config = ConfigDict(frozen=True)

    name: str
    succeeded: bool
    payload: dict[str, Any] | None = None
    error: str | None = None
    elapsed_ms: int = 0

    @model_validator(mode="after")
    def _check_invariants(self) -> StageOutcome:
        if self.succeeded and (self.payload is None or self.error is not None):
            raise ValueError(f"stage '{self.name}' succeeded without payload or with error")
        if not self.succeeded and not self.error:
            raise ValueError(f"stage '{self.name}' failed without an error message")
        return self

    @classmethod
    def from_outcome(cls, name: str, outcome: StepOutcome[Any]) -> StageOutcome:
        payload = outcome.payload
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(mode="json", by_alias=True)
        return cls(
            name=name,
            succeeded=outcome.succeeded,
            payload=payload,
            error=outcome.error,
            elapsed_ms=outcome.elapsed_ms,
        )

    def payload_as(self, model: type[BaseModel]) -> Any:
        """Parse the payload back into its typed model (None when absent)."""
        if self.payload is None:
            return None
        return model.model_validate(self.payload)


# === STAGE PAYLOADS ===


class IngestionResult(CamelModel):
    """Submission record produced by the ingestion stage."""

    document_id: str
    file_path: str
    file_name: str
    file_size_bytes: int
    file_type: str
    sha256: str
    sender: str
    subject: str
    received_at: datetime


class PreProcessResult(CamelModel):
    is_valid_file_type: bool
    detected_file_type: str
    ocr_required: bool = False
    page_count: int = 0
    extracted_text: str
    primary_language: str
    language_code: str
    language_confidence: float


class TranslationResult(CamelModel):
    original_text: str
    translated_text: str
    source_language: str
    was_translated: bool


class DocumentMetadata(CamelModel):
    """Structured fields extracted from a submission."""

    title: str
    authors: list[str] = Field(default_factory=list)
    affiliations: list[str] = Field(default_factory=list)
    abstract: str = ""
    keywords: list[str] = Field(default_factory=list)
    figures: list[str] = Field(default_factory=list)
    page_count: int = 0
    format: str = "Unknown"


class ValidationResult(CamelModel):
    is_valid: bool
    page_count: int
    is_page_count_compliant: bool
    missing_sections: list[str] = Field(default_factory=list)
    validation_issues: list[str] = Field(default_factory=list)


class SafetyFlag(CamelModel):
    category: SafetyCategory
    severity: float
    detail: str


class ContentSafetyResult(CamelModel):
    is_safe: bool
    flags: list[SafetyFlag] = Field(default_factory=list)
    overall_rating: str = "Safe"


class PlagiarismMatch(CamelModel):
    source: str
    similarity: float
    matched_text: str


class PlagiarismResult(CamelModel):
    similarity_percent: float
    plagiarism_detected: bool
    matches: list[PlagiarismMatch] = Field(default_factory=list)


class RagIndexResult(CamelModel):
    index_id: str
    chunks_indexed: int
    total_tokens: int
    vector_store: str


class SummarizationResult(CamelModel):
    summary: str
    key_findings: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    methodology: str = ""


class QnAReadyResult(CamelModel):
    is_ready: bool
    index_id: str
    endpoint: str


class QnARequest(CamelModel):
    document_id: str
    question: str
    session_id: str | None = None


class QnAResponse(CamelModel):
    question: str
    answer: str
    sources: list[str] = Field(default_factory=list)
    confidence: float
    session_id: str | None = None


# === HUMAN-IN-THE-LOOP ===


class ReviewSummary(CamelModel):
    """Transient input to the review policy, built fresh per run."""

    safety_passed: bool
    plagiarism_similarity_percent: float
    validation_issues: list[str] = Field(default_factory=list)
    extraction_confidence: float = Field(ge=0.0, le=1.0)


class FlaggedItem(CamelModel):
    """One field flagged for human attention (or corrected by an admin)."""

    model_config = ConfigDict(frozen=True)

    field: str
    agent_note: str
    confidence: float = Field(ge=0.0, le=1.0)
    human_correction: str | None = None


class HumanFeedbackResult(CamelModel):
    """Outcome of the review policy for one run.

    Resolution is not stored here; see ``is_resolved``.
    """

    requires_human_review: bool
    overall_confidence: float
    flagged_items: list[FlaggedItem] = Field(default_factory=list)

    def is_resolved(self, corrections: list[FlaggedItem]) -> bool:
        """True when review is required and every flagged field is corrected."""
        if not self.requires_human_review:
            return False
        corrected = {c.field.lower() for c in corrections if c.human_correction}
        return all(item.field.lower() in corrected for item in self.flagged_items)


class ReviewDecision(CamelModel):
    """Admin approve/reject verdict for a document."""

    document_id: str
    approved: bool
    rejection_reason: str | None = None
    reviewed_by: str = "admin"
    decided_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def _require_reason_on_reject(self) -> ReviewDecision:
        if not self.approved and not (self.rejection_reason or "").strip():
            raise ValueError("rejection_reason is required when approved is false")
        return self


class AuditEntry(CamelModel):
    """Append-only audit log record."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:8])
    document_id: str | None = None
    action: str
    actor: Actor = "system"
    details: str | None = None
    timestamp: datetime = Field(default_factory=utc_now)


# === PIPELINE REPORT ===


class PipelineReport(CamelModel):
    """One document-processing run. Never mutated after creation."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    run_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    file_name: str
    overall_succeeded: bool
    steps: list[StageOutcome] = Field(default_factory=list)
    total_elapsed_ms: int = 0
    processed_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def _check_overall(self) -> PipelineReport:
        expected = all(step.succeeded for step in self.steps)
        if self.overall_succeeded != expected:
            raise ValueError("overall_succeeded must equal the AND of all step outcomes")
        return self

    def step(self, name: str) -> StageOutcome | None:
        """Return the outcome of a named stage, or None."""
        for outcome in self.steps:
            if outcome.name == name:
                return outcome
        return None

    @property
    def failed_steps(self) -> list[str]:
        return [s.name for s in self.steps if not s.succeeded]
