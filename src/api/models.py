# src/api/models.py — v2
"""API-level models: request bodies, responses and the document summary view."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from amrsp.config.stages import STAGE_HUMAN_FEEDBACK
from amrsp.core.models import (
    CamelModel,
    FlaggedItem,
    HumanFeedbackResult,
    PipelineReport,
    ReviewDecision,
    utc_now,
)


class AskRequest(CamelModel):
    question: str = ""
    session_id: str | None = None


class CorrectionRequest(CamelModel):
    field: str = ""
    correction: str = ""


class CorrectionResponse(CamelModel):
    document_id: str
    field: str
    correction: str
    applied_at: datetime = Field(default_factory=utc_now)


class ReviewRequest(CamelModel):
    approved: bool
    rejection_reason: str | None = None
    reviewed_by: str = "admin"


class HealthResponse(CamelModel):
    version: str
    status: str = "healthy"
    timestamp: datetime = Field(default_factory=utc_now)


class DocumentSummary(CamelModel):
    """Admin list view of one processed document."""

    document_id: str
    file_name: str
    overall_success: bool
    total_elapsed_ms: int
    requires_review: bool
    is_resolved: bool
    overall_confidence: float
    flagged_items: list[FlaggedItem] = Field(default_factory=list)
    processed_at: datetime
    review_decision: ReviewDecision | None = None

    @classmethod
    def from_report(
        cls,
        report: PipelineReport,
        corrections: list[FlaggedItem],
        decision: ReviewDecision | None = None,
    ) -> DocumentSummary:
        """Build the view from a report plus admin state.

        Flags from the review stage are merged with corrections: a flagged
        field that was corrected carries the correction text, and corrected
        fields that were never flagged are appended. When the review stage
        produced nothing the document is treated as needing review.
        """
        step = report.step(STAGE_HUMAN_FEEDBACK)
        feedback: HumanFeedbackResult | None = (
            step.payload_as(HumanFeedbackResult) if step is not None else None
        )
        by_field = {c.field.lower(): c for c in corrections}

        merged: list[FlaggedItem] = []
        seen: set[str] = set()
        for item in feedback.flagged_items if feedback else []:
            correction = by_field.get(item.field.lower())
            if correction is not None:
                item = item.model_copy(update={"human_correction": correction.human_correction})
            merged.append(item)
            seen.add(item.field.lower())
        merged.extend(c for c in corrections if c.field.lower() not in seen)

        return cls(
            document_id=report.document_id,
            file_name=report.file_name,
            overall_success=report.overall_succeeded,
            total_elapsed_ms=report.total_elapsed_ms,
            requires_review=feedback.requires_human_review if feedback else True,
            is_resolved=feedback.is_resolved(corrections) if feedback else False,
            overall_confidence=feedback.overall_confidence if feedback else 0.0,
            flagged_items=merged,
            processed_at=report.processed_at,
            review_decision=decision,
        )
