# src/pipeline/agents/human_feedback.py — v1
"""Human-in-the-loop review: policy evaluation, admin corrections, decisions.

The policy flags a run for review when content safety failed, similarity
exceeds the plagiarism threshold, validation reported issues, or the
extraction confidence is below the HITL threshold. Rules fire
independently; overall confidence is the mean of the flag confidences
(1.0 when nothing is flagged).
"""

from __future__ import annotations

import logging

from amrsp.core.errors import InvalidCorrectionError, InvalidReviewDecisionError
from amrsp.core.models import (
    AuditEntry,
    FlaggedItem,
    HumanFeedbackResult,
    ReviewDecision,
    ReviewSummary,
    StepOutcome,
)
from amrsp.pipeline.plugin_kit.base_agent import BaseHumanFeedbackAgent, Stopwatch
from amrsp.storage.base_document_store import BaseDocumentStore

logger = logging.getLogger(__name__)

FIELD_CONTENT_SAFETY = "ContentSafety"
FIELD_PLAGIARISM = "Plagiarism"
FIELD_VALIDATION = "Validation"
FIELD_EXTRACTION = "Extraction"


class ReviewPolicy:
    """Pure HITL decision rules.

    Args:
        confidence_threshold: Extraction confidence below this is flagged.
        plagiarism_threshold_percent: Similarity above this is flagged.
        safety_flag_confidence: Confidence attached to a safety flag.
    """

    def __init__(
        self,
        confidence_threshold: float = 0.25,
        plagiarism_threshold_percent: float = 25.0,
        safety_flag_confidence: float = 0.5,
    ) -> None:
        self.confidence_threshold = confidence_threshold
        self.plagiarism_threshold_percent = plagiarism_threshold_percent
        self.safety_flag_confidence = safety_flag_confidence

    def evaluate(self, summary: ReviewSummary) -> HumanFeedbackResult:
        flagged: list[FlaggedItem] = []

        if not summary.safety_passed:
            flagged.append(FlaggedItem(
                field=FIELD_CONTENT_SAFETY,
                agent_note="Potential safety violation detected",
                confidence=self.safety_flag_confidence,
            ))

        pct = summary.plagiarism_similarity_percent
        if pct > self.plagiarism_threshold_percent:
            flagged.append(FlaggedItem(
                field=FIELD_PLAGIARISM,
                agent_note=(
                    f"Similarity: {pct:.1f}% exceeds "
                    f"{self.plagiarism_threshold_percent:g}% threshold"
                ),
                confidence=max(0.0, min(1.0, 1.0 - pct / 100.0)),
            ))

        for issue in summary.validation_issues:
            flagged.append(FlaggedItem(field=FIELD_VALIDATION, agent_note=issue, confidence=0.0))

        if summary.extraction_confidence < self.confidence_threshold:
            flagged.append(FlaggedItem(
                field=FIELD_EXTRACTION,
                agent_note=(
                    f"Extraction confidence {summary.extraction_confidence:.0%} "
                    "is below HITL threshold"
                ),
                confidence=summary.extraction_confidence,
            ))

        overall = (
            sum(f.confidence for f in flagged) / len(flagged) if flagged else 1.0
        )
        return HumanFeedbackResult(
            requires_human_review=bool(flagged),
            overall_confidence=overall,
            flagged_items=flagged,
        )


class HumanFeedbackAgent(BaseHumanFeedbackAgent):
    """Review stage plus the admin-side correction and decision operations."""

    def __init__(self, store: BaseDocumentStore, policy: ReviewPolicy | None = None) -> None:
        self._store = store
        self._policy = policy or ReviewPolicy()

    @property
    def policy(self) -> ReviewPolicy:
        return self._policy

    async def evaluate(
        self, document_id: str, summary: ReviewSummary,
    ) -> StepOutcome[HumanFeedbackResult]:
        watch = Stopwatch()
        result = self._policy.evaluate(summary)
        logger.info(
            "Review evaluation for %s: requires_review=%s, flags=%d, confidence=%.2f",
            document_id, result.requires_human_review,
            len(result.flagged_items), result.overall_confidence,
        )
        return StepOutcome.ok(result, watch.elapsed_ms)

    def apply_correction(self, document_id: str, field: str, correction: str) -> FlaggedItem:
        """Store an admin correction for a field, replacing any earlier one.

        Raises:
            InvalidCorrectionError: If field or correction is blank.
        """
        field, correction = (field or "").strip(), (correction or "").strip()
        if not field or not correction:
            raise InvalidCorrectionError("field and correction must not be blank")

        item = self._store.save_correction(document_id, field, correction)
        self._store.add_audit_entry(AuditEntry(
            document_id=document_id,
            action=f"Correction applied: {field}",
            actor="admin",
            details=correction,
        ))
        logger.info("Admin correction for %s, field '%s'", document_id, field)
        return item

    def record_decision(
        self,
        document_id: str,
        approved: bool,
        rejection_reason: str | None = None,
        reviewed_by: str = "admin",
    ) -> ReviewDecision:
        """Create or replace the review decision for a document.

        Raises:
            InvalidReviewDecisionError: If a rejection has no reason.
        """
        reason = (rejection_reason or "").strip() or None
        if not approved and reason is None:
            raise InvalidReviewDecisionError("rejection_reason is required when rejecting")

        decision = ReviewDecision(
            document_id=document_id,
            approved=approved,
            rejection_reason=None if approved else reason,
            reviewed_by=(reviewed_by or "").strip() or "admin",
        )
        self._store.save_review_decision(decision)
        self._store.add_audit_entry(AuditEntry(
            document_id=document_id,
            action="Document approved" if approved else "Document rejected",
            actor="admin",
            details=decision.rejection_reason,
        ))
        logger.info(
            "Review decision for %s: %s by %s",
            document_id, "approved" if approved else "rejected", decision.reviewed_by,
        )
        return decision
