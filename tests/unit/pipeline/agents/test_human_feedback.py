# tests/unit/pipeline/agents/test_human_feedback.py — v1
"""Tests for pipeline/agents/human_feedback.py — review policy and admin actions."""

from __future__ import annotations

import pytest

from amrsp.core.errors import InvalidCorrectionError, InvalidReviewDecisionError
from amrsp.core.models import ReviewSummary
from amrsp.pipeline.agents.human_feedback import (
    FIELD_CONTENT_SAFETY,
    FIELD_EXTRACTION,
    FIELD_PLAGIARISM,
    FIELD_VALIDATION,
    HumanFeedbackAgent,
    ReviewPolicy,
)


def _summary(
    safety_passed: bool = True,
    similarity: float = 3.2,
    issues: list[str] | None = None,
    extraction_confidence: float = 0.9,
) -> ReviewSummary:
    return ReviewSummary(
        safety_passed=safety_passed,
        plagiarism_similarity_percent=similarity,
        validation_issues=issues or [],
        extraction_confidence=extraction_confidence,
    )


class TestReviewPolicy:
    def test_safety_violation(self):
        result = ReviewPolicy().evaluate(_summary(safety_passed=False))
        assert result.requires_human_review
        assert [f.field for f in result.flagged_items] == [FIELD_CONTENT_SAFETY]
        assert result.overall_confidence == pytest.approx(0.5)
        assert result.flagged_items[0].agent_note == "Potential safety violation detected"

    def test_plagiarism_above_threshold(self):
        result = ReviewPolicy().evaluate(_summary(similarity=30.0))
        assert result.requires_human_review
        assert [f.field for f in result.flagged_items] == [FIELD_PLAGIARISM]
        assert result.flagged_items[0].confidence == pytest.approx(0.70)
        assert result.flagged_items[0].agent_note == "Similarity: 30.0% exceeds 25% threshold"

    def test_plagiarism_at_threshold_not_flagged(self):
        result = ReviewPolicy().evaluate(_summary(similarity=25.0))
        assert not result.requires_human_review

    def test_low_extraction_confidence(self):
        result = ReviewPolicy().evaluate(_summary(extraction_confidence=0.10))
        assert result.requires_human_review
        assert [f.field for f in result.flagged_items] == [FIELD_EXTRACTION]
        assert result.flagged_items[0].confidence == pytest.approx(0.10)
        assert "below HITL threshold" in result.flagged_items[0].agent_note

    def test_all_clean(self):
        result = ReviewPolicy().evaluate(_summary(similarity=0.0))
        assert not result.requires_human_review
        assert result.overall_confidence == 1.0
        assert result.flagged_items == []

    def test_one_flag_per_validation_issue(self):
        issues = ["Page count 2 is outside the allowed range (8-25).", "Keywords section is missing."]
        result = ReviewPolicy().evaluate(_summary(issues=issues))
        assert [f.field for f in result.flagged_items] == [FIELD_VALIDATION, FIELD_VALIDATION]
        assert [f.agent_note for f in result.flagged_items] == issues
        assert result.overall_confidence == 0.0

    def test_flag_order_and_mean_confidence(self):
        result = ReviewPolicy().evaluate(_summary(
            safety_passed=False, similarity=40.0, issues=["x"], extraction_confidence=0.1,
        ))
        assert [f.field for f in result.flagged_items] == [
            FIELD_CONTENT_SAFETY, FIELD_PLAGIARISM, FIELD_VALIDATION, FIELD_EXTRACTION,
        ]
        assert result.overall_confidence == pytest.approx((0.5 + 0.6 + 0.0 + 0.1) / 4)

    def test_full_similarity_clamps_confidence(self):
        result = ReviewPolicy().evaluate(_summary(similarity=100.0))
        assert result.flagged_items[0].confidence == 0.0

    def test_custom_thresholds(self):
        policy = ReviewPolicy(confidence_threshold=0.95, plagiarism_threshold_percent=1.0)
        result = policy.evaluate(_summary())
        assert [f.field for f in result.flagged_items] == [FIELD_PLAGIARISM, FIELD_EXTRACTION]


class TestHumanFeedbackAgent:
    @pytest.fixture
    def agent(self, store) -> HumanFeedbackAgent:
        return HumanFeedbackAgent(store)

    @pytest.mark.asyncio
    async def test_evaluate_wraps_policy(self, agent):
        outcome = await agent.evaluate("d1", _summary(safety_passed=False))
        assert outcome.succeeded
        assert outcome.payload.requires_human_review

    def test_apply_correction_stores_and_audits(self, agent, store):
        item = agent.apply_correction("d1", " Extraction ", "  Title is X  ")
        assert item.field == "Extraction"
        assert item.human_correction == "Title is X"
        assert store.get_corrections("d1") == [item]
        entry = store.get_audit_log("d1")[0]
        assert entry.action == "Correction applied: Extraction"
        assert entry.actor == "admin"
        assert entry.details == "Title is X"

    def test_apply_correction_twice_keeps_one(self, agent, store):
        agent.apply_correction("d1", "Extraction", "first")
        agent.apply_correction("d1", "Extraction", "second")
        assert [c.human_correction for c in store.get_corrections("d1")] == ["second"]
        assert len(store.get_audit_log("d1")) == 2

    @pytest.mark.parametrize("field,correction", [("", "x"), ("Extraction", "   "), (None, None)])
    def test_blank_correction_rejected(self, agent, store, field, correction):
        with pytest.raises(InvalidCorrectionError):
            agent.apply_correction("d1", field, correction)
        assert store.get_corrections("d1") == []
        assert store.get_audit_log("d1") == []

    def test_approve(self, agent, store):
        decision = agent.record_decision("d1", approved=True, rejection_reason="ignored")
        assert decision.approved
        assert decision.rejection_reason is None
        assert store.get_review_decision("d1") == decision
        assert store.get_audit_log("d1")[0].action == "Document approved"

    def test_reject_with_reason(self, agent, store):
        decision = agent.record_decision(
            "d1", approved=False, rejection_reason="Out of scope", reviewed_by="chair",
        )
        assert decision.reviewed_by == "chair"
        entry = store.get_audit_log("d1")[0]
        assert entry.action == "Document rejected"
        assert entry.details == "Out of scope"

    def test_reject_without_reason(self, agent, store):
        with pytest.raises(InvalidReviewDecisionError):
            agent.record_decision("d1", approved=False, rejection_reason="  ")
        assert store.get_review_decision("d1") is None

    def test_decision_replaced(self, agent, store):
        agent.record_decision("d1", approved=False, rejection_reason="No references")
        agent.record_decision("d1", approved=True)
        assert store.get_review_decision("d1").approved
