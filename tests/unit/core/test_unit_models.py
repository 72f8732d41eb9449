# tests/unit/core/test_unit_models.py — v1
"""Tests for core/models.py — outcome invariants, report rules, round-trips."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from amrsp.core.models import (
    AuditEntry,
    DocumentMetadata,
    FlaggedItem,
    HumanFeedbackResult,
    PipelineReport,
    ReviewDecision,
    ReviewSummary,
    StageOutcome,
    StepOutcome,
    ValidationResult,
)


class TestStepOutcome:
    def test_ok(self):
        outcome = StepOutcome.ok({"a": 1}, elapsed_ms=5)
        assert outcome.succeeded
        assert outcome.error is None
        assert outcome.elapsed_ms == 5

    def test_fail_without_payload(self):
        outcome = StepOutcome.fail("boom")
        assert not outcome.succeeded
        assert outcome.payload is None

    def test_fail_may_carry_payload(self):
        outcome = StepOutcome.fail("rules broken", payload={"issues": 2})
        assert outcome.payload == {"issues": 2}

    def test_success_requires_payload(self):
        with pytest.raises(ValidationError):
            StepOutcome(succeeded=True)

    def test_success_rejects_error(self):
        with pytest.raises(ValidationError):
            StepOutcome(succeeded=True, payload=1, error="x")

    def test_failure_requires_error(self):
        with pytest.raises(ValidationError):
            StepOutcome(succeeded=False)

    def test_frozen(self):
        outcome = StepOutcome.ok(1)
        with pytest.raises(ValidationError):
            outcome.elapsed_ms = 3


class TestStageOutcome:
    def test_from_outcome_dumps_payload_camel_case(self):
        metadata = DocumentMetadata(title="T", page_count=9)
        stage = StageOutcome.from_outcome("Extraction Agent", StepOutcome.ok(metadata, 12))
        assert stage.payload["pageCount"] == 9
        assert stage.elapsed_ms == 12
        assert stage.payload_as(DocumentMetadata) == metadata

    def test_failed_with_payload(self):
        result = ValidationResult(
            is_valid=False, page_count=2, is_page_count_compliant=False,
            validation_issues=["too short"],
        )
        stage = StageOutcome.from_outcome(
            "Validation Agent", StepOutcome.fail("1 issue", payload=result),
        )
        assert not stage.succeeded
        assert stage.payload_as(ValidationResult).validation_issues == ["too short"]

    def test_payload_as_none(self):
        stage = StageOutcome(name="X", succeeded=False, error="e")
        assert stage.payload_as(DocumentMetadata) is None


def _steps(*flags: bool) -> list[StageOutcome]:
    return [
        StageOutcome(name=f"S{i}", succeeded=ok, payload={} if ok else None,
                     error=None if ok else "e")
        for i, ok in enumerate(flags)
    ]


class TestPipelineReport:
    def test_overall_must_match_steps(self):
        with pytest.raises(ValidationError, match="AND"):
            PipelineReport(
                document_id="d", file_name="f.pdf", overall_succeeded=True,
                steps=_steps(True, False),
            )

    def test_failed_steps_and_lookup(self):
        report = PipelineReport(
            document_id="d", file_name="f.pdf", overall_succeeded=False,
            steps=_steps(True, False, True),
        )
        assert report.failed_steps == ["S1"]
        assert report.step("S2").succeeded
        assert report.step("missing") is None

    def test_round_trip(self):
        report = PipelineReport(
            document_id="d", file_name="f.pdf", overall_succeeded=True,
            steps=_steps(True, True), total_elapsed_ms=42,
        )
        restored = PipelineReport.model_validate_json(report.model_dump_json(by_alias=True))
        assert restored == report

    def test_wire_format_is_camel_case(self):
        report = PipelineReport(document_id="d", file_name="f.pdf", overall_succeeded=True)
        data = report.model_dump(by_alias=True)
        assert "overallSucceeded" in data
        assert "documentId" in data


class TestReviewModels:
    def test_flagged_item_round_trip(self):
        item = FlaggedItem(field="Extraction", agent_note="low", confidence=0.1)
        assert FlaggedItem.model_validate_json(item.model_dump_json(by_alias=True)) == item

    def test_flagged_item_confidence_bounds(self):
        with pytest.raises(ValidationError):
            FlaggedItem(field="X", agent_note="n", confidence=1.5)

    def test_audit_entry_round_trip(self):
        entry = AuditEntry(document_id="d", action="Pipeline completed", details="10ms total")
        assert len(entry.id) == 8
        assert entry.actor == "system"
        assert AuditEntry.model_validate_json(entry.model_dump_json(by_alias=True)) == entry

    def test_review_summary_confidence_bounds(self):
        with pytest.raises(ValidationError):
            ReviewSummary(
                safety_passed=True, plagiarism_similarity_percent=0, extraction_confidence=2.0,
            )

    def test_rejection_requires_reason(self):
        with pytest.raises(ValidationError, match="rejection_reason"):
            ReviewDecision(document_id="d", approved=False, rejection_reason="  ")

    def test_approval_without_reason(self):
        decision = ReviewDecision(document_id="d", approved=True)
        assert decision.reviewed_by == "admin"

    def test_accepts_camel_case_input(self):
        decision = ReviewDecision.model_validate(
            {"documentId": "d", "approved": False, "rejectionReason": "Out of scope"}
        )
        assert decision.rejection_reason == "Out of scope"


class TestIsResolved:
    def _result(self, *fields: str) -> HumanFeedbackResult:
        return HumanFeedbackResult(
            requires_human_review=bool(fields),
            overall_confidence=0.5,
            flagged_items=[FlaggedItem(field=f, agent_note="n", confidence=0.5) for f in fields],
        )

    def _correction(self, field: str) -> FlaggedItem:
        return FlaggedItem(
            field=field, agent_note="Admin-corrected", confidence=1.0, human_correction="ok",
        )

    def test_all_flags_corrected(self):
        result = self._result("ContentSafety", "Extraction")
        corrections = [self._correction("contentsafety"), self._correction("Extraction")]
        assert result.is_resolved(corrections)

    def test_partial_corrections(self):
        result = self._result("ContentSafety", "Extraction")
        assert not result.is_resolved([self._correction("Extraction")])

    def test_nothing_to_resolve(self):
        assert not self._result().is_resolved([])
