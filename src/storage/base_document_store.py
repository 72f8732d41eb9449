# src/storage/base_document_store.py — v1
"""Abstract document store interface.

Holds pipeline reports, the audit log, HITL corrections and admin review
decisions, all keyed by document_id. Absence is reported as None or an
empty list, never as an error.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from amrsp.core.models import AuditEntry, FlaggedItem, PipelineReport, ReviewDecision


class BaseDocumentStore(ABC):
    """Unified interface for document state backends."""

    # --- Pipeline reports ---

    @abstractmethod
    def save_report(self, report: PipelineReport) -> None:
        """Persist a report, replacing any previous report for the document."""

    @abstractmethod
    def get_report(self, document_id: str) -> PipelineReport | None:
        """Return the report for a document, or None if not processed."""

    @abstractmethod
    def list_reports(self) -> list[PipelineReport]:
        """Return all reports, newest first."""

    # --- Audit log ---

    @abstractmethod
    def add_audit_entry(self, entry: AuditEntry) -> None:
        """Append an audit entry (document-scoped or system-wide)."""

    @abstractmethod
    def get_audit_log(self, document_id: str | None = None) -> list[AuditEntry]:
        """Return audit entries newest first.

        With a document_id only that document's entries are returned;
        without one, every entry across all documents.
        """

    # --- HITL corrections ---

    @abstractmethod
    def save_correction(self, document_id: str, field: str, correction: str) -> FlaggedItem:
        """Upsert an admin correction for a field (case-insensitive match)."""

    @abstractmethod
    def get_corrections(self, document_id: str) -> list[FlaggedItem]:
        """Return all corrections submitted for a document."""

    # --- Review decisions ---

    @abstractmethod
    def save_review_decision(self, decision: ReviewDecision) -> None:
        """Persist an admin decision, replacing any earlier one."""

    @abstractmethod
    def get_review_decision(self, document_id: str) -> ReviewDecision | None:
        """Return the decision for a document, or None if not yet reviewed."""
