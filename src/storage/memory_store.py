# src/storage/memory_store.py — v1
"""Thread-safe in-process document store.

State lives for the lifetime of the process only. Reports and decisions
are single-key dictionary writes; the audit list and the correction list
of each document are guarded by their own lock, so concurrent runs for
different documents never contend.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict

from amrsp.core.models import AuditEntry, FlaggedItem, PipelineReport, ReviewDecision
from amrsp.storage.base_document_store import BaseDocumentStore

logger = logging.getLogger(__name__)

ADMIN_CORRECTED_NOTE = "Admin-corrected"

# Key used for system-wide audit entries (document_id=None).
_SYSTEM_KEY = ""


class InMemoryDocumentStore(BaseDocumentStore):
    """Document store backed by process-memory dictionaries."""

    def __init__(self) -> None:
        self._reports: dict[str, PipelineReport] = {}
        self._audit_log: dict[str, list[AuditEntry]] = {}
        self._corrections: dict[str, list[FlaggedItem]] = {}
        self._reviews: dict[str, ReviewDecision] = {}
        self._locks: defaultdict[str, threading.Lock] = defaultdict(threading.Lock)
        self._registry_lock = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._registry_lock:
            return self._locks[key]

    # --- Pipeline reports ---

    def save_report(self, report: PipelineReport) -> None:
        if report.document_id in self._reports:
            logger.info("Replacing existing report for %s", report.document_id)
        self._reports[report.document_id] = report

    def get_report(self, document_id: str) -> PipelineReport | None:
        return self._reports.get(document_id)

    def list_reports(self) -> list[PipelineReport]:
        return sorted(
            self._reports.values(), key=lambda r: r.processed_at, reverse=True,
        )

    # --- Audit log ---

    def add_audit_entry(self, entry: AuditEntry) -> None:
        key = entry.document_id or _SYSTEM_KEY
        with self._lock_for(key):
            self._audit_log.setdefault(key, []).append(entry)

    def get_audit_log(self, document_id: str | None = None) -> list[AuditEntry]:
        if document_id is not None:
            with self._lock_for(document_id):
                entries = list(self._audit_log.get(document_id, []))
            return entries[::-1]

        collected: list[AuditEntry] = []
        for key in list(self._audit_log):
            with self._lock_for(key):
                collected.extend(self._audit_log[key])
        return sorted(collected, key=lambda e: e.timestamp, reverse=True)

    # --- HITL corrections ---

    def save_correction(self, document_id: str, field: str, correction: str) -> FlaggedItem:
        item = FlaggedItem(
            field=field,
            agent_note=ADMIN_CORRECTED_NOTE,
            confidence=1.0,
            human_correction=correction,
        )
        with self._lock_for(document_id):
            existing = self._corrections.setdefault(document_id, [])
            existing[:] = [f for f in existing if f.field.lower() != field.lower()]
            existing.append(item)
        return item

    def get_corrections(self, document_id: str) -> list[FlaggedItem]:
        with self._lock_for(document_id):
            return list(self._corrections.get(document_id, []))

    # --- Review decisions ---

    def save_review_decision(self, decision: ReviewDecision) -> None:
        self._reviews[decision.document_id] = decision

    def get_review_decision(self, document_id: str) -> ReviewDecision | None:
        return self._reviews.get(document_id)
