# src/batch/models.py — v2
"""Batch processing models: BatchEntry, BatchResult."""

from __future__ import annotations

from pydantic import Field

from amrsp.core.models import CamelModel


class BatchEntry(CamelModel):
    """Outcome for one file picked up from the watch folder."""

    file_name: str
    file_path: str
    document_id: str
    overall_succeeded: bool | None = None
    error: str | None = None


class BatchResult(CamelModel):
    """Summary of one watch-folder processing pass.

    ``processed`` counts files that produced a report (even with failed
    stages); ``failed`` counts files that could not be run at all.
    """

    watch_folder: str
    total_files_found: int
    processed: int
    failed: int
    entries: list[BatchEntry] = Field(default_factory=list)
    duration_seconds: float
