# src/pipeline/agents/ingestion.py — v2
"""Ingestion stage: record incoming submissions.

Submissions arrive either as HTTP uploads or as files dropped into the
watch folder (a stand-in for the research-submission mailbox).
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO

from amrsp.core.models import IngestionResult, StepOutcome, utc_now
from amrsp.extraction.document_reader import detect_file_type
from amrsp.pipeline.plugin_kit.base_agent import BaseIngestionAgent, Stopwatch

logger = logging.getLogger(__name__)

DEFAULT_SENDER = "researcher@university.edu"


def _subject_for(file_name: str) -> str:
    return f"Research Submission: {file_name}"


class IngestionAgent(BaseIngestionAgent):
    """Watch-folder ingestion.

    Args:
        watch_folder: Directory scanned for pending submissions.
        formats: Accepted extensions (lowercase, no dot).
    """

    def __init__(self, watch_folder: Path, formats: list[str]) -> None:
        self._watch_folder = Path(watch_folder)
        self._formats = {f.lower() for f in formats}

    async def ingest(
        self, document_id: str, file_name: str, data: BinaryIO,
    ) -> StepOutcome[IngestionResult]:
        watch = Stopwatch()
        content = data.read()
        candidate = self._watch_folder / file_name
        file_path = str(candidate) if candidate.is_file() else file_name

        result = IngestionResult(
            document_id=document_id,
            file_path=file_path,
            file_name=Path(file_name).name,
            file_size_bytes=len(content),
            file_type=detect_file_type(file_name),
            sha256=hashlib.sha256(content).hexdigest(),
            sender=DEFAULT_SENDER,
            subject=_subject_for(file_name),
            received_at=utc_now(),
        )
        logger.info(
            "Ingested '%s' (%d bytes) from %s",
            result.file_name, result.file_size_bytes, result.sender,
        )
        return StepOutcome.ok(result, watch.elapsed_ms)

    async def list_pending(self) -> list[IngestionResult]:
        """Scan the watch folder in a worker thread; hashing reads every file."""
        return await asyncio.to_thread(self._scan_watch_folder)

    def _scan_watch_folder(self) -> list[IngestionResult]:
        if not self._watch_folder.is_dir():
            logger.warning("Watch folder does not exist: %s", self._watch_folder)
            return []

        pending: list[IngestionResult] = []
        for path in sorted(self._watch_folder.iterdir()):
            if not path.is_file() or path.suffix.lower().lstrip(".") not in self._formats:
                continue
            stat = path.stat()
            pending.append(IngestionResult(
                document_id=uuid.uuid4().hex[:12],
                file_path=str(path),
                file_name=path.name,
                file_size_bytes=stat.st_size,
                file_type=detect_file_type(path.name),
                sha256=hashlib.sha256(path.read_bytes()).hexdigest(),
                sender=DEFAULT_SENDER,
                subject=_subject_for(path.name),
                received_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            ))

        logger.info("Found %d pending document(s) in %s", len(pending), self._watch_folder)
        return pending
