# src/batch/processor.py — v1
"""Batch processor: run every pending watch-folder document.

Documents are processed concurrently as independent pipeline runs,
bounded by a semaphore.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING

from amrsp.batch.models import BatchEntry, BatchResult
from amrsp.core.errors import DocumentBufferingError, DocumentInputError

if TYPE_CHECKING:
    from amrsp.core.models import IngestionResult
    from amrsp.pipeline.orchestrator import DocumentPipelineOrchestrator

logger = logging.getLogger(__name__)


class BatchProcessor:
    """Process pending submissions through the orchestrator.

    Args:
        orchestrator: Orchestrator whose ingestion agent lists pending files.
        watch_folder: Folder reported in the result.
        concurrency: Maximum number of simultaneous runs.
    """

    def __init__(
        self,
        orchestrator: DocumentPipelineOrchestrator,
        watch_folder: Path,
        concurrency: int = 4,
    ) -> None:
        self._orchestrator = orchestrator
        self._watch_folder = Path(watch_folder)
        self._semaphore = asyncio.Semaphore(max(1, concurrency))

    async def process_pending(self, cancel_event: asyncio.Event | None = None) -> BatchResult:
        start = time.monotonic()
        pending = await self._orchestrator.agents.ingestion.list_pending()
        logger.info("Batch: %d pending document(s) in %s", len(pending), self._watch_folder)

        entries = await asyncio.gather(
            *(self._process_one(item, cancel_event) for item in pending)
        )

        failed = sum(1 for e in entries if e.error is not None)
        result = BatchResult(
            watch_folder=str(self._watch_folder),
            total_files_found=len(pending),
            processed=len(entries) - failed,
            failed=failed,
            entries=list(entries),
            duration_seconds=round(time.monotonic() - start, 3),
        )
        logger.info(
            "Batch complete: %d processed, %d failed in %.1fs",
            result.processed, result.failed, result.duration_seconds,
        )
        return result

    async def _process_one(
        self, item: IngestionResult, cancel_event: asyncio.Event | None,
    ) -> BatchEntry:
        async with self._semaphore:
            entry = BatchEntry(
                file_name=item.file_name,
                file_path=item.file_path,
                document_id=item.document_id,
            )
            try:
                data = await asyncio.to_thread(Path(item.file_path).read_bytes)
                report = await self._orchestrator.run(
                    item.document_id, item.file_name, data, cancel_event=cancel_event,
                )
            except (OSError, DocumentInputError, DocumentBufferingError) as exc:
                logger.error("Batch: could not process '%s': %s", item.file_name, exc)
                return entry.model_copy(update={"error": str(exc)})
            return entry.model_copy(update={"overall_succeeded": report.overall_succeeded})
