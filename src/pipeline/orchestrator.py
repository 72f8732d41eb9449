# src/pipeline/orchestrator.py — v2
"""Document pipeline orchestrator.

Runs the eleven stages in fixed order for one document:

  1. Ingestion          5. Validation         9. Summary
  2. Pre-process        6. Content Safety    10. Q&A
  3. Translation        7. Plagiarism        11. Human Feedback
  4. Extraction         8. RAG

The pipeline is fail-forward: a failed stage is recorded and the next
stage runs with fallback inputs. Every run ends with a persisted report
and one audit entry per stage plus a run summary entry.
"""

from __future__ import annotations

import asyncio
import inspect
import io
import logging
import time
import uuid
from pathlib import Path
from typing import TYPE_CHECKING, Any

from amrsp.config.settings import Settings
from amrsp.config.stages import (
    STAGE_CONTENT_SAFETY,
    STAGE_EXTRACTION,
    STAGE_HUMAN_FEEDBACK,
    STAGE_INGESTION,
    STAGE_PLAGIARISM,
    STAGE_PREPROCESS,
    STAGE_QNA,
    STAGE_RAG,
    STAGE_SUMMARY,
    STAGE_TRANSLATION,
    STAGE_VALIDATION,
)
from amrsp.core.errors import DocumentBufferingError, EmptyDocumentError
from amrsp.core.models import (
    AuditEntry,
    DocumentMetadata,
    PipelineReport,
    ReviewSummary,
    StageOutcome,
    StepOutcome,
)
from amrsp.logging.context import clear_context, set_document_context
from amrsp.pipeline.agents.rag import index_id_for
from amrsp.pipeline.runner import StageCall, StageRunner

if TYPE_CHECKING:
    from amrsp.pipeline.registry import AgentSet
    from amrsp.storage.base_document_store import BaseDocumentStore

logger = logging.getLogger(__name__)

UNKNOWN_METADATA = DocumentMetadata(title="Unknown")


async def buffer_source(source: Any) -> bytes:
    """Read a document source fully into memory.

    Accepts bytes or any object with a ``read()`` method (sync or async).

    Raises:
        EmptyDocumentError: If the source is absent or yields no bytes.
        DocumentBufferingError: If reading fails.
    """
    if source is None:
        raise EmptyDocumentError("No document supplied")
    if isinstance(source, (bytes, bytearray, memoryview)):
        data = bytes(source)
    else:
        read = getattr(source, "read", None)
        if read is None:
            raise DocumentBufferingError(
                f"Cannot read document source of type {type(source).__name__}"
            )
        try:
            data = read()
            if inspect.isawaitable(data):
                data = await data
        except Exception as exc:
            raise DocumentBufferingError(f"Failed to read document: {exc}") from exc
        if not isinstance(data, (bytes, bytearray)):
            raise DocumentBufferingError(
                f"Document source returned {type(data).__name__}, expected bytes"
            )
        data = bytes(data)

    if not data:
        raise EmptyDocumentError("Document is empty")
    return data


class DocumentPipelineOrchestrator:
    """Run all stages for a document and persist the outcome.

    Args:
        agents: One implementation per stage.
        store: Report and audit store.
        settings: Application settings (extraction confidence values).
        runner: Stage isolation boundary.
    """

    def __init__(
        self,
        agents: AgentSet,
        store: BaseDocumentStore,
        settings: Settings | None = None,
        runner: StageRunner | None = None,
    ) -> None:
        self._agents = agents
        self._store = store
        self._settings = settings or Settings(_env_file=None)
        self._runner = runner or StageRunner()

    @property
    def agents(self) -> AgentSet:
        return self._agents

    async def run(
        self,
        document_id: str,
        file_name: str,
        source: Any,
        cancel_event: asyncio.Event | None = None,
    ) -> PipelineReport:
        """Process one document through every stage.

        Args:
            document_id: Key under which the report is stored.
            file_name: Original file name (drives type detection).
            source: Document bytes or a readable (sync/async) stream.
            cancel_event: Set to abort the in-flight stage and skip the rest.

        Returns:
            The persisted PipelineReport.

        Raises:
            EmptyDocumentError: If the source has no content.
            DocumentBufferingError: If the source cannot be read.
        """
        data = await buffer_source(source)
        run_id = uuid.uuid4().hex
        start_ns = time.monotonic_ns()
        set_document_context(document_id, run_id)
        logger.info("Pipeline START: '%s' (%d bytes)", file_name, len(data))

        steps: list[StageOutcome] = []

        async def stage(name: str, call: StageCall) -> StepOutcome[Any]:
            outcome = await self._runner.run(
                name, call, step=len(steps) + 1, cancel_event=cancel_event,
            )
            steps.append(StageOutcome.from_outcome(name, outcome))
            return outcome

        agents = self._agents
        try:
            await stage(
                STAGE_INGESTION,
                lambda: agents.ingestion.ingest(document_id, file_name, io.BytesIO(data)),
            )

            preprocess = await stage(
                STAGE_PREPROCESS,
                lambda: agents.preprocess.preprocess(io.BytesIO(data), file_name),
            )
            pre = preprocess.payload
            raw_text = (pre.extracted_text if pre else "").strip() or (
                f"{Path(file_name).stem} extracted content"
            )
            language_code = (pre.language_code if pre else "") or "en"

            translation = await stage(
                STAGE_TRANSLATION,
                lambda: agents.translation.translate(raw_text, language_code),
            )
            working_text = (
                translation.payload.translated_text if translation.payload else ""
            ) or raw_text

            extraction = await stage(
                STAGE_EXTRACTION,
                lambda: agents.extraction.extract(io.BytesIO(data), file_name),
            )
            metadata: DocumentMetadata | None = extraction.payload
            corpus = build_corpus(metadata, working_text)

            validation = await stage(
                STAGE_VALIDATION,
                lambda: agents.validation.validate(metadata or UNKNOWN_METADATA, corpus),
            )
            safety = await stage(
                STAGE_CONTENT_SAFETY,
                lambda: agents.content_safety.check(corpus),
            )
            plagiarism = await stage(
                STAGE_PLAGIARISM,
                lambda: agents.plagiarism.detect(document_id, corpus),
            )
            rag = await stage(STAGE_RAG, lambda: agents.rag.index(document_id, corpus))
            await stage(STAGE_SUMMARY, lambda: agents.summary.summarize(corpus))

            index_id = rag.payload.index_id if rag.payload else index_id_for(document_id)
            await stage(STAGE_QNA, lambda: agents.qna.prepare(document_id, index_id))

            summary = ReviewSummary(
                safety_passed=safety.payload.is_safe if safety.payload else True,
                plagiarism_similarity_percent=(
                    plagiarism.payload.similarity_percent if plagiarism.payload else 0.0
                ),
                validation_issues=(
                    list(validation.payload.validation_issues) if validation.payload else []
                ),
                extraction_confidence=(
                    self._settings.extraction_confidence_ok
                    if extraction.succeeded
                    else self._settings.extraction_confidence_failed
                ),
            )
            await stage(
                STAGE_HUMAN_FEEDBACK,
                lambda: agents.human_feedback.evaluate(document_id, summary),
            )

            total_ms = (time.monotonic_ns() - start_ns) // 1_000_000
            report = PipelineReport(
                document_id=document_id,
                run_id=run_id,
                file_name=file_name,
                overall_succeeded=all(s.succeeded for s in steps),
                steps=steps,
                total_elapsed_ms=total_ms,
            )
            self._persist(report)
        finally:
            clear_context()

        logger.info(
            "Pipeline %s: '%s' in %dms (failed: %s)",
            "COMPLETE" if report.overall_succeeded else "COMPLETE WITH ERRORS",
            document_id, report.total_elapsed_ms, report.failed_steps or "none",
        )
        return report

    def _persist(self, report: PipelineReport) -> None:
        """Save the report, then one audit entry per stage and a run summary."""
        self._store.save_report(report)
        for step in report.steps:
            self._store.add_audit_entry(AuditEntry(
                document_id=report.document_id,
                action=f"{step.name} {'completed' if step.succeeded else 'failed'}",
                details=None if step.succeeded else step.error,
            ))
        self._store.add_audit_entry(AuditEntry(
            document_id=report.document_id,
            action=(
                "Pipeline completed" if report.overall_succeeded
                else "Pipeline completed with errors"
            ),
            details=f"{report.total_elapsed_ms}ms total",
        ))


def build_corpus(metadata: DocumentMetadata | None, working_text: str) -> str:
    """Title, abstract and keywords (when extracted) followed by the working text."""
    if metadata is None:
        return working_text
    parts = [metadata.title, metadata.abstract, " ".join(metadata.keywords), working_text]
    return " ".join(p for p in parts if p)
