# src/api/facade.py — v2
"""Public service facade: single entry point for processing and review.

Owns the app-scoped objects (settings, store, chunk index, LLM client,
agents, orchestrator) and exposes the operations used by the HTTP
routers and the CLI.

Usage:
    service = AmrspService(load_settings())
    report = await service.process("paper.pdf", data)
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import TYPE_CHECKING

from amrsp.api.models import DocumentSummary
from amrsp.batch.processor import BatchProcessor
from amrsp.config.settings import Settings, load_settings
from amrsp.config.stages import PIPELINE_STAGES, StageDescriptor
from amrsp.core.errors import DocumentNotFoundError, InvalidQuestionError
from amrsp.core.models import (
    AuditEntry,
    FlaggedItem,
    PipelineReport,
    QnARequest,
    QnAResponse,
    ReviewDecision,
)
from amrsp.llm.client_factory import create_llm_client
from amrsp.pipeline.agents.human_feedback import HumanFeedbackAgent
from amrsp.pipeline.orchestrator import DocumentPipelineOrchestrator
from amrsp.pipeline.registry import AgentSet, build_default_agents, build_review_policy
from amrsp.rag.chunk_index import ChunkIndex
from amrsp.storage.memory_store import InMemoryDocumentStore

if TYPE_CHECKING:
    from amrsp.batch.models import BatchResult
    from amrsp.llm.base_client import BaseLLMClient
    from amrsp.storage.base_document_store import BaseDocumentStore

logger = logging.getLogger(__name__)


def new_document_id() -> str:
    return uuid.uuid4().hex[:12]


class AmrspService:
    """App-scoped service object.

    Args:
        settings: Application settings. Loaded from .env if None.
        store: Document store. A fresh in-memory store if None.
        llm: LLM client. Built from settings if None.
        agents: Stage implementations. Default adapters if None.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        store: BaseDocumentStore | None = None,
        llm: BaseLLMClient | None = None,
        agents: AgentSet | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        self.store = store or InMemoryDocumentStore()
        self.index = ChunkIndex()
        self.llm = llm if llm is not None else create_llm_client(self.settings)
        self.agents = agents or build_default_agents(
            self.settings, self.store, self.llm, self.index,
        )
        if isinstance(self.agents.human_feedback, HumanFeedbackAgent):
            self.feedback = self.agents.human_feedback
        else:
            self.feedback = HumanFeedbackAgent(self.store, build_review_policy(self.settings))
        self.orchestrator = DocumentPipelineOrchestrator(self.agents, self.store, self.settings)

    # --- Processing ---

    async def process(
        self,
        file_name: str,
        source: object,
        document_id: str | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> PipelineReport:
        """Run the pipeline for one document.

        Raises:
            EmptyDocumentError: If the source has no content.
            DocumentBufferingError: If the source cannot be read.
        """
        document_id = document_id or new_document_id()
        return await self.orchestrator.run(document_id, file_name, source, cancel_event)

    async def process_pending(self) -> BatchResult:
        """Process every pending document in the watch folder."""
        processor = BatchProcessor(
            self.orchestrator,
            self.settings.ingestion_watch_folder,
            concurrency=self.settings.batch_concurrency,
        )
        return await processor.process_pending()

    @staticmethod
    def pipeline_steps() -> list[StageDescriptor]:
        return list(PIPELINE_STAGES)

    # --- Queries ---

    def get_report(self, document_id: str) -> PipelineReport | None:
        return self.store.get_report(document_id)

    def require_report(self, document_id: str) -> PipelineReport:
        """Return the report or raise DocumentNotFoundError."""
        report = self.store.get_report(document_id)
        if report is None:
            raise DocumentNotFoundError(f"Document '{document_id}' not found")
        return report

    def list_summaries(self) -> list[DocumentSummary]:
        """Summaries of all processed documents, newest first."""
        return [
            DocumentSummary.from_report(
                report,
                self.store.get_corrections(report.document_id),
                self.store.get_review_decision(report.document_id),
            )
            for report in self.store.list_reports()
        ]

    def get_audit_log(self, document_id: str | None = None) -> list[AuditEntry]:
        return self.store.get_audit_log(document_id)

    def get_corrections(self, document_id: str) -> list[FlaggedItem]:
        return self.store.get_corrections(document_id)

    def get_review_decision(self, document_id: str) -> ReviewDecision | None:
        return self.store.get_review_decision(document_id)

    # --- Q&A ---

    async def ask(
        self, document_id: str, question: str, session_id: str | None = None,
    ) -> QnAResponse:
        """Answer a question about a processed document.

        Raises:
            InvalidQuestionError: If the question is blank.
            DocumentNotFoundError: If the document was never processed.
        """
        question = (question or "").strip()
        if not question:
            raise InvalidQuestionError("question must not be blank")
        self.require_report(document_id)
        return await self.agents.qna.ask(
            QnARequest(document_id=document_id, question=question, session_id=session_id)
        )

    # --- Review ---

    def apply_correction(self, document_id: str, field: str, correction: str) -> FlaggedItem:
        """Raises InvalidCorrectionError or DocumentNotFoundError."""
        self.require_report(document_id)
        return self.feedback.apply_correction(document_id, field, correction)

    def record_decision(
        self,
        document_id: str,
        approved: bool,
        rejection_reason: str | None = None,
        reviewed_by: str = "admin",
    ) -> ReviewDecision:
        """Raises InvalidReviewDecisionError or DocumentNotFoundError."""
        self.require_report(document_id)
        return self.feedback.record_decision(
            document_id, approved, rejection_reason, reviewed_by,
        )
