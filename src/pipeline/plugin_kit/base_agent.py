# src/pipeline/plugin_kit/base_agent.py — v2
"""Stage interfaces for the document pipeline.

Each pipeline stage is one narrow capability. Implementations return a
StepOutcome instead of raising; the runner still converts stray
exceptions into failed outcomes. Swap any default adapter for another
implementation (or a test fake) by subclassing the matching interface.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, BinaryIO

if TYPE_CHECKING:
    from amrsp.core.models import (
        ContentSafetyResult,
        DocumentMetadata,
        HumanFeedbackResult,
        IngestionResult,
        PlagiarismResult,
        PreProcessResult,
        QnAReadyResult,
        QnARequest,
        QnAResponse,
        RagIndexResult,
        ReviewSummary,
        StepOutcome,
        SummarizationResult,
        TranslationResult,
        ValidationResult,
    )


class Stopwatch:
    """Monotonic elapsed-time helper for stage adapters."""

    def __init__(self) -> None:
        self._start_ns = time.monotonic_ns()

    @property
    def elapsed_ms(self) -> int:
        return (time.monotonic_ns() - self._start_ns) // 1_000_000


class BaseIngestionAgent(ABC):
    @abstractmethod
    async def ingest(
        self, document_id: str, file_name: str, data: BinaryIO,
    ) -> StepOutcome[IngestionResult]:
        """Record a submission received for processing."""

    @abstractmethod
    async def list_pending(self) -> list[IngestionResult]:
        """Return submissions waiting in the watch folder."""


class BasePreProcessAgent(ABC):
    @abstractmethod
    async def preprocess(
        self, data: BinaryIO, file_name: str,
    ) -> StepOutcome[PreProcessResult]:
        """Validate file type, extract text (OCR when needed), detect language."""


class BaseTranslationAgent(ABC):
    @abstractmethod
    async def translate(self, text: str, language_code: str) -> StepOutcome[TranslationResult]:
        """Translate text to English."""


class BaseExtractionAgent(ABC):
    @abstractmethod
    async def extract(self, data: BinaryIO, file_name: str) -> StepOutcome[DocumentMetadata]:
        """Extract structured metadata from the document."""


class BaseValidationAgent(ABC):
    @abstractmethod
    async def validate(
        self, metadata: DocumentMetadata, text: str,
    ) -> StepOutcome[ValidationResult]:
        """Apply submission business rules."""


class BaseContentSafetyAgent(ABC):
    @abstractmethod
    async def check(self, text: str) -> StepOutcome[ContentSafetyResult]:
        """Screen text for unsafe content."""


class BasePlagiarismAgent(ABC):
    @abstractmethod
    async def detect(self, document_id: str, text: str) -> StepOutcome[PlagiarismResult]:
        """Score text similarity against previously indexed documents."""


class BaseRagAgent(ABC):
    @abstractmethod
    async def index(self, document_id: str, text: str) -> StepOutcome[RagIndexResult]:
        """Chunk and index text for retrieval."""


class BaseSummaryAgent(ABC):
    @abstractmethod
    async def summarize(self, text: str) -> StepOutcome[SummarizationResult]:
        """Produce a short human-readable summary."""


class BaseQnAAgent(ABC):
    @abstractmethod
    async def prepare(self, document_id: str, index_id: str) -> StepOutcome[QnAReadyResult]:
        """Make a document available for questions."""

    @abstractmethod
    async def ask(self, request: QnARequest) -> QnAResponse:
        """Answer a question about an indexed document."""


class BaseHumanFeedbackAgent(ABC):
    @abstractmethod
    async def evaluate(
        self, document_id: str, summary: ReviewSummary,
    ) -> StepOutcome[HumanFeedbackResult]:
        """Decide whether a run needs human review."""
