# tests/conftest.py — v1
"""Shared test fixtures for all unit and integration tests.

Provides settings without .env, a fresh store, deterministic fake stage
agents (with per-stage failure injection) and generated PDF documents.
"""

from __future__ import annotations

from typing import Callable, Iterable

import pytest

from amrsp.config.settings import Settings
from amrsp.core.models import (
    ContentSafetyResult,
    DocumentMetadata,
    IngestionResult,
    PlagiarismResult,
    PreProcessResult,
    QnAReadyResult,
    QnAResponse,
    RagIndexResult,
    StepOutcome,
    SummarizationResult,
    TranslationResult,
    ValidationResult,
    utc_now,
)
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
from amrsp.llm.models import LLMResponse
from amrsp.pipeline.agents.human_feedback import ReviewPolicy
from amrsp.pipeline.plugin_kit.base_agent import (
    BaseContentSafetyAgent,
    BaseExtractionAgent,
    BaseHumanFeedbackAgent,
    BaseIngestionAgent,
    BasePlagiarismAgent,
    BasePreProcessAgent,
    BaseQnAAgent,
    BaseRagAgent,
    BaseSummaryAgent,
    BaseTranslationAgent,
    BaseValidationAgent,
)
from amrsp.pipeline.registry import AgentSet
from amrsp.storage.memory_store import InMemoryDocumentStore


# === FAKE STAGE AGENTS ===


class _FakeStage:
    """Canned outcome with optional failure or exception injection."""

    stage = ""

    def __init__(self, fail_in: Iterable[str] = (), raise_in: Iterable[str] = ()):
        self.fail = self.stage in set(fail_in)
        self.raise_ = self.stage in set(raise_in)
        self.calls: list[tuple] = []

    def _outcome(self, payload, *args):
        self.calls.append(args)
        if self.raise_:
            raise RuntimeError(f"{self.stage} exploded")
        if self.fail:
            return StepOutcome.fail(f"{self.stage} failed")
        return StepOutcome.ok(payload)


class FakeIngestion(_FakeStage, BaseIngestionAgent):
    stage = STAGE_INGESTION

    async def ingest(self, document_id, file_name, data):
        content = data.read()
        return self._outcome(IngestionResult(
            document_id=document_id, file_path=file_name, file_name=file_name,
            file_size_bytes=len(content), file_type="PDF", sha256="0" * 64,
            sender="tester@example.org", subject=f"Submission: {file_name}",
            received_at=utc_now(),
        ), document_id, file_name, content)

    async def list_pending(self):
        return []


class FakePreProcess(_FakeStage, BasePreProcessAgent):
    stage = STAGE_PREPROCESS
    text = "Raw body text"
    language_code = "en"

    async def preprocess(self, data, file_name):
        content = data.read()
        return self._outcome(PreProcessResult(
            is_valid_file_type=True, detected_file_type="PDF", page_count=10,
            extracted_text=self.text, primary_language="English",
            language_code=self.language_code, language_confidence=0.9,
        ), content, file_name)


class FakeTranslation(_FakeStage, BaseTranslationAgent):
    stage = STAGE_TRANSLATION

    async def translate(self, text, language_code):
        return self._outcome(TranslationResult(
            original_text=text, translated_text=f"{text} [en]",
            source_language=language_code, was_translated=language_code != "en",
        ), text, language_code)


class FakeExtraction(_FakeStage, BaseExtractionAgent):
    stage = STAGE_EXTRACTION

    async def extract(self, data, file_name):
        content = data.read()
        return self._outcome(DocumentMetadata(
            title="Fake Title", authors=["A. Author"], abstract="Fake abstract",
            keywords=["alpha", "beta"], page_count=10, format="PDF",
        ), content, file_name)


class FakeValidation(_FakeStage, BaseValidationAgent):
    stage = STAGE_VALIDATION
    issues: list[str] = []

    async def validate(self, metadata, text):
        result = ValidationResult(
            is_valid=not self.issues, page_count=metadata.page_count,
            is_page_count_compliant=True, validation_issues=list(self.issues),
        )
        if self.issues and not self.raise_:
            self.calls.append((metadata, text))
            return StepOutcome.fail("validation issues", payload=result)
        return self._outcome(result, metadata, text)


class FakeContentSafety(_FakeStage, BaseContentSafetyAgent):
    stage = STAGE_CONTENT_SAFETY
    is_safe = True

    async def check(self, text):
        return self._outcome(ContentSafetyResult(
            is_safe=self.is_safe, overall_rating="Safe" if self.is_safe else "High risk",
        ), text)


class FakePlagiarism(_FakeStage, BasePlagiarismAgent):
    stage = STAGE_PLAGIARISM
    similarity = 0.0

    async def detect(self, document_id, text):
        return self._outcome(PlagiarismResult(
            similarity_percent=self.similarity, plagiarism_detected=self.similarity > 25.0,
        ), document_id, text)


class FakeRag(_FakeStage, BaseRagAgent):
    stage = STAGE_RAG

    async def index(self, document_id, text):
        return self._outcome(RagIndexResult(
            index_id=f"idx-{document_id}", chunks_indexed=1,
            total_tokens=len(text) // 4, vector_store="fake",
        ), document_id, text)


class FakeSummary(_FakeStage, BaseSummaryAgent):
    stage = STAGE_SUMMARY

    async def summarize(self, text):
        return self._outcome(SummarizationResult(summary=text[:40]), text)


class FakeQnA(_FakeStage, BaseQnAAgent):
    stage = STAGE_QNA

    async def prepare(self, document_id, index_id):
        return self._outcome(QnAReadyResult(
            is_ready=True, index_id=index_id, endpoint=f"/api/documents/{document_id}/ask",
        ), document_id, index_id)

    async def ask(self, request):
        self.calls.append((request,))
        return QnAResponse(
            question=request.question, answer="Fake answer",
            sources=[f"Document: {request.document_id}, Chunk 1"],
            confidence=0.8, session_id=request.session_id or "session-1",
        )


class FakeHumanFeedback(_FakeStage, BaseHumanFeedbackAgent):
    stage = STAGE_HUMAN_FEEDBACK

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.policy = ReviewPolicy()

    async def evaluate(self, document_id, summary):
        return self._outcome(self.policy.evaluate(summary), document_id, summary)


def build_fake_agents(
    fail_in: Iterable[str] = (), raise_in: Iterable[str] = (),
) -> AgentSet:
    fail_in, raise_in = tuple(fail_in), tuple(raise_in)
    kwargs = {"fail_in": fail_in, "raise_in": raise_in}
    return AgentSet(
        ingestion=FakeIngestion(**kwargs),
        preprocess=FakePreProcess(**kwargs),
        translation=FakeTranslation(**kwargs),
        extraction=FakeExtraction(**kwargs),
        validation=FakeValidation(**kwargs),
        content_safety=FakeContentSafety(**kwargs),
        plagiarism=FakePlagiarism(**kwargs),
        rag=FakeRag(**kwargs),
        summary=FakeSummary(**kwargs),
        qna=FakeQnA(**kwargs),
        human_feedback=FakeHumanFeedback(**kwargs),
    )


# === FIXTURES: Configuration and state ===


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None, ingestion_watch_folder=tmp_path / "inbox")


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def fake_agents() -> AgentSet:
    return build_fake_agents()


@pytest.fixture
def agents_factory() -> Callable[..., AgentSet]:
    """Build fake agents with failures: factory(fail_in=[...], raise_in=[...])."""
    return build_fake_agents


@pytest.fixture
def mock_llm_response() -> Callable[[str], LLMResponse]:
    def _make(content: str) -> LLMResponse:
        return LLMResponse(
            content=content, input_tokens=10, output_tokens=20,
            model="test-model", provider="openai", latency_ms=5,
        )
    return _make


# === FIXTURES: Documents ===


PAPER_FIRST_PAGE = (
    "Deep Learning for Coral Reef Monitoring\n"
    "Authors: Jane Doe, John Smith\n"
    "Affiliations: Ocean University\n"
    "Abstract\n"
    "We propose a method for monitoring coral reefs from underwater imagery.\n"
    "Results show a significant improvement over manual surveys.\n"
    "Keywords: coral reefs, deep learning, monitoring\n"
    "1 Introduction\n"
    "Coral reefs are declining and this is a problem for the ocean."
)


def make_pdf(pages: list[str], title: str = "") -> bytes:
    """Build a PDF with one text block per page."""
    import fitz

    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        page.insert_text((72, 72), text, fontsize=10)
    if title:
        doc.set_metadata({"title": title})
    data = doc.tobytes()
    doc.close()
    return data


def make_paper_pdf(page_count: int = 10) -> bytes:
    """A well-formed submission: all required sections, given page count."""
    pages = [PAPER_FIRST_PAGE]
    for n in range(2, page_count):
        body = f"Section {n}. The classification model is trained on reef images."
        if n == 3:
            body += "\nFigure 1: Sample reef image from the survey."
        pages.append(body)
    pages.append("References\n[1] Reef studies and the ocean. 2020.")
    return make_pdf(pages)


@pytest.fixture
def paper_pdf() -> bytes:
    return make_paper_pdf(10)


@pytest.fixture
def short_pdf() -> bytes:
    """Two pages and no keywords: breaks the page-count and section rules."""
    return make_pdf(["A Short Note\nThis is the whole paper.", "The end."])


@pytest.fixture
def blank_pdf() -> bytes:
    """Scanned-looking PDF: pages without a text layer."""
    import fitz

    doc = fitz.open()
    doc.new_page()
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def pdf_factory() -> Callable[..., bytes]:
    """make_pdf(pages, title="") for tests that need custom content."""
    return make_pdf
