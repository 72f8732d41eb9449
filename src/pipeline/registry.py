# src/pipeline/registry.py — v2
"""Agent set: one implementation per pipeline stage.

``build_default_agents`` wires the local adapters from settings. Tests and
alternative deployments construct an AgentSet directly with their own
implementations of the stage interfaces.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from amrsp.pipeline.agents.content_safety import ContentSafetyAgent
from amrsp.pipeline.agents.extraction import ExtractionAgent
from amrsp.pipeline.agents.human_feedback import HumanFeedbackAgent, ReviewPolicy
from amrsp.pipeline.agents.ingestion import IngestionAgent
from amrsp.pipeline.agents.plagiarism import PlagiarismDetectionAgent
from amrsp.pipeline.agents.preprocess import PreProcessAgent
from amrsp.pipeline.agents.qna import QnAAgent
from amrsp.pipeline.agents.rag import RagAgent
from amrsp.pipeline.agents.summary import SummaryAgent
from amrsp.pipeline.agents.translation import TranslationAgent
from amrsp.pipeline.agents.validation import ValidationAgent
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
from amrsp.rag.chunk_index import ChunkIndex

if TYPE_CHECKING:
    from amrsp.config.settings import Settings
    from amrsp.llm.base_client import BaseLLMClient
    from amrsp.storage.base_document_store import BaseDocumentStore

logger = logging.getLogger(__name__)


@dataclass
class AgentSet:
    """The eleven stage implementations used by one orchestrator."""

    ingestion: BaseIngestionAgent
    preprocess: BasePreProcessAgent
    translation: BaseTranslationAgent
    extraction: BaseExtractionAgent
    validation: BaseValidationAgent
    content_safety: BaseContentSafetyAgent
    plagiarism: BasePlagiarismAgent
    rag: BaseRagAgent
    summary: BaseSummaryAgent
    qna: BaseQnAAgent
    human_feedback: BaseHumanFeedbackAgent


def build_review_policy(settings: Settings) -> ReviewPolicy:
    return ReviewPolicy(
        confidence_threshold=settings.hitl_confidence_threshold,
        plagiarism_threshold_percent=settings.plagiarism_threshold_percent,
        safety_flag_confidence=settings.safety_flag_confidence,
    )


def build_default_agents(
    settings: Settings,
    store: BaseDocumentStore,
    llm: BaseLLMClient | None = None,
    index: ChunkIndex | None = None,
) -> AgentSet:
    """Wire the local stage adapters.

    Args:
        settings: Application settings.
        store: Store used by the human-feedback stage for corrections.
        llm: Optional LLM client for translation, summary and Q&A.
        index: Chunk index shared by the RAG, plagiarism and Q&A stages.

    Returns:
        AgentSet with one default adapter per stage.
    """
    index = index or ChunkIndex()
    llm_options = {"max_tokens": settings.llm_max_tokens, "temperature": settings.llm_temperature}

    agents = AgentSet(
        ingestion=IngestionAgent(settings.ingestion_watch_folder, settings.ingestion_formats_list),
        preprocess=PreProcessAgent(settings.ingestion_formats_list),
        translation=TranslationAgent(llm, **llm_options),
        extraction=ExtractionAgent(),
        validation=ValidationAgent(
            min_pages=settings.validation_min_pages,
            max_pages=settings.validation_max_pages,
            required_sections=settings.validation_required_sections_list,
        ),
        content_safety=ContentSafetyAgent(settings.content_safety_extra_terms_list),
        plagiarism=PlagiarismDetectionAgent(
            index,
            shingle_size=settings.plagiarism_shingle_size,
            threshold_percent=settings.plagiarism_threshold_percent,
        ),
        rag=RagAgent(index, chunk_size=settings.rag_chunk_size),
        summary=SummaryAgent(llm, max_words=settings.summary_max_words, **llm_options),
        qna=QnAAgent(
            index,
            llm,
            top_k=settings.qna_top_k,
            history_turns=settings.qna_history_turns,
            max_sessions=settings.qna_max_sessions,
            **llm_options,
        ),
        human_feedback=HumanFeedbackAgent(store, build_review_policy(settings)),
    )
    logger.debug(
        "Built default agents (llm=%s)", llm.provider_name if llm is not None else "none",
    )
    return agents
