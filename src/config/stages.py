# src/config/stages.py — v1
"""Declarative pipeline stage configuration.

Fixed execution order of the 11 processing stages plus the display
metadata served by GET /api/documents/pipeline-steps.
"""

from __future__ import annotations

from pydantic import BaseModel

STAGE_INGESTION = "Ingestion Agent"
STAGE_PREPROCESS = "Pre-process Agent"
STAGE_TRANSLATION = "Translation Agent"
STAGE_EXTRACTION = "Extraction Agent"
STAGE_VALIDATION = "Validation Agent"
STAGE_CONTENT_SAFETY = "Content Safety Agent"
STAGE_PLAGIARISM = "Plagiarism Detection Agent"
STAGE_RAG = "RAG Agent"
STAGE_SUMMARY = "Summary Agent"
STAGE_QNA = "Q&A Agent"
STAGE_HUMAN_FEEDBACK = "Human Feedback Agent"


class StageDescriptor(BaseModel):
    """Display metadata for one pipeline stage."""

    id: int
    name: str
    icon: str
    description: str


PIPELINE_STAGES: list[StageDescriptor] = [
    StageDescriptor(
        id=1, name=STAGE_INGESTION, icon="📥",
        description="Records the submission received from the upload or the watch folder.",
    ),
    StageDescriptor(
        id=2, name=STAGE_PREPROCESS, icon="🔄",
        description="Validates file type, extracts text (flags scanned documents for OCR) "
        "and detects the primary language.",
    ),
    StageDescriptor(
        id=3, name=STAGE_TRANSLATION, icon="🌍",
        description="Translates non-English submissions to English; keeps original and "
        "translated text.",
    ),
    StageDescriptor(
        id=4, name=STAGE_EXTRACTION, icon="🧠",
        description="Extracts title, authors, affiliations, abstract, keywords and figures.",
    ),
    StageDescriptor(
        id=5, name=STAGE_VALIDATION, icon="✔️",
        description="Enforces business rules: page count 8-25, required sections present "
        "(title, abstract, keywords, authors, references).",
    ),
    StageDescriptor(
        id=6, name=STAGE_CONTENT_SAFETY, icon="🛡️",
        description="Scans for toxicity, hate speech and illicit content; flags for human "
        "review when violations are detected.",
    ),
    StageDescriptor(
        id=7, name=STAGE_PLAGIARISM, icon="🔍",
        description="Compares the submission against previously indexed documents; flags "
        "similarity above 25 %.",
    ),
    StageDescriptor(
        id=8, name=STAGE_RAG, icon="📚",
        description="Chunks the document and maintains the retrieval index used for Q&A.",
    ),
    StageDescriptor(
        id=9, name=STAGE_SUMMARY, icon="✨",
        description="Produces a summary of at most 250 words with key findings and topics.",
    ),
    StageDescriptor(
        id=10, name=STAGE_QNA, icon="💬",
        description="Enables conversational Q&A on the document with per-session history.",
    ),
    StageDescriptor(
        id=11, name=STAGE_HUMAN_FEEDBACK, icon="👤",
        description="Flags items for admin HITL review and accepts corrections when "
        "confidence is below 25 %.",
    ),
]

# Execution order used by the orchestrator.
STAGE_ORDER: list[str] = [stage.name for stage in PIPELINE_STAGES]
