# src/pipeline/agents/extraction.py — v1
"""Extraction stage: title, authors, affiliations, abstract, keywords, figures.

Fields are parsed from labelled lines ("Authors:", "Keywords:") and the
Abstract section of the document's text layer. Embedded file metadata
(PDF title/author, DOCX core properties) is used when present.
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import BinaryIO

from amrsp.core.models import DocumentMetadata, StepOutcome
from amrsp.extraction.document_reader import DocumentContent, read_document
from amrsp.pipeline.plugin_kit.base_agent import BaseExtractionAgent, Stopwatch

logger = logging.getLogger(__name__)

_MAX_TITLE_CHARS = 200
_LIST_SPLIT = re.compile(r"\s*(?:[,;·•]|\band\b)\s*")
_AUTHORS = re.compile(r"^\s*authors?\s*[:\-]\s*(.+)$", re.IGNORECASE | re.MULTILINE)
_AFFILIATIONS = re.compile(r"^\s*affiliations?\s*[:\-]\s*(.+)$", re.IGNORECASE | re.MULTILINE)
_KEYWORDS = re.compile(
    r"^\s*(?:keywords|key\s*words|index\s+terms)\s*[:\-—]\s*(.+)$",
    re.IGNORECASE | re.MULTILINE,
)
_ABSTRACT = re.compile(
    r"^\s*abstract\b\s*[:.\-—]?\s*(.*?)"
    r"(?=^\s*(?:keywords|key\s*words|index\s+terms|1\.?\s+introduction|introduction)\b|\Z)",
    re.IGNORECASE | re.MULTILINE | re.DOTALL,
)
_FIGURE = re.compile(r"^\s*((?:figure|fig\.)\s*\d+\s*[:.].*)$", re.IGNORECASE | re.MULTILINE)


def _split_list(value: str) -> list[str]:
    return [item.strip(" .") for item in _LIST_SPLIT.split(value) if item.strip(" .")]


def _first_match(pattern: re.Pattern[str], text: str) -> str:
    match = pattern.search(text)
    return match.group(1).strip() if match else ""


def parse_metadata(content: DocumentContent, file_name: str) -> DocumentMetadata:
    """Build DocumentMetadata from read document content."""
    text = content.text
    lines = [line.strip() for line in text.splitlines() if line.strip()]

    title = content.title
    if not title and lines:
        title = lines[0][:_MAX_TITLE_CHARS]
    if not title:
        title = Path(file_name).stem

    authors = _split_list(_first_match(_AUTHORS, text))
    if not authors and content.author:
        authors = _split_list(content.author)

    abstract = " ".join(_first_match(_ABSTRACT, text).split())

    return DocumentMetadata(
        title=title,
        authors=authors,
        affiliations=_split_list(_first_match(_AFFILIATIONS, text)),
        abstract=abstract,
        keywords=_split_list(_first_match(_KEYWORDS, text)),
        figures=[" ".join(m.split()) for m in _FIGURE.findall(text)],
        page_count=content.page_count,
        format=content.file_type or "Unknown",
    )


class ExtractionAgent(BaseExtractionAgent):
    async def extract(self, data: BinaryIO, file_name: str) -> StepOutcome[DocumentMetadata]:
        watch = Stopwatch()
        try:
            content = await asyncio.to_thread(read_document, data.read(), file_name)
        except ValueError as exc:
            return StepOutcome.fail(f"Metadata extraction failed: {exc}", watch.elapsed_ms)

        metadata = parse_metadata(content, file_name)
        logger.info(
            "Extracted '%s': %d authors, %d keywords, %d figures",
            metadata.title, len(metadata.authors), len(metadata.keywords), len(metadata.figures),
        )
        return StepOutcome.ok(metadata, watch.elapsed_ms)
