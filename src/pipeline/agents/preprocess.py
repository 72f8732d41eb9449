# src/pipeline/agents/preprocess.py — v1
"""Pre-process stage: file-type check, text extraction, language detection."""

from __future__ import annotations

import asyncio
import logging
from typing import BinaryIO

from amrsp.core.models import PreProcessResult, StepOutcome
from amrsp.extraction.document_reader import (
    UnsupportedFormatError,
    detect_file_type,
    read_document,
)
from amrsp.extraction.language_detector import BaseLanguageDetector, HeuristicLanguageDetector
from amrsp.pipeline.plugin_kit.base_agent import BasePreProcessAgent, Stopwatch

logger = logging.getLogger(__name__)


class PreProcessAgent(BasePreProcessAgent):
    """Validate the file type, read its text layer and detect the language.

    A PDF without a text layer is marked ``ocr_required``; its extracted
    text is left empty and downstream stages work from the file name.
    """

    def __init__(
        self,
        formats: list[str],
        detector: BaseLanguageDetector | None = None,
    ) -> None:
        self._formats = {f.upper() for f in formats}
        self._detector = detector or HeuristicLanguageDetector()

    async def preprocess(
        self, data: BinaryIO, file_name: str,
    ) -> StepOutcome[PreProcessResult]:
        watch = Stopwatch()
        file_type = detect_file_type(file_name)
        if file_type not in self._formats:
            return StepOutcome.fail(
                f"Unsupported file type '{file_type or '(none)'}'", watch.elapsed_ms,
            )

        try:
            content = await asyncio.to_thread(read_document, data.read(), file_name)
        except UnsupportedFormatError as exc:
            return StepOutcome.fail(str(exc), watch.elapsed_ms)
        except ValueError as exc:
            logger.warning("Text extraction failed for '%s': %s", file_name, exc)
            return StepOutcome.fail(f"Text extraction failed: {exc}", watch.elapsed_ms)

        ocr_required = file_type == "PDF" and not content.has_text_layer
        if ocr_required:
            logger.warning("'%s' has no text layer; OCR required", file_name)

        language = self._detector.detect(content.text)
        result = PreProcessResult(
            is_valid_file_type=True,
            detected_file_type=file_type,
            ocr_required=ocr_required,
            page_count=content.page_count,
            extracted_text=content.text,
            primary_language=language.name,
            language_code=language.code,
            language_confidence=language.confidence,
        )
        logger.info(
            "Pre-processed '%s': %d pages, lang=%s (%.2f), ocr=%s",
            file_name, result.page_count, result.language_code,
            result.language_confidence, ocr_required,
        )
        return StepOutcome.ok(result, watch.elapsed_ms)
