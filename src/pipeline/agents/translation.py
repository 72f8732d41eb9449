# src/pipeline/agents/translation.py — v1
"""Translation stage: bring non-English submissions into English."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from amrsp.core.models import StepOutcome, TranslationResult
from amrsp.extraction.language_detector import LANGUAGE_NAMES
from amrsp.llm.models import Message
from amrsp.llm.retry import LLMRetryExhausted, with_retry
from amrsp.pipeline.plugin_kit.base_agent import BaseTranslationAgent, Stopwatch

if TYPE_CHECKING:
    from amrsp.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are a professional translator of academic papers. Translate the user's "
    "text into English. Preserve section headings, author names, citations and "
    "line breaks. Reply with the translation only."
)


class TranslationAgent(BaseTranslationAgent):
    """English pass-through; other languages go through the LLM client."""

    def __init__(
        self,
        llm: BaseLLMClient | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.2,
    ) -> None:
        self._llm = llm
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def translate(self, text: str, language_code: str) -> StepOutcome[TranslationResult]:
        watch = Stopwatch()
        code = (language_code or "en").lower()

        if code == "en":
            return StepOutcome.ok(
                TranslationResult(
                    original_text=text,
                    translated_text=text,
                    source_language=code,
                    was_translated=False,
                ),
                watch.elapsed_ms,
            )

        if self._llm is None:
            return StepOutcome.fail(
                f"No translation provider configured for language '{code}'",
                watch.elapsed_ms,
            )

        language = LANGUAGE_NAMES.get(code, code)
        try:
            response = await with_retry(
                self._llm.complete,
                [Message.user(f"Source language: {language}\n\n{text}")],
                stage="Translation",
                system=_SYSTEM_PROMPT,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
            )
        except LLMRetryExhausted as exc:
            return StepOutcome.fail(str(exc), watch.elapsed_ms)

        translated = response.content.strip()
        if not translated:
            return StepOutcome.fail("Translation provider returned no text", watch.elapsed_ms)

        logger.info(
            "Translated %d chars from %s (%d tokens)",
            len(text), code, response.total_tokens,
        )
        return StepOutcome.ok(
            TranslationResult(
                original_text=text,
                translated_text=translated,
                source_language=code,
                was_translated=True,
            ),
            watch.elapsed_ms,
        )
