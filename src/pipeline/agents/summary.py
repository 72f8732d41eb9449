# src/pipeline/agents/summary.py — v2
"""Summary stage: short structured summary of the submission.

With an LLM client the summary is generated (JSON reply, parsed with a
fallback). Without one, or when the LLM keeps failing, it is extractive: leading sentences, cue-phrase
findings and the most frequent content words as topics.
"""

from __future__ import annotations

import json
import logging
import re
from collections import Counter
from typing import TYPE_CHECKING, Any

from amrsp.core.models import StepOutcome, SummarizationResult
from amrsp.core.text import split_sentences, tokenize, truncate_words
from amrsp.llm.models import Message
from amrsp.llm.retry import LLMRetryExhausted, with_retry
from amrsp.pipeline.plugin_kit.base_agent import BaseSummaryAgent, Stopwatch

if TYPE_CHECKING:
    from amrsp.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)

_MAX_FINDINGS = 5
_MAX_TOPICS = 5
_MAX_PROMPT_CHARS = 12_000

_FINDING_CUES = re.compile(
    r"\b(we (?:find|found|show|demonstrate|conclude)|results? (?:show|indicate|suggest)"
    r"|outperforms?|significantly|in conclusion)\b",
    re.IGNORECASE,
)
_METHOD_CUES = re.compile(
    r"\b(we propose|our (?:method|approach)|methodology|we use|experiments?|dataset)\b",
    re.IGNORECASE,
)

_SYSTEM_PROMPT = (
    "You summarize academic research submissions for reviewers. "
    "Respond only with valid JSON."
)
_USER_PROMPT = """Summarize the submission below in at most {max_words} words.
Return a JSON object with keys:
  "summary": string,
  "key_findings": list of short strings,
  "topics": list of short strings,
  "methodology": string

Submission:
{text}"""


def _parse_response(content: str) -> dict[str, Any]:
    """Parse LLM JSON response, handling markdown fences."""
    text = content.strip()
    if text.startswith("```"):
        lines = [l for l in text.split("\n") if not l.strip().startswith("```")]
        text = "\n".join(lines)
    return json.loads(text)


def extractive_summary(text: str, max_words: int) -> SummarizationResult:
    sentences = split_sentences(text)

    summary_parts: list[str] = []
    words = 0
    for sentence in sentences:
        count = len(sentence.split())
        if summary_parts and words + count > max_words:
            break
        summary_parts.append(sentence)
        words += count

    findings = [s for s in sentences if _FINDING_CUES.search(s)][:_MAX_FINDINGS]
    methodology = next((s for s in sentences if _METHOD_CUES.search(s)), "")
    counts = Counter(t for t in tokenize(text) if len(t) > 3 and not t.isdigit())

    return SummarizationResult(
        summary=truncate_words(" ".join(summary_parts), max_words),
        key_findings=findings,
        topics=[word for word, _ in counts.most_common(_MAX_TOPICS)],
        methodology=methodology,
    )


class SummaryAgent(BaseSummaryAgent):
    def __init__(
        self,
        llm: BaseLLMClient | None = None,
        max_words: int = 250,
        max_tokens: int = 1024,
        temperature: float = 0.2,
    ) -> None:
        self._llm = llm
        self._max_words = max_words
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def summarize(self, text: str) -> StepOutcome[SummarizationResult]:
        watch = Stopwatch()
        if not text.strip():
            return StepOutcome.fail("No text to summarize", watch.elapsed_ms)

        if self._llm is None:
            result = extractive_summary(text, self._max_words)
            return StepOutcome.ok(result, watch.elapsed_ms)

        prompt = _USER_PROMPT.format(max_words=self._max_words, text=text[:_MAX_PROMPT_CHARS])
        try:
            response = await with_retry(
                self._llm.complete,
                [Message.user(prompt)],
                stage="Summary",
                system=_SYSTEM_PROMPT,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
            )
        except LLMRetryExhausted as exc:
            logger.warning("Summary LLM unavailable, summarizing extractively: %s", exc)
            return StepOutcome.ok(extractive_summary(text, self._max_words), watch.elapsed_ms)

        try:
            parsed = _parse_response(response.content)
            result = SummarizationResult(
                summary=truncate_words(str(parsed.get("summary", "")), self._max_words),
                key_findings=[str(f) for f in parsed.get("key_findings", [])],
                topics=[str(t) for t in parsed.get("topics", [])],
                methodology=str(parsed.get("methodology", "")),
            )
        except (json.JSONDecodeError, AttributeError, TypeError) as exc:
            logger.warning("Summary JSON parse failed, using raw reply: %s", exc)
            result = SummarizationResult(
                summary=truncate_words(response.content, self._max_words),
            )

        if not result.summary:
            return StepOutcome.fail("Summary provider returned no text", watch.elapsed_ms)
        return StepOutcome.ok(result, watch.elapsed_ms)
