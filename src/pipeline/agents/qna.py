# src/pipeline/agents/qna.py — v2
"""Q&A stage: readiness check plus retrieval-backed question answering."""

from __future__ import annotations

import logging
import threading
import uuid
from collections import OrderedDict, deque
from typing import TYPE_CHECKING

from amrsp.core.models import QnAReadyResult, QnARequest, QnAResponse, StepOutcome
from amrsp.core.text import split_sentences, tokenize
from amrsp.llm.models import Message
from amrsp.llm.retry import LLMRetryExhausted, with_retry
from amrsp.pipeline.plugin_kit.base_agent import BaseQnAAgent, Stopwatch
from amrsp.rag.chunk_index import ChunkIndex, ScoredChunk

if TYPE_CHECKING:
    from amrsp.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)

NOT_INDEXED_ANSWER = "This document has not been indexed for questions yet."
NO_MATCH_ANSWER = "The document does not appear to address this question."

_SYSTEM_PROMPT = (
    "You answer questions about one research submission using only the excerpts "
    "provided. If the excerpts do not contain the answer, say so briefly."
)


def ask_endpoint(document_id: str) -> str:
    return f"/api/documents/{document_id}/ask"


def _best_sentences(question: str, hits: list[ScoredChunk], limit: int = 2) -> list[str]:
    """Sentences from the retrieved chunks sharing the most terms with the question."""
    terms = set(tokenize(question))
    ranked: list[tuple[int, int, str]] = []
    for rank, hit in enumerate(hits):
        for sentence in split_sentences(hit.chunk.content):
            overlap = len(terms & set(tokenize(sentence)))
            if overlap:
                ranked.append((overlap, -rank, sentence))
    ranked.sort(reverse=True)
    return [sentence for _, _, sentence in ranked[:limit]]


class QnAAgent(BaseQnAAgent):
    """Answer questions from the chunk index, with per-session chat history.

    History is kept per (document, session) pair. Only the most recently
    used ``max_sessions`` histories are retained.
    """

    def __init__(
        self,
        index: ChunkIndex,
        llm: BaseLLMClient | None = None,
        top_k: int = 3,
        history_turns: int = 10,
        max_sessions: int = 1000,
        max_tokens: int = 1024,
        temperature: float = 0.2,
    ) -> None:
        self._index = index
        self._llm = llm
        self._top_k = top_k
        self._history_turns = history_turns
        self._max_sessions = max_sessions
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._sessions: OrderedDict[tuple[str, str], deque[Message]] = OrderedDict()
        self._lock = threading.Lock()

    async def prepare(self, document_id: str, index_id: str) -> StepOutcome[QnAReadyResult]:
        watch = Stopwatch()
        if not self._index.has_document(document_id):
            return StepOutcome.fail(
                f"Document '{document_id}' has no indexed content", watch.elapsed_ms,
            )
        result = QnAReadyResult(
            is_ready=True, index_id=index_id, endpoint=ask_endpoint(document_id),
        )
        logger.info("Q&A ready for %s at %s", document_id, result.endpoint)
        return StepOutcome.ok(result, watch.elapsed_ms)

    def _history(self, key: tuple[str, str]) -> list[Message]:
        with self._lock:
            return list(self._sessions.get(key, ()))

    def _remember(self, key: tuple[str, str], question: str, answer: str) -> None:
        with self._lock:
            turns = self._sessions.get(key)
            if turns is None:
                turns = self._sessions[key] = deque(maxlen=2 * self._history_turns)
            self._sessions.move_to_end(key)
            turns.append(Message.user(question))
            turns.append(Message.assistant(answer))
            while len(self._sessions) > self._max_sessions:
                self._sessions.popitem(last=False)

    async def _llm_answer(
        self, key: tuple[str, str], question: str, hits: list[ScoredChunk],
    ) -> str | None:
        excerpts = "\n\n".join(f"[{hit.chunk.source}]\n{hit.chunk.content}" for hit in hits)
        messages = self._history(key) + [
            Message.user(f"Excerpts:\n{excerpts or '(none)'}\n\nQuestion: {question}"),
        ]
        try:
            response = await with_retry(
                self._llm.complete,
                messages,
                stage="Q&A",
                system=_SYSTEM_PROMPT,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
            )
        except LLMRetryExhausted as exc:
            logger.warning("Q&A LLM unavailable, answering extractively: %s", exc)
            return None
        return response.content.strip() or None

    async def ask(self, request: QnARequest) -> QnAResponse:
        """Answer a question.

        With an LLM the answer is generated from the retrieved chunks and the
        session history. Without one, or when the LLM keeps failing, the best
        matching sentences are returned.
        """
        session_id = request.session_id or uuid.uuid4().hex[:12]
        if not self._index.has_document(request.document_id):
            return QnAResponse(
                question=request.question, answer=NOT_INDEXED_ANSWER,
                confidence=0.0, session_id=session_id,
            )

        key = (request.document_id, session_id)
        hits = self._index.search(request.document_id, request.question, self._top_k)
        sources = [hit.chunk.source for hit in hits]
        confidence = round(min(1.0, hits[0].score), 2) if hits else 0.0

        answer = None
        if self._llm is not None:
            answer = await self._llm_answer(key, request.question, hits)
        if answer is None:
            best = _best_sentences(request.question, hits)
            answer = " ".join(best) if best else NO_MATCH_ANSWER

        self._remember(key, request.question, answer)
        logger.info(
            "Answered question on %s (%d source(s), confidence %.2f)",
            request.document_id, len(sources), confidence,
        )
        return QnAResponse(
            question=request.question,
            answer=answer,
            sources=sources,
            confidence=confidence,
            session_id=session_id,
        )
