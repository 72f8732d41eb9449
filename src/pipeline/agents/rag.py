# src/pipeline/agents/rag.py — v1
"""RAG stage: chunk and index the working corpus for Q&A."""

from __future__ import annotations

import logging

from amrsp.core.models import RagIndexResult, StepOutcome
from amrsp.pipeline.plugin_kit.base_agent import BaseRagAgent, Stopwatch
from amrsp.rag.chunk_index import VECTOR_STORE_NAME, ChunkIndex

logger = logging.getLogger(__name__)


def index_id_for(document_id: str) -> str:
    return f"idx-{document_id}"


class RagAgent(BaseRagAgent):
    def __init__(self, index: ChunkIndex, chunk_size: int = 500) -> None:
        self._index = index
        self._chunk_size = chunk_size

    async def index(self, document_id: str, text: str) -> StepOutcome[RagIndexResult]:
        watch = Stopwatch()
        if not text.strip():
            return StepOutcome.fail("No text to index", watch.elapsed_ms)

        chunks = self._index.index(document_id, text, self._chunk_size)
        result = RagIndexResult(
            index_id=index_id_for(document_id),
            chunks_indexed=len(chunks),
            total_tokens=sum(c.token_count for c in chunks),
            vector_store=VECTOR_STORE_NAME,
        )
        logger.info(
            "Indexed %s: %d chunks, ~%d tokens",
            result.index_id, result.chunks_indexed, result.total_tokens,
        )
        return StepOutcome.ok(result, watch.elapsed_ms)
