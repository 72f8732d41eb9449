# src/pipeline/agents/plagiarism.py — v1
"""Plagiarism stage: shingle containment against already-indexed documents."""

from __future__ import annotations

import logging

from amrsp.core.models import PlagiarismMatch, PlagiarismResult, StepOutcome
from amrsp.core.text import make_shingles
from amrsp.pipeline.plugin_kit.base_agent import BasePlagiarismAgent, Stopwatch
from amrsp.rag.chunk_index import ChunkIndex

logger = logging.getLogger(__name__)

_MAX_MATCHES = 5


class PlagiarismDetectionAgent(BasePlagiarismAgent):
    """Compare a corpus with every other document in the chunk index.

    Similarity is the share of the corpus's word shingles that also occur
    in the other document (containment), in percent.
    """

    def __init__(
        self,
        index: ChunkIndex,
        shingle_size: int = 5,
        threshold_percent: float = 25.0,
    ) -> None:
        self._index = index
        self._shingle_size = shingle_size
        self._threshold = threshold_percent

    async def detect(self, document_id: str, text: str) -> StepOutcome[PlagiarismResult]:
        watch = Stopwatch()
        shingles = make_shingles(text, self._shingle_size)
        if not shingles:
            return StepOutcome.fail("No text to compare", watch.elapsed_ms)

        matches: list[PlagiarismMatch] = []
        for other_id in self._index.document_ids():
            if other_id == document_id:
                continue
            shared = shingles & make_shingles(
                self._index.document_text(other_id), self._shingle_size,
            )
            if not shared:
                continue
            matches.append(PlagiarismMatch(
                source=f"Document: {other_id}",
                similarity=round(100.0 * len(shared) / len(shingles), 1),
                matched_text=sorted(shared)[0],
            ))

        matches.sort(key=lambda m: m.similarity, reverse=True)
        similarity = matches[0].similarity if matches else 0.0
        result = PlagiarismResult(
            similarity_percent=similarity,
            plagiarism_detected=similarity > self._threshold,
            matches=matches[:_MAX_MATCHES],
        )
        logger.info(
            "Plagiarism check: %.1f%% max similarity across %d match(es)",
            similarity, len(matches),
        )
        return StepOutcome.ok(result, watch.elapsed_ms)
