# src/rag/chunk_index.py — v1
"""In-process chunk index used for retrieval-augmented Q&A and plagiarism lookups.

Documents are split into fixed-size chunks on word boundaries. Retrieval
scores chunks by query-term overlap. Re-indexing a document replaces its
previous chunks.
"""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass

from amrsp.core.text import estimate_tokens, tokenize

VECTOR_STORE_NAME = "in-memory"


@dataclass(frozen=True)
class IndexedChunk:
    """One retrievable chunk of a document."""

    document_id: str
    position: int
    content: str
    token_count: int

    @property
    def source(self) -> str:
        return f"Document: {self.document_id}, Chunk {self.position + 1}"


@dataclass(frozen=True)
class ScoredChunk:
    chunk: IndexedChunk
    score: float


def chunk_text(text: str, chunk_size: int) -> list[str]:
    """Split text into chunks of roughly chunk_size characters on word boundaries."""
    words = text.split()
    chunks: list[str] = []
    current: list[str] = []
    length = 0
    for word in words:
        if current and length + len(word) + 1 > chunk_size:
            chunks.append(" ".join(current))
            current, length = [], 0
        current.append(word)
        length += len(word) + 1
    if current:
        chunks.append(" ".join(current))
    return chunks


class ChunkIndex:
    """Thread-safe per-document chunk store with term-overlap search."""

    def __init__(self) -> None:
        self._chunks: dict[str, list[IndexedChunk]] = {}
        self._lock = threading.Lock()

    def index(self, document_id: str, text: str, chunk_size: int = 500) -> list[IndexedChunk]:
        """Chunk and (re)index a document. Returns the stored chunks."""
        chunks = [
            IndexedChunk(
                document_id=document_id,
                position=i,
                content=content,
                token_count=estimate_tokens(content),
            )
            for i, content in enumerate(chunk_text(text, chunk_size))
        ]
        with self._lock:
            self._chunks[document_id] = chunks
        return chunks

    def has_document(self, document_id: str) -> bool:
        with self._lock:
            return bool(self._chunks.get(document_id))

    def document_ids(self) -> list[str]:
        with self._lock:
            return list(self._chunks)

    def document_text(self, document_id: str) -> str:
        with self._lock:
            chunks = list(self._chunks.get(document_id, []))
        return " ".join(c.content for c in chunks)

    def search(self, document_id: str, query: str, top_k: int = 3) -> list[ScoredChunk]:
        """Return the top_k chunks of a document ranked by query-term overlap.

        Score is the fraction of distinct query terms found in the chunk,
        weighted by their frequency there. Chunks with no overlap are dropped.
        """
        terms = set(tokenize(query))
        with self._lock:
            chunks = list(self._chunks.get(document_id, []))
        if not terms or not chunks:
            return []

        scored: list[ScoredChunk] = []
        for chunk in chunks:
            counts = Counter(tokenize(chunk.content))
            matched = [t for t in terms if counts[t]]
            if not matched:
                continue
            coverage = len(matched) / len(terms)
            density = sum(counts[t] for t in matched) / max(1, sum(counts.values()))
            scored.append(ScoredChunk(chunk=chunk, score=round(coverage + density, 4)))

        scored.sort(key=lambda s: (-s.score, s.chunk.position))
        return scored[:top_k]
