# src/core/text.py — v1
"""Small text utilities shared by the screening, indexing and Q&A stages."""

from __future__ import annotations

import re

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
_WORD = re.compile(r"[^\W_]+", re.UNICODE)

# Terms ignored when scoring query/chunk overlap.
STOPWORDS: frozenset[str] = frozenset(
    "a an and are as at be by for from has have in is it its of on or that the "
    "this to was were what which who why how with does do did can".split()
)


def normalize_text(text: str) -> str:
    """Normalize text: lowercase, strip punctuation, collapse whitespace."""
    text = text.lower()
    text = re.sub(r"[^\w\s]", "", text)
    return re.sub(r"\s+", " ", text).strip()


def make_shingles(text: str, n: int) -> set[str]:
    """Word n-gram shingles of normalized text."""
    words = normalize_text(text).split()
    if not words:
        return set()
    if len(words) < n:
        return {" ".join(words)}
    return {" ".join(words[i : i + n]) for i in range(len(words) - n + 1)}


def split_sentences(text: str) -> list[str]:
    """Split text into sentences on terminal punctuation."""
    flat = re.sub(r"\s+", " ", text).strip()
    if not flat:
        return []
    return [s.strip() for s in _SENTENCE_SPLIT.split(flat) if s.strip()]


def tokenize(text: str) -> list[str]:
    """Lowercase word tokens without stopwords."""
    return [w for w in (m.group(0).lower() for m in _WORD.finditer(text)) if w not in STOPWORDS]


def estimate_tokens(text: str) -> int:
    """Rough token estimate (about four characters per token)."""
    return max(1, len(text) // 4) if text else 0


def truncate_words(text: str, max_words: int) -> str:
    words = text.split()
    if len(words) <= max_words:
        return text.strip()
    return " ".join(words[:max_words]).rstrip(",;:") + "…"
