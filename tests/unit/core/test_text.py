# tests/unit/core/test_text.py — v1
"""Tests for core/text.py — normalization, shingles, sentences, tokens."""

from __future__ import annotations

from amrsp.core.text import (
    estimate_tokens,
    make_shingles,
    normalize_text,
    split_sentences,
    tokenize,
    truncate_words,
)


def test_normalize_text():
    assert normalize_text("  Hello,   WORLD! ") == "hello world"


def test_shingles():
    assert make_shingles("a b c d", 3) == {"a b c", "b c d"}


def test_shingles_short_text():
    assert make_shingles("Only two", 5) == {"only two"}
    assert make_shingles("", 5) == set()


def test_split_sentences():
    assert split_sentences("First one. Second?\nThird!") == ["First one.", "Second?", "Third!"]
    assert split_sentences("   ") == []


def test_tokenize_drops_stopwords():
    assert tokenize("What is the coral reef?") == ["coral", "reef"]


def test_estimate_tokens():
    assert estimate_tokens("") == 0
    assert estimate_tokens("abcd" * 10) == 10


def test_truncate_words():
    assert truncate_words("one two three", 5) == "one two three"
    assert truncate_words("one two, three", 2) == "one two…"
