# tests/unit/llm/test_unit_llm_models.py — v1
"""Tests for llm/models.py — message helpers and usage totals."""

from __future__ import annotations

from amrsp.llm.models import LLMResponse, Message


def test_message_helpers():
    assert Message.user("Q") == Message(role="user", content="Q")
    assert Message.assistant("A").role == "assistant"


def test_total_tokens():
    response = LLMResponse(
        content="x", model="m", provider="openai", input_tokens=7, output_tokens=3,
    )
    assert response.total_tokens == 10
    assert LLMResponse(content="", model="m", provider="openai").total_tokens == 0
