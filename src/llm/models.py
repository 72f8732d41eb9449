# src/llm/models.py — v2
"""Chat turns sent to the LLM and the provider-neutral reply."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel

Role = Literal["user", "assistant", "system"]


class Message(BaseModel):
    role: Role
    content: str

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> Message:
        return cls(role="assistant", content=content)


class LLMResponse(BaseModel):
    """Reply text plus the usage figures stages log after each call."""

    content: str
    model: str
    provider: str
    input_tokens: int = 0
    output_tokens: int = 0
    latency_ms: int = 0
    raw_response: Any = None

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens
