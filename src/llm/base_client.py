# src/llm/base_client.py — v2
"""Chat-completion interface behind the translation, summary and Q&A stages."""

from __future__ import annotations

from abc import ABC, abstractmethod

from amrsp.llm.models import LLMResponse, Message


class BaseLLMClient(ABC):
    """A configured chat model.

    Implementations raise the provider's own exceptions; ``llm.retry``
    classifies them, and the calling stage decides whether a failure is fatal.
    """

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.2,
    ) -> LLMResponse:
        """Send ``messages`` after an optional system prompt; return the reply."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """``openai`` or ``azure_openai``."""
