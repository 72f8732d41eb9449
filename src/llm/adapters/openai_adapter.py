# src/llm/adapters/openai_adapter.py — v2
"""OpenAI / Azure OpenAI adapter implementing BaseLLMClient.

Uses the official openai SDK. With an Azure endpoint the model name is the
deployment name.
"""

from __future__ import annotations

import time
from typing import Any

from amrsp.llm.base_client import BaseLLMClient
from amrsp.llm.models import LLMResponse, Message


class OpenAIAdapter(BaseLLMClient):
    """OpenAI chat-completions adapter (public API or Azure deployment)."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: str = "",
        azure_endpoint: str = "",
        api_version: str = "2024-06-01",
        **kwargs: Any,
    ):
        self._model = model
        self._api_key = api_key
        self._azure_endpoint = azure_endpoint
        self._api_version = api_version
        self._client: Any = None

    def _get_client(self) -> Any:
        if self._client is None:
            import openai

            if self._azure_endpoint:
                self._client = openai.AsyncAzureOpenAI(
                    api_key=self._api_key,
                    azure_endpoint=self._azure_endpoint,
                    api_version=self._api_version,
                )
            else:
                self._client = openai.AsyncOpenAI(api_key=self._api_key)
        return self._client

    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.2,
    ) -> LLMResponse:
        chat = [m.model_dump() for m in messages]
        if system:
            chat.insert(0, Message(role="system", content=system).model_dump())

        started = time.monotonic()
        resp = await self._get_client().chat.completions.create(
            model=self._model,
            messages=chat,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        usage = resp.usage
        return LLMResponse(
            content=resp.choices[0].message.content or "",
            model=self._model,
            provider=self.provider_name,
            input_tokens=getattr(usage, "prompt_tokens", 0),
            output_tokens=getattr(usage, "completion_tokens", 0),
            latency_ms=int((time.monotonic() - started) * 1000),
            raw_response=resp,
        )

    @property
    def provider_name(self) -> str:
        return "azure_openai" if self._azure_endpoint else "openai"
