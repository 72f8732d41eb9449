# src/llm/client_factory.py — v3
"""Factory: instantiate the LLM client selected by LLM_PROVIDER.

Returns None when no provider is configured; stages then fall back to
their local behaviour.
"""

from __future__ import annotations

import logging

from amrsp.config.settings import Settings
from amrsp.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)


class UnsupportedProviderError(ValueError):
    """Raised when a provider is not registered."""


def create_llm_client(settings: Settings) -> BaseLLMClient | None:
    """Build the configured LLM client.

    Args:
        settings: Application settings (provider, model, credentials).

    Returns:
        Configured BaseLLMClient, or None when LLM_PROVIDER=none.

    Raises:
        UnsupportedProviderError: If the provider is unknown.
    """
    provider = settings.llm_provider
    if provider == "none":
        logger.info("No LLM provider configured; using local stage adapters")
        return None

    from amrsp.llm.adapters.openai_adapter import OpenAIAdapter

    if provider == "openai":
        client = OpenAIAdapter(model=settings.llm_model, api_key=settings.openai_api_key)
    elif provider == "azure_openai":
        client = OpenAIAdapter(
            model=settings.llm_model,
            api_key=settings.azure_openai_api_key,
            azure_endpoint=settings.azure_openai_endpoint,
            api_version=settings.azure_openai_api_version,
        )
    else:
        raise UnsupportedProviderError(
            f"Unsupported LLM provider: {provider!r}. Available: none, openai, azure_openai"
        )

    logger.debug("Created LLM client: provider=%s, model=%s", provider, settings.llm_model)
    return client
