# src/llm/retry.py — v3
"""Retry policy with exponential backoff for LLM-backed stages.

Provider errors are sorted into transient kinds (rate limit, timeout,
server error) that are retried, and everything else, which fails at once.
The caller's stage turns ``LLMRetryExhausted`` into a failed outcome or an
extractive fallback.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


class LLMRetryExhausted(Exception):
    """The LLM call for a stage could not be completed."""

    def __init__(self, stage: str, error_type: str, attempts: int, last_error: Exception):
        self.stage = stage
        self.error_type = error_type
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"{stage} failed after {attempts} attempts ({error_type}): {last_error}"
        )


@dataclass(frozen=True)
class RetryConfig:
    max_retries: int
    base_delay_s: float
    backoff_factor: float = 2.0
    jitter: bool = True

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait before retry number ``attempt + 1``."""
        delay = self.base_delay_s * self.backoff_factor ** attempt
        return delay * random.uniform(0.5, 1.5) if self.jitter else delay  # noqa: S311


DEFAULT_RETRY_CONFIGS: dict[str, RetryConfig] = {
    "rate_limit": RetryConfig(max_retries=3, base_delay_s=2.0),
    "timeout": RetryConfig(max_retries=2, base_delay_s=1.0, backoff_factor=1.0),
    "server_error": RetryConfig(max_retries=2, base_delay_s=3.0),
}

# (error kind, exception-name fragments, message fragments), first match wins
_ERROR_RULES: tuple[tuple[str, tuple[str, ...], tuple[str, ...]], ...] = (
    ("rate_limit", ("ratelimit",), ("429", "rate limit")),
    ("timeout", ("timeout",), ("timed out", "timeout")),
    ("server_error", ("internalserver",), ("500", "502", "503", "504")),
)


def classify_error(error: Exception) -> str:
    name = type(error).__name__.lower()
    message = str(error).lower()
    for kind, name_parts, message_parts in _ERROR_RULES:
        if any(p in name for p in name_parts) or any(p in message for p in message_parts):
            return kind
    return "unknown"


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    stage: str = "unknown",
    retry_configs: dict[str, RetryConfig] | None = None,
    **kwargs: Any,
) -> Any:
    """Await ``fn(*args, **kwargs)``, retrying transient provider errors.

    Raises:
        LLMRetryExhausted: On a non-transient error, or once the retries
            for the error's kind are used up.
    """
    configs = DEFAULT_RETRY_CONFIGS if retry_configs is None else retry_configs
    for attempt in itertools.count(1):
        try:
            return await fn(*args, **kwargs)
        except Exception as exc:
            kind = classify_error(exc)
            config = configs.get(kind)
            if config is None or attempt > config.max_retries:
                raise LLMRetryExhausted(stage, kind, attempt, exc) from exc
            delay = config.delay_for(attempt - 1)
            logger.warning(
                "%s LLM call hit %s (attempt %d/%d), retrying in %.1fs",
                stage, kind, attempt, config.max_retries, delay,
            )
            await asyncio.sleep(delay)
