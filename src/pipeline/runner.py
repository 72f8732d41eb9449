# src/pipeline/runner.py — v2
"""Stage runner: the isolation boundary around every pipeline stage.

Agents report failure by returning a failed StepOutcome. Anything an agent
raises anyway is converted into one here, so the orchestrator only ever
branches on ``outcome.succeeded``. The runner also measures each stage,
sets the stage logging context, and races the stage against the run's
cancellation event.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable

from amrsp.core.models import StepOutcome
from amrsp.logging.context import set_stage_context

logger = logging.getLogger(__name__)

CANCELLED = "Cancelled"
CANCELLED_BEFORE_START = "Cancelled before start"

StageCall = Callable[[], Awaitable[StepOutcome[Any]]]


class StageRunner:
    """Execute one stage call and always return a StepOutcome."""

    async def run(
        self,
        name: str,
        call: StageCall,
        step: int | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> StepOutcome[Any]:
        """Run a stage behind the isolation boundary.

        Args:
            name: Stage display name (for logs).
            call: Zero-argument coroutine factory invoking the agent.
            step: 1-based stage position (for logs).
            cancel_event: Run-level cancellation signal.

        Returns:
            The agent's outcome with the measured elapsed time, or a
            failed outcome when the agent raised or was cancelled.

        Raises:
            asyncio.CancelledError: If the surrounding task is cancelled.
        """
        set_stage_context(name, step)
        if cancel_event is not None and cancel_event.is_set():
            logger.info("[%s] Skipped: run cancelled", name)
            return StepOutcome.fail(CANCELLED_BEFORE_START)

        logger.info("[%s] Starting", name)
        start_ns = time.monotonic_ns()
        try:
            outcome = await self._execute(call, cancel_event)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            elapsed = _elapsed_ms(start_ns)
            logger.error("[%s] Exception: %s", name, exc, exc_info=True)
            return StepOutcome.fail(str(exc) or type(exc).__name__, elapsed)

        elapsed = _elapsed_ms(start_ns)
        if outcome is None:
            logger.warning("[%s] Cancelled after %dms", name, elapsed)
            return StepOutcome.fail(CANCELLED, elapsed)
        if not isinstance(outcome, StepOutcome):
            return StepOutcome.fail(
                f"{name} returned {type(outcome).__name__} instead of a StepOutcome", elapsed,
            )

        logger.info(
            "[%s] %s in %dms%s",
            name, "OK" if outcome.succeeded else "FAILED", elapsed,
            "" if outcome.succeeded else f": {outcome.error}",
        )
        return outcome.model_copy(update={"elapsed_ms": elapsed})

    async def _execute(
        self, call: StageCall, cancel_event: asyncio.Event | None,
    ) -> StepOutcome[Any] | None:
        """Await the stage; return None when the cancel event wins the race."""
        if cancel_event is None:
            return await call()

        task = asyncio.ensure_future(call())
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task.done():
            return task.result()

        task.cancel()
        await asyncio.wait({task})
        return None


def _elapsed_ms(start_ns: int) -> int:
    return (time.monotonic_ns() - start_ns) // 1_000_000
