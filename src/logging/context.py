# src/logging/context.py — v2
"""Per-run logging context: which document, run and stage a record belongs to.

The whole context lives in one task-local variable, so concurrent pipeline
runs on the same event loop never see each other's document or stage.
"""

from __future__ import annotations

import contextvars
from dataclasses import asdict, dataclass, replace
from typing import Any


@dataclass(frozen=True)
class LogContext:
    """Document and stage a log record is emitted under."""

    document_id: str | None = None
    run_id: str | None = None
    stage: str | None = None
    step: int | None = None

    def as_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


_EMPTY = LogContext()
_current: contextvars.ContextVar[LogContext] = contextvars.ContextVar(
    "amrsp_log_context", default=_EMPTY
)


def get_context() -> LogContext:
    return _current.get()


def set_document_context(document_id: str, run_id: str) -> None:
    """Start a pipeline run; any stage left over from a previous run is dropped."""
    _current.set(LogContext(document_id=document_id, run_id=run_id))


def set_stage_context(stage: str | None, step: int | None = None) -> None:
    _current.set(replace(_current.get(), stage=stage, step=step))


def clear_context() -> None:
    _current.set(_EMPTY)
