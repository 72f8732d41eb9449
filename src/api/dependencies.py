# src/api/dependencies.py — v1
"""FastAPI dependencies resolving app-scoped objects from application state."""

from __future__ import annotations

from fastapi import Request

from amrsp.api.facade import AmrspService


def get_service(request: Request) -> AmrspService:
    """Return the service created by ``create_app``."""
    return request.app.state.service
