# src/api/routers/health.py — v1
"""Liveness and system-wide audit endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from amrsp.api.dependencies import get_service
from amrsp.api.facade import AmrspService
from amrsp.api.models import HealthResponse
from amrsp.core.models import AuditEntry

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(service: AmrspService = Depends(get_service)) -> HealthResponse:
    return HealthResponse(version=service.settings.api_version)


@router.get("/audit", response_model=list[AuditEntry])
async def audit_log(service: AmrspService = Depends(get_service)) -> list[AuditEntry]:
    """Every audit entry across documents, newest first."""
    return service.get_audit_log()
