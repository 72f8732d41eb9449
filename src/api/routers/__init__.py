# src/api/routers/__init__.py — v1
from amrsp.api.routers.documents import router as documents_router
from amrsp.api.routers.health import router as health_router

__all__ = ["documents_router", "health_router"]
