"""Health check endpoint."""

from fastapi import APIRouter, Request
import platform
import sys

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Service health, store backend and configured providers."""
    state = request.app.state
    registry = getattr(state, "registry", None)

    return {
        "status": "healthy",
        "job_store": state.settings.job_store_backend,
        "providers": registry.ids() if registry is not None else [],
        "python_version": sys.version,
        "platform": platform.platform(),
    }
