from fastapi import HTTPException, Request

from bootforge.jobs.orchestrator import DispatchOrchestrator
from bootforge.jobs.reconciler import StatusReconciler
from bootforge.jobs.store import JobStore


def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(status_code=503, detail=f"{name} not initialized")
    return value


def get_store(request: Request) -> JobStore:
    return _state(request, "store")


def get_orchestrator(request: Request) -> DispatchOrchestrator:
    return _state(request, "orchestrator")


def get_reconciler(request: Request) -> StatusReconciler:
    return _state(request, "reconciler")
