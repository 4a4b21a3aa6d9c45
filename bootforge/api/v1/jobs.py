"""Job management API: submit jobs and look them up."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from bootforge.api.deps import get_orchestrator, get_store
from bootforge.jobs.models import Job, JobMetadata, JobStatus
from bootforge.jobs.orchestrator import DispatchOrchestrator
from bootforge.jobs.store import JobStore

router = APIRouter()


class JobSubmitResponse(BaseModel):
    job: Job
    dispatch: str
    message: str


@router.post("/jobs", response_model=JobSubmitResponse, status_code=201)
async def submit_job(
    metadata: JobMetadata,
    store: JobStore = Depends(get_store),
    orchestrator: DispatchOrchestrator = Depends(get_orchestrator),
):
    """Queue a new job and try to dispatch it right away.

    If no worker is free the job stays pending and the scheduled
    queue worker picks it up later.
    """
    job = await store.create(metadata)
    outcome = await orchestrator.dispatch(job.id)

    current = await store.find_by_id(job.id)
    return JobSubmitResponse(
        job=current or job,
        dispatch=outcome.kind.value,
        message=outcome.message or "Your request is queued for processing",
    )


@router.get("/jobs/{job_id}", response_model=Job)
async def get_job(job_id: str, store: JobStore = Depends(get_store)):
    """Get the current state of a job."""
    job = await store.find_by_id(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


@router.get("/jobs", response_model=List[Job])
async def list_jobs(
    status: Optional[JobStatus] = None,
    limit: int = 100,
    store: JobStore = Depends(get_store),
):
    """List jobs oldest first, optionally filtered by status."""
    return await store.list_jobs(status=status, limit=max(1, min(limit, 500)))
