"""Scheduled queue worker trigger, called by an external cron."""

import logging

from fastapi import APIRouter, Depends

from bootforge.api.deps import get_orchestrator
from bootforge.auth.secrets import verify_cron_secret
from bootforge.jobs.orchestrator import DispatchOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scheduled")


@router.post("/queue-worker", dependencies=[Depends(verify_cron_secret)])
async def queue_worker(orchestrator: DispatchOrchestrator = Depends(get_orchestrator)):
    """Dispatch the oldest pending job, if any."""
    logger.info("[QueueWorker] Running...")
    outcome = await orchestrator.dispatch()
    return {
        "outcome": outcome.kind.value,
        "job_id": outcome.job_id,
        "provider_id": outcome.provider_id,
        "message": outcome.message,
    }
