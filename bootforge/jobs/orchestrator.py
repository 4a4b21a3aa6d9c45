"""Dispatch orchestrator.

Claims a pending job, picks a CI provider for it and triggers the external
workflow. Dispatch problems put the job back in the queue; completion and
processing failures are reported later through the status webhook.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from bootforge.display import messages
from bootforge.display.base import DisplaySurface
from bootforge.errors import DispatchError, ProviderUnavailable
from bootforge.jobs.models import Job, JobStatus
from bootforge.jobs.store import JobStore
from bootforge.providers.base import CIProvider, DispatchResult
from bootforge.providers.registry import ProviderRegistry
from bootforge.providers.selector import select_provider

logger = logging.getLogger(__name__)


class OutcomeKind(str, Enum):
    NOTHING_TO_CLAIM = "nothing_to_claim"
    DISPATCHED = "dispatched"
    REQUEUED = "requeued"
    EXHAUSTED = "exhausted"


@dataclass
class DispatchOutcome:
    kind: OutcomeKind
    job_id: Optional[str] = None
    provider_id: Optional[str] = None
    run_id: Optional[str] = None
    message: str = ""


def build_provider_inputs(job: Job) -> Dict[str, Any]:
    """Workflow inputs for a job. Providers treat this map as opaque."""
    meta = job.metadata
    return {
        "video": meta.file_id,
        "other_metadata": json.dumps({
            "jobId": job.id,
            "msg_metadata": {
                "chatId": meta.display.chat_id,
                "messageId": meta.display.message_id,
            },
            "title": meta.title,
            "creator": meta.creator.model_dump(),
            "ref_message_id": meta.video_ref_message_id,
            "options": meta.options,
        }),
    }


class DispatchOrchestrator:
    """Hands claimed jobs to providers. Safe to run concurrently."""

    def __init__(
        self,
        store: JobStore,
        registry: ProviderRegistry,
        display: DisplaySurface,
        max_attempts: int = 5,
    ):
        self._store = store
        self._registry = registry
        self._display = display
        self._max_attempts = max_attempts

    async def dispatch(self, job_id: Optional[str] = None) -> DispatchOutcome:
        """Claim one job and dispatch it.

        Steps:
        1. Claim (the given job, or the oldest pending one)
        2. Select a provider for the claimed job
        3. No provider: release the claim and notify
        4. Trigger the workflow; on failure release the claim and notify
        5. On success leave the job in processing

        Only PersistenceError escapes; everything else ends in an outcome.
        """
        job = await self._store.claim_for_processing(job_id)
        if job is None:
            if job_id:
                logger.info("Job %s is not pending, nothing to dispatch", job_id)
            else:
                logger.info("No pending job found")
            return DispatchOutcome(OutcomeKind.NOTHING_TO_CLAIM, job_id=job_id)

        try:
            provider = await self._select(job)
            result = await self._trigger(provider, job)
        except ProviderUnavailable as e:
            return await self._release(job, messages.requeued_busy_text(), str(e))
        except DispatchError as e:
            logger.warning("Failed to dispatch job %s: %s", job.id, e)
            return await self._release(
                job, messages.dispatch_failed_text(), e.reason, e.provider_id
            )

        logger.info("Job %s dispatched via %s", job.id, provider.id)
        return DispatchOutcome(
            OutcomeKind.DISPATCHED,
            job_id=job.id,
            provider_id=provider.id,
            run_id=result.run_id,
            message=result.message,
        )

    async def _select(self, job: Job) -> CIProvider:
        provider = await select_provider(job.id, self._registry)
        if provider is None:
            raise ProviderUnavailable("All workers are busy")
        return provider

    async def _trigger(self, provider: CIProvider, job: Job) -> DispatchResult:
        try:
            result = await provider.trigger_workflow(build_provider_inputs(job))
        except Exception as e:
            logger.exception("Provider %s raised while dispatching job %s", provider.id, job.id)
            raise DispatchError(provider.id, f"{type(e).__name__}: {e}") from e
        if not result.success:
            raise DispatchError(provider.id, result.message)
        return result

    async def _release(
        self,
        job: Job,
        notice: str,
        reason: str,
        provider_id: Optional[str] = None,
    ) -> DispatchOutcome:
        """Return a claimed job to the queue, or fail it once attempts run out."""
        if job.attempts >= self._max_attempts:
            updated = await self._store.transition(
                job.id, JobStatus.FAILED, [JobStatus.PROCESSING]
            )
            kind = OutcomeKind.EXHAUSTED
            notice = messages.attempts_exhausted_text()
            logger.warning(
                "Job %s failed after %d dispatch attempts: %s", job.id, job.attempts, reason
            )
        else:
            updated = await self._store.transition(
                job.id, JobStatus.PENDING, [JobStatus.PROCESSING]
            )
            kind = OutcomeKind.REQUEUED
            logger.info("Job %s re-queued (attempt %d): %s", job.id, job.attempts, reason)

        if updated is None:
            # A status report moved the job on while we held the claim
            logger.warning("Job %s left processing before it could be released", job.id)
        else:
            await self._notify(job, notice)

        return DispatchOutcome(kind, job_id=job.id, provider_id=provider_id, message=reason)

    async def _notify(self, job: Job, text: str) -> None:
        try:
            await self._display.edit_status(job.metadata.display, text)
        except Exception:
            logger.exception("Could not update status message for job %s", job.id)
