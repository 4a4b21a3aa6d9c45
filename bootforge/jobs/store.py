"""Job store interface and in-process implementation."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from bootforge.errors import NotFoundError
from bootforge.jobs.models import Job, JobMetadata, JobStatus, utcnow

logger = logging.getLogger(__name__)


class JobStore(ABC):
    """Abstract interface for durable job records (in-memory or Supabase).

    Every mutation is a single conditional operation so concurrent
    dispatchers and webhook deliveries never see a job under two statuses.
    """

    @abstractmethod
    async def create(self, metadata: JobMetadata) -> Job:
        """Insert a new pending job and return the stored record."""
        ...

    @abstractmethod
    async def find_by_id(self, job_id: str) -> Optional[Job]:
        ...

    @abstractmethod
    async def claim_for_processing(self, job_id: Optional[str] = None) -> Optional[Job]:
        """Atomically move a pending job to processing.

        With ``job_id`` only that job is considered; without it the oldest
        pending job is claimed. Returns None when there is nothing to claim.
        """
        ...

    @abstractmethod
    async def update_status(self, job_id: str, status: JobStatus) -> Job:
        """Set the status unconditionally. Raises NotFoundError."""
        ...

    @abstractmethod
    async def transition(
        self,
        job_id: str,
        status: JobStatus,
        from_statuses: Iterable[JobStatus],
    ) -> Optional[Job]:
        """Set the status only if the current one is in ``from_statuses``."""
        ...

    @abstractmethod
    async def record_publication(self, job_id: str, message_id: int) -> Job:
        """Remember the channel message an artifact went out as. Raises NotFoundError."""
        ...

    @abstractmethod
    async def list_jobs(
        self, status: Optional[JobStatus] = None, limit: int = 100
    ) -> List[Job]:
        ...


class InMemoryJobStore(JobStore):
    """Local job store for development and tests. No external dependencies.

    All reads and writes happen under one asyncio lock, which gives the
    same single-statement semantics as the SQL backend within a process.
    """

    def __init__(self):
        self._jobs: Dict[str, Job] = {}
        self._lock = asyncio.Lock()

    async def create(self, metadata: JobMetadata) -> Job:
        job = Job(metadata=metadata)
        async with self._lock:
            self._jobs[job.id] = job
        logger.info("Job %s added to the queue", job.id)
        return job.model_copy(deep=True)

    async def find_by_id(self, job_id: str) -> Optional[Job]:
        async with self._lock:
            job = self._jobs.get(job_id)
            return job.model_copy(deep=True) if job else None

    async def claim_for_processing(self, job_id: Optional[str] = None) -> Optional[Job]:
        async with self._lock:
            if job_id is not None:
                job = self._jobs.get(job_id)
            else:
                pending = [j for j in self._jobs.values() if j.status == JobStatus.PENDING]
                job = min(pending, key=lambda j: j.created_at, default=None)

            if job is None or job.status != JobStatus.PENDING:
                return None

            job.status = JobStatus.PROCESSING
            job.attempts += 1
            job.updated_at = utcnow()
            return job.model_copy(deep=True)

    async def update_status(self, job_id: str, status: JobStatus) -> Job:
        async with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise NotFoundError("Job", job_id)
            job.status = status
            job.updated_at = utcnow()
            return job.model_copy(deep=True)

    async def transition(
        self,
        job_id: str,
        status: JobStatus,
        from_statuses: Iterable[JobStatus],
    ) -> Optional[Job]:
        allowed = set(from_statuses)
        async with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.status not in allowed:
                return None
            job.status = status
            job.updated_at = utcnow()
            return job.model_copy(deep=True)

    async def record_publication(self, job_id: str, message_id: int) -> Job:
        async with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise NotFoundError("Job", job_id)
            job.published_message_id = message_id
            job.updated_at = utcnow()
            return job.model_copy(deep=True)

    async def list_jobs(
        self, status: Optional[JobStatus] = None, limit: int = 100
    ) -> List[Job]:
        async with self._lock:
            jobs = [
                j for j in self._jobs.values()
                if status is None or j.status == status
            ]
            jobs.sort(key=lambda j: j.created_at)
            return [j.model_copy(deep=True) for j in jobs[:limit]]
