"""Postgres-backed job store via Supabase.

Claiming goes through the ``claim_queue_job`` SQL function (see
sql/0001_queue_jobs.sql) so that ``UPDATE ... WHERE status = 'pending'
RETURNING *`` runs as one statement. Conditional transitions use a filtered
PostgREST update, which is also a single UPDATE.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient

from bootforge.errors import NotFoundError, PersistenceError
from bootforge.jobs.models import Job, JobMetadata, JobStatus, utcnow
from bootforge.jobs.store import JobStore

logger = logging.getLogger(__name__)

CLAIM_FUNCTION = "claim_queue_job"


class SupabaseJobStore(JobStore):
    """Job store over the ``queue_jobs`` table."""

    def __init__(self, client: AsyncClient, table: str = "queue_jobs"):
        self._client = client
        self._table = table

    async def _execute(self, query) -> List[Dict[str, Any]]:
        try:
            response = await query.execute()
        except (APIError, httpx.HTTPError) as e:
            raise PersistenceError(f"Job store request failed: {e}") from e
        return response.data or []

    async def create(self, metadata: JobMetadata) -> Job:
        job = Job(metadata=metadata)
        rows = await self._execute(
            self._client.table(self._table).insert({
                "id": job.id,
                "status": job.status.value,
                "metadata": metadata.model_dump(mode="json"),
                "attempts": 0,
            })
        )
        if not rows:
            raise PersistenceError(f"Insert of job {job.id} returned no row")
        logger.info("Job %s added to the queue", job.id)
        return Job.model_validate(rows[0])

    async def find_by_id(self, job_id: str) -> Optional[Job]:
        rows = await self._execute(
            self._client.table(self._table)
            .select("*")
            .eq("id", job_id)
            .limit(1)
        )
        return Job.model_validate(rows[0]) if rows else None

    async def claim_for_processing(self, job_id: Optional[str] = None) -> Optional[Job]:
        rows = await self._execute(
            self._client.rpc(CLAIM_FUNCTION, {"p_job_id": job_id})
        )
        return Job.model_validate(rows[0]) if rows else None

    async def update_status(self, job_id: str, status: JobStatus) -> Job:
        rows = await self._execute(
            self._client.table(self._table)
            .update({"status": status.value, "updated_at": utcnow().isoformat()})
            .eq("id", job_id)
        )
        if not rows:
            raise NotFoundError("Job", job_id)
        return Job.model_validate(rows[0])

    async def transition(
        self,
        job_id: str,
        status: JobStatus,
        from_statuses: Iterable[JobStatus],
    ) -> Optional[Job]:
        rows = await self._execute(
            self._client.table(self._table)
            .update({"status": status.value, "updated_at": utcnow().isoformat()})
            .eq("id", job_id)
            .in_("status", [s.value for s in from_statuses])
        )
        return Job.model_validate(rows[0]) if rows else None

    async def record_publication(self, job_id: str, message_id: int) -> Job:
        rows = await self._execute(
            self._client.table(self._table)
            .update({
                "published_message_id": message_id,
                "updated_at": utcnow().isoformat(),
            })
            .eq("id", job_id)
        )
        if not rows:
            raise NotFoundError("Job", job_id)
        return Job.model_validate(rows[0])

    async def list_jobs(
        self, status: Optional[JobStatus] = None, limit: int = 100
    ) -> List[Job]:
        query = self._client.table(self._table).select("*")
        if status is not None:
            query = query.eq("status", status.value)
        rows = await self._execute(query.order("created_at").limit(limit))
        return [Job.model_validate(row) for row in rows]
