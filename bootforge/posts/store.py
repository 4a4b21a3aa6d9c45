"""Post record storage (in-memory or Supabase)."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient

from bootforge.errors import DuplicateRecordError, PersistenceError
from bootforge.posts.models import Post

logger = logging.getLogger(__name__)

# Postgres unique_violation
_UNIQUE_VIOLATION = "23505"


class PostStore(ABC):
    """Durable record of published posts, unique per source job."""

    @abstractmethod
    async def create(self, post: Post) -> Post:
        """Insert a post. Raises DuplicateRecordError if the job already has one."""
        ...

    @abstractmethod
    async def find_by_job_id(self, job_id: str) -> Optional[Post]:
        ...


class InMemoryPostStore(PostStore):

    def __init__(self):
        self._posts: Dict[str, Post] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def create(self, post: Post) -> Post:
        async with self._lock:
            if post.job_id in self._posts:
                raise DuplicateRecordError(f"Post for job {post.job_id} already exists")
            stored = post.model_copy(update={"id": self._next_id})
            self._next_id += 1
            self._posts[post.job_id] = stored
            return stored

    async def find_by_job_id(self, job_id: str) -> Optional[Post]:
        async with self._lock:
            return self._posts.get(job_id)


class SupabasePostStore(PostStore):
    """Post store over the ``posts`` table (unique constraint on job_id)."""

    def __init__(self, client: AsyncClient, table: str = "posts"):
        self._client = client
        self._table = table

    async def create(self, post: Post) -> Post:
        row = post.model_dump(mode="json", exclude={"id", "created_at"})
        try:
            response = await self._client.table(self._table).insert(row).execute()
        except APIError as e:
            if e.code == _UNIQUE_VIOLATION:
                raise DuplicateRecordError(f"Post for job {post.job_id} already exists") from e
            raise PersistenceError(f"Post insert failed: {e}") from e
        except httpx.HTTPError as e:
            raise PersistenceError(f"Post insert failed: {e}") from e

        if not response.data:
            raise PersistenceError(f"Post insert for job {post.job_id} returned no row")
        return Post.model_validate(response.data[0])

    async def find_by_job_id(self, job_id: str) -> Optional[Post]:
        try:
            response = await (
                self._client.table(self._table)
                .select("*")
                .eq("job_id", job_id)
                .limit(1)
                .execute()
            )
        except (APIError, httpx.HTTPError) as e:
            raise PersistenceError(f"Post lookup failed: {e}") from e
        return Post.model_validate(response.data[0]) if response.data else None
