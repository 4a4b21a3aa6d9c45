"""Published post record."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from bootforge.jobs.models import utcnow


class Post(BaseModel):
    """A finished boot animation that was published to the channel."""
    id: Optional[int] = None
    job_id: str
    user_id: int
    message_id: int
    name: str
    unique_file_id: str
    download_url: str
    tags: str = ""
    created_at: datetime = Field(default_factory=utcnow)
