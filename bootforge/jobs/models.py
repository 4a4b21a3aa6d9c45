"""Job record data model for async processing."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union
from pydantic import BaseModel, Field
import uuid


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


ACTIVE_STATUSES = frozenset({JobStatus.PENDING, JobStatus.PROCESSING})


class Creator(BaseModel):
    id: int
    name: str


class DisplayRef(BaseModel):
    """Coordinates of the chat message that shows a job's progress."""
    chat_id: Union[int, str]
    message_id: int


class JobMetadata(BaseModel):
    """Caller-supplied payload, validated once when the job is created."""
    file_id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    creator: Creator
    display: DisplayRef
    video_ref_message_id: Optional[int] = None
    options: Dict[str, Any] = Field(default_factory=dict)


class Job(BaseModel):
    """Tracks the lifecycle of one boot animation job."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    status: JobStatus = JobStatus.PENDING
    metadata: JobMetadata
    attempts: int = 0
    published_message_id: Optional[int] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
