"""Inbound status report schemas (tagged on ``status``)."""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import AnyHttpUrl, BaseModel, Field, TypeAdapter


class TgMetadata(BaseModel):
    messageId: int
    chatId: Union[int, str]


class PostCreator(BaseModel):
    user_id: int
    name: str


class PostVideo(BaseModel):
    file_id: str
    file_unique_id: str
    ref_message_id: int


class Resolution(BaseModel):
    module: str
    video: Optional[str] = None


class PostDetails(BaseModel):
    resolution: Resolution
    fps: float
    duration: float
    type: str


class PostMetadata(BaseModel):
    title: str
    creator: PostCreator
    download_url: AnyHttpUrl
    preview_url: Optional[AnyHttpUrl] = None
    video: PostVideo
    details: Optional[PostDetails] = None
    tags: str = ""


class _BaseReport(BaseModel):
    message: str
    job_id: str = Field(min_length=1)
    tg_metadata: TgMetadata


class PendingReport(_BaseReport):
    status: Literal["pending"]


class FailedReport(_BaseReport):
    status: Literal["failed"]
    error_log_b64: Optional[str] = None
    error_list: List[str] = Field(default_factory=list)


class ProcessingReport(_BaseReport):
    status: Literal["processing"]
    progress: Optional[float] = Field(default=None, ge=0, le=100)


class CompletedReport(_BaseReport):
    status: Literal["completed"]
    post_metadata: PostMetadata


StatusReport = Annotated[
    Union[PendingReport, ProcessingReport, FailedReport, CompletedReport],
    Field(discriminator="status"),
]

status_report_adapter = TypeAdapter(StatusReport)
