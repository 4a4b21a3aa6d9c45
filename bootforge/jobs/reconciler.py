"""Status reconciler: applies provider status reports to the job record."""

import logging
from dataclasses import dataclass
from typing import Optional

from bootforge.display import messages
from bootforge.display.base import DisplaySurface
from bootforge.errors import DuplicateRecordError, NotFoundError
from bootforge.jobs.models import ACTIVE_STATUSES, DisplayRef, Job, JobStatus
from bootforge.jobs.schemas import (
    CompletedReport,
    FailedReport,
    ProcessingReport,
    StatusReport,
)
from bootforge.jobs.store import JobStore
from bootforge.posts.models import Post
from bootforge.posts.store import PostStore

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    job_id: str
    status: JobStatus
    applied: bool
    published_message_id: Optional[int] = None


class StatusReconciler:
    """Webhook-side state machine.

    Reports only move jobs that are not yet terminal, so duplicate or late
    deliveries are acknowledged without side effects. The ``completed``
    transition doubles as the publish guard: only the caller that performs
    it posts the artifact.

    A ``pending`` report moves a ``processing`` job back into the queue, where
    the next sweep may claim and dispatch it again even though the provider
    still holds the earlier run. Workers should only send ``pending`` when
    they have dropped the run.
    """

    def __init__(self, store: JobStore, posts: PostStore, display: DisplaySurface):
        self._store = store
        self._posts = posts
        self._display = display

    async def apply(self, report: StatusReport) -> ReconcileResult:
        job = await self._store.find_by_id(report.job_id)
        if job is None:
            raise NotFoundError("Job", report.job_id)

        target = JobStatus(report.status)
        updated = await self._store.transition(job.id, target, ACTIVE_STATUSES)
        if updated is None:
            logger.info(
                "Ignoring %s report for job %s (already %s)",
                target.value, job.id, job.status.value,
            )
            return ReconcileResult(job.id, target, applied=False)

        logger.info("Job %s is now %s", job.id, target.value)
        published_message_id = None

        if isinstance(report, CompletedReport):
            published_message_id = await self._publish(job, report)
            link = self._display.post_link(published_message_id)
            text = messages.completed_text(report.post_metadata.title, link)
        elif isinstance(report, FailedReport):
            text = messages.failed_text(report.message, report.error_list)
        elif isinstance(report, ProcessingReport):
            text = messages.processing_text(report.progress)
        else:
            text = messages.pending_text()

        display = DisplayRef(
            chat_id=report.tg_metadata.chatId,
            message_id=report.tg_metadata.messageId,
        )
        try:
            await self._display.edit_status(display, text)
        except Exception:
            logger.exception("Could not update status message for job %s", job.id)

        return ReconcileResult(job.id, target, applied=True,
                               published_message_id=published_message_id)

    async def _publish(self, job: Job, report: CompletedReport) -> int:
        """Post the artifact to the channel and record it.

        Any failure hands the job back to ``processing`` and re-raises, so a
        redelivery of the report finishes the work. The channel message id is
        stored on the job first, which keeps the retry from posting the
        artifact a second time.
        """
        post = report.post_metadata
        message_id = job.published_message_id

        try:
            if message_id is None:
                media = str(post.preview_url) if post.preview_url else post.video.file_id
                message_id = await self._display.publish_animation(
                    media, messages.post_caption(post), str(post.download_url)
                )
                await self._store.record_publication(job.id, message_id)
            else:
                logger.info("Job %s already published as message %s", job.id, message_id)

            await self._posts.create(Post(
                job_id=job.id,
                user_id=post.creator.user_id,
                message_id=message_id,
                name=post.title,
                unique_file_id=post.video.file_unique_id,
                download_url=str(post.download_url),
                tags=post.tags,
            ))
        except DuplicateRecordError:
            logger.warning("Post for job %s already recorded", job.id)
        except Exception:
            await self._store.transition(
                job.id, JobStatus.PROCESSING, [JobStatus.COMPLETED]
            )
            raise

        return message_id
