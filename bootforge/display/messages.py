"""Status message and post caption texts (Telegram HTML parse mode)."""

from html import escape
from typing import List, Optional

from bootforge.jobs.schemas import PostMetadata


def pending_text() -> str:
    return (
        "<b>⏳ Pending: </b>Your boot animation is in the queue and will be picked up soon."
        "\nIt'll start processing as soon as a worker is available."
    )


def processing_text(progress: Optional[float] = None) -> str:
    text = (
        "<b>🔧 Processing: </b>Your boot animation is currently being handled by a worker."
        "\nIt'll be ready shortly and automatically <b>posted to the channel</b> once completed."
    )
    if progress is not None:
        text += f"\n\nProgress: {progress:.0f}%"
    return text


def failed_text(message: str, error_list: Optional[List[str]] = None) -> str:
    text = (
        "<b>❌ Failed: </b>"
        + escape(message or "Something went wrong while processing your boot animation.")
        + "\nPlease try again later or upload a new video."
    )
    if error_list:
        text += "\n\n<i>Details:</i>\n• " + "\n• ".join(escape(e) for e in error_list)
    return text


def completed_text(title: str, link: str) -> str:
    return (
        "<b>✅ Completed: </b>Your boot animation has been successfully processed."
        "\nIt's now posted on the channel, check it out here: 👉 "
        f'<a href="{escape(link)}">{escape(title)}</a>'
    )


def requeued_busy_text() -> str:
    return (
        "<b>⏳ Queued: </b>All workers are busy right now."
        "\nYour request was put back in the queue and will be retried automatically."
    )


def dispatch_failed_text() -> str:
    return (
        "<b>⚠️ Delayed: </b>We couldn't hand your request to a worker."
        "\nIt was put back in the queue and will be retried automatically."
    )


def attempts_exhausted_text() -> str:
    return (
        "<b>❌ Failed: </b>Your request could not be scheduled after several attempts."
        "\nPlease try again later."
    )


def post_caption(post: PostMetadata) -> str:
    lines = [
        f"<b>{escape(post.title)}</b>",
        f"by {escape(post.creator.name)}",
    ]
    if post.details is not None:
        resolution = post.details.resolution
        lines.append("")
        lines.append(f"Resolution: {escape(resolution.module)}")
        lines.append(f"FPS: {post.details.fps:g}")
        lines.append(f"Duration: {post.details.duration:g}s")
        lines.append(f"Type: {escape(post.details.type)}")
    if post.tags:
        lines.append("")
        lines.append(" ".join(f"#{escape(t)}" for t in post.tags.split()))
    return "\n".join(lines)
