"""Display surface interface: where users see job progress and results."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Tuple

from bootforge.jobs.models import DisplayRef

logger = logging.getLogger(__name__)


class DisplaySurface(ABC):
    """Abstract chat adapter (Telegram in production)."""

    @abstractmethod
    async def edit_status(self, display: DisplayRef, text: str) -> None:
        """Replace the text of a job's status message."""
        ...

    @abstractmethod
    async def publish_animation(self, media: str, caption: str, download_url: str) -> int:
        """Post a finished artifact to the output channel. Returns its message id."""
        ...

    @abstractmethod
    def post_link(self, message_id: int) -> str:
        """Public URL of a published message."""
        ...


@dataclass
class PublishedAnimation:
    message_id: int
    media: str
    caption: str
    download_url: str


@dataclass
class RecordingDisplay(DisplaySurface):
    """In-memory display for local runs and tests; records every call."""
    channel: str = "local"
    edits: List[Tuple[DisplayRef, str]] = field(default_factory=list)
    published: List[PublishedAnimation] = field(default_factory=list)

    async def edit_status(self, display: DisplayRef, text: str) -> None:
        logger.info("Status message %s/%s: %s", display.chat_id, display.message_id, text)
        self.edits.append((display, text))

    async def publish_animation(self, media: str, caption: str, download_url: str) -> int:
        message_id = len(self.published) + 1
        self.published.append(PublishedAnimation(message_id, media, caption, download_url))
        return message_id

    def post_link(self, message_id: int) -> str:
        return f"https://t.me/{self.channel.lstrip('@')}/{message_id}"
