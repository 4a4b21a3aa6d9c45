"""Telegram Bot API display surface."""

import logging
from typing import Any, Dict

import httpx

from bootforge.display.base import DisplaySurface
from bootforge.errors import ConfigurationError
from bootforge.jobs.models import DisplayRef

logger = logging.getLogger(__name__)


class TelegramError(Exception):
    """The Bot API returned ok=false."""
    pass


class TelegramDisplay(DisplaySurface):

    def __init__(
        self,
        token: str,
        channel_id: str,
        http: httpx.AsyncClient,
        api_url: str = "https://api.telegram.org",
    ):
        if not token:
            raise ConfigurationError("TELEGRAM_BOT_TOKEN must be set")
        self._base = f"{api_url.rstrip('/')}/bot{token}"
        self._channel_id = channel_id
        self._http = http

    async def _call(self, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._http.post(f"{self._base}/{method}", json=payload)
        body = response.json()
        if not body.get("ok"):
            raise TelegramError(f"{method} failed: {body.get('description', response.status_code)}")
        return body.get("result") or {}

    async def edit_status(self, display: DisplayRef, text: str) -> None:
        await self._call("editMessageText", {
            "chat_id": display.chat_id,
            "message_id": display.message_id,
            "text": text,
            "parse_mode": "HTML",
            "link_preview_options": {"is_disabled": True},
        })

    async def publish_animation(self, media: str, caption: str, download_url: str) -> int:
        result = await self._call("sendAnimation", {
            "chat_id": self._channel_id,
            "animation": media,
            "caption": caption,
            "parse_mode": "HTML",
            "reply_markup": {
                "inline_keyboard": [[
                    {"text": "⬇️ Download Module", "url": download_url},
                ]],
            },
        })
        message_id = result["message_id"]
        logger.info("Published animation to %s as message %s", self._channel_id, message_id)
        return message_id

    def post_link(self, message_id: int) -> str:
        return f"https://t.me/{str(self._channel_id).lstrip('@')}/{message_id}"
