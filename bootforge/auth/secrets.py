"""Shared-secret checks for the scheduler and webhook endpoints."""

import hmac
import logging
from typing import Optional

from fastapi import Header, HTTPException, Request

logger = logging.getLogger(__name__)


def _matches(given: Optional[str], expected: str) -> bool:
    return given is not None and hmac.compare_digest(given.encode(), expected.encode())


async def verify_cron_secret(request: Request, authorization: str = Header(None)) -> None:
    """Require ``Authorization: Bearer <CRON_SECRET>``.

    With no secret configured every call is refused.
    """
    secret = request.app.state.settings.cron_secret
    if not secret or not _matches(authorization, f"Bearer {secret}"):
        logger.warning("Unauthorized scheduled dispatch call")
        raise HTTPException(status_code=401, detail="Unauthorized")


async def verify_webhook_secret(
    request: Request,
    x_webhook_secret: str = Header(None),
) -> None:
    """Check ``X-Webhook-Secret`` when WEBHOOK_SECRET is set."""
    secret = request.app.state.settings.webhook_secret
    if secret and not _matches(x_webhook_secret, secret):
        logger.warning("Rejected status webhook with bad secret")
        raise HTTPException(status_code=401, detail="Unauthorized")
