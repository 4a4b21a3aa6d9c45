"""Status webhook: CI workers report progress here."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError as PydanticValidationError

from bootforge.api.deps import get_reconciler
from bootforge.auth.secrets import verify_webhook_secret
from bootforge.errors import ValidationError
from bootforge.jobs.reconciler import StatusReconciler
from bootforge.jobs.schemas import status_report_adapter

logger = logging.getLogger(__name__)

router = APIRouter()


def _issues(error: PydanticValidationError):
    return [
        f"{'.'.join(str(part) for part in e['loc']) or 'body'}: {e['msg']}"
        for e in error.errors()
    ]


@router.post(
    "/webhooks/status",
    response_class=PlainTextResponse,
    dependencies=[Depends(verify_webhook_secret)],
)
async def handle_status(
    request: Request,
    reconciler: StatusReconciler = Depends(get_reconciler),
):
    """Validate a status report and apply it to its job."""
    try:
        payload = await request.json()
    except ValueError:
        raise ValidationError(["body: Invalid JSON"])

    logger.info("Webhook status request: %s", payload)

    try:
        report = status_report_adapter.validate_python(payload)
    except PydanticValidationError as e:
        raise ValidationError(_issues(e))

    await reconciler.apply(report)
    return "OK"
