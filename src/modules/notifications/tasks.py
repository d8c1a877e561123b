"""Asynchronous e-mail delivery."""

from __future__ import annotations

from smtplib import SMTPException
from typing import Any, Dict

import structlog
from anymail.exceptions import AnymailError
from celery import shared_task

from modules.notifications.notifier import EmailNotifier

logger = structlog.get_logger(__name__)


@shared_task(name="notifications.send_email")
def send_email(template: str, recipient: str, fields: Dict[str, Any]) -> dict:
    """Fire-and-forget: provider failures are logged, never raised."""
    try:
        EmailNotifier().send(template, recipient, fields)
    except (AnymailError, SMTPException, OSError) as exc:
        logger.error(
            "notification.email_failed",
            template=template,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        return {"status": "failed", "template": template}
    return {"status": "sent", "template": template}
