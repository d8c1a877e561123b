"""Transactional e-mail rendering and delivery.

Each template has a ``.txt`` and an ``.html`` variant under
``templates/notifications/``.  Messages go out as ``AnymailMessage`` so
the configured ESP (Resend in production) receives tags and metadata;
tests use Django's local-memory backend.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import structlog
from anymail.message import AnymailMessage
from django.conf import settings
from django.template.loader import render_to_string

from modules.notifications.exceptions import UnknownTemplate

logger = structlog.get_logger(__name__)

ORDER_CONFIRMATION = "order_confirmation"
ORDER_STATUS = "order_status"
NEWSLETTER_WELCOME = "newsletter_welcome"

SUBJECTS: Dict[str, str] = {
    ORDER_CONFIRMATION: "Order {order_number} confirmed",
    ORDER_STATUS: "Order {order_number} is now {status}",
    NEWSLETTER_WELCOME: "Welcome to the Storefront newsletter",
}


class _Missing(dict):
    def __missing__(self, key: str) -> str:
        return ""


class EmailNotifier:
    def __init__(self, from_email: Optional[str] = None) -> None:
        self._from_email = from_email

    def send(self, template: str, recipient: str, fields: Mapping[str, Any]) -> None:
        """Render *template* with *fields* and send it to *recipient*.

        Raises:
            UnknownTemplate: *template* is not one of ``SUBJECTS``.
        """
        if template not in SUBJECTS:
            raise UnknownTemplate(f"Unknown e-mail template '{template}'.")

        context = dict(fields)
        subject = SUBJECTS[template].format_map(_Missing(context))
        text_body = render_to_string(f"notifications/{template}.txt", context)
        html_body = render_to_string(f"notifications/{template}.html", context)

        message = AnymailMessage(
            subject=subject,
            body=text_body,
            from_email=self._from_email or self._default_sender(template),
            to=[recipient],
        )
        message.attach_alternative(html_body, "text/html")
        message.tags = [template]
        if context.get("order_id"):
            message.metadata = {"order_id": str(context["order_id"])}
        message.send()
        logger.info("notification.email_sent", template=template)

    @staticmethod
    def _default_sender(template: str) -> str:
        if template == NEWSLETTER_WELCOME:
            return settings.NEWSLETTER_FROM_EMAIL
        return settings.DEFAULT_FROM_EMAIL
