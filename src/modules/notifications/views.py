"""Transactional e-mail trigger for store administrators."""

from __future__ import annotations

import structlog
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.permissions import IsStoreAdmin
from modules.notifications.serializers import SendEmailSerializer
from modules.notifications.tasks import send_email

logger = structlog.get_logger(__name__)


class SendEmailView(APIView):
    """POST /api/v1/notifications/email/

    Queues the e-mail and answers 202; delivery problems are logged by
    the task and never reported back here.
    """

    permission_classes = [IsStoreAdmin]

    def post(self, request: Request) -> Response:
        serializer = SendEmailSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        send_email.delay(data["template"], data["recipient"], data["variables"])
        logger.info(
            "notification.triggered",
            template=data["template"],
            user_id=request.user.id,
        )
        return Response({"queued": True}, status=status.HTTP_202_ACCEPTED)
