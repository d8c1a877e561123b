"""Payment provider webhook endpoint.

The endpoint is unauthenticated: authenticity comes from the provider's
signature, checked by the gateway before the body is even parsed.  A
rejected callback returns 400 and touches nothing.
"""

from __future__ import annotations

import structlog
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.payments.exceptions import WebhookPayloadError, WebhookVerificationError
from modules.payments.gateways import StripePaymentGateway
from modules.payments.services import PaymentReconciliationService

logger = structlog.get_logger(__name__)


class PaymentWebhookView(APIView):
    """POST /api/v1/payments/webhook/"""

    authentication_classes: list = []
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "payment_webhook"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._gateway = StripePaymentGateway.from_settings()
        self._service = PaymentReconciliationService(
            order_repository=OrderDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )

    def post(self, request: Request) -> Response:
        signature = request.headers.get("Stripe-Signature")
        try:
            event = self._gateway.parse_webhook(request.body, signature)
        except WebhookVerificationError as exc:
            logger.warning("payment.webhook_rejected", reason=str(exc))
            return Response(
                {"detail": "Invalid webhook signature."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except WebhookPayloadError as exc:
            logger.warning("payment.webhook_malformed", reason=str(exc))
            return Response(
                {"detail": "Malformed webhook payload."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        result = self._service.reconcile(event)
        return Response({"received": True, "result": result.value})
