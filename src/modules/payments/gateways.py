"""Payment gateway interface and its Stripe Checkout implementation.

The gateway is the only place that talks to the Stripe SDK.  Services
receive an ``IPaymentGateway`` via constructor injection so tests can
swap in a fake without patching the SDK.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional
from uuid import UUID

import stripe
import structlog
from django.conf import settings
from pydantic import ValidationError

from modules.payments.dtos import (
    CheckoutLineItem,
    PaymentEvent,
    PaymentOutcome,
    PaymentSession,
    StripeCheckoutSession,
    StripeEvent,
)
from modules.payments.exceptions import (
    PaymentGatewayError,
    WebhookPayloadError,
    WebhookVerificationError,
)

logger = structlog.get_logger(__name__)

# payment_intent.payment_failed is not terminal: the customer can retry a
# declined card inside the same Checkout session. Only the session failing
# asynchronously or expiring ends it.
SESSION_EVENTS = {
    "checkout.session.completed",
    "checkout.session.async_payment_succeeded",
    "checkout.session.async_payment_failed",
    "checkout.session.expired",
}
SESSION_FAILED_EVENTS = {
    "checkout.session.async_payment_failed",
    "checkout.session.expired",
}

# Currencies Stripe charges without a fractional unit.
ZERO_DECIMAL_CURRENCIES = {"bif", "clp", "jpy", "krw", "pyg", "vnd", "xaf", "xof"}


def to_minor_units(amount: Decimal, currency: str) -> int:
    """Convert a decimal amount to the integer Stripe expects."""
    if currency.lower() in ZERO_DECIMAL_CURRENCIES:
        return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class IPaymentGateway(ABC):
    @abstractmethod
    def create_checkout_session(
        self,
        order_id: UUID,
        line_items: Iterable[CheckoutLineItem],
        customer_email: str = "",
    ) -> PaymentSession:
        """Open a hosted checkout correlated to *order_id*.

        Raises:
            PaymentGatewayError: the provider call failed.
        """

    @abstractmethod
    def parse_webhook(self, payload: bytes, signature: Optional[str]) -> PaymentEvent:
        """Verify and decode a provider callback.

        Raises:
            WebhookVerificationError: bad or missing signature.
            WebhookPayloadError: signature ok, body malformed.
        """


class StripePaymentGateway(IPaymentGateway):
    """Stripe Checkout in ``payment`` mode.

    ``metadata.order_id`` is set on the session and on the payment intent
    so both session and intent events can be correlated to the order.
    """

    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        currency: str = "usd",
        base_url: str = "http://localhost:3000",
        tolerance: int = 300,
    ) -> None:
        self._api_key = api_key
        self._webhook_secret = webhook_secret
        self._currency = currency.lower()
        self._base_url = base_url.rstrip("/")
        self._tolerance = tolerance

    @classmethod
    def from_settings(cls) -> StripePaymentGateway:
        return cls(
            api_key=settings.STRIPE_SECRET_KEY,
            webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
            currency=settings.STRIPE_CURRENCY,
            base_url=settings.STOREFRONT_BASE_URL,
            tolerance=settings.STRIPE_WEBHOOK_TOLERANCE,
        )

    # ------------------------------------------------------------------
    # Checkout session
    # ------------------------------------------------------------------

    def create_checkout_session(
        self,
        order_id: UUID,
        line_items: Iterable[CheckoutLineItem],
        customer_email: str = "",
    ) -> PaymentSession:
        metadata = {"order_id": str(order_id)}
        params = {
            "mode": "payment",
            "line_items": [
                {
                    "price_data": {
                        "currency": self._currency,
                        "product_data": {"name": item.name},
                        "unit_amount": to_minor_units(item.unit_price, self._currency),
                    },
                    "quantity": item.quantity,
                }
                for item in line_items
            ],
            "success_url": f"{self._base_url}/orders/{order_id}?payment=success",
            "cancel_url": f"{self._base_url}/orders/{order_id}?payment=cancelled",
            "client_reference_id": str(order_id),
            "metadata": metadata,
            "payment_intent_data": {"metadata": metadata},
        }
        if customer_email:
            params["customer_email"] = customer_email

        log = logger.bind(order_id=str(order_id))
        try:
            session = stripe.checkout.Session.create(
                api_key=self._api_key,
                idempotency_key=f"checkout-{order_id}",
                **params,
            )
        except stripe.StripeError as exc:
            log.error(
                "payment.session_failed",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise PaymentGatewayError(
                "The payment provider could not create a checkout session."
            ) from exc

        log.info("payment.session_created", checkout_session_id=session.id)
        return PaymentSession(session_id=session.id, url=session.url)

    # ------------------------------------------------------------------
    # Webhook
    # ------------------------------------------------------------------

    def parse_webhook(self, payload: bytes, signature: Optional[str]) -> PaymentEvent:
        if not signature:
            raise WebhookVerificationError("Missing Stripe-Signature header.")
        try:
            body = payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise WebhookVerificationError("Webhook body is not valid UTF-8.") from exc

        try:
            stripe.WebhookSignature.verify_header(
                body, signature, self._webhook_secret, self._tolerance
            )
        except stripe.SignatureVerificationError as exc:
            raise WebhookVerificationError(str(exc)) from exc

        try:
            event = StripeEvent.model_validate_json(body)
            return self._to_payment_event(event)
        except ValidationError as exc:
            raise WebhookPayloadError(
                f"Unexpected webhook body: {exc.error_count()} error(s)."
            ) from exc

    def _to_payment_event(self, event: StripeEvent) -> PaymentEvent:
        if event.type in SESSION_EVENTS:
            session = StripeCheckoutSession.model_validate(event.data.object)
            outcome: Optional[PaymentOutcome] = None
            if event.type in SESSION_FAILED_EVENTS:
                outcome = PaymentOutcome.FAILED
            elif event.type == "checkout.session.async_payment_succeeded":
                outcome = PaymentOutcome.PAID
            elif session.payment_status == "paid":
                outcome = PaymentOutcome.PAID
            return PaymentEvent(
                event_id=event.id,
                event_type=event.type,
                outcome=outcome,
                order_id=session.metadata.order_id,
                payment_reference=session.payment_intent or session.id,
                checkout_session_id=session.id,
            )

        return PaymentEvent(event_id=event.id, event_type=event.type)
