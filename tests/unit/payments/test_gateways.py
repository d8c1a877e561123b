"""Unit tests for the Stripe payment gateway.

The SDK call that opens a Checkout Session is mocked; webhook signatures
are computed for real and checked by the SDK.
"""

from __future__ import annotations

import json
import time
from decimal import Decimal
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest
import stripe

from modules.payments.dtos import CheckoutLineItem, PaymentOutcome
from modules.payments.exceptions import (
    PaymentGatewayError,
    WebhookPayloadError,
    WebhookVerificationError,
)
from modules.payments.gateways import StripePaymentGateway, to_minor_units

pytestmark = pytest.mark.unit


@pytest.fixture()
def gateway():
    return StripePaymentGateway.from_settings()


class TestMinorUnits:
    @pytest.mark.parametrize(
        "amount,currency,expected",
        [
            ("10.00", "usd", 1000),
            ("0.99", "eur", 99),
            ("19.995", "usd", 2000),
            ("1500", "jpy", 1500),
            ("1500.4", "JPY", 1500),
        ],
    )
    def test_conversion(self, amount, currency, expected):
        assert to_minor_units(Decimal(amount), currency) == expected


class TestCreateCheckoutSession:
    def test_session_params(self, gateway):
        order_id = uuid4()
        session = MagicMock(id="cs_test_abc", url="https://checkout.stripe.com/c/abc")
        with patch("stripe.checkout.Session.create", return_value=session) as create:
            result = gateway.create_checkout_session(
                order_id,
                [CheckoutLineItem(name="Pen", unit_price=Decimal("1.50"), quantity=4)],
                customer_email="alice@example.com",
            )

        assert result.session_id == "cs_test_abc"
        assert result.url == "https://checkout.stripe.com/c/abc"

        kwargs = create.call_args.kwargs
        assert kwargs["api_key"] == "sk_test_storefront"
        assert kwargs["idempotency_key"] == f"checkout-{order_id}"
        assert kwargs["mode"] == "payment"
        assert kwargs["metadata"] == {"order_id": str(order_id)}
        assert kwargs["payment_intent_data"] == {"metadata": {"order_id": str(order_id)}}
        assert kwargs["client_reference_id"] == str(order_id)
        assert kwargs["customer_email"] == "alice@example.com"
        assert kwargs["success_url"] == (
            f"http://testserver/orders/{order_id}?payment=success"
        )
        assert kwargs["line_items"] == [
            {
                "price_data": {
                    "currency": "usd",
                    "product_data": {"name": "Pen"},
                    "unit_amount": 150,
                },
                "quantity": 4,
            }
        ]

    def test_email_omitted_when_unknown(self, gateway):
        session = MagicMock(id="cs_test_abc", url=None)
        with patch("stripe.checkout.Session.create", return_value=session) as create:
            gateway.create_checkout_session(uuid4(), [])
        assert "customer_email" not in create.call_args.kwargs

    def test_provider_error(self, gateway):
        with patch(
            "stripe.checkout.Session.create",
            side_effect=stripe.APIConnectionError("network unreachable"),
        ):
            with pytest.raises(PaymentGatewayError):
                gateway.create_checkout_session(uuid4(), [])


class TestParseWebhook:
    def test_completed_and_paid(self, gateway, sign_webhook):
        order_id = uuid4()
        body = json.dumps(
            {
                "id": "evt_1",
                "type": "checkout.session.completed",
                "data": {
                    "object": {
                        "id": "cs_1",
                        "payment_status": "paid",
                        "payment_intent": "pi_1",
                        "metadata": {"order_id": str(order_id)},
                        "amount_total": 2000,
                    }
                },
            }
        )

        event = gateway.parse_webhook(body.encode(), sign_webhook(body))

        assert event.event_id == "evt_1"
        assert event.outcome == PaymentOutcome.PAID
        assert event.order_id == order_id
        assert event.payment_reference == "pi_1"
        assert event.checkout_session_id == "cs_1"

    def test_completed_but_unpaid_has_no_outcome(self, gateway, sign_webhook, stripe_event):
        body = stripe_event(payment_status="unpaid")
        event = gateway.parse_webhook(body.encode(), sign_webhook(body))
        assert event.outcome is None

    def test_async_success(self, gateway, sign_webhook, stripe_event):
        body = stripe_event(
            event_type="checkout.session.async_payment_succeeded",
            payment_status="paid",
        )
        assert gateway.parse_webhook(body.encode(), sign_webhook(body)).outcome == (
            PaymentOutcome.PAID
        )

    def test_async_failure(self, gateway, sign_webhook, stripe_event):
        body = stripe_event(
            event_type="checkout.session.async_payment_failed",
            payment_status="unpaid",
        )
        event = gateway.parse_webhook(body.encode(), sign_webhook(body))
        assert event.outcome == PaymentOutcome.FAILED

    def test_session_id_used_when_no_intent(self, gateway, sign_webhook, stripe_event):
        body = stripe_event(payment_intent=None, session_id="cs_9")
        event = gateway.parse_webhook(body.encode(), sign_webhook(body))
        assert event.payment_reference == "cs_9"

    def test_expired_session_fails(self, gateway, sign_webhook, stripe_event):
        body = stripe_event(
            event_type="checkout.session.expired",
            payment_status="unpaid",
            payment_intent=None,
        )
        event = gateway.parse_webhook(body.encode(), sign_webhook(body))
        assert event.outcome == PaymentOutcome.FAILED
        assert event.checkout_session_id == "cs_test_1"

    def test_payment_intent_failure_is_not_terminal(self, gateway, sign_webhook):
        order_id = uuid4()
        body = json.dumps(
            {
                "id": "evt_2",
                "type": "payment_intent.payment_failed",
                "data": {
                    "object": {"id": "pi_2", "metadata": {"order_id": str(order_id)}}
                },
            }
        )
        event = gateway.parse_webhook(body.encode(), sign_webhook(body))
        assert event.outcome is None
        assert event.order_id is None

    def test_other_events_ignored(self, gateway, sign_webhook):
        body = json.dumps(
            {"id": "evt_3", "type": "customer.created", "data": {"object": {"id": "cus"}}}
        )
        event = gateway.parse_webhook(body.encode(), sign_webhook(body))
        assert event.outcome is None
        assert event.order_id is None

    def test_missing_signature(self, gateway, stripe_event):
        with pytest.raises(WebhookVerificationError):
            gateway.parse_webhook(stripe_event().encode(), None)

    def test_wrong_secret(self, gateway, sign_webhook, stripe_event):
        body = stripe_event()
        with pytest.raises(WebhookVerificationError):
            gateway.parse_webhook(body.encode(), sign_webhook(body, secret="whsec_other"))

    def test_tampered_body(self, gateway, sign_webhook, stripe_event):
        signature = sign_webhook(stripe_event(payment_status="unpaid"))
        with pytest.raises(WebhookVerificationError):
            gateway.parse_webhook(stripe_event().encode(), signature)

    def test_stale_timestamp(self, gateway, sign_webhook, stripe_event):
        body = stripe_event()
        signature = sign_webhook(body, timestamp=int(time.time()) - 3600)
        with pytest.raises(WebhookVerificationError):
            gateway.parse_webhook(body.encode(), signature)

    def test_garbage_header(self, gateway, stripe_event):
        with pytest.raises(WebhookVerificationError):
            gateway.parse_webhook(stripe_event().encode(), "not-a-signature")

    def test_malformed_body(self, gateway, sign_webhook):
        body = json.dumps({"id": "evt_4", "type": "checkout.session.completed"})
        with pytest.raises(WebhookPayloadError):
            gateway.parse_webhook(body.encode(), sign_webhook(body))

    def test_invalid_order_id(self, gateway, sign_webhook):
        body = json.dumps(
            {
                "id": "evt_5",
                "type": "checkout.session.completed",
                "data": {
                    "object": {
                        "id": "cs_5",
                        "payment_status": "paid",
                        "metadata": {"order_id": "not-a-uuid"},
                    }
                },
            }
        )
        with pytest.raises(WebhookPayloadError):
            gateway.parse_webhook(body.encode(), sign_webhook(body))

    def test_not_json(self, gateway, sign_webhook):
        body = "this is not json"
        with pytest.raises(WebhookPayloadError):
            gateway.parse_webhook(body.encode(), sign_webhook(body))
