"""Integration tests for the checkout endpoint.

Covers:
- Success 201: order, cleared cart and hosted payment session.
- Cash orders: no payment session, payment stays pending.
- Validation 400: malformed lines, empty cart, missing or foreign address.
- Business 400/409: unknown or inactive product, insufficient stock.
- Provider outage: the order is kept and the session error reported.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest
import stripe

from modules.catalog.models import Product, ProductStatus
from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.models import Order, OrderStatusHistory

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


def _stock(product):
    return Product.objects.get(id=product.id).stock_quantity


class TestCheckoutSuccess:
    def test_card_checkout_returns_201(
        self, auth_client, user, address, product, checkout_payload, stripe_checkout
    ):
        response = auth_client.post(
            URL, checkout_payload(address, [(product, 2)]), format="json"
        )

        assert response.status_code == 201
        body = response.json()
        order = body["order"]
        assert order["status"] == OrderStatus.PENDING
        assert order["payment_status"] == PaymentStatus.PENDING
        assert order["payment_method"] == "card"
        assert Decimal(order["total_amount"]) == Decimal("20.00")
        assert order["user_id"] == user.id
        assert order["shipping_address_id"] == str(address.id)
        assert "Lisbon" in order["shipping_snapshot"]
        assert len(order["items"]) == 1
        assert order["items"][0]["product_name"] == "Product A"
        assert order["items"][0]["quantity"] == 2
        assert Decimal(order["items"][0]["unit_price"]) == Decimal("10.00")
        assert [h["new_status"] for h in order["status_history"]] == ["pending"]

        assert body["cart"] == {"items": [], "total": "0.00"}
        assert body["payment_session"] == {
            "session_id": "cs_api_1",
            "url": "https://checkout.stripe.test/cs_api_1",
        }
        assert body["payment_session_error"] is None
        assert _stock(product) == 8

        stripe_checkout.assert_called_once()
        kwargs = stripe_checkout.call_args.kwargs
        assert kwargs["metadata"] == {"order_id": order["id"]}
        assert kwargs["customer_email"] == "alice@example.com"
        assert kwargs["line_items"][0]["price_data"]["unit_amount"] == 1000
        assert kwargs["line_items"][0]["quantity"] == 2

        saved = Order.objects.get(id=order["id"])
        assert saved.checkout_session_id == "cs_api_1"

    def test_cash_checkout_has_no_session(
        self, auth_client, address, product, checkout_payload, stripe_checkout
    ):
        response = auth_client.post(
            URL,
            checkout_payload(address, [(product, 1)], payment_method="cash"),
            format="json",
        )

        assert response.status_code == 201
        body = response.json()
        assert body["order"]["payment_method"] == "cash"
        assert body["order"]["payment_status"] == PaymentStatus.PENDING
        assert body["payment_session"] is None
        stripe_checkout.assert_not_called()

    def test_cart_prices_are_display_only(
        self, auth_client, address, product, checkout_payload
    ):
        payload = checkout_payload(address, [(product, 1)])
        payload["items"][0]["price"] = "0.01"

        response = auth_client.post(URL, payload, format="json")

        assert response.status_code == 201
        assert Decimal(response.json()["order"]["total_amount"]) == Decimal("10.00")

    def test_duplicate_lines_are_merged(
        self, auth_client, address, product, checkout_payload
    ):
        payload = checkout_payload(address, [(product, 1), (product, 2)])

        response = auth_client.post(URL, payload, format="json")

        assert response.status_code == 201
        items = response.json()["order"]["items"]
        assert len(items) == 1
        assert items[0]["quantity"] == 3
        assert _stock(product) == 7

    def test_several_products(
        self, auth_client, address, product, make_product, checkout_payload
    ):
        other = make_product(name="Product B", price="2.50", stock=4)

        response = auth_client.post(
            URL, checkout_payload(address, [(product, 1), (other, 4)]), format="json"
        )

        assert response.status_code == 201
        assert Decimal(response.json()["order"]["total_amount"]) == Decimal("20.00")
        assert _stock(product) == 9
        assert _stock(other) == 0

    def test_notes_are_stored(self, auth_client, address, product, checkout_payload):
        response = auth_client.post(
            URL,
            checkout_payload(address, [(product, 1)], notes="Leave at the door"),
            format="json",
        )
        assert response.status_code == 201
        assert response.json()["order"]["notes"] == "Leave at the door"


class TestCheckoutValidation:
    def test_unauthenticated_returns_401(self, api_client, address, product, checkout_payload):
        response = api_client.post(
            URL, checkout_payload(address, [(product, 1)]), format="json"
        )
        assert response.status_code == 401
        assert not Order.objects.exists()

    def test_zero_quantity_returns_400(
        self, auth_client, address, product, checkout_payload
    ):
        response = auth_client.post(
            URL, checkout_payload(address, [(product, 0)]), format="json"
        )

        assert response.status_code == 400
        errors = response.json()["errors"]
        assert errors[0]["attr"] == "items.0.quantity"
        assert _stock(product) == 10

    def test_bad_product_id_returns_400(self, auth_client, address, checkout_payload):
        payload = checkout_payload(address, [])
        payload["items"] = [{"product_id": "not-a-uuid", "quantity": 1}]

        response = auth_client.post(URL, payload, format="json")

        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "items.0.product_id"

    def test_unknown_payment_method_returns_400(
        self, auth_client, address, product, checkout_payload
    ):
        response = auth_client.post(
            URL,
            checkout_payload(address, [(product, 1)], payment_method="bitcoin"),
            format="json",
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "payment_method"

    def test_empty_cart_returns_400(self, auth_client, address, checkout_payload):
        response = auth_client.post(URL, checkout_payload(address, []), format="json")

        assert response.status_code == 400
        assert response.json()["code"] == "EmptyCart"
        assert not Order.objects.exists()

    def test_missing_address_returns_400(self, auth_client, product, checkout_payload):
        response = auth_client.post(
            URL, checkout_payload(None, [(product, 1)]), format="json"
        )

        assert response.status_code == 400
        assert response.json()["code"] == "NoAddressSelected"
        assert _stock(product) == 10

    def test_foreign_address_returns_400(
        self, auth_client, other_user, make_address, product, checkout_payload
    ):
        foreign = make_address(other_user, name="Bob's place")

        response = auth_client.post(
            URL, checkout_payload(foreign, [(product, 1)]), format="json"
        )

        assert response.status_code == 400
        assert response.json()["code"] == "NoAddressSelected"
        assert not Order.objects.exists()

    def test_unknown_product_returns_400(self, auth_client, address, checkout_payload):
        payload = checkout_payload(address, [])
        payload["items"] = [{"product_id": str(uuid.uuid4()), "quantity": 1}]

        response = auth_client.post(URL, payload, format="json")

        assert response.status_code == 400
        assert response.json()["code"] == "UnknownProduct"

    def test_soft_deleted_product_is_unknown(
        self, auth_client, address, product, checkout_payload
    ):
        product.delete()

        response = auth_client.post(
            URL, checkout_payload(address, [(product, 1)]), format="json"
        )

        assert response.status_code == 400
        assert response.json()["code"] == "UnknownProduct"

    def test_inactive_product_returns_400(
        self, auth_client, address, make_product, checkout_payload
    ):
        retired = make_product(name="Retired", status=ProductStatus.INACTIVE)

        response = auth_client.post(
            URL, checkout_payload(address, [(retired, 1)]), format="json"
        )

        assert response.status_code == 400
        assert response.json()["code"] == "InactiveProduct"
        assert _stock(retired) == 10


class TestCheckoutStock:
    def test_insufficient_stock_returns_409(
        self, auth_client, address, make_product, checkout_payload
    ):
        scarce = make_product(name="Scarce", stock=1)

        response = auth_client.post(
            URL, checkout_payload(address, [(scarce, 2)]), format="json"
        )

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "StockInsufficient"
        assert body["product_id"] == str(scarce.id)
        assert body["product_name"] == "Scarce"
        assert body["requested"] == 2
        assert body["available"] == 1
        assert _stock(scarce) == 1
        assert not Order.objects.exists()
        assert not OrderStatusHistory.objects.exists()

    def test_exact_stock_succeeds(self, auth_client, address, make_product, checkout_payload):
        last = make_product(name="Last ones", stock=3)

        response = auth_client.post(
            URL, checkout_payload(address, [(last, 3)]), format="json"
        )

        assert response.status_code == 201
        assert _stock(last) == 0


class TestPaymentProviderOutage:
    def test_order_kept_when_session_fails(
        self, auth_client, address, product, checkout_payload, stripe_checkout
    ):
        stripe_checkout.side_effect = stripe.APIConnectionError("network down")

        response = auth_client.post(
            URL, checkout_payload(address, [(product, 1)]), format="json"
        )

        assert response.status_code == 201
        body = response.json()
        assert body["payment_session"] is None
        assert body["payment_session_error"] == (
            "The payment provider could not create a checkout session."
        )
        order = Order.objects.get(id=body["order"]["id"])
        assert order.status == OrderStatus.PENDING
        assert order.checkout_session_id == ""
        assert _stock(product) == 9
