"""E2E checkout flow: admin stocks a product, a shopper buys it."""

from __future__ import annotations

import json
from uuid import uuid4

import pytest

pytestmark = [pytest.mark.e2e]


def _headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}


def _post(context, url, token, payload):
    return context.post(url, data=json.dumps(payload), headers=_headers(token))


def test_cash_checkout_and_retrieve(api_request_context, admin_token, auth_token):
    product_response = _post(
        api_request_context,
        "/api/v1/products/",
        admin_token,
        {
            "name": f"E2E Pen {uuid4().hex[:6]}",
            "price": "2.50",
            "stock_quantity": 20,
            "description": "Created by the e2e suite",
        },
    )
    assert product_response.status == 201
    product_id = product_response.json()["id"]

    address_response = _post(
        api_request_context,
        "/api/v1/addresses/",
        auth_token,
        {
            "name": "Home",
            "street": "1 Main Street",
            "city": "Lisbon",
            "postal_code": "1100-001",
            "country": "Portugal",
        },
    )
    assert address_response.status == 201
    address = address_response.json()
    assert address["is_default"] is True

    order_response = _post(
        api_request_context,
        "/api/v1/orders/",
        auth_token,
        {
            "items": [{"product_id": product_id, "quantity": 2}],
            "shipping_address_id": address["id"],
            "payment_method": "cash",
            "notes": "Leave at the door",
        },
    )
    assert order_response.status == 201
    body = order_response.json()
    order = body["order"]
    assert order["total_amount"] == "5.00"
    assert body["cart"]["items"] == []
    assert body["payment_session"] is None

    retrieved = api_request_context.get(
        f"/api/v1/orders/{order['id']}/", headers=_headers(auth_token)
    )
    assert retrieved.status == 200
    data = retrieved.json()
    assert data["order_number"] == order["order_number"]
    assert data["items"][0]["product_id"] == product_id
    assert data["items"][0]["quantity"] == 2

    product = api_request_context.get(f"/api/v1/products/{product_id}/")
    assert product.json()["stock_quantity"] == 18

    cancelled = _post(
        api_request_context,
        f"/api/v1/orders/{order['id']}/cancel/",
        admin_token,
        {"notes": "E2E cleanup"},
    )
    assert cancelled.status == 200
    product = api_request_context.get(f"/api/v1/products/{product_id}/")
    assert product.json()["stock_quantity"] == 20


def test_checkout_without_address_is_rejected(api_request_context, auth_token):
    response = _post(
        api_request_context,
        "/api/v1/orders/",
        auth_token,
        {"items": [{"product_id": str(uuid4()), "quantity": 1}], "payment_method": "cash"},
    )

    assert response.status == 400
