from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import patch

import pytest
from django.core.cache import cache


@pytest.fixture(autouse=True)
def stripe_checkout():
    """Stand-in for Stripe Checkout; the API wires the real gateway."""
    counter = {"n": 0}

    def _create(**kwargs):
        counter["n"] += 1
        session_id = f"cs_api_{counter['n']}"
        return SimpleNamespace(
            id=session_id, url=f"https://checkout.stripe.test/{session_id}"
        )

    with patch("stripe.checkout.Session.create", side_effect=_create) as mocked:
        yield mocked


@pytest.fixture(autouse=True)
def _clear_throttle_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def checkout_payload():
    """Body for ``POST /api/v1/orders/``: ``checkout_payload(address, [(product, qty)])``."""

    def _payload(address, lines, payment_method="card", notes=""):
        return {
            "items": [
                {
                    "product_id": str(item.id),
                    "quantity": quantity,
                    "price": str(item.price),
                    "name": item.name,
                }
                for item, quantity in lines
            ],
            "shipping_address_id": str(address.id) if address is not None else None,
            "payment_method": payment_method,
            "notes": notes,
        }

    return _payload
