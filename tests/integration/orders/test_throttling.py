"""Integration tests for throttling on the order API."""

from __future__ import annotations

import pytest
from django.conf import settings
from rest_framework.throttling import SimpleRateThrottle

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


@pytest.fixture()
def tight_rates(monkeypatch):
    """Checkout at 5/minute, listing at 10/minute."""
    rates = {
        **settings.REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"],
        "checkout": "5/minute",
        "order_listing": "10/minute",
    }
    # Rates are read once into a class attribute when DRF is imported.
    monkeypatch.setattr(SimpleRateThrottle, "THROTTLE_RATES", rates)
    return rates


def test_checkout_is_throttled(
    auth_client, address, product, checkout_payload, tight_rates
):
    payload = checkout_payload(address, [(product, 1)], payment_method="cash")

    for _ in range(5):
        response = auth_client.post(URL, payload, format="json")
        assert response.status_code == 201

    response = auth_client.post(URL, payload, format="json")
    assert response.status_code == 429
    assert response.json()["errors"][0]["code"] == "throttled"
    assert "Retry-After" in response


def test_order_listing_has_higher_limit(auth_client, tight_rates):
    for _ in range(10):
        response = auth_client.get(URL)
        assert response.status_code == 200

    assert auth_client.get(URL).status_code == 429


def test_checkout_and_listing_are_counted_separately(
    auth_client, address, product, checkout_payload, tight_rates
):
    payload = checkout_payload(address, [(product, 1)], payment_method="cash")
    for _ in range(5):
        auth_client.post(URL, payload, format="json")

    assert auth_client.get(URL).status_code == 200
