"""Integration tests for the wishlist endpoints."""

from __future__ import annotations

import uuid

import pytest

from modules.wishlist.models import WishlistItem

pytestmark = pytest.mark.integration

URL = "/api/v1/wishlist/"


def test_add_and_list(auth_client, product):
    response = auth_client.post(URL, {"product_id": str(product.id)}, format="json")

    assert response.status_code == 201
    assert response.json()["product"]["name"] == "Product A"
    listing = auth_client.get(URL).json()
    assert [row["product"]["id"] for row in listing] == [str(product.id)]


def test_add_is_idempotent(auth_client, user, product):
    auth_client.post(URL, {"product_id": str(product.id)}, format="json")
    auth_client.post(URL, {"product_id": str(product.id)}, format="json")

    assert WishlistItem.objects.filter(user=user).count() == 1


def test_newest_first(auth_client, product, make_product):
    later = make_product(name="Later")
    auth_client.post(URL, {"product_id": str(product.id)}, format="json")
    auth_client.post(URL, {"product_id": str(later.id)}, format="json")

    names = [row["product"]["name"] for row in auth_client.get(URL).json()]

    assert names == ["Later", "Product A"]


def test_unknown_product_returns_404(auth_client):
    response = auth_client.post(URL, {"product_id": str(uuid.uuid4())}, format="json")
    assert response.status_code == 404


def test_malformed_product_id_returns_400(auth_client):
    response = auth_client.post(URL, {"product_id": "abc"}, format="json")
    assert response.status_code == 400
    assert response.json()["errors"][0]["attr"] == "product_id"


def test_remove(auth_client, user, product):
    auth_client.post(URL, {"product_id": str(product.id)}, format="json")

    response = auth_client.delete(f"{URL}{product.id}/")

    assert response.status_code == 204
    assert not WishlistItem.objects.filter(user=user).exists()


def test_remove_missing_returns_404(auth_client, product):
    assert auth_client.delete(f"{URL}{product.id}/").status_code == 404
    assert auth_client.delete(f"{URL}not-a-uuid/").status_code == 404


def test_lists_are_private(auth_client, other_user, product):
    WishlistItem.objects.create(user=other_user, product=product)

    assert auth_client.get(URL).json() == []
    assert auth_client.delete(f"{URL}{product.id}/").status_code == 404
    assert WishlistItem.objects.filter(user=other_user).exists()
