"""Integration tests for product filtering, search, ordering, and pagination."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.catalog.models import Category, ProductStatus

pytestmark = pytest.mark.integration

URL = "/api/v1/products/"


@pytest.fixture()
def product_batch(make_product):
    pens = Category.objects.create(name="Pens")
    desks = Category.objects.create(name="Desks")
    return {
        "basic": make_product(name="Basic Pen", price="2.50", stock=100, category=pens),
        "premium": make_product(
            name="Premium Fountain Pen", price="150.00", stock=3, category=pens
        ),
        "desk": make_product(name="Standing Desk", price="199.90", stock=0, category=desks),
        "retired": make_product(
            name="Retired Desk", price="120.00", status=ProductStatus.INACTIVE
        ),
        "pens": pens,
        "desks": desks,
    }


def _names(response):
    return [row["name"] for row in response.json()["results"]]


class TestProductFilters:
    def test_filter_price_range(self, api_client, product_batch):
        response = api_client.get(URL, {"min_price": "100", "max_price": "200"})
        assert response.status_code == 200
        assert _names(response) == ["Premium Fountain Pen", "Standing Desk"]

    def test_filter_by_category(self, api_client, product_batch):
        response = api_client.get(URL, {"category": str(product_batch["desks"].id)})
        assert _names(response) == ["Standing Desk"]

    def test_filter_by_name(self, api_client, product_batch):
        response = api_client.get(URL, {"name": "pen"})
        assert _names(response) == ["Basic Pen", "Premium Fountain Pen"]

    def test_filter_in_stock(self, api_client, product_batch):
        in_stock = api_client.get(URL, {"in_stock": "true"})
        sold_out = api_client.get(URL, {"in_stock": "false"})
        assert "Standing Desk" not in _names(in_stock)
        assert _names(sold_out) == ["Standing Desk"]

    def test_search_product(self, api_client, product_batch):
        response = api_client.get(URL, {"search": "Premium"})
        assert _names(response) == ["Premium Fountain Pen"]

    def test_inactive_hidden_from_customers(self, api_client, product_batch):
        assert "Retired Desk" not in _names(api_client.get(URL))

    def test_inactive_visible_to_admins(self, admin_client, product_batch):
        assert "Retired Desk" in _names(admin_client.get(URL))


class TestProductOrdering:
    def test_default_ordering_is_by_name(self, api_client, product_batch):
        assert _names(api_client.get(URL)) == [
            "Basic Pen",
            "Premium Fountain Pen",
            "Standing Desk",
        ]

    def test_ordering_by_price(self, api_client, product_batch):
        response = api_client.get(URL, {"ordering": "price"})
        prices = [Decimal(row["price"]) for row in response.json()["results"]]
        assert prices == sorted(prices)

    def test_ordering_by_price_desc(self, api_client, product_batch):
        response = api_client.get(URL, {"ordering": "-price"})
        assert _names(response)[0] == "Standing Desk"

    def test_combined_filters_pagination(self, api_client, product_batch):
        response = api_client.get(
            URL, {"category": str(product_batch["pens"].id), "ordering": "-price", "page_size": 1}
        )
        data = response.json()
        assert data["count"] == 2
        assert _names(response) == ["Premium Fountain Pen"]
        assert data["next"] is not None
