from __future__ import annotations

import hashlib
import hmac
import json
import time
from decimal import Decimal
from typing import Callable, Iterable, Optional, Tuple

import pytest
from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.accounts.dtos import CreateAddressDTO
from modules.accounts.models import Address
from modules.accounts.repositories.django_repository import AddressDjangoRepository
from modules.accounts.services import AddressBookService
from modules.cart import Cart, add_item
from modules.catalog.models import Category, Product, ProductStatus
from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.orders.dtos import PlaceOrderDTO, PlacementResult
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.payments.dtos import PaymentSession
from modules.payments.exceptions import PaymentGatewayError
from modules.payments.gateways import IPaymentGateway

User = get_user_model()


class FakePaymentGateway(IPaymentGateway):
    """Records checkout requests; set ``fail = True`` to simulate an outage."""

    def __init__(self) -> None:
        self.sessions: list[dict] = []
        self.fail = False

    def create_checkout_session(self, order_id, line_items, customer_email=""):
        if self.fail:
            raise PaymentGatewayError("Payment provider unavailable.")
        self.sessions.append(
            {
                "order_id": order_id,
                "line_items": list(line_items),
                "customer_email": customer_email,
            }
        )
        number = len(self.sessions)
        return PaymentSession(
            session_id=f"cs_test_{number}",
            url=f"https://checkout.stripe.test/cs_test_{number}",
        )

    def parse_webhook(self, payload, signature):
        raise NotImplementedError


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@pytest.fixture()
def user():
    return User.objects.create_user(
        username="alice", email="alice@example.com", password="testpass123"
    )


@pytest.fixture()
def other_user():
    return User.objects.create_user(
        username="bob", email="bob@example.com", password="testpass123"
    )


@pytest.fixture()
def admin_user():
    return User.objects.create_user(
        username="storeadmin",
        email="admin@example.com",
        password="testpass123",
        is_staff=True,
    )


@pytest.fixture()
def auth_client(user):
    """APIClient force-authenticated as ``user``."""
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def admin_client(admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@pytest.fixture()
def category():
    return Category.objects.create(name="Office", description="Desk supplies")


@pytest.fixture()
def make_product() -> Callable[..., Product]:
    def _make(
        name: str = "Widget",
        price: str = "10.00",
        stock: int = 10,
        status: str = ProductStatus.ACTIVE,
        category: Optional[Category] = None,
    ) -> Product:
        return Product.objects.create(
            name=name,
            price=Decimal(price),
            stock_quantity=stock,
            status=status,
            category=category,
        )

    return _make


@pytest.fixture()
def product(make_product):
    return make_product(name="Product A", price="10.00", stock=10)


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------


@pytest.fixture()
def address_book():
    return AddressBookService(repository=AddressDjangoRepository())


@pytest.fixture()
def make_address(address_book) -> Callable[..., Address]:
    def _make(owner, name: str = "Home", is_default: bool = False) -> Address:
        return address_book.add_address(
            owner.id,
            CreateAddressDTO(
                name=name,
                street="1 Main Street",
                city="Lisbon",
                postal_code="1100-001",
                country="Portugal",
                is_default=is_default,
            ),
        )

    return _make


@pytest.fixture()
def address(user, make_address):
    return make_address(user)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def payment_gateway():
    return FakePaymentGateway()


@pytest.fixture()
def order_service(payment_gateway):
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        address_repository=AddressDjangoRepository(),
        payment_gateway=payment_gateway,
    )


def build_cart(lines: Iterable[Tuple[Product, int]]) -> Cart:
    cart = Cart()
    for item, quantity in lines:
        cart = add_item(cart, item.id, item.price, quantity, item.name)
    return cart


@pytest.fixture()
def place_order(order_service) -> Callable[..., PlacementResult]:
    """Checkout helper: ``place_order(user, address, [(product, qty)])``."""

    def _place(
        owner,
        shipping_address: Address,
        lines: Iterable[Tuple[Product, int]],
        payment_method: str = "card",
        idempotency_key: Optional[str] = None,
    ) -> PlacementResult:
        return order_service.place_order(
            PlaceOrderDTO(
                user_id=owner.id,
                cart=build_cart(lines),
                shipping_address_id=shipping_address.id,
                payment_method=payment_method,
                idempotency_key=idempotency_key,
            )
        )

    return _place


# ---------------------------------------------------------------------------
# Payment callbacks
# ---------------------------------------------------------------------------


@pytest.fixture()
def sign_webhook() -> Callable[..., str]:
    """Build a ``Stripe-Signature`` header the way Stripe computes it."""

    def _sign(
        payload: str,
        secret: Optional[str] = None,
        timestamp: Optional[int] = None,
    ) -> str:
        secret = secret or settings.STRIPE_WEBHOOK_SECRET
        timestamp = int(time.time()) if timestamp is None else timestamp
        digest = hmac.new(
            secret.encode("utf-8"),
            f"{timestamp}.{payload}".encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()
        return f"t={timestamp},v1={digest}"

    return _sign


@pytest.fixture()
def stripe_event() -> Callable[..., str]:
    """JSON body of a Checkout Session webhook for *order*."""

    def _event(
        order=None,
        event_type: str = "checkout.session.completed",
        payment_status: str = "paid",
        event_id: str = "evt_test_1",
        session_id: str = "cs_test_1",
        payment_intent: Optional[str] = "pi_test_1",
    ) -> str:
        metadata = {"order_id": str(order.id)} if order is not None else {}
        return json.dumps(
            {
                "id": event_id,
                "object": "event",
                "type": event_type,
                "data": {
                    "object": {
                        "id": session_id,
                        "object": "checkout.session",
                        "payment_status": payment_status,
                        "payment_intent": payment_intent,
                        "metadata": metadata,
                    }
                },
            }
        )

    return _event
