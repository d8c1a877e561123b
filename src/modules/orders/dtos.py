"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``PlaceOrderDTO``: input for checkout (cart, address, payment method).
- ``UpdateOrderStatusDTO``: admin status change with shipping details.
- ``PlacementResult``: what checkout hands back to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from modules.cart import Cart
from modules.orders.constants import OrderStatus, PaymentMethod

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.payments.dtos import PaymentSession


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class PlaceOrderDTO(BaseModel):
    """Immutable DTO for a checkout request.

    ``user_id`` and ``shipping_address_id`` are optional at this level so
    the service can report ``Unauthenticated`` and ``NoAddressSelected``
    as domain errors instead of schema errors.  Cart prices are display
    snapshots only; the service re-reads them from the catalog.
    """

    model_config = ConfigDict(frozen=True)

    user_id: Optional[int] = None
    cart: Cart = Field(default_factory=Cart)
    shipping_address_id: Optional[UUID] = None
    payment_method: str = PaymentMethod.CARD
    idempotency_key: Optional[str] = Field(default=None, max_length=255)
    notes: str = ""

    @field_validator("payment_method")
    @classmethod
    def payment_method_must_be_known(cls, v: str) -> str:
        if v not in PaymentMethod.values:
            raise ValueError(
                f"Payment method must be one of: {', '.join(PaymentMethod.values)}."
            )
        return v

    @field_validator("idempotency_key")
    @classmethod
    def blank_key_means_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


class UpdateOrderStatusDTO(BaseModel):
    """Immutable DTO for an administrator's status change."""

    model_config = ConfigDict(frozen=True)

    status: str
    notes: str = ""
    tracking_number: Optional[str] = Field(default=None, max_length=100)
    estimated_delivery: Optional[date] = None

    @field_validator("status")
    @classmethod
    def status_must_be_known(cls, v: str) -> str:
        normalized = v.strip().lower()
        if normalized not in OrderStatus.values:
            raise ValueError(f"Unknown order status '{v}'.")
        return normalized


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PlacementResult:
    """Outcome of a checkout.

    ``cart`` is the cleared cart.  ``payment_session`` is ``None`` for cash
    orders, for replays and when the payment provider could not be reached
    (``payment_session_error`` then explains why and the order stays
    pending so the session can be requested again).
    """

    order: Order
    cart: Cart
    payment_session: Optional[PaymentSession] = None
    payment_session_error: Optional[str] = None
    replayed: bool = False
