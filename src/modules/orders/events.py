"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderPlaced(DomainEvent):
    """Raised when an order and its items have been committed."""

    payment_method: str = ""


@dataclass(frozen=True)
class OrderPaid(DomainEvent):
    """Raised once when the payment callback moves an order to ``paid``."""

    payment_reference: str = ""


@dataclass(frozen=True)
class OrderPaymentFailed(DomainEvent):
    """Raised once when the payment callback moves an order to ``failed``."""

    payment_reference: str = ""


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Raised when an order is cancelled."""

    reason: str = ""


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised when an admin moves an order along the state machine."""

    old_status: str = ""
    new_status: str = ""


@dataclass(frozen=True)
class OrderPaidAfterClose(DomainEvent):
    """Payment captured for an order that was already closed (e.g. cancelled).

    No confirmation goes to the customer; the outbox row is the record a
    refund is issued from.
    """

    payment_reference: str = ""
    order_status: str = ""
