"""Order repository interface.

Extends ``IRepository[Order]`` with methods required by the Order
aggregate: creation with items, status history tracking, row locks,
and look-ups by idempotency key or payment identifiers.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.orders.models import Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem children and
    OrderStatusHistory records.  Callers own the transaction.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Insert an order and its items.

        ``data`` must include ``user_id``, ``total_amount`` and ``items``
        (list of dicts with ``product_id``, ``quantity``, ``unit_price``).
        """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with prefetched items and status history."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Order]:
        """List orders with optional filters."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order holding a row lock until the transaction ends."""

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""

    @abstractmethod
    def get_by_idempotency_key(self, user_id: int, key: str) -> Optional[Order]:
        """Retrieve the order a user already placed with *key*."""

    @abstractmethod
    def list_items(self, order_id: UUID) -> List[Any]:
        """Items of an order, sorted by product id."""

    @abstractmethod
    def find_id_by_payment_reference(
        self, payment_reference: str = "", checkout_session_id: str = ""
    ) -> Optional[UUID]:
        """Resolve an order from the identifiers a payment callback carries."""
