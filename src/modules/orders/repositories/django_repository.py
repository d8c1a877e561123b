"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  Writes do
not open their own transaction beyond a savepoint: the Service Layer
defines the unit of work, so an order, its items and the stock
decrements commit or roll back together.

Concurrency control on status and payment updates uses
``select_for_update()`` (no ``version`` field exists on the model).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.core.outbox import dispatch_on_commit, record_events
from modules.orders.constants import PaymentMethod
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

ORDER_EVENTS_TOPIC = "orders"


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items.

        ``data`` keys:
        - ``user_id``, ``total_amount``, ``items`` (required)
        - ``shipping_address_id``, ``shipping_snapshot``,
          ``payment_method``, ``idempotency_key``, ``notes`` (optional)

        The total is computed by the caller from authoritative prices and
        stored as given.
        """
        order = Order(
            user_id=data["user_id"],
            total_amount=data["total_amount"],
            shipping_address_id=data.get("shipping_address_id"),
            shipping_snapshot=data.get("shipping_snapshot", ""),
            payment_method=data.get("payment_method", PaymentMethod.CARD),
            idempotency_key=data.get("idempotency_key"),
            notes=data.get("notes", ""),
        )
        order.save()

        items = data["items"]
        for item_data in items:
            OrderItem(
                order=order,
                product_id=item_data["product_id"],
                quantity=item_data["quantity"],
                unit_price=item_data["unit_price"],
            ).save()

        logger.info(
            "order.created",
            order_id=str(order.id),
            user_id=order.user_id,
            item_count=len(items),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Uses ``select_related`` for the user and address FKs and
        ``prefetch_related`` for items, items->product and status history.
        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.alive()
                .select_related("user", "shipping_address")
                .prefetch_related("items__product", "status_history")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> "models.QuerySet[Order]":
        """List orders with optional filters and eager-loaded relations.

        Returns a queryset so the API layer can filter, order and paginate.
        """
        queryset = (
            Order.objects.alive()
            .select_related("user")
            .prefetch_related("items__product")
        )
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.select_for_update(of=("self",))
                .select_related("user")
                .filter(id=id, deleted_at__isnull=True)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_by_idempotency_key(self, user_id: int, key: str) -> Optional[Order]:
        return (
            Order.objects.select_related("user", "shipping_address")
            .prefetch_related("items__product", "status_history")
            .filter(user_id=user_id, idempotency_key=key)
            .first()
        )

    def list_items(self, order_id: UUID) -> List[OrderItem]:
        return list(OrderItem.objects.filter(order_id=order_id).order_by("product_id"))

    # ------------------------------------------------------------------
    # Save / Delete (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist an order and move its pending events into the outbox.

        Events reach the in-process bus only after the outermost
        transaction commits.
        """
        entity.save()

        events = entity.domain_events
        if events:
            record_events(events, topic=ORDER_EVENTS_TOPIC)
            dispatch_on_commit(events)
        entity.clear_domain_events()

        logger.info("order.saved", order_id=str(entity.id), event_count=len(events))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Soft-delete an order by ID."""
        order = self.get_by_id(id)
        if not order:
            return False
        order.delete()
        logger.info("order.soft_deleted", order_id=str(id))
        return True

    # ------------------------------------------------------------------
    # Order-specific queries
    # ------------------------------------------------------------------

    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=status,
            notes=notes,
            user_id=user_id,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=status,
        )
        return history

    def find_id_by_payment_reference(
        self, payment_reference: str = "", checkout_session_id: str = ""
    ) -> Optional[UUID]:
        lookup = models.Q()
        if payment_reference:
            lookup |= models.Q(payment_reference=payment_reference)
            lookup |= models.Q(checkout_session_id=payment_reference)
        if checkout_session_id:
            lookup |= models.Q(checkout_session_id=checkout_session_id)
        if not lookup:
            return None
        return Order.objects.filter(lookup).values_list("id", flat=True).first()
