"""Order lifecycle event handlers that e-mail the customer.

Handlers run on the in-memory bus after the order transaction commits
and hand delivery to Celery, so a slow or failing provider never blocks
checkout or the payment callback.
"""

from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

import structlog

from modules.notifications.notifier import ORDER_CONFIRMATION, ORDER_STATUS
from modules.notifications.tasks import send_email
from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.events import (
    OrderCancelled,
    OrderPaid,
    OrderPaymentFailed,
    OrderPlaced,
    OrderStatusChanged,
)
from modules.orders.models import Order
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


def order_email_fields(order: Order) -> Dict[str, Any]:
    """JSON-safe template context for order e-mails."""
    user = order.user
    profile = getattr(user, "profile", None)
    customer_name = (
        getattr(profile, "full_name", "") or user.get_full_name() or user.username
    )
    return {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "customer_name": customer_name,
        "status": order.status,
        "status_label": order.get_status_display(),
        "payment_method": order.get_payment_method_display(),
        "total": str(order.total_amount),
        "shipping": order.shipping_snapshot,
        "tracking_number": order.tracking_number,
        "estimated_delivery": (
            order.estimated_delivery.isoformat() if order.estimated_delivery else ""
        ),
        "items": [
            {
                "name": item.product.name,
                "quantity": item.quantity,
                "unit_price": str(item.unit_price),
                "subtotal": str(item.subtotal),
            }
            for item in order.items.all()
        ],
    }


def _load_order(order_id: UUID) -> Optional[Order]:
    return (
        Order.objects.select_related("user", "user__profile")
        .prefetch_related("items__product")
        .filter(id=order_id)
        .first()
    )


def _dispatch(template: str, event: DomainEvent, **overrides: Any) -> None:
    order = _load_order(event.aggregate_id)
    log = logger.bind(
        order_id=str(event.aggregate_id),
        event_name=event.event_name,
        template=template,
    )
    if order is None:
        log.warning("notification.order_missing")
        return
    if not order.user.email:
        log.info("notification.skipped_no_email")
        return
    fields = order_email_fields(order)
    fields.update(overrides)
    send_email.delay(template, order.user.email, fields)
    log.info("notification.queued")


class OrderConfirmationHandler:
    """Paid card orders and placed cash orders get a confirmation."""

    def handle(self, event: DomainEvent) -> None:
        if isinstance(event, OrderPlaced) and event.payment_method != PaymentMethod.CASH:
            return
        _dispatch(ORDER_CONFIRMATION, event)


class OrderStatusEmailHandler:
    """Status changes, cancellations and failed payments."""

    def handle(self, event: DomainEvent) -> None:
        if isinstance(event, OrderStatusChanged):
            _dispatch(ORDER_STATUS, event)
        elif isinstance(event, OrderCancelled):
            _dispatch(ORDER_STATUS, event, reason=event.reason)
        elif isinstance(event, OrderPaymentFailed):
            _dispatch(
                ORDER_STATUS,
                event,
                status=OrderStatus.FAILED.value,
                status_label="Payment failed",
            )


confirmation_handler = OrderConfirmationHandler()
status_handler = OrderStatusEmailHandler()


def register_handlers() -> None:
    event_bus.subscribe(OrderPaid, confirmation_handler)
    event_bus.subscribe(OrderPlaced, confirmation_handler)
    event_bus.subscribe(OrderStatusChanged, status_handler)
    event_bus.subscribe(OrderCancelled, status_handler)
    event_bus.subscribe(OrderPaymentFailed, status_handler)
