"""Payment callback reconciliation.

Brings an order to a terminal payment outcome exactly once:

- the order row is locked, so two deliveries of the same callback are
  serialized and the second one sees the state the first one wrote;
- ``payment_status`` only moves ``pending -> paid | failed``; a replay
  of the outcome already recorded is a no-op and a different outcome on
  a settled order is logged and ignored;
- the domain event that drives the customer e-mail is recorded in the
  same transaction as the state change, so one applied transition
  produces one notification.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional
from uuid import UUID

import structlog
from django.db import models, transaction

from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.events import OrderPaid, OrderPaidAfterClose, OrderPaymentFailed
from modules.payments.dtos import PaymentOutcome

if TYPE_CHECKING:
    from modules.catalog.repositories.interfaces import IProductRepository
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.payments.dtos import PaymentEvent

logger = structlog.get_logger(__name__)


class ReconciliationResult(models.TextChoices):
    APPLIED = "applied", "Applied"
    DUPLICATE = "duplicate", "Duplicate"
    CONFLICT = "conflict", "Conflict"
    UNKNOWN_ORDER = "unknown_order", "Unknown order"
    IGNORED = "ignored", "Ignored"


class PaymentReconciliationService:
    """Receives repositories via constructor injection (DIP)."""

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository

    @transaction.atomic
    def reconcile(self, event: PaymentEvent) -> ReconciliationResult:
        log = logger.bind(
            event_id=event.event_id,
            event_type=event.event_type,
            outcome=event.outcome,
        )
        if event.outcome is None:
            log.info("payment.event_ignored")
            return ReconciliationResult.IGNORED

        order_id = self._resolve_order_id(event)
        order = self._order_repo.get_for_update(str(order_id)) if order_id else None
        if order is None:
            log.warning("payment.order_not_found", order_id=str(order_id or ""))
            return ReconciliationResult.UNKNOWN_ORDER

        log = log.bind(order_id=str(order.id), payment_status=order.payment_status)
        target = (
            PaymentStatus.PAID
            if event.outcome == PaymentOutcome.PAID
            else PaymentStatus.FAILED
        )
        if order.payment_status == target:
            log.info("payment.duplicate_callback")
            return ReconciliationResult.DUPLICATE
        if order.is_payment_settled:
            log.warning("payment.conflicting_callback", requested=target)
            return ReconciliationResult.CONFLICT

        if target == PaymentStatus.PAID:
            self._apply_paid(order, event)
        else:
            self._apply_failed(order, event)
        log.info("payment.reconciled", order_status=order.status)
        return ReconciliationResult.APPLIED

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _apply_paid(self, order: Order, event: PaymentEvent) -> None:
        old_status = order.status
        order.payment_status = PaymentStatus.PAID
        order.payment_reference = event.payment_reference
        if event.checkout_session_id and not order.checkout_session_id:
            order.checkout_session_id = event.checkout_session_id

        if not order.can_transition_to(OrderStatus.PROCESSING):
            self._record_paid_after_close(order, event)
            return

        order.status = OrderStatus.PROCESSING
        order.add_domain_event(
            OrderPaid(aggregate_id=order.id, payment_reference=event.payment_reference)
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.PROCESSING,
            notes="Payment confirmed",
            old_status=old_status,
        )

    def _record_paid_after_close(self, order: Order, event: PaymentEvent) -> None:
        """The money arrived but the order stays closed and needs a refund."""
        logger.warning(
            "payment.paid_on_closed_order",
            order_id=str(order.id),
            status=order.status,
            payment_reference=event.payment_reference,
        )
        order.add_domain_event(
            OrderPaidAfterClose(
                aggregate_id=order.id,
                payment_reference=event.payment_reference,
                order_status=order.status,
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=order.status,
            notes="Payment received after the order was closed; refund required",
            old_status=order.status,
        )

    def _apply_failed(self, order: Order, event: PaymentEvent) -> None:
        old_status = order.status
        order.payment_status = PaymentStatus.FAILED
        if event.payment_reference:
            order.payment_reference = event.payment_reference

        moved = order.can_transition_to(OrderStatus.FAILED)
        if moved:
            order.status = OrderStatus.FAILED
            # Stock reserved at placement goes back on the shelf.
            for item in self._order_repo.list_items(order.id):
                self._product_repo.release_stock(item.product_id, item.quantity)
            order.add_domain_event(
                OrderPaymentFailed(
                    aggregate_id=order.id, payment_reference=event.payment_reference
                )
            )
        self._order_repo.save(order)
        if moved:
            self._order_repo.add_history(
                order_id=order.id,
                status=OrderStatus.FAILED,
                notes="Payment failed",
                old_status=old_status,
            )

    def _resolve_order_id(self, event: PaymentEvent) -> Optional[UUID]:
        if event.order_id:
            return event.order_id
        return self._order_repo.find_id_by_payment_reference(
            payment_reference=event.payment_reference,
            checkout_session_id=event.checkout_session_id,
        )
