"""Order service layer (Use Cases).

Orchestrates checkout, payment-session hand-off, status management and
cancellation.  The service defines the unit-of-work boundary.

Placement rules:
- Preconditions (user, non-empty cart, owned shipping address) are
  checked before anything is read from the catalog.
- Prices are re-read from the catalog; cart prices are display only.
- Order, items and stock decrements share one ``transaction.atomic``
  block.  Stock goes down through a conditional ``UPDATE`` in product-id
  order, so a line that would drive stock negative rolls back the order,
  its items and every earlier decrement.
- The payment session is opened only after the commit.  If the provider
  is unreachable the order stays pending and the session can be
  requested again.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import UUID

import structlog
from django.db import DatabaseError, IntegrityError, transaction

from modules.cart import CartLine, clear
from modules.catalog.models import ProductStatus
from modules.orders.constants import (
    ADMIN_RESERVED_STATES,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from modules.orders.dtos import PlacementResult
from modules.orders.events import OrderCancelled, OrderPlaced, OrderStatusChanged
from modules.orders.exceptions import (
    EmptyCart,
    InactiveProduct,
    InvalidOrderStatus,
    NoAddressSelected,
    OrderNotFound,
    PersistenceFailure,
    StockInsufficient,
    Unauthenticated,
    UnknownProduct,
)
from modules.payments.dtos import CheckoutLineItem
from modules.payments.exceptions import PaymentGatewayError

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.accounts.models import Address
    from modules.accounts.repositories.interfaces import IAddressRepository
    from modules.catalog.models import Product
    from modules.catalog.repositories.interfaces import IProductRepository
    from modules.orders.dtos import PlaceOrderDTO, UpdateOrderStatusDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.payments.dtos import PaymentSession
    from modules.payments.gateways import IPaymentGateway

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories and the payment gateway via constructor
    injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        address_repository: IAddressRepository,
        payment_gateway: IPaymentGateway,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._address_repo = address_repository
        self._gateway = payment_gateway

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    def place_order(self, dto: PlaceOrderDTO) -> PlacementResult:
        """Turn a cart into a persisted order.

        Raises:
            Unauthenticated: no user.
            EmptyCart: the cart has no lines.
            NoAddressSelected: no address, or not one of the user's.
            UnknownProduct / InactiveProduct: a line cannot be sold.
            StockInsufficient: a line asks for more than is available.
            PersistenceFailure: the database rejected the write.
        """
        if dto.user_id is None:
            raise Unauthenticated("Sign in to place an order.")
        log = logger.bind(user_id=dto.user_id)
        if dto.cart.is_empty:
            raise EmptyCart("The cart is empty.")
        if dto.shipping_address_id is None:
            raise NoAddressSelected("Select a shipping address.")

        if dto.idempotency_key:
            existing = self._order_repo.get_by_idempotency_key(
                dto.user_id, dto.idempotency_key
            )
            if existing:
                log.info("order.idempotency_hit", order_id=str(existing.id))
                return PlacementResult(order=existing, cart=clear(dto.cart), replayed=True)

        address = self._address_repo.get_for_user(dto.shipping_address_id, dto.user_id)
        if address is None:
            raise NoAddressSelected(
                f"Address {dto.shipping_address_id} is not one of your addresses."
            )

        lines = sorted(dto.cart.lines, key=lambda line: str(line.product_id))
        products = self._product_repo.get_many(line.product_id for line in lines)
        for line in lines:
            self._check_line(line, products.get(line.product_id))

        total = sum(
            (products[line.product_id].price * line.quantity for line in lines),
            Decimal("0.00"),
        )
        log.info("order.placement_started", line_count=len(lines), total=str(total))

        try:
            order = self._persist_order(dto, address, lines, products, total)
        except IntegrityError as exc:
            # Two requests with the same key raced; the loser replays the winner.
            if dto.idempotency_key:
                existing = self._order_repo.get_by_idempotency_key(
                    dto.user_id, dto.idempotency_key
                )
                if existing:
                    log.info("order.idempotency_race", order_id=str(existing.id))
                    return PlacementResult(
                        order=existing, cart=clear(dto.cart), replayed=True
                    )
            log.error("order.persistence_failed", error=str(exc))
            raise PersistenceFailure("The order could not be saved.") from exc
        except DatabaseError as exc:
            log.error("order.persistence_failed", error=str(exc))
            raise PersistenceFailure("The order could not be saved.") from exc

        log = log.bind(order_id=str(order.id))
        log.info("order.placed", total=str(order.total_amount))

        session: Optional[PaymentSession] = None
        session_error: Optional[str] = None
        if order.payment_method == PaymentMethod.CARD:
            try:
                session = self._open_payment_session(order)
            except PaymentGatewayError as exc:
                session_error = str(exc)
                log.warning("order.payment_session_deferred", error=session_error)

        return PlacementResult(
            order=self._order_repo.get_by_id(str(order.id)) or order,
            cart=clear(dto.cart),
            payment_session=session,
            payment_session_error=session_error,
        )

    @staticmethod
    def _check_line(line: CartLine, product: Optional[Product]) -> None:
        if product is None:
            raise UnknownProduct(f"Product {line.product_id} does not exist.")
        if product.status != ProductStatus.ACTIVE:
            raise InactiveProduct(f"{product.name} is no longer available.")
        if product.stock_quantity < line.quantity:
            raise StockInsufficient(
                product_id=product.id,
                product_name=product.name,
                requested=line.quantity,
                available=product.stock_quantity,
            )

    @transaction.atomic
    def _persist_order(
        self,
        dto: PlaceOrderDTO,
        address: Address,
        lines: list[CartLine],
        products: Dict[UUID, Product],
        total: Decimal,
    ) -> Order:
        order = self._order_repo.create(
            {
                "user_id": dto.user_id,
                "total_amount": total,
                "shipping_address_id": address.id,
                "shipping_snapshot": address.as_shipping_text(),
                "payment_method": dto.payment_method,
                "idempotency_key": dto.idempotency_key,
                "notes": dto.notes,
                "items": [
                    {
                        "product_id": line.product_id,
                        "quantity": line.quantity,
                        "unit_price": products[line.product_id].price,
                    }
                    for line in lines
                ],
            }
        )

        for line in lines:
            if not self._product_repo.decrement_stock(line.product_id, line.quantity):
                current = self._product_repo.get_by_id(str(line.product_id))
                product = products[line.product_id]
                raise StockInsufficient(
                    product_id=product.id,
                    product_name=product.name,
                    requested=line.quantity,
                    available=current.stock_quantity if current else 0,
                )

        order.add_domain_event(
            OrderPlaced(aggregate_id=order.id, payment_method=order.payment_method)
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.PENDING,
            notes="Order placed",
            user_id=dto.user_id,
        )
        return order

    # ------------------------------------------------------------------
    # Payment session
    # ------------------------------------------------------------------

    def create_payment_session(self, order_id: UUID, user_id: int) -> PaymentSession:
        """Open (again) the hosted checkout of a pending card order.

        Raises:
            OrderNotFound: missing or not the caller's.
            InvalidOrderStatus: cash order, or payment already settled.
            PaymentGatewayError: the provider call failed.
        """
        order = self._order_repo.get_by_id(str(order_id))
        if not order or order.user_id != user_id:
            raise OrderNotFound(f"Order {order_id} not found.")
        if order.payment_method != PaymentMethod.CARD:
            raise InvalidOrderStatus("Cash orders are paid on delivery.")
        if (
            order.payment_status != PaymentStatus.PENDING
            or order.status != OrderStatus.PENDING
        ):
            raise InvalidOrderStatus(
                f"Order {order.order_number} is not awaiting payment."
            )
        return self._open_payment_session(order)

    def _open_payment_session(self, order: Order) -> PaymentSession:
        line_items = [
            CheckoutLineItem(
                name=item.product.name,
                unit_price=item.unit_price,
                quantity=item.quantity,
            )
            for item in order.items.select_related("product").order_by("product_id")
        ]
        session = self._gateway.create_checkout_session(
            order_id=order.id,
            line_items=line_items,
            customer_email=order.user.email,
        )
        order.checkout_session_id = session.session_id
        order.save(update_fields=["checkout_session_id"])
        return session

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    @transaction.atomic
    def update_status(
        self,
        order_id: UUID,
        dto: UpdateOrderStatusDTO,
        actor_id: Optional[int] = None,
    ) -> Order:
        """Move an order along the state machine (administrators).

        ``cancelled`` goes through :meth:`cancel_order` and ``failed`` is
        reserved for the payment callback.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: transition is not allowed.
        """
        if dto.status in ADMIN_RESERVED_STATES:
            raise InvalidOrderStatus(
                f"Status '{dto.status}' cannot be set through a status update."
            )

        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(
            order_id=str(order_id),
            current_status=order.status,
            new_status=dto.status,
        )
        if not order.can_transition_to(dto.status):
            log.warning("order.invalid_transition")
            raise InvalidOrderStatus(
                f"Cannot transition from {order.status} to {dto.status}."
            )

        old_status = order.status
        order.status = dto.status
        if dto.tracking_number is not None:
            order.tracking_number = dto.tracking_number
        if dto.estimated_delivery is not None:
            order.estimated_delivery = dto.estimated_delivery
        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id, old_status=old_status, new_status=dto.status
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=dto.status,
            notes=dto.notes,
            old_status=old_status,
            user_id=actor_id,
        )

        log.info("order.status_updated")
        return self._order_repo.get_by_id(str(order_id))

    @transaction.atomic
    def cancel_order(
        self, order_id: UUID, notes: str = "", actor_id: Optional[int] = None
    ) -> Order:
        """Cancel an order and put its stock back.

        The order row is locked first so concurrent cancellations cannot
        release stock twice.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: cancellation not allowed from current status.
        """
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(order_id=str(order_id), current_status=order.status)
        if not order.can_transition_to(OrderStatus.CANCELLED):
            log.warning("order.cancel_not_allowed")
            raise InvalidOrderStatus(f"Cannot cancel order in status {order.status}.")

        for item in self._order_repo.list_items(order.id):
            self._product_repo.release_stock(item.product_id, item.quantity)

        old_status = order.status
        order.status = OrderStatus.CANCELLED
        order.add_domain_event(OrderCancelled(aggregate_id=order.id, reason=notes))
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.CANCELLED,
            notes=notes or "Order cancelled",
            old_status=old_status,
            user_id=actor_id,
        )

        log.info("order.cancelled")
        return self._order_repo.get_by_id(str(order_id))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(
        self, order_id: str, user_id: Optional[int] = None, is_admin: bool = False
    ) -> Order:
        """Retrieve one order visible to the caller.

        Raises:
            OrderNotFound: missing, or owned by another user.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order or (not is_admin and order.user_id != user_id):
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(
        self,
        user_id: Optional[int] = None,
        is_admin: bool = False,
        filters: Optional[Dict[str, Any]] = None,
    ) -> QuerySet[Order]:
        """Own orders for customers, every order for administrators."""
        lookups: Dict[str, Any] = dict(filters or {})
        if not is_admin:
            lookups["user_id"] = user_id
        return self._order_repo.list(lookups)
