"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into HTTP status codes;
the view never swallows generic exceptions.
"""

from __future__ import annotations

from uuid import UUID

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.accounts.repositories.django_repository import AddressDjangoRepository
from modules.cart import Cart, CartLine
from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.core.pagination import StandardResultsSetPagination
from modules.core.permissions import IsStoreAdmin, is_store_admin
from modules.orders.dtos import PlaceOrderDTO, UpdateOrderStatusDTO
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
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CancelOrderSerializer,
    CheckoutSerializer,
    OrderListSerializer,
    OrderSerializer,
    PaymentSessionSerializer,
    UpdateOrderStatusSerializer,
)
from modules.orders.services import OrderService
from modules.payments.exceptions import PaymentGatewayError
from modules.payments.gateways import StripePaymentGateway


def _not_found() -> Response:
    return Response({"detail": "Order not found."}, status=status.HTTP_404_NOT_FOUND)


def _parse_uuid(value: str | None) -> UUID | None:
    try:
        return UUID(str(value))
    except ValueError:
        return None


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.  Customers see their own orders;
    store administrators see and manage every order.
    """

    queryset = Order.objects.all()
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "total_amount", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            product_repository=ProductDjangoRepository(),
            address_repository=AddressDjangoRepository(),
            payment_gateway=StripePaymentGateway.from_settings(),
        )

    def get_permissions(self):
        if self.action in {"partial_update", "cancel"}:
            return [IsStoreAdmin()]
        return super().get_permissions()

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttle scopes per action."""
        throttle_scope: str | None
        if self.action in {"create", "payment_session"}:
            throttle_scope = "checkout"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        user = self.request.user
        return self._service.list_orders(user_id=user.id, is_admin=is_store_admin(user))

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Places an order from the submitted cart.  Supports idempotency via
        the ``Idempotency-Key`` header: 200 with the existing order when
        the key was already used, 201 for a new order.
        """
        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        cart = Cart.from_lines(
            CartLine(
                product_id=line["product_id"],
                quantity=line["quantity"],
                price=line["price"],
                name=line["name"],
            )
            for line in data["items"]
        )
        try:
            dto = PlaceOrderDTO(
                user_id=request.user.id if request.user.is_authenticated else None,
                cart=cart,
                shipping_address_id=data.get("shipping_address_id"),
                payment_method=data["payment_method"],
                idempotency_key=request.headers.get("Idempotency-Key"),
                notes=data["notes"],
            )
            result = self._service.place_order(dto)
        except PydanticValidationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except Unauthenticated as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_401_UNAUTHORIZED)
        except (EmptyCart, NoAddressSelected, UnknownProduct, InactiveProduct) as exc:
            return Response(
                {"detail": str(exc), "code": type(exc).__name__},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except StockInsufficient as exc:
            return Response(
                {
                    "detail": str(exc),
                    "code": "StockInsufficient",
                    "product_id": str(exc.product_id),
                    "product_name": exc.product_name,
                    "requested": exc.requested,
                    "available": exc.available,
                },
                status=status.HTTP_409_CONFLICT,
            )
        except PersistenceFailure as exc:
            return Response(
                {"detail": str(exc)}, status=status.HTTP_502_BAD_GATEWAY
            )

        body = {
            "order": OrderSerializer(result.order).data,
            "cart": {
                "items": [],
                "total": str(result.cart.total),
            },
            "payment_session": (
                PaymentSessionSerializer(result.payment_session).data
                if result.payment_session
                else None
            ),
            "payment_session_error": result.payment_session_error,
        }
        code = status.HTTP_200_OK if result.replayed else status.HTTP_201_CREATED
        return Response(body, status=code)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering (status, payment status, date range, total range) is
        handled by ``OrderFilter`` via ``filter_backends``.  Results are
        paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        if _parse_uuid(pk) is None:
            return _not_found()
        try:
            order = self._service.get_order(
                str(pk),
                user_id=request.user.id,
                is_admin=is_store_admin(request.user),
            )
        except OrderNotFound:
            return _not_found()
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Payment session (retry)
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"], url_path="payment-session")
    def payment_session(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/payment-session/"""
        order_id = _parse_uuid(pk)
        if order_id is None:
            return _not_found()
        try:
            session = self._service.create_payment_session(order_id, request.user.id)
        except OrderNotFound:
            return _not_found()
        except InvalidOrderStatus as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        except PaymentGatewayError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)
        return Response(PaymentSessionSerializer(session).data)

    # ------------------------------------------------------------------
    # Status Update (administrators)
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Updates order status.  Cancellations are **not** allowed via
        this endpoint; use ``POST /orders/{id}/cancel/`` instead.
        """
        order_id = _parse_uuid(pk)
        if order_id is None:
            return _not_found()

        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = UpdateOrderStatusDTO(**serializer.validated_data)
            order = self._service.update_status(order_id, dto, actor_id=request.user.id)
        except PydanticValidationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except OrderNotFound:
            return _not_found()
        except InvalidOrderStatus as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Cancel (dedicated action)
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/

        Cancels an order and releases its stock.
        """
        order_id = _parse_uuid(pk)
        if order_id is None:
            return _not_found()

        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.cancel_order(
                order_id,
                notes=serializer.validated_data["notes"],
                actor_id=request.user.id,
            )
        except OrderNotFound:
            return _not_found()
        except InvalidOrderStatus as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(OrderSerializer(order).data)
