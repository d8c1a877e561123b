"""Wishlist API: ``/api/v1/wishlist/`` and ``/api/v1/wishlist/{product_id}/``."""

from __future__ import annotations

from uuid import UUID

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.catalog.exceptions import ProductNotFound
from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.wishlist.exceptions import WishlistItemNotFound
from modules.wishlist.models import WishlistItem
from modules.wishlist.repositories import WishlistDjangoRepository
from modules.wishlist.serializers import (
    AddWishlistItemSerializer,
    WishlistItemSerializer,
)
from modules.wishlist.services import WishlistService


class WishlistViewSet(GenericViewSet):
    queryset = WishlistItem.objects.all()
    serializer_class = WishlistItemSerializer
    pagination_class = None
    lookup_url_kwarg = "product_id"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = WishlistService(
            repository=WishlistDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )

    def list(self, request: Request) -> Response:
        items = self._service.list_items(request.user.id)
        return Response(WishlistItemSerializer(items, many=True).data)

    def create(self, request: Request) -> Response:
        serializer = AddWishlistItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            item = self._service.add(
                request.user.id, serializer.validated_data["product_id"]
            )
        except ProductNotFound:
            return Response(
                {"detail": "Product not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(
            WishlistItemSerializer(item).data, status=status.HTTP_201_CREATED
        )

    def destroy(self, request: Request, product_id: str | None = None) -> Response:
        try:
            self._service.remove(request.user.id, UUID(str(product_id)))
        except (ValueError, WishlistItemNotFound):
            return Response(
                {"detail": "Product is not on the wishlist."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)
