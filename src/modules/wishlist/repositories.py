"""Wishlist repository (interface + Django ORM implementation)."""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db import transaction

from modules.core.repositories.interfaces import IRepository
from modules.wishlist.models import WishlistItem


class IWishlistRepository(IRepository[WishlistItem]):
    @abstractmethod
    def list_for_user(self, user_id: int) -> List[WishlistItem]:
        """Newest first, products eager-loaded."""

    @abstractmethod
    def get_or_create(self, user_id: int, product_id: UUID) -> Tuple[WishlistItem, bool]:
        """Return the item and whether it was created."""

    @abstractmethod
    def delete_for_user(self, user_id: int, product_id: UUID) -> bool:
        """Remove *product_id* from the user's wishlist."""


class WishlistDjangoRepository(IWishlistRepository):
    def get_by_id(self, id: str) -> Optional[WishlistItem]:
        try:
            return WishlistItem.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[WishlistItem]:
        queryset = WishlistItem.objects.select_related("product")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_for_user(self, user_id: int) -> List[WishlistItem]:
        return self.list({"user_id": user_id, "product__deleted_at__isnull": True})

    @transaction.atomic
    def get_or_create(self, user_id: int, product_id: UUID) -> Tuple[WishlistItem, bool]:
        return WishlistItem.objects.get_or_create(user_id=user_id, product_id=product_id)

    @transaction.atomic
    def save(self, entity: WishlistItem) -> WishlistItem:
        entity.save()
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        item = self.get_by_id(id)
        if not item:
            return False
        item.delete()
        return True

    @transaction.atomic
    def delete_for_user(self, user_id: int, product_id: UUID) -> bool:
        deleted, _ = WishlistItem.objects.filter(
            user_id=user_id, product_id=product_id
        ).delete()
        return deleted > 0
