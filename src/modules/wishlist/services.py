"""Wishlist use cases.  Adding is idempotent; removal is owner-scoped."""

from __future__ import annotations

from typing import TYPE_CHECKING, List
from uuid import UUID

import structlog
from django.db import transaction

from modules.catalog.exceptions import ProductNotFound
from modules.wishlist.exceptions import WishlistItemNotFound
from modules.wishlist.models import WishlistItem

if TYPE_CHECKING:
    from modules.catalog.repositories.interfaces import IProductRepository
    from modules.wishlist.repositories import IWishlistRepository

logger = structlog.get_logger(__name__)


class WishlistService:
    def __init__(
        self,
        repository: IWishlistRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._repo = repository
        self._product_repo = product_repository

    @transaction.atomic
    def add(self, user_id: int, product_id: UUID) -> WishlistItem:
        if not self._product_repo.get_by_id(str(product_id)):
            raise ProductNotFound(f"Product {product_id} not found.")
        item, created = self._repo.get_or_create(user_id, product_id)
        logger.info(
            "wishlist.added",
            user_id=user_id,
            product_id=str(product_id),
            created=created,
        )
        return item

    @transaction.atomic
    def remove(self, user_id: int, product_id: UUID) -> None:
        if not self._repo.delete_for_user(user_id, product_id):
            raise WishlistItemNotFound(f"Product {product_id} is not on the wishlist.")
        logger.info("wishlist.removed", user_id=user_id, product_id=str(product_id))

    def list_items(self, user_id: int) -> List[WishlistItem]:
        return self._repo.list_for_user(user_id)
