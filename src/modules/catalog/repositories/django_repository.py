"""Django ORM implementations of the catalog repositories.

Error handling follows the Null Object pattern: methods return ``None``
instead of raising HTTP-level exceptions; the Service Layer decides
how to translate a missing entity into an API response.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.db.models import Avg, F
from django.utils import timezone

from modules.catalog.models import Category, Product, Review
from modules.catalog.repositories.interfaces import (
    ICategoryRepository,
    IProductRepository,
    IReviewRepository,
)

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a live product by primary key.

        Returns ``None`` for non-existent, soft-deleted or invalid IDs.
        """
        try:
            return (
                Product.objects.alive().select_related("category").filter(id=id).first()
            )
        except (ValueError, ValidationError):
            return None

    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Product]":
        """List live products with optional Django ORM look-ups.

        Returns a queryset so the API layer can filter, order and paginate.

        Examples of valid filters::

            {"status": "active"}
            {"category_id": "0190..."}
        """
        queryset = Product.objects.alive().select_related("category")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def get_many(self, ids: Iterable[UUID]) -> Dict[UUID, Product]:
        products = Product.objects.alive().filter(id__in=list(ids))
        return {product.id: product for product in products}

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        """Persist (create or update) a product."""
        entity.save()
        logger.info("product.saved", product_id=str(entity.id))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Soft-delete a product by ID."""
        product = self.get_by_id(id)
        if not product:
            return False
        product.delete()
        logger.info("product.soft_deleted", product_id=str(id))
        return True

    # ------------------------------------------------------------------
    # Stock primitives
    # ------------------------------------------------------------------

    def decrement_stock(self, id: UUID, quantity: int) -> bool:
        """``UPDATE ... SET stock = stock - q WHERE id = ? AND stock >= q``."""
        updated = (
            Product.objects.alive()
            .filter(id=id, stock_quantity__gte=quantity)
            .update(
                stock_quantity=F("stock_quantity") - quantity,
                updated_at=timezone.now(),
            )
        )
        log = logger.bind(product_id=str(id), quantity=quantity)
        if updated != 1:
            log.warning("product.stock_decrement_rejected")
            return False
        log.info("product.stock_decremented")
        return True

    def release_stock(self, id: UUID, quantity: int) -> None:
        Product.objects.filter(id=id).update(
            stock_quantity=F("stock_quantity") + quantity,
            updated_at=timezone.now(),
        )
        logger.info("product.stock_released", product_id=str(id), quantity=quantity)


class CategoryDjangoRepository(ICategoryRepository):
    """Concrete Category repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Category]:
        try:
            return Category.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Category]:
        queryset = Category.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def get_by_name(self, name: str) -> Optional[Category]:
        return Category.objects.filter(name__iexact=name.strip()).first()

    @transaction.atomic
    def save(self, entity: Category) -> Category:
        entity.save()
        logger.info("category.saved", category_id=str(entity.id))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Hard-delete a category; its products keep existing uncategorised."""
        category = self.get_by_id(id)
        if not category:
            return False
        category.delete()
        logger.info("category.deleted", category_id=str(id))
        return True


class ReviewDjangoRepository(IReviewRepository):
    """Concrete Review repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Review]:
        try:
            return Review.objects.select_related("user").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Review]:
        queryset = Review.objects.select_related("user")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_for_product(self, product_id: UUID) -> List[Review]:
        return self.list({"product_id": product_id})

    def get_for_user(self, product_id: UUID, user_id: int) -> Optional[Review]:
        return Review.objects.filter(product_id=product_id, user_id=user_id).first()

    def average_rating(self, product_id: UUID) -> Optional[Decimal]:
        average = Review.objects.filter(product_id=product_id).aggregate(
            value=Avg("rating")
        )["value"]
        if average is None:
            return None
        return Decimal(str(average)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)

    @transaction.atomic
    def save(self, entity: Review) -> Review:
        entity.save()
        logger.info(
            "review.saved",
            review_id=str(entity.id),
            product_id=str(entity.product_id),
        )
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        review = self.get_by_id(id)
        if not review:
            return False
        review.delete()
        return True
