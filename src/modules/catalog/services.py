"""Catalog service layer (Use Cases).

Orchestrates business logic for products, categories and reviews,
delegating persistence to the injected repositories.  Product and
category writes are admin-only; the views enforce that with
``IsStoreAdminOrReadOnly`` before a service method is called.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import IntegrityError, models, transaction

from modules.catalog.exceptions import (
    CategoryAlreadyExists,
    CategoryNotFound,
    ProductNotFound,
    ReviewAlreadyExists,
)
from modules.catalog.models import Category, Product, ProductStatus, Review

if TYPE_CHECKING:
    from modules.catalog.dtos import (
        CreateCategoryDTO,
        CreateProductDTO,
        CreateReviewDTO,
        UpdateCategoryDTO,
        UpdateProductDTO,
    )
    from modules.catalog.repositories.interfaces import (
        ICategoryRepository,
        IProductRepository,
        IReviewRepository,
    )

logger = structlog.get_logger(__name__)


class ProductService:
    """Application service for Product use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        repository: IProductRepository,
        category_repository: ICategoryRepository,
    ) -> None:
        self._repo = repository
        self._category_repo = category_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_product(self, dto: CreateProductDTO) -> Product:
        """Create a new product.

        Raises:
            CategoryNotFound: ``category_id`` does not reference a category.
        """
        if dto.category_id and not self._category_repo.get_by_id(str(dto.category_id)):
            raise CategoryNotFound(f"Category {dto.category_id} not found.")

        product = Product(
            name=dto.name,
            price=dto.price,
            description=dto.description,
            stock_quantity=dto.stock_quantity,
            category_id=dto.category_id,
            image_url=dto.image_url,
        )
        product = self._repo.save(product)
        logger.info("product.created", product_id=str(product.id))
        return product

    @transaction.atomic
    def update_product(self, id: str, dto: UpdateProductDTO) -> Product:
        """Update an existing product with the supplied fields.

        Price changes never touch existing order items: those carry their
        own frozen ``unit_price``.

        Raises:
            ProductNotFound: if the product does not exist.
            CategoryNotFound: if the new category does not exist.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")

        if dto.category_id and not self._category_repo.get_by_id(str(dto.category_id)):
            raise CategoryNotFound(f"Category {dto.category_id} not found.")

        for field in (
            "name",
            "price",
            "description",
            "stock_quantity",
            "category_id",
            "image_url",
            "status",
        ):
            value = getattr(dto, field)
            if value is not None:
                setattr(product, field, value)

        product = self._repo.save(product)
        logger.info("product.updated", product_id=str(id))
        return product

    @transaction.atomic
    def delete_product(self, id: str) -> None:
        """Soft-delete a product.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        if not self._repo.delete(id):
            raise ProductNotFound(f"Product {id} not found.")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_products(
        self,
        filters: Optional[Dict[str, Any]] = None,
        include_inactive: bool = False,
    ) -> "models.QuerySet[Product]":
        """Return live products; inactive ones only when asked for."""
        filters = dict(filters or {})
        if not include_inactive:
            filters["status"] = ProductStatus.ACTIVE
        return self._repo.list(filters)

    def get_product(self, id: str) -> Product:
        """Retrieve a single product by ID.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        return product


class CategoryService:
    def __init__(self, repository: ICategoryRepository) -> None:
        self._repo = repository

    @transaction.atomic
    def create_category(self, dto: CreateCategoryDTO) -> Category:
        """Raises ``CategoryAlreadyExists`` for a duplicate name."""
        if self._repo.get_by_name(dto.name):
            raise CategoryAlreadyExists(f"Category '{dto.name}' already exists.")
        category = self._repo.save(Category(name=dto.name, description=dto.description))
        logger.info("category.created", category_id=str(category.id))
        return category

    @transaction.atomic
    def update_category(self, id: str, dto: UpdateCategoryDTO) -> Category:
        category = self._repo.get_by_id(id)
        if not category:
            raise CategoryNotFound(f"Category {id} not found.")
        if dto.name is not None and dto.name.lower() != category.name.lower():
            if self._repo.get_by_name(dto.name):
                raise CategoryAlreadyExists(f"Category '{dto.name}' already exists.")
            category.name = dto.name
        if dto.description is not None:
            category.description = dto.description
        return self._repo.save(category)

    @transaction.atomic
    def delete_category(self, id: str) -> None:
        if not self._repo.delete(id):
            raise CategoryNotFound(f"Category {id} not found.")

    def list_categories(self) -> List[Category]:
        return self._repo.list()

    def get_category(self, id: str) -> Category:
        category = self._repo.get_by_id(id)
        if not category:
            raise CategoryNotFound(f"Category {id} not found.")
        return category


class ReviewService:
    """Customer reviews of catalog products."""

    def __init__(
        self,
        repository: IReviewRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._repo = repository
        self._product_repo = product_repository

    @transaction.atomic
    def add_review(self, dto: CreateReviewDTO) -> Review:
        """Record a review; one per user and product.

        Raises:
            ProductNotFound: the product does not exist.
            ReviewAlreadyExists: the user already reviewed the product.
        """
        log = logger.bind(product_id=str(dto.product_id), user_id=dto.user_id)
        if not self._product_repo.get_by_id(str(dto.product_id)):
            raise ProductNotFound(f"Product {dto.product_id} not found.")
        if self._repo.get_for_user(dto.product_id, dto.user_id):
            log.warning("review.duplicate")
            raise ReviewAlreadyExists("You have already reviewed this product.")

        review = Review(
            product_id=dto.product_id,
            user_id=dto.user_id,
            rating=dto.rating,
            comment=dto.comment,
        )
        try:
            with transaction.atomic():
                review = self._repo.save(review)
        except IntegrityError as exc:
            raise ReviewAlreadyExists("You have already reviewed this product.") from exc
        log.info("review.added", rating=dto.rating)
        return review

    def list_reviews(self, product_id: str) -> List[Review]:
        product = self._product_repo.get_by_id(product_id)
        if not product:
            raise ProductNotFound(f"Product {product_id} not found.")
        return self._repo.list_for_product(product.id)

    def average_rating(self, product_id: str) -> Optional[Decimal]:
        product = self._product_repo.get_by_id(product_id)
        if not product:
            raise ProductNotFound(f"Product {product_id} not found.")
        return self._repo.average_rating(product.id)
