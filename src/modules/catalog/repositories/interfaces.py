"""Catalog repository interfaces.

``IProductRepository`` carries the two stock primitives consumed by order
placement: a conditional decrement evaluated atomically by the database
and the matching release.  The service never reads stock and writes it
back from Python.
"""

from __future__ import annotations

from abc import abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.catalog.models import Category, Product, Review


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def get_many(self, ids: Iterable[UUID]) -> Dict[UUID, Product]:
        """Point lookups for *ids*; missing or deleted products are absent."""

    @abstractmethod
    def decrement_stock(self, id: UUID, quantity: int) -> bool:
        """Subtract *quantity* only if the result stays >= 0.

        Returns ``False`` (and changes nothing) when stock is insufficient.
        """

    @abstractmethod
    def release_stock(self, id: UUID, quantity: int) -> None:
        """Give *quantity* units back to the product."""


class ICategoryRepository(IRepository["Category"]):
    """Repository contract for categories."""

    @abstractmethod
    def get_by_name(self, name: str) -> Optional[Category]:
        """Case-insensitive lookup by name."""


class IReviewRepository(IRepository["Review"]):
    """Repository contract for product reviews."""

    @abstractmethod
    def list_for_product(self, product_id: UUID) -> List[Review]:
        """Reviews of a product, newest first."""

    @abstractmethod
    def get_for_user(self, product_id: UUID, user_id: int) -> Optional[Review]:
        """The review *user_id* left on *product_id*, if any."""

    @abstractmethod
    def average_rating(self, product_id: UUID) -> Optional[Decimal]:
        """Mean rating rounded to one decimal, ``None`` without reviews."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Review]:
        """List reviews with optional filters."""
