"""Catalog domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations

from shared.domain.exceptions import DomainError, NotFoundError


class ProductNotFound(NotFoundError):
    """The requested product does not exist or has been soft-deleted."""


class CategoryNotFound(NotFoundError):
    """The requested category does not exist."""


class CategoryAlreadyExists(DomainError):
    """A category with the same name already exists."""


class ReviewAlreadyExists(DomainError):
    """The user has already reviewed this product."""
