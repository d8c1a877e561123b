"""Base repository contract shared by the storefront modules.

Services receive repositories through their constructor and only ever
see these abstractions; the Django ORM stays behind the concrete
``*DjangoRepository`` classes.  Lookups return ``None`` for a missing
row and let the service decide which domain error to raise.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Optional, TypeVar, Union
from uuid import UUID

from django.db import models

T = TypeVar("T", bound=models.Model)

#: Ids arrive as UUIDs from services and as raw strings from URLs.
EntityId = Union[UUID, str]


class IRepository(ABC, Generic[T]):
    """CRUD surface every aggregate repository provides.

    ``T`` is the model class (``Order``, ``Product``, ``Address``...).
    """

    @abstractmethod
    def get_by_id(self, id: EntityId) -> Optional[T]:
        """Return the live row or ``None`` (unknown, malformed or soft-deleted id)."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        """Lazy queryset narrowed by ``filters``; callers paginate it."""

    @abstractmethod
    def save(self, entity: T) -> T: ...

    @abstractmethod
    def delete(self, id: EntityId) -> bool:
        """Delete by id. Returns ``False`` when there was nothing to delete."""
