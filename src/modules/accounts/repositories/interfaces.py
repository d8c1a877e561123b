"""Accounts repository interfaces."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.accounts.models import Address, Profile


class IAddressRepository(IRepository["Address"]):
    """Every method is scoped to an owner except the generic contract."""

    @abstractmethod
    def list_for_user(self, user_id: int) -> List[Address]:
        """The user's addresses, default first, then oldest first."""

    @abstractmethod
    def get_for_user(self, id: UUID, user_id: int) -> Optional[Address]:
        """The address *id* if *user_id* owns it."""

    @abstractmethod
    def lock_for_user(self, user_id: int) -> List[Address]:
        """Lock the user and their addresses for the rest of the transaction.

        Concurrent address writes for the same user queue behind this
        call, including when the user has no address yet.
        """

    @abstractmethod
    def clear_default(self, user_id: int) -> int:
        """Unset ``is_default`` on every address of the user."""

    @abstractmethod
    def delete_for_user(self, id: UUID, user_id: int) -> bool:
        """Delete *id* only if *user_id* owns it."""


class IProfileRepository(IRepository["Profile"]):
    @abstractmethod
    def get_or_create_for_user(self, user_id: int) -> Profile:
        """Profiles are created lazily on first access."""
