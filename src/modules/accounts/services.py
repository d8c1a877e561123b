"""Accounts service layer: profiles and the address book.

The address book keeps the invariant *at most one default address per
user*.  Adding a default address clears the previous default **before**
inserting the new row, and both writes share one transaction with the
user's address rows locked, so two concurrent adds cannot both end up
default.  The partial unique constraint on ``Address`` is the backstop.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Sequence
from uuid import UUID

import structlog
from django.db import transaction

from modules.accounts.exceptions import AddressNotFound
from modules.accounts.models import Address, Profile

if TYPE_CHECKING:
    from modules.accounts.dtos import CreateAddressDTO, UpdateProfileDTO
    from modules.accounts.repositories.interfaces import (
        IAddressRepository,
        IProfileRepository,
    )

logger = structlog.get_logger(__name__)


def select_default_for_checkout(addresses: Sequence[Address]) -> Optional[Address]:
    """Address pre-selected at checkout.

    The default one if any, otherwise the first of *addresses* (callers
    pass them in the stable ``-is_default, created_at, id`` order).
    """
    for address in addresses:
        if address.is_default:
            return address
    return addresses[0] if addresses else None


class AddressBookService:
    """Receives an ``IAddressRepository`` via constructor injection (DIP)."""

    def __init__(self, repository: IAddressRepository) -> None:
        self._repo = repository

    @transaction.atomic
    def add_address(self, user_id: int, dto: CreateAddressDTO) -> Address:
        """Add an address for *user_id*.

        The address becomes default when requested or when it is the
        user's first address.  Field validation already happened in the
        DTO, so nothing is written for an incomplete address.
        """
        existing = self._repo.lock_for_user(user_id)
        make_default = dto.is_default or not existing

        if make_default:
            self._repo.clear_default(user_id)

        address = Address(
            user_id=user_id,
            name=dto.name,
            street=dto.street,
            city=dto.city,
            postal_code=dto.postal_code,
            country=dto.country,
            is_default=make_default,
        )
        address = self._repo.save(address)
        logger.info(
            "address.added",
            user_id=user_id,
            address_id=str(address.id),
            is_default=make_default,
            first_address=not existing,
        )
        return address

    @transaction.atomic
    def delete_address(self, user_id: int, address_id: UUID) -> None:
        """Delete one of the user's addresses.

        Deleting the default leaves the user without one; no other
        address is promoted.

        Raises:
            AddressNotFound: missing, or owned by someone else.
        """
        if not self._repo.delete_for_user(address_id, user_id):
            logger.warning(
                "address.delete_not_found",
                user_id=user_id,
                address_id=str(address_id),
            )
            raise AddressNotFound(f"Address {address_id} not found.")
        logger.info("address.deleted", user_id=user_id, address_id=str(address_id))

    def list_addresses(self, user_id: int) -> List[Address]:
        return self._repo.list_for_user(user_id)

    def get_address(self, user_id: int, address_id: UUID) -> Address:
        address = self._repo.get_for_user(address_id, user_id)
        if not address:
            raise AddressNotFound(f"Address {address_id} not found.")
        return address

    def default_for_checkout(self, user_id: int) -> Optional[Address]:
        return select_default_for_checkout(self._repo.list_for_user(user_id))


class ProfileService:
    def __init__(self, repository: IProfileRepository) -> None:
        self._repo = repository

    def get_profile(self, user_id: int) -> Profile:
        return self._repo.get_or_create_for_user(user_id)

    @transaction.atomic
    def update_profile(self, user_id: int, dto: UpdateProfileDTO) -> Profile:
        profile = self._repo.get_or_create_for_user(user_id)
        profile.full_name = dto.full_name
        profile.phone = dto.phone
        profile = self._repo.save(profile)
        logger.info("profile.updated", user_id=user_id)
        return profile
