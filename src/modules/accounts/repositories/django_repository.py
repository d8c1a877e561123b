"""Django ORM implementations of the accounts repositories."""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.accounts.models import Address, Profile
from modules.accounts.repositories.interfaces import (
    IAddressRepository,
    IProfileRepository,
)

logger = structlog.get_logger(__name__)


class AddressDjangoRepository(IAddressRepository):
    """Concrete Address repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Address]:
        try:
            return Address.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Address]:
        queryset = Address.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_for_user(self, user_id: int) -> List[Address]:
        return self.list({"user_id": user_id})

    def get_for_user(self, id: UUID, user_id: int) -> Optional[Address]:
        try:
            return Address.objects.filter(id=id, user_id=user_id).first()
        except (ValueError, ValidationError):
            return None

    def lock_for_user(self, user_id: int) -> List[Address]:
        # The user row is the lock; with no addresses yet there is nothing else to lock.
        get_user_model().objects.select_for_update().filter(pk=user_id).first()
        return list(
            Address.objects.select_for_update().filter(user_id=user_id).order_by("id")
        )

    def clear_default(self, user_id: int) -> int:
        cleared = Address.objects.filter(user_id=user_id, is_default=True).update(
            is_default=False
        )
        if cleared:
            logger.info("address.default_cleared", user_id=user_id, count=cleared)
        return cleared

    @transaction.atomic
    def save(self, entity: Address) -> Address:
        entity.save()
        logger.info(
            "address.saved",
            address_id=str(entity.id),
            user_id=entity.user_id,
            is_default=entity.is_default,
        )
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        address = self.get_by_id(id)
        if not address:
            return False
        address.delete()
        return True

    @transaction.atomic
    def delete_for_user(self, id: UUID, user_id: int) -> bool:
        try:
            deleted, _ = Address.objects.filter(id=id, user_id=user_id).delete()
        except (ValueError, ValidationError):
            return False
        return deleted > 0


class ProfileDjangoRepository(IProfileRepository):
    def get_by_id(self, id: str) -> Optional[Profile]:
        try:
            return Profile.objects.select_related("user").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Profile]:
        queryset = Profile.objects.select_related("user")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def get_or_create_for_user(self, user_id: int) -> Profile:
        profile, created = Profile.objects.select_related("user").get_or_create(
            user_id=user_id
        )
        if created:
            logger.info("profile.created", user_id=user_id)
        return profile

    @transaction.atomic
    def save(self, entity: Profile) -> Profile:
        entity.save()
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        profile = self.get_by_id(id)
        if not profile:
            return False
        profile.delete()
        return True
