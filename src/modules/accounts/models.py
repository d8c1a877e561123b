"""Customer profile and address book models.

Business rules implemented:
- At most one default address per user, backed by a partial unique
  constraint (``UNIQUE(user) WHERE is_default``) so the database rejects
  a second default even if the service is bypassed.
- Addresses are hard-deleted; orders keep a frozen shipping snapshot.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel


class ProfileRole(models.TextChoices):
    ADMIN = "admin", "Admin"
    CUSTOMER = "customer", "Customer"


class Profile(BaseModel):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
    )
    full_name = models.CharField(max_length=255, blank=True, default="")
    phone = models.CharField(max_length=32, blank=True, default="")
    role = models.CharField(
        max_length=20,
        choices=ProfileRole.choices,
        default=ProfileRole.CUSTOMER,
    )

    class Meta:
        db_table = "profiles"

    def __str__(self) -> str:
        return self.full_name or str(self.user)


class Address(BaseModel):
    """Shipping address owned by a single user."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="addresses",
    )
    name = models.CharField(max_length=255)
    street = models.CharField(max_length=255)
    city = models.CharField(max_length=120)
    postal_code = models.CharField(max_length=20)
    country = models.CharField(max_length=120)
    is_default = models.BooleanField(default=False)

    class Meta:
        db_table = "addresses"
        ordering = ["-is_default", "created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["user"],
                condition=models.Q(is_default=True),
                name="addresses_one_default_per_user",
            ),
        ]

    def as_shipping_text(self) -> str:
        """One-line snapshot stored on orders."""
        return (
            f"{self.name}, {self.street}, {self.postal_code} {self.city}, "
            f"{self.country}"
        )

    def __str__(self) -> str:
        return f"{self.name} ({self.city})"
