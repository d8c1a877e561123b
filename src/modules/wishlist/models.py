from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel


class WishlistItem(BaseModel):
    """A product saved for later by a user (unique per pair)."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="wishlist_items",
    )
    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.CASCADE,
        related_name="wishlisted_by",
    )

    class Meta:
        db_table = "wishlist_items"
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "product"],
                name="wishlist_items_unique_user_product",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.user} ♥ {self.product}"
