from __future__ import annotations

from shared.domain.exceptions import NotFoundError


class WishlistItemNotFound(NotFoundError):
    """The product is not on the caller's wishlist."""
