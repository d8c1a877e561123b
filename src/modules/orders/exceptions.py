"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations

from uuid import UUID

from shared.domain.exceptions import (
    AuthorizationError,
    DomainError,
    DomainValidationError,
    ExternalCollaboratorError,
    NotFoundError,
)


class Unauthenticated(AuthorizationError):
    """No user is attached to the checkout request."""


class EmptyCart(DomainValidationError):
    """The cart handed to checkout has no lines."""


class NoAddressSelected(DomainValidationError):
    """No shipping address was selected, or it is not the caller's."""


class UnknownProduct(DomainValidationError):
    """A cart line references a product that does not exist."""


class InactiveProduct(DomainValidationError):
    """A cart line references a product that is no longer for sale."""


class StockInsufficient(DomainError):
    """Not enough stock for one cart line; nothing was written."""

    def __init__(
        self,
        product_id: UUID,
        product_name: str,
        requested: int,
        available: int,
    ) -> None:
        self.product_id = product_id
        self.product_name = product_name
        self.requested = requested
        self.available = available
        super().__init__(
            f"Not enough stock for {product_name}: requested {requested}, "
            f"available {available}."
        )


class PersistenceFailure(ExternalCollaboratorError):
    """The database rejected the order write; the placement was rolled back."""


class OrderNotFound(NotFoundError):
    """The requested order does not exist or is not visible to the caller."""


class InvalidOrderStatus(DomainValidationError):
    """An invalid status transition was attempted."""
