"""Client-side cart as an explicit, immutable value.

The cart never touches the database.  Every operation takes a ``Cart`` and
returns a new one, so callers own the state and pass it around
explicitly.  Prices on a ``CartLine`` are display snapshots taken when
the product was added; order placement re-reads authoritative prices.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Tuple
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from shared.domain.exceptions import DomainValidationError


class InvalidCartOperation(DomainValidationError):
    """A cart operation was called with an invalid quantity or price."""


class CartLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int = Field(ge=1)
    price: Decimal = Field(ge=0)
    name: str = ""

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


class Cart(BaseModel):
    """Ordered mapping product -> line, stored as a tuple of lines."""

    model_config = ConfigDict(frozen=True)

    lines: Tuple[CartLine, ...] = ()

    @property
    def total(self) -> Decimal:
        """Recomputed on every read: sum of price x quantity."""
        return sum((line.subtotal for line in self.lines), Decimal("0.00"))

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def get(self, product_id: UUID) -> CartLine | None:
        for line in self.lines:
            if line.product_id == product_id:
                return line
        return None

    @classmethod
    def from_lines(cls, lines: Iterable[CartLine]) -> Cart:
        """Build a cart, merging repeated products by summing quantities."""
        cart = cls()
        for line in lines:
            cart = add_item(cart, line.product_id, line.price, line.quantity, line.name)
        return cart


def add_item(
    cart: Cart,
    product_id: UUID,
    price: Decimal,
    quantity: int = 1,
    name: str = "",
) -> Cart:
    """Increase the quantity of an existing line or append a new one.

    The existing line keeps its original price snapshot.
    """
    if quantity < 1:
        raise InvalidCartOperation("Quantity must be at least 1.")
    existing = cart.get(product_id)
    if existing is None:
        line = CartLine(product_id=product_id, quantity=quantity, price=price, name=name)
        return Cart(lines=cart.lines + (line,))
    lines = tuple(
        line.model_copy(update={"quantity": line.quantity + quantity})
        if line.product_id == product_id
        else line
        for line in cart.lines
    )
    return Cart(lines=lines)


def update_quantity(cart: Cart, product_id: UUID, quantity: int) -> Cart:
    """Set the quantity exactly; anything below 1 removes the line.

    No stock check happens here; stock is validated at order placement.
    """
    if quantity < 1:
        return remove_item(cart, product_id)
    if cart.get(product_id) is None:
        return cart
    lines = tuple(
        line.model_copy(update={"quantity": quantity})
        if line.product_id == product_id
        else line
        for line in cart.lines
    )
    return Cart(lines=lines)


def remove_item(cart: Cart, product_id: UUID) -> Cart:
    """Drop the line for *product_id*; a no-op when it is absent."""
    return Cart(lines=tuple(line for line in cart.lines if line.product_id != product_id))


def clear(cart: Cart) -> Cart:
    return Cart()
