from modules.cart.domain import (
    Cart,
    CartLine,
    InvalidCartOperation,
    add_item,
    clear,
    remove_item,
    update_quantity,
)

__all__ = [
    "Cart",
    "CartLine",
    "InvalidCartOperation",
    "add_item",
    "clear",
    "remove_item",
    "update_quantity",
]
