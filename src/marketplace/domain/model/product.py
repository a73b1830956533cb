"""Product read model.

The catalog is owned by another part of the marketplace. The fulfillment
core only needs to know whether a product can be sold, how many units are
on hand, what it costs and which store sells it, and to take stock away
when an order is placed.
"""

from __future__ import annotations

from dataclasses import dataclass

from marketplace.domain.exceptions import InsufficientStockError, ValidationError
from marketplace.domain.model.value_objects import Money


@dataclass
class Product:
    """A sellable product as seen by carts and order placement."""

    id: str
    name: str
    store_id: str
    price: Money
    stock: int = 0
    available: bool = True

    def update_price(self, new_price: Money) -> None:
        """Change the list price.

        Existing orders are unaffected: they hold their own price snapshot.
        """
        if new_price.amount <= 0:
            raise ValidationError("Product price must be greater than zero")
        self.price = new_price

    def set_stock(self, quantity: int) -> None:
        if quantity < 0:
            raise ValidationError("Stock cannot be negative")
        self.stock = quantity

    def can_supply(self, quantity: int) -> bool:
        return quantity <= self.stock

    def decrement_stock(self, quantity: int) -> None:
        """Take ``quantity`` units out of stock, never going below zero."""
        if quantity <= 0:
            raise ValidationError("Stock decrement must be positive")
        if quantity > self.stock:
            raise InsufficientStockError(
                f"Insufficient stock for {self.name} "
                f"(need {quantity}, have {self.stock})"
            )
        self.stock -= quantity
