"""Cart aggregate: pending line items for a single owner.

A cart belongs to either an authenticated user or an anonymous guest
session. Lines are keyed by ``(product_id, catalog_id)``: adding the same
pair twice merges quantities instead of creating a second line.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from marketplace.domain.exceptions import EntityNotFoundError, ValidationError
from marketplace.domain.model.value_objects import Owner, Quantity


@dataclass
class CartLine:
    product_id: str
    store_id: str
    quantity: int
    added_at: datetime
    catalog_id: str | None = None

    def __post_init__(self) -> None:
        Quantity(self.quantity)

    def matches(self, product_id: str, catalog_id: str | None) -> bool:
        return self.product_id == product_id and self.catalog_id == catalog_id


@dataclass
class Cart:
    """Aggregate root for cart contents.

    Invariants:
    - at most one line per ``(product_id, catalog_id)``
    - every line quantity is >= 1
    - ``expires_at`` is only ever set for guest carts
    """

    owner: Owner
    created_at: datetime
    updated_at: datetime
    lines: list[CartLine] = field(default_factory=list)
    expires_at: datetime | None = None

    @staticmethod
    def open(owner: Owner, now: datetime, expires_at: datetime | None = None) -> Cart:
        if not owner.is_guest and expires_at is not None:
            raise ValidationError("Only guest carts carry an expiry")
        return Cart(owner=owner, created_at=now, updated_at=now, expires_at=expires_at)

    # --- Queries --------------------------------------------------------------

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def find_line(self, product_id: str, catalog_id: str | None = None) -> CartLine | None:
        for line in self.lines:
            if line.matches(product_id, catalog_id):
                return line
        return None

    def find_exact_line(self, product_id: str, quantity: int, store_id: str) -> CartLine | None:
        """The line carrying exactly this product, quantity and store, if any."""
        for line in self.lines:
            if (
                line.product_id == product_id
                and line.quantity == quantity
                and line.store_id == store_id
            ):
                return line
        return None

    def quantity_after_add(self, product_id: str, catalog_id: str | None, quantity: int) -> int:
        existing = self.find_line(product_id, catalog_id)
        return quantity + (existing.quantity if existing else 0)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now > self.expires_at

    # --- Mutations ------------------------------------------------------------

    def add_line(
        self,
        product_id: str,
        store_id: str,
        quantity: int,
        now: datetime,
        catalog_id: str | None = None,
    ) -> CartLine:
        """Add ``quantity`` units, merging into a matching line if present.

        Stock and availability are checked by the caller, which has the
        product at hand; the cart only guards its own invariants.
        """
        Quantity(quantity)
        line = self.find_line(product_id, catalog_id)
        if line is not None:
            line.quantity += quantity
        else:
            line = CartLine(
                product_id=product_id,
                store_id=store_id,
                quantity=quantity,
                added_at=now,
                catalog_id=catalog_id,
            )
            self.lines.append(line)
        self.updated_at = now
        return line

    def set_quantity(
        self,
        product_id: str,
        catalog_id: str | None,
        quantity: int,
        now: datetime,
    ) -> CartLine:
        if not isinstance(quantity, int) or quantity < 1:
            raise ValidationError(
                "Quantity must be at least 1; remove the line instead"
            )
        line = self.find_line(product_id, catalog_id)
        if line is None:
            raise EntityNotFoundError(f"Product '{product_id}' is not in the cart")
        line.quantity = quantity
        self.updated_at = now
        return line

    def remove_product(self, product_id: str, now: datetime, catalog_id: str | None = None) -> None:
        """Drop the product's lines (only the given catalog's if one is named)."""
        kept = [
            line
            for line in self.lines
            if not (
                line.product_id == product_id
                and (catalog_id is None or line.catalog_id == catalog_id)
            )
        ]
        if len(kept) == len(self.lines):
            raise EntityNotFoundError(f"Product '{product_id}' is not in the cart")
        self.lines = kept
        self.updated_at = now

    def clear(self, now: datetime) -> None:
        self.lines = []
        self.updated_at = now

    def remove_lines_for_store(self, store_id: str, now: datetime) -> int:
        before = len(self.lines)
        self.lines = [line for line in self.lines if line.store_id != store_id]
        self.updated_at = now
        return before - len(self.lines)

    def consume(self, items: list[tuple[str, int, str]], now: datetime) -> None:
        """Remove the lines an order was placed from.

        ``items`` holds ``(product_id, quantity, store_id)`` triples, each of
        which must match a line exactly. Lines for other stores stay put.
        """
        for product_id, quantity, store_id in items:
            line = self.find_exact_line(product_id, quantity, store_id)
            if line is None:
                raise ValidationError(
                    f"Cart has no line for product '{product_id}' x{quantity}"
                )
            self.lines.remove(line)
        self.updated_at = now

    def absorb(self, other: Cart, now: datetime) -> int:
        """Fold another cart's lines into this one. Returns lines touched."""
        for line in other.lines:
            existing = self.find_line(line.product_id, line.catalog_id)
            if existing is not None:
                existing.quantity += line.quantity
            else:
                self.lines.append(
                    CartLine(
                        product_id=line.product_id,
                        store_id=line.store_id,
                        quantity=line.quantity,
                        added_at=line.added_at,
                        catalog_id=line.catalog_id,
                    )
                )
        self.updated_at = now
        return len(other.lines)
