"""Abstract repository for Cart aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from marketplace.domain.model.cart import Cart
from marketplace.domain.model.value_objects import Owner


class CartRepository(ABC):

    @abstractmethod
    def get(self, owner: Owner) -> Cart | None:
        """Return the owner's cart, or None if it has none."""

    @abstractmethod
    def save(self, cart: Cart) -> None:
        """Persist a new or updated cart."""

    @abstractmethod
    def delete(self, owner: Owner) -> bool:
        """Remove the owner's cart. Returns False if it was already gone."""

    @abstractmethod
    def list_guest_carts(self) -> list[Cart]:
        """Return every cart owned by a guest session."""
