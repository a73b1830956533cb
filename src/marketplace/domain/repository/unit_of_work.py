"""Unit of Work: one atomic batch of repository changes.

Handlers open a unit of work with ``with uow:``, do their reads and
writes through its repositories and call ``commit()``. Leaving the block
without committing discards every change made inside it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from marketplace.domain.repository.cart_repository import CartRepository
from marketplace.domain.repository.order_repository import OrderRepository
from marketplace.domain.repository.product_repository import ProductRepository
from marketplace.domain.repository.session_repository import SessionRepository


class UnitOfWork(ABC):
    products: ProductRepository
    carts: CartRepository
    sessions: SessionRepository
    orders: OrderRepository

    def __enter__(self) -> UnitOfWork:
        self._committed = False
        self._begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if not self._committed:
                self.rollback()
        finally:
            self._end()

    def commit(self) -> None:
        self._commit()
        self._committed = True

    @abstractmethod
    def _begin(self) -> None:
        """Start the batch (take locks, load state)."""

    @abstractmethod
    def _commit(self) -> None:
        """Make every change in the batch durable at once."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard every uncommitted change."""

    def _end(self) -> None:
        """Release whatever ``_begin`` acquired."""
