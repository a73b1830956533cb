"""Abstract repository for the Product read model.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (JSON, SQL, in-memory)
live in the infrastructure layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from marketplace.domain.exceptions import EntityNotFoundError
from marketplace.domain.model.product import Product


class ProductRepository(ABC):

    @abstractmethod
    def get_by_id(self, product_id: str) -> Product | None:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Product]:
        """Return every product in the catalog."""

    @abstractmethod
    def save(self, product: Product) -> None:
        """Persist a new or updated product."""

    def list_by_store(self, store_id: str) -> list[Product]:
        return [p for p in self.list_all() if p.store_id == store_id]

    def decrement_stock(self, product_id: str, amount: int) -> Product:
        """Take ``amount`` units out of stock or raise InsufficientStockError.

        Atomic with respect to the unit of work the repository belongs to.
        """
        product = self.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product '{product_id}' not found")
        product.decrement_stock(amount)
        self.save(product)
        return product
