"""JSON-document-backed implementation of ProductRepository."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from marketplace.domain.model.product import Product
from marketplace.domain.model.value_objects import Money
from marketplace.domain.repository.product_repository import ProductRepository


class JsonProductRepository(ProductRepository):

    def __init__(self, collection: dict[str, Any]) -> None:
        self._products = collection

    # --- ProductRepository interface ------------------------------------------

    def get_by_id(self, product_id: str) -> Product | None:
        raw = self._products.get(product_id)
        return self._to_domain(raw) if raw is not None else None

    def list_all(self) -> list[Product]:
        return [self._to_domain(raw) for raw in self._products.values()]

    def save(self, product: Product) -> None:
        self._products[product.id] = self._to_raw(product)

    # --- Serialization helpers ------------------------------------------------

    @staticmethod
    def _to_raw(product: Product) -> dict:
        return {
            "id": product.id,
            "name": product.name,
            "store_id": product.store_id,
            "price": str(product.price.amount),
            "currency": product.price.currency,
            "stock": product.stock,
            "available": product.available,
        }

    @staticmethod
    def _to_domain(raw: dict) -> Product:
        return Product(
            id=raw["id"],
            name=raw["name"],
            store_id=raw["store_id"],
            price=Money(Decimal(raw["price"]), raw.get("currency", "USD")),
            stock=raw.get("stock", 0),
            available=raw.get("available", True),
        )
