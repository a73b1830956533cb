"""Application service: Add Product use case.

The catalog itself is owned elsewhere; this seeds the read model the
cart and placement flows consult.
"""

from __future__ import annotations

from marketplace.domain.exceptions import ValidationError
from marketplace.domain.model.product import Product
from marketplace.domain.model.value_objects import Money
from marketplace.domain.repository.unit_of_work import UnitOfWork


class AddProductHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, name: str, price: str, store_id: str, stock: int = 0) -> Product:
        """Add a new product to the catalog."""
        if not name or not name.strip():
            raise ValidationError("Product name is required")
        if not store_id or not store_id.strip():
            raise ValidationError("Store is required")

        with self._uow:
            products = self._uow.products.list_all()
            for existing in products:
                if existing.store_id == store_id and existing.name.lower() == name.strip().lower():
                    raise ValidationError(f"Store '{store_id}' already sells '{name}'")

            # Auto-assign ID based on existing products
            numeric = [int(p.id) for p in products if p.id.isdigit()]
            next_id = str(max(numeric) + 1) if numeric else "1"

            product = Product(
                id=next_id,
                name=name.strip(),
                store_id=store_id.strip(),
                price=Money.of(price),
            )
            product.update_price(product.price)
            product.set_stock(stock)
            self._uow.products.save(product)
            self._uow.commit()
        return product
