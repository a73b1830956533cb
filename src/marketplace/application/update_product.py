"""Application service: Update Product use case."""

from __future__ import annotations

from marketplace.domain.exceptions import EntityNotFoundError, ValidationError
from marketplace.domain.model.product import Product
from marketplace.domain.model.value_objects import Money
from marketplace.domain.repository.unit_of_work import UnitOfWork


class UpdateProductHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        product_id: str,
        new_price: str | None = None,
        available: bool | None = None,
        stock: int | None = None,
    ) -> Product:
        """Update a product's price, availability or stock level.

        This does NOT affect any existing orders; they captured a
        price snapshot at placement time.
        """
        if new_price is None and available is None and stock is None:
            raise ValidationError("Nothing to update")

        with self._uow:
            product = self._uow.products.get_by_id(product_id)
            if product is None:
                raise EntityNotFoundError(f"Product with ID '{product_id}' not found")

            if new_price is not None:
                product.update_price(Money.of(new_price))
            if available is not None:
                product.available = available
            if stock is not None:
                product.set_stock(stock)
            self._uow.products.save(product)
            self._uow.commit()
        return product
