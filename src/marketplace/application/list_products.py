"""Application service: List Products use case (query)."""

from __future__ import annotations

from marketplace.domain.model.product import Product
from marketplace.domain.repository.unit_of_work import UnitOfWork


class ListProductsHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, store_id: str | None = None) -> list[Product]:
        with self._uow:
            if store_id is None:
                products = self._uow.products.list_all()
            else:
                products = self._uow.products.list_by_store(store_id)
        return sorted(products, key=lambda p: (p.store_id, p.name.lower()))
