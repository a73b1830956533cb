"""Application services: Cart queries (contents, count, total, validity)."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from marketplace.application.dto import CartDTO, CartIssueDTO, cart_to_dto
from marketplace.application.owners import get_or_create_cart, resolve_owner
from marketplace.domain.model.actor import Actor
from marketplace.domain.model.cart import Cart
from marketplace.domain.model.value_objects import Money, utc_now
from marketplace.domain.repository.unit_of_work import UnitOfWork


class ShowCartHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow = uow
        self._clock = clock

    def handle(self, actor: Actor) -> CartDTO:
        """Return the actor's cart, priced at today's catalog prices.

        Opens an empty cart if the owner has none yet. Lines whose product
        has left the catalog do not count towards the total.
        """
        now = self._clock()
        with self._uow:
            owner = resolve_owner(self._uow, actor, now)
            cart = self._uow.carts.get(owner)
            if cart is None:
                cart = get_or_create_cart(self._uow, owner, now)
                self._uow.carts.save(cart)
                self._uow.commit()
            total = self._price(cart)
        return cart_to_dto(cart, total=str(total))

    def _price(self, cart: Cart) -> Money:
        total = Money.zero()
        for line in cart.lines:
            product = self._uow.products.get_by_id(line.product_id)
            if product is None:
                continue
            total = total + product.price * line.quantity
        return total


class ValidateCartHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow = uow
        self._clock = clock

    def handle(self, actor: Actor) -> list[CartIssueDTO]:
        """List the lines that could not be ordered as they stand."""
        now = self._clock()
        issues: list[CartIssueDTO] = []
        with self._uow:
            owner = resolve_owner(self._uow, actor, now)
            cart = self._uow.carts.get(owner)
            if cart is None:
                return issues
            for line in cart.lines:
                product = self._uow.products.get_by_id(line.product_id)
                if product is None:
                    issues.append(CartIssueDTO(
                        product_id=line.product_id,
                        catalog_id=line.catalog_id,
                        action="remove",
                        reason="Product no longer exists",
                    ))
                elif not product.available:
                    issues.append(CartIssueDTO(
                        product_id=line.product_id,
                        catalog_id=line.catalog_id,
                        action="remove",
                        reason=f"'{product.name}' is no longer available",
                    ))
                elif not product.can_supply(line.quantity):
                    if product.stock == 0:
                        issues.append(CartIssueDTO(
                            product_id=line.product_id,
                            catalog_id=line.catalog_id,
                            action="remove",
                            reason=f"'{product.name}' is out of stock",
                        ))
                    else:
                        issues.append(CartIssueDTO(
                            product_id=line.product_id,
                            catalog_id=line.catalog_id,
                            action="update",
                            reason=f"Only {product.stock} of '{product.name}' left",
                            max_quantity=product.stock,
                        ))
        return issues
