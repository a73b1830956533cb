"""Application services: Cart mutation use cases.

Each handler resolves the actor's cart owner, checks the product against
the live catalog and lets the Cart aggregate enforce its own invariants.
All reads and writes of one call share a single unit of work.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import structlog

from marketplace.application.dto import CartDTO, cart_to_dto
from marketplace.application.owners import get_or_create_cart, resolve_owner
from marketplace.domain.exceptions import (
    EntityNotFoundError,
    InsufficientStockError,
    ProductUnavailableError,
    ValidationError,
)
from marketplace.domain.model.actor import Actor
from marketplace.domain.model.product import Product
from marketplace.domain.model.value_objects import Quantity, utc_now
from marketplace.domain.repository.unit_of_work import UnitOfWork

logger = structlog.get_logger(__name__)


class _CartHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow = uow
        self._clock = clock

    def _sellable_product(self, product_id: str, quantity: int) -> Product:
        product = self._uow.products.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product '{product_id}' not found")
        if not product.available:
            raise ProductUnavailableError(f"Product '{product.name}' is not available")
        if not product.can_supply(quantity):
            raise InsufficientStockError(
                f"Only {product.stock} of '{product.name}' in stock "
                f"(requested {quantity})"
            )
        return product


class AddToCartHandler(_CartHandler):

    def handle(
        self,
        actor: Actor,
        product_id: str,
        quantity: int,
        catalog_id: str | None = None,
    ) -> CartDTO:
        """Add units of a product, merging with a matching line."""
        Quantity(quantity)
        now = self._clock()
        with self._uow:
            owner = resolve_owner(self._uow, actor, now)
            cart = get_or_create_cart(self._uow, owner, now)
            wanted = cart.quantity_after_add(product_id, catalog_id, quantity)
            product = self._sellable_product(product_id, wanted)
            cart.add_line(product.id, product.store_id, quantity, now, catalog_id)
            self._uow.carts.save(cart)
            self._uow.commit()

        logger.info(
            "cart_line_added",
            owner=owner.key,
            product_id=product_id,
            quantity=quantity,
        )
        return cart_to_dto(cart)


class UpdateCartLineHandler(_CartHandler):

    def handle(
        self,
        actor: Actor,
        product_id: str,
        quantity: int,
        catalog_id: str | None = None,
    ) -> CartDTO:
        """Replace a line's quantity. Zero is not allowed; remove instead."""
        if isinstance(quantity, int) and quantity < 1:
            raise ValidationError("Quantity must be at least 1; remove the line instead")
        Quantity(quantity)
        now = self._clock()
        with self._uow:
            owner = resolve_owner(self._uow, actor, now)
            cart = self._uow.carts.get(owner)
            if cart is None or cart.find_line(product_id, catalog_id) is None:
                raise EntityNotFoundError(f"Product '{product_id}' is not in the cart")
            self._sellable_product(product_id, quantity)
            cart.set_quantity(product_id, catalog_id, quantity, now)
            self._uow.carts.save(cart)
            self._uow.commit()

        logger.info(
            "cart_line_updated",
            owner=owner.key,
            product_id=product_id,
            quantity=quantity,
        )
        return cart_to_dto(cart)


class RemoveFromCartHandler(_CartHandler):

    def handle(
        self,
        actor: Actor,
        product_id: str,
        catalog_id: str | None = None,
    ) -> CartDTO:
        now = self._clock()
        with self._uow:
            owner = resolve_owner(self._uow, actor, now)
            cart = self._uow.carts.get(owner)
            if cart is None:
                raise EntityNotFoundError(f"Product '{product_id}' is not in the cart")
            cart.remove_product(product_id, now, catalog_id)
            self._uow.carts.save(cart)
            self._uow.commit()

        logger.info("cart_line_removed", owner=owner.key, product_id=product_id)
        return cart_to_dto(cart)


class ClearCartHandler(_CartHandler):

    def handle(self, actor: Actor) -> None:
        """Empty the cart.

        A user's cart is destroyed outright. A guest cart stays bound to
        its session, so it is only emptied.
        """
        now = self._clock()
        with self._uow:
            owner = resolve_owner(self._uow, actor, now)
            if owner.is_guest:
                cart = get_or_create_cart(self._uow, owner, now)
                cart.clear(now)
                self._uow.carts.save(cart)
            else:
                self._uow.carts.delete(owner)
            self._uow.commit()

        logger.info("cart_cleared", owner=owner.key)


class ClearStoreLinesHandler(_CartHandler):

    def handle(self, actor: Actor, store_id: str) -> CartDTO:
        """Drop every line sold by one store; other stores' lines stay."""
        now = self._clock()
        with self._uow:
            owner = resolve_owner(self._uow, actor, now)
            cart = self._uow.carts.get(owner)
            if cart is None:
                raise EntityNotFoundError(f"No cart for {owner}")
            removed = cart.remove_lines_for_store(store_id, now)
            self._uow.carts.save(cart)
            self._uow.commit()

        logger.info(
            "cart_store_lines_cleared",
            owner=owner.key,
            store_id=store_id,
            removed=removed,
        )
        return cart_to_dto(cart)
