"""Application service: Place Order use case.

Turns cart lines into an order. This is the only place that coordinates
the Product, Cart and Order aggregates together, and it does so inside
one unit of work: the stock decrements, the new order and the trimmed
cart are committed together or not at all.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import structlog

from marketplace.application.dto import OrderDTO, OrderItemSpec, order_to_dto
from marketplace.application.owners import resolve_owner
from marketplace.domain.events import EventPublisher, OrderPlaced
from marketplace.domain.exceptions import (
    EntityNotFoundError,
    InsufficientStockError,
    ProductUnavailableError,
    ValidationError,
)
from marketplace.domain.model.actor import Actor, Role
from marketplace.domain.model.order import ContactDetails, Order, OrderLineItem
from marketplace.domain.model.value_objects import Money, Quantity, utc_now
from marketplace.domain.repository.unit_of_work import UnitOfWork
from marketplace.domain.service.authorization import require_role

logger = structlog.get_logger(__name__)


class PlaceOrderHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        publisher: EventPublisher,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow = uow
        self._publisher = publisher
        self._clock = clock

    def handle(
        self,
        actor: Actor,
        store_id: str,
        item_specs: list[OrderItemSpec],
        delivery_fee: str = "0",
        is_takeout: bool = True,
        contact: ContactDetails | None = None,
    ) -> OrderDTO:
        """Place an order for one store from the actor's cart.

        Steps:
        1. Check every requested item against the catalog and the cart
           (exists, sellable, same store, identical cart line, in stock).
           Any failure aborts before anything is touched.
        2. Decrement stock, create the order and remove the consumed
           cart lines.
        3. Commit, then announce the new order.
        """
        require_role(actor, Role.CUSTOMER, Role.GUEST, action="place orders")
        if not item_specs:
            raise ValidationError("Order must contain at least one item")
        requested = [spec.product_id for spec in item_specs]
        if len(set(requested)) != len(requested):
            raise ValidationError("Each product may appear only once per order")
        fee = Money.of(delivery_fee)

        now = self._clock()
        with self._uow:
            owner = resolve_owner(self._uow, actor, now)
            cart = self._uow.carts.get(owner)
            if cart is None or cart.is_empty:
                raise ValidationError("Cart is empty")

            # Phase 1: validate every item before any mutation
            line_items: list[OrderLineItem] = []
            for spec in item_specs:
                quantity = Quantity(spec.quantity)
                product = self._uow.products.get_by_id(spec.product_id)
                if product is None:
                    raise EntityNotFoundError(f"Product '{spec.product_id}' not found")
                if not product.available:
                    raise ProductUnavailableError(
                        f"Product '{product.name}' is not available"
                    )
                if product.store_id != store_id:
                    raise ValidationError(
                        f"Product '{product.name}' is not sold by store '{store_id}'"
                    )
                line = cart.find_exact_line(product.id, quantity.value, store_id)
                if line is None:
                    raise ValidationError(
                        f"Cart has no line for {quantity.value} x '{product.name}'"
                    )
                if not product.can_supply(quantity.value):
                    raise InsufficientStockError(
                        f"Insufficient stock for {product.name} "
                        f"(need {quantity.value}, have {product.stock})"
                    )
                line_items.append(
                    OrderLineItem(
                        product_id=product.id,
                        product_name=product.name,
                        quantity=quantity,
                        unit_price=product.price,  # <-- price snapshot
                        catalog_id=line.catalog_id,
                    )
                )

            order = Order.place(
                customer=owner,
                store_id=store_id,
                items=line_items,
                now=now,
                delivery_fee=fee,
                is_takeout=is_takeout,
                contact=contact,
            )

            # Phase 2: mutate and persist
            for item in line_items:
                self._uow.products.decrement_stock(item.product_id, item.quantity.value)
            self._uow.orders.save(order)
            cart.consume(
                [(item.product_id, item.quantity.value, store_id) for item in line_items],
                now,
            )
            self._uow.carts.save(cart)
            self._uow.commit()

        logger.info(
            "order_placed",
            order_id=order.id,
            customer=owner.key,
            store_id=store_id,
            amount=str(order.amount),
        )
        self._publisher.publish(
            OrderPlaced(
                occurred_at=now,
                order_id=order.id,  # type: ignore[arg-type]
                customer=owner.key,
                store_id=store_id,
                amount=str(order.amount),
            )
        )
        return order_to_dto(order)
