"""Application services: Order listing queries.

What an actor may list depends on their role: customers see their own
orders (including those placed under guest sessions they later merged),
stores their store's orders, drivers the orders assigned to them, admins
everything.
"""

from __future__ import annotations

from marketplace.application.dto import OrderDTO, OrderFilter, order_to_dto
from marketplace.application.ports import GuestCredentialSigner
from marketplace.domain.exceptions import ValidationError
from marketplace.domain.model.actor import Actor, Role
from marketplace.domain.model.fulfillment import OrderStatus
from marketplace.domain.model.order import Order
from marketplace.domain.model.value_objects import Owner
from marketplace.domain.repository.unit_of_work import UnitOfWork
from marketplace.domain.service.authorization import require_role


def scoped_orders(uow: UnitOfWork, actor: Actor) -> list[Order]:
    """Every order ``actor`` is entitled to list. Needs an open unit of work."""
    if actor.is_admin:
        return uow.orders.list_all()
    if actor.role is Role.STORE:
        return uow.orders.list_for_store(actor.identity)
    if actor.role is Role.DRIVER:
        return uow.orders.list_for_driver(actor.identity)
    if actor.role is Role.GUEST:
        return uow.orders.list_by_guest_session(actor.identity)

    owners = [Owner.user(actor.identity)]
    owners.extend(
        Owner.guest(merge.session_id)
        for merge in uow.sessions.merges_for_user(actor.identity)
    )
    return uow.orders.list_for_customers(owners)


def _parse_statuses(raw: frozenset[str]) -> set[OrderStatus]:
    statuses = set()
    for value in raw:
        try:
            statuses.add(OrderStatus(value))
        except ValueError as exc:
            raise ValidationError(f"Unknown order status '{value}'") from exc
    return statuses


def _matches(order: Order, criteria: OrderFilter, statuses: set[OrderStatus]) -> bool:
    if statuses and order.status not in statuses:
        return False
    if criteria.active_only and not order.is_active:
        return False
    if criteria.placed_from is not None and order.placed_at < criteria.placed_from:
        return False
    if criteria.placed_to is not None and order.placed_at > criteria.placed_to:
        return False
    return True


class ListOrdersHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, actor: Actor, criteria: OrderFilter | None = None) -> list[OrderDTO]:
        """Newest first."""
        criteria = criteria or OrderFilter()
        statuses = _parse_statuses(criteria.statuses)
        if (
            criteria.placed_from is not None
            and criteria.placed_to is not None
            and criteria.placed_from > criteria.placed_to
        ):
            raise ValidationError("placed-from must not be after placed-to")

        with self._uow:
            orders = scoped_orders(self._uow, actor)

        selected = [o for o in orders if _matches(o, criteria, statuses)]
        selected.sort(key=lambda o: (o.placed_at, o.id or 0), reverse=True)
        return [order_to_dto(o) for o in selected]


class AvailableOrdersHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, actor: Actor, driver_id: str | None = None) -> list[OrderDTO]:
        """Prepared takeout orders waiting for a driver, oldest first.

        A driver never sees orders they declined or released. An admin
        sees the feed as ``driver_id`` would, or the whole feed if none
        is named.
        """
        require_role(actor, Role.DRIVER, action="browse available orders")
        driver = actor.identity if actor.role is Role.DRIVER else driver_id

        with self._uow:
            if driver is None:
                orders = [o for o in self._uow.orders.list_all() if o.is_available_to_drivers]
            else:
                orders = self._uow.orders.list_available_for_driver(driver)

        orders.sort(key=lambda o: (o.placed_at, o.id or 0))
        return [order_to_dto(o) for o in orders]


class GuestOrdersHandler:

    def __init__(self, uow: UnitOfWork, signer: GuestCredentialSigner) -> None:
        self._uow = uow
        self._signer = signer

    def handle(self, credential: str) -> list[OrderDTO]:
        """Orders placed under the guest session behind ``credential``."""
        session_id = self._signer.verify(credential)
        with self._uow:
            orders = self._uow.orders.list_by_guest_session(session_id)
        orders.sort(key=lambda o: (o.placed_at, o.id or 0), reverse=True)
        return [order_to_dto(o) for o in orders]
