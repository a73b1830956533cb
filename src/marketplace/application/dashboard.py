"""Application service: Dashboard statistics (query)."""

from __future__ import annotations

from marketplace.application.dto import DashboardDTO
from marketplace.application.order_queries import scoped_orders
from marketplace.domain.model.actor import Actor, Role
from marketplace.domain.model.fulfillment import OrderStatus
from marketplace.domain.model.value_objects import Money
from marketplace.domain.repository.unit_of_work import UnitOfWork

_PENDING = frozenset({OrderStatus.PLACED, OrderStatus.ACCEPTED, OrderStatus.PREPARED})
_COMPLETED = frozenset({OrderStatus.DELIVERED, OrderStatus.RECEIVED})


class DashboardHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, actor: Actor) -> DashboardDTO:
        """Order counts and paid revenue over the orders ``actor`` can list.

        Counts other than ``completed`` only look at active orders;
        completed orders include received ones, which are inactive.
        """
        with self._uow:
            orders = scoped_orders(self._uow, actor)
            available = None
            if actor.role is Role.STORE:
                available = sum(
                    1
                    for o in self._uow.orders.list_for_store(actor.identity)
                    if o.is_available_to_drivers
                )

        active = [o for o in orders if o.is_active]
        revenue = Money.zero()
        for order in active:
            if order.is_paid:
                revenue = revenue + order.amount

        return DashboardDTO(
            scope=str(actor),
            total_active=len(active),
            placed=sum(1 for o in active if o.status is OrderStatus.PLACED),
            accepted=sum(1 for o in active if o.status is OrderStatus.ACCEPTED),
            pending=sum(1 for o in active if o.status in _PENDING),
            completed=sum(1 for o in orders if o.status in _COMPLETED),
            revenue=str(revenue),
            available_to_drivers=available,
        )
