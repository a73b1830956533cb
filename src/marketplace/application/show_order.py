"""Application service: Show Order use case (query)."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from marketplace.application.dto import OrderDTO, order_to_dto
from marketplace.domain.exceptions import EntityNotFoundError, ForbiddenError
from marketplace.domain.model.actor import Actor, Role
from marketplace.domain.model.order import Order
from marketplace.domain.model.value_objects import utc_now
from marketplace.domain.repository.unit_of_work import UnitOfWork
from marketplace.domain.service.progress_calculator import calculate_progress


class ShowOrderHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow = uow
        self._clock = clock

    def handle(self, actor: Actor, order_id: int) -> OrderDTO:
        """Return the order with its progress computed as of now.

        Visible to its store, its customer, its assigned driver and admins.
        Drivers may also look at orders currently offered to them.
        A customer also sees orders placed under guest sessions they merged.
        """
        with self._uow:
            order = self._uow.orders.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")
            visible = order.is_visible_to(actor) or self._offered_to(actor, order) or (
                actor.role is Role.CUSTOMER
                and order.guest_session_id is not None
                and self._merged_into(actor, order.guest_session_id)
            )
        if not visible:
            raise ForbiddenError(f"{actor} cannot view order #{order_id}")
        return order_to_dto(order, calculate_progress(order, self._clock()))

    @staticmethod
    def _offered_to(actor: Actor, order: Order) -> bool:
        return (
            actor.role is Role.DRIVER
            and order.is_available_to_drivers
            and actor.identity not in order.excluded_drivers
        )

    def _merged_into(self, actor: Actor, session_id: str) -> bool:
        merge = self._uow.sessions.get_merge(session_id)
        return merge is not None and merge.user_id == actor.identity
