"""Application service: Transition Order use case.

One entry point for every lifecycle move (accept, reject, cancel,
prepare, claim, decline, release, pick-up, deliver, receive). The Order
aggregate validates the move against the transition table; this handler
only loads, saves and announces.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import structlog

from marketplace.application.dto import OrderDTO, order_to_dto
from marketplace.application.owners import require_live_guest
from marketplace.domain.events import EventPublisher, OrderStatusChanged
from marketplace.domain.exceptions import EntityNotFoundError
from marketplace.domain.model.actor import Actor
from marketplace.domain.model.fulfillment import Transition
from marketplace.domain.model.order import DEFAULT_ESTIMATE_MINUTES
from marketplace.domain.model.value_objects import utc_now
from marketplace.domain.repository.unit_of_work import UnitOfWork

logger = structlog.get_logger(__name__)


class TransitionOrderHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        publisher: EventPublisher,
        clock: Callable[[], datetime] = utc_now,
        estimate_minutes: int = DEFAULT_ESTIMATE_MINUTES,
    ) -> None:
        self._uow = uow
        self._publisher = publisher
        self._clock = clock
        self._estimate_minutes = estimate_minutes

    def handle(
        self,
        actor: Actor,
        order_id: int,
        transition: Transition,
        driver_id: str | None = None,
    ) -> OrderDTO:
        """Apply ``transition`` to the order on behalf of ``actor``.

        Rejections (InvalidTransition, Forbidden, AlreadyAssigned) leave
        the stored order untouched. A guest whose session was merged or
        has lapsed can no longer move its orders. A concurrent writer that
        got there first surfaces as ConflictError from the repository.
        """
        now = self._clock()
        with self._uow:
            require_live_guest(self._uow, actor, now)
            order = self._uow.orders.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")

            previous = order.apply(
                transition,
                actor,
                now,
                driver_id=driver_id,
                estimate_minutes=self._estimate_minutes,
            )
            self._uow.orders.save(order)
            self._uow.commit()

        logger.info(
            "order_transitioned",
            order_id=order_id,
            transition=transition.value,
            previous=previous.value,
            status=order.status.value,
            actor=str(actor),
        )
        if order.status is not previous:
            self._publisher.publish(
                OrderStatusChanged(
                    occurred_at=now,
                    order_id=order_id,
                    previous=previous.value,
                    current=order.status.value,
                    transition=transition.value,
                    actor=str(actor),
                )
            )
        return order_to_dto(order)
