"""Application service: Set Payment use case.

Only flips the order's paid flag; taking the payment happens elsewhere.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import structlog

from marketplace.application.dto import OrderDTO, order_to_dto
from marketplace.application.owners import require_live_guest
from marketplace.domain.exceptions import EntityNotFoundError
from marketplace.domain.model.actor import Actor
from marketplace.domain.model.value_objects import utc_now
from marketplace.domain.repository.unit_of_work import UnitOfWork

logger = structlog.get_logger(__name__)


class SetPaymentHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow = uow
        self._clock = clock

    def handle(self, actor: Actor, order_id: int, paid: bool) -> OrderDTO:
        with self._uow:
            require_live_guest(self._uow, actor, self._clock())
            order = self._uow.orders.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")
            order.set_payment(paid, actor)
            self._uow.orders.save(order)
            self._uow.commit()

        logger.info("order_payment_set", order_id=order_id, paid=paid, actor=str(actor))
        return order_to_dto(order)
