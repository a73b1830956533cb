"""Application service: Add Feedback use case."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import structlog

from marketplace.application.dto import OrderDTO, order_to_dto
from marketplace.application.owners import require_live_guest
from marketplace.domain.exceptions import EntityNotFoundError
from marketplace.domain.model.actor import Actor
from marketplace.domain.model.order import Feedback
from marketplace.domain.model.value_objects import utc_now
from marketplace.domain.repository.unit_of_work import UnitOfWork

logger = structlog.get_logger(__name__)


class AddFeedbackHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow = uow
        self._clock = clock

    def handle(
        self,
        actor: Actor,
        order_id: int,
        rating: int | None = None,
        comment: str | None = None,
        reactions: list[str] | None = None,
    ) -> OrderDTO:
        """Record the customer's rating, comment and reactions.

        Only once the order has been delivered or received. Submitting
        again replaces the earlier feedback.
        """
        feedback = Feedback(
            rating=rating,
            comment=comment.strip() if comment else None,
            reactions=tuple(dict.fromkeys(reactions or ())),
        )
        with self._uow:
            require_live_guest(self._uow, actor, self._clock())
            order = self._uow.orders.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")
            order.record_feedback(feedback, actor)
            self._uow.orders.save(order)
            self._uow.commit()

        logger.info("order_feedback_added", order_id=order_id, rating=rating)
        return order_to_dto(order)
