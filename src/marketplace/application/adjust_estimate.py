"""Application service: Adjust Estimate use case."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import structlog

from marketplace.application.dto import OrderDTO, order_to_dto
from marketplace.domain.exceptions import EntityNotFoundError
from marketplace.domain.model.actor import Actor
from marketplace.domain.model.order import DEFAULT_ESTIMATE_MINUTES
from marketplace.domain.model.timeline import Stage
from marketplace.domain.model.value_objects import utc_now
from marketplace.domain.repository.unit_of_work import UnitOfWork
from marketplace.domain.service.progress_calculator import calculate_progress

logger = structlog.get_logger(__name__)


class AdjustEstimateHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Callable[[], datetime] = utc_now,
        default_minutes: int = DEFAULT_ESTIMATE_MINUTES,
    ) -> None:
        self._uow = uow
        self._clock = clock
        self._default_minutes = default_minutes

    def handle(self, actor: Actor, order_id: int, stage: Stage, minutes: int) -> OrderDTO:
        """Move a stage estimate by +/- ``minutes`` (never before now)."""
        now = self._clock()
        with self._uow:
            order = self._uow.orders.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")
            adjusted = order.adjust_estimate(
                stage, minutes, actor, now, default_minutes=self._default_minutes
            )
            self._uow.orders.save(order)
            self._uow.commit()

        logger.info(
            "order_estimate_adjusted",
            order_id=order_id,
            stage=stage.value,
            minutes=minutes,
            estimate=adjusted.isoformat(),
        )
        return order_to_dto(order, calculate_progress(order, now))
