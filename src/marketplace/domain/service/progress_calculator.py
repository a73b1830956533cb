"""Domain service: Progress Calculator.

Derives how far along an order is from its status and milestone
timeline. Pure and read-time only: nothing computed here is ever stored
on the order, so the numbers cannot go stale.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from marketplace.domain.model.fulfillment import (
    CANCELED_STATUSES,
    STATUS_RANK,
    OrderStatus,
)
from marketplace.domain.model.order import Order
from marketplace.domain.model.timeline import Actual, Estimated, Milestone, NotReached, Stage

# Overall completion by status. Closed-without-receipt orders count as 0.
STATUS_WEIGHTS: dict[OrderStatus, int] = {
    OrderStatus.PLACED: 10,
    OrderStatus.ACCEPTED: 20,
    OrderStatus.PREPARED: 40,
    OrderStatus.ACCEPTED_BY_DRIVER: 55,
    OrderStatus.PICKED_UP: 70,
    OrderStatus.DELIVERED: 90,
    OrderStatus.RECEIVED: 100,
}

# The status that marks each stage as done.
_STAGE_DONE: dict[Stage, OrderStatus] = {
    Stage.PREPARATION: OrderStatus.PREPARED,
    Stage.PICKUP: OrderStatus.PICKED_UP,
    Stage.DELIVERY: OrderStatus.DELIVERED,
}


@dataclass(frozen=True)
class StageProgress:
    stage: Stage
    percent: int
    minutes_left: int | None


@dataclass(frozen=True)
class OrderProgress:
    overall: int
    stages: dict[Stage, StageProgress]
    is_completed: bool
    is_canceled: bool


def _stage_passed(order: Order, stage: Stage) -> bool:
    rank = STATUS_RANK.get(order.status)
    return rank is not None and rank >= STATUS_RANK[_STAGE_DONE[stage]]


def stage_progress(order: Order, stage: Stage, now: datetime) -> StageProgress:
    end = order.stamp(stage.end)
    if isinstance(end, NotReached):
        return StageProgress(stage, 0, None)
    if isinstance(end, Actual) or _stage_passed(order, stage):
        return StageProgress(stage, 100, 0)

    start_stamp = order.stamp(stage.start)
    if isinstance(start_stamp, Actual):
        start = start_stamp.at
    else:
        start = order.stamp(Milestone.PLACED).at  # type: ignore[union-attr]

    span = (end.at - start).total_seconds()
    if span <= 0:
        percent = 100 if now >= end.at else 0
    else:
        elapsed = (now - start).total_seconds()
        percent = round(min(100.0, max(0.0, elapsed / span * 100)))

    remaining = (end.at - now).total_seconds()
    minutes_left = max(0, math.ceil(remaining / 60))
    return StageProgress(stage, percent, minutes_left)


def calculate_progress(order: Order, now: datetime) -> OrderProgress:
    """Compute per-stage and overall progress of ``order`` as of ``now``."""
    return OrderProgress(
        overall=STATUS_WEIGHTS.get(order.status, 0),
        stages={stage: stage_progress(order, stage, now) for stage in Stage},
        is_completed=order.status in (OrderStatus.DELIVERED, OrderStatus.RECEIVED),
        is_canceled=order.status in CANCELED_STATUSES,
    )


def estimate_for(order: Order, stage: Stage) -> datetime | None:
    stamp = order.stamp(stage.end)
    return stamp.at if isinstance(stamp, Estimated) else None
