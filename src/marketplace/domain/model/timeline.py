"""Per-milestone timestamps for an order.

Each milestone is in exactly one of three states: not reached, reached
only as a planning estimate, or actually reached at a recorded time.
Modelling that explicitly keeps the progress calculator free of
``None`` checks.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Union


class Milestone(Enum):
    PLACED = "placed"
    ACCEPTED = "accepted"
    PREPARED = "prepared"
    DRIVER_ASSIGNED = "driver_assigned"
    PICKED_UP = "picked_up"
    DELIVERED = "delivered"
    RECEIVED = "received"
    REJECTED = "rejected"
    CANCELED = "canceled"


@dataclass(frozen=True)
class NotReached:
    @property
    def is_actual(self) -> bool:
        return False


@dataclass(frozen=True)
class Estimated:
    at: datetime

    @property
    def is_actual(self) -> bool:
        return False


@dataclass(frozen=True)
class Actual:
    at: datetime

    @property
    def is_actual(self) -> bool:
        return True


StageTime = Union[NotReached, Estimated, Actual]

NOT_REACHED = NotReached()


def empty_timeline(placed_at: datetime) -> dict[Milestone, StageTime]:
    timeline: dict[Milestone, StageTime] = {m: NOT_REACHED for m in Milestone}
    timeline[Milestone.PLACED] = Actual(placed_at)
    return timeline


class Stage(Enum):
    """A stretch of work whose end carries an adjustable estimate."""

    PREPARATION = "preparation"
    PICKUP = "pickup"
    DELIVERY = "delivery"

    @property
    def start(self) -> Milestone:
        return _STAGE_BOUNDS[self][0]

    @property
    def end(self) -> Milestone:
        return _STAGE_BOUNDS[self][1]


_STAGE_BOUNDS: dict[Stage, tuple[Milestone, Milestone]] = {
    Stage.PREPARATION: (Milestone.ACCEPTED, Milestone.PREPARED),
    Stage.PICKUP: (Milestone.DRIVER_ASSIGNED, Milestone.PICKED_UP),
    Stage.DELIVERY: (Milestone.PICKED_UP, Milestone.DELIVERED),
}
