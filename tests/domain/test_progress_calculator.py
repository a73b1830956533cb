"""Tests for the progress calculator."""

from datetime import timedelta

from marketplace.domain.model.actor import Actor, Role
from marketplace.domain.model.fulfillment import Transition
from marketplace.domain.model.order import Order, OrderLineItem
from marketplace.domain.model.timeline import Stage
from marketplace.domain.model.value_objects import Money, Owner, Quantity
from marketplace.domain.service.progress_calculator import (
    calculate_progress,
    estimate_for,
    stage_progress,
)
from tests.fakes import T0

STORE = Actor("s1", Role.STORE)
DRIVER = Actor("d1", Role.DRIVER)


def _at(minutes: float):
    return T0 + timedelta(minutes=minutes)


def _accepted() -> Order:
    item = OrderLineItem("p1", "Widget", Quantity(1), Money.of("5.00"))
    order = Order.place(Owner.user("u1"), "s1", [item], T0)
    order.id = 1
    order.apply(Transition.ACCEPT, STORE, T0)
    return order


class TestStageProgress:

    def test_halfway_through_preparation(self):
        progress = stage_progress(_accepted(), Stage.PREPARATION, _at(5))
        assert progress.percent == 50
        assert progress.minutes_left == 5

    def test_minutes_round_up(self):
        progress = stage_progress(_accepted(), Stage.PREPARATION, _at(0.5))
        assert progress.percent == 5
        assert progress.minutes_left == 10

    def test_overdue_stage_caps_at_100_with_no_time_left(self):
        progress = stage_progress(_accepted(), Stage.PREPARATION, _at(25))
        assert progress.percent == 100
        assert progress.minutes_left == 0

    def test_unreached_stage_has_no_estimate(self):
        progress = stage_progress(_accepted(), Stage.PICKUP, _at(5))
        assert progress.percent == 0
        assert progress.minutes_left is None

    def test_completed_stage_is_full(self):
        order = _accepted()
        order.apply(Transition.PREPARE, STORE, _at(3))
        progress = stage_progress(order, Stage.PREPARATION, _at(4))
        assert progress.percent == 100
        assert progress.minutes_left == 0

    def test_pickup_measured_from_claim(self):
        order = _accepted()
        order.apply(Transition.PREPARE, STORE, _at(3))
        order.apply(Transition.CLAIM, DRIVER, _at(4))
        progress = stage_progress(order, Stage.PICKUP, _at(9))
        assert progress.percent == 50
        assert progress.minutes_left == 5

    def test_percent_never_decreases(self):
        order = _accepted()
        samples = [stage_progress(order, Stage.PREPARATION, _at(m)).percent for m in range(0, 15)]
        assert samples == sorted(samples)


class TestOverallProgress:

    def test_weights_follow_status(self):
        order = _accepted()
        assert calculate_progress(order, _at(1)).overall == 20
        order.apply(Transition.PREPARE, STORE, _at(2))
        assert calculate_progress(order, _at(3)).overall == 40

    def test_canceled_order(self):
        order = _accepted()
        order.apply(Transition.CANCEL, STORE, _at(2))
        progress = calculate_progress(order, _at(3))
        assert progress.overall == 0
        assert progress.is_canceled
        assert not progress.is_completed
        assert all(stage.minutes_left is None for stage in progress.stages.values())

    def test_estimate_for(self):
        order = _accepted()
        assert estimate_for(order, Stage.PREPARATION) == _at(10)
        assert estimate_for(order, Stage.DELIVERY) is None
