"""Unit tests for the fulfillment state machine.

The grid test walks every (status, role, transition, takeout) combination
and checks it against the transition table: listed moves land on their
target and stamp the milestone, everything else is rejected untouched.
"""

import copy
import itertools
from datetime import timedelta

import pytest

from marketplace.domain.exceptions import AlreadyAssignedError, InvalidTransitionError
from marketplace.domain.model.actor import Actor, Role
from marketplace.domain.model.fulfillment import (
    STATUS_MILESTONE,
    TRANSITION_TABLE,
    OrderStatus,
    Transition,
    allowed_transitions,
    find_rule,
    is_terminal,
    next_status,
)
from marketplace.domain.model.order import Order, OrderLineItem
from marketplace.domain.model.timeline import Actual
from marketplace.domain.model.value_objects import Money, Owner, Quantity
from tests.fakes import T0

NOW = T0 + timedelta(minutes=30)

_WITH_DRIVER = {OrderStatus.ACCEPTED_BY_DRIVER, OrderStatus.PICKED_UP, OrderStatus.DELIVERED}

_IDENTITIES = {
    Role.STORE: "s1",
    Role.CUSTOMER: "u1",
    Role.GUEST: "g1",
    Role.DRIVER: "d1",
    Role.ADMIN: "root",
}


def _order_in(status: OrderStatus, role: Role, takeout: bool) -> Order:
    customer = Owner.guest("g1") if role is Role.GUEST else Owner.user("u1")
    return Order(
        id=1,
        customer=customer,
        store_id="s1",
        items=[OrderLineItem("p1", "Widget", Quantity(1), Money.of("10"))],
        placed_at=T0,
        is_takeout=takeout,
        status=status,
        driver_id="d1" if status in _WITH_DRIVER else None,
    )


def _listed(status, transition, role, takeout):
    for rule in TRANSITION_TABLE:
        if (
            rule.source == status
            and rule.transition == transition
            and rule.applies_to(takeout)
            and rule.permits_role(role)
        ):
            return rule
    return None


GRID = list(itertools.product(OrderStatus, Role, Transition, [True, False]))


@pytest.mark.parametrize("status,role,transition,takeout", GRID)
def test_every_combination_follows_the_table(status, role, transition, takeout):
    order = _order_in(status, role, takeout)
    before = copy.deepcopy(order)
    actor = Actor(_IDENTITIES[role], role)
    driver_id = "d2" if role is Role.ADMIN else None
    rule = _listed(status, transition, role, takeout)

    if rule is None:
        expected = (
            AlreadyAssignedError
            if transition is Transition.CLAIM
            and role in (Role.DRIVER, Role.ADMIN)
            and status in (OrderStatus.ACCEPTED_BY_DRIVER, OrderStatus.PICKED_UP)
            else InvalidTransitionError
        )
        with pytest.raises(expected):
            order.apply(transition, actor, NOW, driver_id=driver_id)
        assert order == before
        return

    previous = order.apply(transition, actor, NOW, driver_id=driver_id)
    assert previous == status
    assert order.status == rule.target
    if rule.target != status and not rule.excludes_driver:
        assert order.stamp(STATUS_MILESTONE[rule.target]) == Actual(NOW)


class TestTable:

    def test_terminal_statuses_have_no_outgoing_rows(self):
        for rule in TRANSITION_TABLE:
            assert not is_terminal(rule.source)

    def test_canceled_by_driver_has_no_incoming_row(self):
        assert all(r.target is not OrderStatus.CANCELED_BY_DRIVER for r in TRANSITION_TABLE)

    def test_next_status(self):
        assert next_status(OrderStatus.PLACED, Transition.ACCEPT, Role.STORE, True) is OrderStatus.ACCEPTED

    def test_wrong_role_is_an_invalid_transition(self):
        with pytest.raises(InvalidTransitionError, match="driver cannot accept"):
            find_rule(OrderStatus.PLACED, Transition.ACCEPT, Role.DRIVER, True)

    def test_claim_requires_takeout(self):
        with pytest.raises(InvalidTransitionError, match="non-takeout"):
            find_rule(OrderStatus.PREPARED, Transition.CLAIM, Role.DRIVER, False)

    def test_receive_from_prepared_only_without_takeout(self):
        assert find_rule(OrderStatus.PREPARED, Transition.RECEIVE, Role.CUSTOMER, False)
        with pytest.raises(InvalidTransitionError):
            find_rule(OrderStatus.PREPARED, Transition.RECEIVE, Role.CUSTOMER, True)

    def test_allowed_transitions_for_store_at_prepared(self):
        assert allowed_transitions(OrderStatus.PREPARED, Role.STORE, True) == [Transition.CANCEL]

    def test_allowed_transitions_for_admin_at_placed(self):
        assert set(allowed_transitions(OrderStatus.PLACED, Role.ADMIN, True)) == {
            Transition.ACCEPT,
            Transition.REJECT,
            Transition.CANCEL,
        }

    @pytest.mark.parametrize(
        "status,role",
        [
            (OrderStatus.RECEIVED, Role.CUSTOMER),
            (OrderStatus.DELIVERED, Role.STORE),
            (OrderStatus.PICKED_UP, Role.CUSTOMER),
        ],
    )
    def test_claim_outside_the_driver_race_is_an_invalid_transition(self, status, role):
        order = _order_in(status, role, True)
        order.driver_id = "d1"
        with pytest.raises(InvalidTransitionError):
            order.apply(Transition.CLAIM, Actor(_IDENTITIES[role], role), NOW)
        assert order.status is status

    def test_late_driver_claim_is_already_assigned(self):
        order = _order_in(OrderStatus.ACCEPTED_BY_DRIVER, Role.DRIVER, True)
        with pytest.raises(AlreadyAssignedError):
            order.apply(Transition.CLAIM, Actor("d2", Role.DRIVER), NOW)
        assert order.driver_id == "d1"

    def test_guest_acts_as_customer(self):
        assert allowed_transitions(OrderStatus.DELIVERED, Role.GUEST, True) == [Transition.RECEIVE]
