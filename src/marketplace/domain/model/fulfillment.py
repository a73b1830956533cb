"""Fulfillment state machine: the single legality table for order moves.

Every lifecycle move an order can make is one row of ``TRANSITION_TABLE``.
Looking a move up is pure: given the current status, the requested
transition, the acting role and whether the order is takeout, either a
rule comes back or ``InvalidTransitionError`` is raised. Ownership
(is this *the* store / *the* assigned driver?) is checked by the Order
aggregate, which knows the parties.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from marketplace.domain.exceptions import InvalidTransitionError
from marketplace.domain.model.actor import Role
from marketplace.domain.model.timeline import Milestone


class OrderStatus(Enum):
    PLACED = "placed"
    ACCEPTED = "accepted"
    PREPARED = "prepared"
    ACCEPTED_BY_DRIVER = "accepted-by-driver"
    PICKED_UP = "picked-up"
    DELIVERED = "delivered"
    RECEIVED = "received"
    REJECTED = "rejected"
    CANCELED_BY_CUSTOMER = "canceled-by-customer"
    CANCELED_BY_STORE = "canceled-by-store"
    CANCELED_BY_DRIVER = "canceled-by-driver"


TERMINAL_STATUSES = frozenset({
    OrderStatus.RECEIVED,
    OrderStatus.REJECTED,
    OrderStatus.CANCELED_BY_CUSTOMER,
    OrderStatus.CANCELED_BY_STORE,
    OrderStatus.CANCELED_BY_DRIVER,
})

CANCELED_STATUSES = frozenset({
    OrderStatus.REJECTED,
    OrderStatus.CANCELED_BY_CUSTOMER,
    OrderStatus.CANCELED_BY_STORE,
    OrderStatus.CANCELED_BY_DRIVER,
})

# Position along the happy path. Closed-without-receipt statuses have none.
STATUS_RANK: dict[OrderStatus, int] = {
    OrderStatus.PLACED: 0,
    OrderStatus.ACCEPTED: 1,
    OrderStatus.PREPARED: 2,
    OrderStatus.ACCEPTED_BY_DRIVER: 3,
    OrderStatus.PICKED_UP: 4,
    OrderStatus.DELIVERED: 5,
    OrderStatus.RECEIVED: 6,
}

# The milestone stamped with an actual time when a status is entered.
STATUS_MILESTONE: dict[OrderStatus, Milestone] = {
    OrderStatus.PLACED: Milestone.PLACED,
    OrderStatus.ACCEPTED: Milestone.ACCEPTED,
    OrderStatus.PREPARED: Milestone.PREPARED,
    OrderStatus.ACCEPTED_BY_DRIVER: Milestone.DRIVER_ASSIGNED,
    OrderStatus.PICKED_UP: Milestone.PICKED_UP,
    OrderStatus.DELIVERED: Milestone.DELIVERED,
    OrderStatus.RECEIVED: Milestone.RECEIVED,
    OrderStatus.REJECTED: Milestone.REJECTED,
    OrderStatus.CANCELED_BY_CUSTOMER: Milestone.CANCELED,
    OrderStatus.CANCELED_BY_STORE: Milestone.CANCELED,
    OrderStatus.CANCELED_BY_DRIVER: Milestone.CANCELED,
}

# Entering the key status seeds an estimate on the value milestone.
SEEDED_ESTIMATES: dict[OrderStatus, Milestone] = {
    OrderStatus.ACCEPTED: Milestone.PREPARED,
    OrderStatus.ACCEPTED_BY_DRIVER: Milestone.PICKED_UP,
    OrderStatus.PICKED_UP: Milestone.DELIVERED,
}


class Transition(Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    CANCEL = "cancel"
    PREPARE = "prepare"
    CLAIM = "claim"
    DECLINE = "decline"
    RELEASE = "release"
    PICK_UP = "pick-up"
    DELIVER = "deliver"
    RECEIVE = "receive"


class Party(Enum):
    """Which side of the order a rule belongs to."""

    STORE = "store"
    CUSTOMER = "customer"
    ASSIGNED_DRIVER = "assigned driver"
    ANY_DRIVER = "any driver"


PARTY_ROLES: dict[Party, frozenset[Role]] = {
    Party.STORE: frozenset({Role.STORE}),
    Party.CUSTOMER: frozenset({Role.CUSTOMER, Role.GUEST}),
    Party.ASSIGNED_DRIVER: frozenset({Role.DRIVER}),
    Party.ANY_DRIVER: frozenset({Role.DRIVER}),
}


@dataclass(frozen=True)
class TransitionRule:
    source: OrderStatus
    transition: Transition
    party: Party
    target: OrderStatus
    takeout: bool | None = None  # None: applies to takeout and non-takeout alike

    def applies_to(self, is_takeout: bool) -> bool:
        return self.takeout is None or self.takeout == is_takeout

    def permits_role(self, role: Role) -> bool:
        return role is Role.ADMIN or role in PARTY_ROLES[self.party]

    @property
    def excludes_driver(self) -> bool:
        return self.transition in (Transition.DECLINE, Transition.RELEASE)


TRANSITION_TABLE: tuple[TransitionRule, ...] = (
    TransitionRule(OrderStatus.PLACED, Transition.ACCEPT, Party.STORE, OrderStatus.ACCEPTED),
    TransitionRule(OrderStatus.PLACED, Transition.REJECT, Party.STORE, OrderStatus.REJECTED),
    TransitionRule(OrderStatus.PLACED, Transition.CANCEL, Party.CUSTOMER, OrderStatus.CANCELED_BY_CUSTOMER),
    TransitionRule(OrderStatus.ACCEPTED, Transition.PREPARE, Party.STORE, OrderStatus.PREPARED),
    TransitionRule(OrderStatus.ACCEPTED, Transition.CANCEL, Party.STORE, OrderStatus.CANCELED_BY_STORE),
    TransitionRule(OrderStatus.PREPARED, Transition.CLAIM, Party.ANY_DRIVER, OrderStatus.ACCEPTED_BY_DRIVER, takeout=True),
    TransitionRule(OrderStatus.PREPARED, Transition.DECLINE, Party.ANY_DRIVER, OrderStatus.PREPARED, takeout=True),
    TransitionRule(OrderStatus.PREPARED, Transition.CANCEL, Party.STORE, OrderStatus.CANCELED_BY_STORE),
    TransitionRule(OrderStatus.PREPARED, Transition.RECEIVE, Party.CUSTOMER, OrderStatus.RECEIVED, takeout=False),
    TransitionRule(OrderStatus.ACCEPTED_BY_DRIVER, Transition.PICK_UP, Party.ASSIGNED_DRIVER, OrderStatus.PICKED_UP, takeout=True),
    TransitionRule(OrderStatus.ACCEPTED_BY_DRIVER, Transition.RELEASE, Party.ASSIGNED_DRIVER, OrderStatus.PREPARED, takeout=True),
    TransitionRule(OrderStatus.PICKED_UP, Transition.DELIVER, Party.ASSIGNED_DRIVER, OrderStatus.DELIVERED),
    TransitionRule(OrderStatus.DELIVERED, Transition.RECEIVE, Party.CUSTOMER, OrderStatus.RECEIVED),
)

_RULES: dict[tuple[OrderStatus, Transition], TransitionRule] = {
    (rule.source, rule.transition): rule for rule in TRANSITION_TABLE
}


def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL_STATUSES


def find_rule(
    status: OrderStatus,
    transition: Transition,
    role: Role,
    is_takeout: bool,
) -> TransitionRule:
    """Return the rule for this move or raise ``InvalidTransitionError``.

    Admin matches any row's role but never a row that does not exist.
    """
    rule = _RULES.get((status, transition))
    if rule is None or not rule.applies_to(is_takeout):
        kind = "takeout" if is_takeout else "non-takeout"
        raise InvalidTransitionError(
            f"Cannot {transition.value} a {kind} order in status '{status.value}'"
        )
    if not rule.permits_role(role):
        raise InvalidTransitionError(
            f"A {role.value} cannot {transition.value} an order in status "
            f"'{status.value}'"
        )
    return rule


def next_status(
    status: OrderStatus,
    transition: Transition,
    role: Role,
    is_takeout: bool,
) -> OrderStatus:
    return find_rule(status, transition, role, is_takeout).target


def allowed_transitions(
    status: OrderStatus,
    role: Role,
    is_takeout: bool,
) -> list[Transition]:
    return [
        rule.transition
        for rule in TRANSITION_TABLE
        if rule.source == status
        and rule.applies_to(is_takeout)
        and rule.permits_role(role)
    ]
