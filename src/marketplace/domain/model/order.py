"""Order aggregate: the core of the domain.

The Order is an aggregate root that owns its line items, its milestone
timeline and its driver bookkeeping. Every lifecycle move goes through
``apply()``, which consults the transition table in ``fulfillment`` and
then checks that the actor is the right party for this particular order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from marketplace.domain.exceptions import (
    AlreadyAssignedError,
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    ValidationError,
)
from marketplace.domain.model.actor import Actor, Role
from marketplace.domain.model.fulfillment import (
    SEEDED_ESTIMATES,
    STATUS_MILESTONE,
    OrderStatus,
    Party,
    Transition,
    TransitionRule,
    find_rule,
    is_terminal,
)
from marketplace.domain.model.timeline import (
    NOT_REACHED,
    Actual,
    Estimated,
    Milestone,
    Stage,
    StageTime,
    empty_timeline,
)
from marketplace.domain.model.value_objects import Money, Owner, Quantity


@dataclass
class OrderLineItem:
    """Captures the price snapshot of a product at placement time."""

    product_id: str
    product_name: str
    quantity: Quantity
    unit_price: Money  # locked at placement time
    catalog_id: str | None = None

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value


@dataclass(frozen=True)
class ContactDetails:
    name: str | None = None
    phone: str | None = None
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None


REACTIONS = frozenset({"like", "dislike", "love", "angry", "sad", "laugh"})


@dataclass(frozen=True)
class Feedback:
    rating: int | None = None
    comment: str | None = None
    reactions: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.rating is not None:
            if isinstance(self.rating, bool) or not isinstance(self.rating, int):
                raise ValidationError("Rating must be an integer")
            if not 1 <= self.rating <= 5:
                raise ValidationError("Rating must be between 1 and 5")
        unknown = sorted(set(self.reactions) - REACTIONS)
        if unknown:
            raise ValidationError(f"Unknown reaction(s): {', '.join(unknown)}")
        if self.rating is None and not self.comment and not self.reactions:
            raise ValidationError("Feedback needs a rating, a comment or a reaction")


# ---------------------------------------------------------------------------
# Constants for business rules
# ---------------------------------------------------------------------------
MAX_LINE_ITEMS = 50
DEFAULT_ESTIMATE_MINUTES = 10

# Which status an estimate may be adjusted in, and by whom.
ADJUSTABLE_STAGES: dict[Stage, tuple[OrderStatus, Party]] = {
    Stage.PREPARATION: (OrderStatus.ACCEPTED, Party.STORE),
    Stage.PICKUP: (OrderStatus.ACCEPTED_BY_DRIVER, Party.ASSIGNED_DRIVER),
    Stage.DELIVERY: (OrderStatus.PICKED_UP, Party.ASSIGNED_DRIVER),
}

FEEDBACK_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.RECEIVED})

# A late claim in these statuses lost the race to another driver.
CLAIMED_STATUSES = frozenset({OrderStatus.ACCEPTED_BY_DRIVER, OrderStatus.PICKED_UP})


@dataclass
class Order:
    """Aggregate root for marketplace orders.

    Use the ``Order.place()`` factory for new orders; it enforces all
    business rules. The ``__init__`` is intentionally simple so the
    repository can reconstitute persisted orders without re-validating.
    """

    id: int | None
    customer: Owner
    store_id: str
    items: list[OrderLineItem]
    placed_at: datetime
    delivery_fee: Money = field(default_factory=Money.zero)
    is_takeout: bool = True
    status: OrderStatus = OrderStatus.PLACED
    driver_id: str | None = None
    excluded_drivers: set[str] = field(default_factory=set)
    is_paid: bool = False
    is_active: bool = True
    timeline: dict[Milestone, StageTime] = field(default_factory=dict)
    contact: ContactDetails = field(default_factory=ContactDetails)
    feedback: Feedback | None = None
    version: int = 0

    def __post_init__(self) -> None:
        if not self.timeline:
            self.timeline = empty_timeline(self.placed_at)

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def place(
        customer: Owner,
        store_id: str,
        items: list[OrderLineItem],
        now: datetime,
        delivery_fee: Money | None = None,
        is_takeout: bool = True,
        contact: ContactDetails | None = None,
    ) -> Order:
        """Create a new order, enforcing all invariants."""
        if not store_id or not store_id.strip():
            raise ValidationError("Store is required")

        if not items:
            raise ValidationError("Order must contain at least one item")

        if len(items) > MAX_LINE_ITEMS:
            raise ValidationError(f"Maximum {MAX_LINE_ITEMS} items per order")

        fee = delivery_fee or Money.zero()
        seen: set[str] = set()
        for item in items:
            if item.product_id in seen:
                raise ValidationError(
                    f"Product '{item.product_id}' appears more than once"
                )
            if item.unit_price.currency != fee.currency:
                raise ValidationError(
                    f"Cannot combine {item.unit_price.currency} with {fee.currency}"
                )
            seen.add(item.product_id)

        return Order(
            id=None,
            customer=customer,
            store_id=store_id,
            items=list(items),
            placed_at=now,
            delivery_fee=fee,
            is_takeout=is_takeout,
            contact=contact or ContactDetails(),
        )

    # --- State transitions ----------------------------------------------------

    def apply(
        self,
        transition: Transition,
        actor: Actor,
        now: datetime,
        driver_id: str | None = None,
        estimate_minutes: int = DEFAULT_ESTIMATE_MINUTES,
    ) -> OrderStatus:
        """Run one lifecycle move and return the status it left.

        Nothing is mutated unless every check passes. ``driver_id`` is
        only consulted when an admin claims or declines on a driver's
        behalf; a driver always acts as themselves.
        """
        if self._claim_lost(transition, actor):
            raise AlreadyAssignedError(
                f"Order #{self.id} is already assigned to a driver"
            )

        rule = find_rule(self.status, transition, actor.role, self.is_takeout)
        if not actor.is_admin and not self.is_party(actor, rule.party):
            raise ForbiddenError(
                f"{actor} is not the {rule.party.value} of order #{self.id}"
            )

        driver = None
        if rule.party is Party.ANY_DRIVER:
            driver = self._acting_driver(actor, driver_id)
            if transition is Transition.CLAIM and driver in self.excluded_drivers:
                raise ForbiddenError(
                    f"Driver {driver} may no longer claim order #{self.id}"
                )

        previous = self.status
        self._enter(rule, now, driver, estimate_minutes)
        return previous

    def _enter(
        self,
        rule: TransitionRule,
        now: datetime,
        driver: str | None,
        estimate_minutes: int,
    ) -> None:
        if rule.transition is Transition.DECLINE:
            self.excluded_drivers.add(driver)  # type: ignore[arg-type]
            return

        if rule.transition is Transition.RELEASE:
            self.excluded_drivers.add(self.driver_id)  # type: ignore[arg-type]
            self.driver_id = None
            self.timeline[Milestone.DRIVER_ASSIGNED] = NOT_REACHED
            self.timeline[Milestone.PICKED_UP] = NOT_REACHED
            self.status = rule.target
            return

        if rule.transition is Transition.CLAIM:
            self.driver_id = driver

        self.status = rule.target
        self.timeline[STATUS_MILESTONE[rule.target]] = Actual(now)

        seeded = SEEDED_ESTIMATES.get(rule.target)
        if seeded is not None:
            self.timeline[seeded] = Estimated(now + timedelta(minutes=estimate_minutes))

        if is_terminal(rule.target):
            self.is_active = False
            for milestone, stamp in self.timeline.items():
                if isinstance(stamp, Estimated):
                    self.timeline[milestone] = NOT_REACHED

    def _claim_lost(self, transition: Transition, actor: Actor) -> bool:
        return (
            transition is Transition.CLAIM
            and actor.role in (Role.DRIVER, Role.ADMIN)
            and self.driver_id is not None
            and self.status in CLAIMED_STATUSES
        )

    def _acting_driver(self, actor: Actor, driver_id: str | None) -> str:
        if actor.role is Role.DRIVER:
            return actor.identity
        if not driver_id:
            raise ValidationError("An admin must name the driver to act for")
        return driver_id

    # --- Aftercare ------------------------------------------------------------

    def adjust_estimate(
        self,
        stage: Stage,
        minutes: int,
        actor: Actor,
        now: datetime,
        default_minutes: int = DEFAULT_ESTIMATE_MINUTES,
    ) -> datetime:
        """Shift a stage's estimate by ``minutes``; it never precedes ``now``."""
        if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes == 0:
            raise ValidationError("Adjustment must be a non-zero number of minutes")

        status, party = ADJUSTABLE_STAGES[stage]
        if self.status is not status:
            raise InvalidTransitionError(
                f"The {stage.value} estimate can only be adjusted while the "
                f"order is '{status.value}' (it is '{self.status.value}')"
            )
        if not actor.is_admin and not self.is_party(actor, party):
            raise ForbiddenError(
                f"{actor} cannot adjust the {stage.value} estimate of order #{self.id}"
            )

        current = self.timeline[stage.end]
        base = current.at if isinstance(current, Estimated) else now + timedelta(minutes=default_minutes)
        adjusted = max(base + timedelta(minutes=minutes), now)
        self.timeline[stage.end] = Estimated(adjusted)
        return adjusted

    def record_feedback(self, feedback: Feedback, actor: Actor) -> None:
        if not self.is_party(actor, Party.CUSTOMER):
            raise ForbiddenError(f"Only the customer can review order #{self.id}")
        if self.status not in FEEDBACK_STATUSES:
            raise InvalidTransitionError(
                f"Order #{self.id} cannot be reviewed while '{self.status.value}'"
            )
        self.feedback = feedback

    def set_payment(self, paid: bool, actor: Actor) -> None:
        if not actor.is_admin and not self.is_party(actor, Party.CUSTOMER):
            raise ForbiddenError(
                f"Only the customer or an admin can change payment of order #{self.id}"
            )
        if self.is_paid == paid:
            state = "paid" if paid else "unpaid"
            raise ConflictError(f"Order #{self.id} is already marked {state}")
        self.is_paid = paid

    # --- Parties --------------------------------------------------------------

    def is_party(self, actor: Actor, party: Party) -> bool:
        """True if ``actor`` holds the given side of this order (admins never do)."""
        if party is Party.STORE:
            return actor.role is Role.STORE and actor.identity == self.store_id
        if party is Party.CUSTOMER:
            return (
                actor.role in (Role.CUSTOMER, Role.GUEST)
                and actor.as_owner() == self.customer
            )
        if party is Party.ASSIGNED_DRIVER:
            return actor.role is Role.DRIVER and actor.identity == self.driver_id
        return actor.role is Role.DRIVER

    def is_visible_to(self, actor: Actor) -> bool:
        return actor.is_admin or any(
            self.is_party(actor, party)
            for party in (Party.STORE, Party.CUSTOMER, Party.ASSIGNED_DRIVER)
        )

    # --- Computed properties --------------------------------------------------

    @property
    def total(self) -> Money:
        result = Money.zero(self.delivery_fee.currency)
        for item in self.items:
            result = result + item.line_total
        return result

    @property
    def amount(self) -> Money:
        return self.total + self.delivery_fee

    @property
    def guest_session_id(self) -> str | None:
        return self.customer.id if self.customer.is_guest else None

    @property
    def is_available_to_drivers(self) -> bool:
        return (
            self.is_active
            and self.is_takeout
            and self.status is OrderStatus.PREPARED
            and self.driver_id is None
        )

    def stamp(self, milestone: Milestone) -> StageTime:
        return self.timeline.get(milestone, NOT_REACHED)
