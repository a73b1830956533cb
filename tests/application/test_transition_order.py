"""Tests for TransitionOrderHandler and ShowOrderHandler."""

import pytest

from marketplace.application.show_order import ShowOrderHandler
from marketplace.application.transition_order import TransitionOrderHandler
from marketplace.domain.exceptions import (
    ConflictError,
    EntityNotFoundError,
    ForbiddenError,
    InvalidTransitionError,
    UnauthorizedError,
)
from marketplace.domain.model.actor import Actor, Role
from marketplace.domain.model.fulfillment import OrderStatus, Transition
from marketplace.domain.model.order import Order, OrderLineItem
from marketplace.domain.model.session import GuestMerge, GuestSession
from marketplace.domain.model.value_objects import Money, Owner, Quantity
from tests.fakes import T0, FakeClock, FakeEventPublisher, FakeUnitOfWork

STORE = Actor("s1", Role.STORE)
CUSTOMER = Actor("u1", Role.CUSTOMER)
DRIVER_A = Actor("dA", Role.DRIVER)
DRIVER_B = Actor("dB", Role.DRIVER)


def _seed_order(uow: FakeUnitOfWork, customer: Owner = Owner.user("u1")) -> int:
    item = OrderLineItem("p1", "Burger", Quantity(2), Money.of("10.00"))
    order = Order.place(customer, "s1", [item], T0)
    uow.orders.save(order)
    return order.id


def _make_handler(uow: FakeUnitOfWork, clock: FakeClock | None = None):
    publisher = FakeEventPublisher()
    handler = TransitionOrderHandler(uow=uow, publisher=publisher, clock=clock or FakeClock())
    return handler, publisher


def _prepared(uow: FakeUnitOfWork, handler: TransitionOrderHandler) -> int:
    order_id = _seed_order(uow)
    handler.handle(STORE, order_id, Transition.ACCEPT)
    handler.handle(STORE, order_id, Transition.PREPARE)
    return order_id


class TestTransitionOrder:

    def test_store_accepts(self):
        uow = FakeUnitOfWork()
        handler, publisher = _make_handler(uow)
        order_id = _seed_order(uow)

        dto = handler.handle(STORE, order_id, Transition.ACCEPT)

        assert dto.status == "accepted"
        assert uow.orders.get_by_id(order_id).status is OrderStatus.ACCEPTED
        event = publisher.events[0]
        assert event.name == "order-status-changed"
        assert (event.previous, event.current) == ("placed", "accepted")
        assert event.actor == "store:s1"

    def test_rejected_order_cannot_be_accepted(self):
        uow = FakeUnitOfWork()
        handler, publisher = _make_handler(uow)
        order_id = _seed_order(uow)

        handler.handle(STORE, order_id, Transition.REJECT)
        with pytest.raises(InvalidTransitionError):
            handler.handle(STORE, order_id, Transition.ACCEPT)

        order = uow.orders.get_by_id(order_id)
        assert order.status is OrderStatus.REJECTED
        assert not order.is_active
        assert len(publisher.events) == 1

    def test_second_driver_claim_conflicts(self):
        uow = FakeUnitOfWork()
        handler, publisher = _make_handler(uow)
        order_id = _prepared(uow, handler)

        handler.handle(DRIVER_A, order_id, Transition.CLAIM)
        with pytest.raises(ConflictError):
            handler.handle(DRIVER_B, order_id, Transition.CLAIM)

        order = uow.orders.get_by_id(order_id)
        assert order.driver_id == "dA"
        assert publisher.names().count("order-status-changed") == 3

    def test_decline_publishes_nothing(self):
        uow = FakeUnitOfWork()
        handler, publisher = _make_handler(uow)
        order_id = _prepared(uow, handler)
        publisher.events.clear()

        dto = handler.handle(DRIVER_A, order_id, Transition.DECLINE)

        assert dto.status == "prepared"
        assert publisher.events == []
        assert "dA" in uow.orders.get_by_id(order_id).excluded_drivers

    def test_other_store_is_forbidden_and_nothing_is_saved(self):
        uow = FakeUnitOfWork()
        handler, _ = _make_handler(uow)
        order_id = _seed_order(uow)

        with pytest.raises(ForbiddenError):
            handler.handle(Actor("s2", Role.STORE), order_id, Transition.ACCEPT)

        assert uow.orders.get_by_id(order_id).status is OrderStatus.PLACED
        assert uow.commits == 0

    def test_unknown_order(self):
        handler, _ = _make_handler(FakeUnitOfWork())
        with pytest.raises(EntityNotFoundError):
            handler.handle(STORE, 99, Transition.ACCEPT)

    def test_stale_write_conflicts(self):
        uow = FakeUnitOfWork()
        order_id = _seed_order(uow)
        stale = uow.orders.get_by_id(order_id)

        handler, _ = _make_handler(uow)
        handler.handle(STORE, order_id, Transition.ACCEPT)

        stale.apply(Transition.REJECT, STORE, T0)
        with pytest.raises(ConflictError, match="changed by someone else"):
            uow.orders.save(stale)

    def test_estimate_minutes_are_configurable(self):
        uow = FakeUnitOfWork()
        handler = TransitionOrderHandler(
            uow=uow, publisher=FakeEventPublisher(), clock=FakeClock(), estimate_minutes=30
        )
        order_id = _seed_order(uow)

        dto = handler.handle(STORE, order_id, Transition.ACCEPT)

        prepared = next(m for m in dto.milestones if m.name == "prepared")
        assert prepared.state == "estimated"
        assert prepared.at == "2024-03-01 12:30 UTC"

    def test_guest_cancels_own_order(self):
        session = GuestSession.start(T0, 24)
        uow = FakeUnitOfWork(sessions=[session])
        handler, _ = _make_handler(uow)
        order_id = _seed_order(uow, Owner.guest(session.session_id))

        dto = handler.handle(Actor(session.session_id, Role.GUEST), order_id, Transition.CANCEL)

        assert dto.status == "canceled-by-customer"

    def test_merged_guest_can_read_but_not_move_its_order(self):
        session = GuestSession.start(T0, 24)
        session.consume("u1", T0)
        uow = FakeUnitOfWork(sessions=[session])
        handler, publisher = _make_handler(uow)
        order_id = _seed_order(uow, Owner.guest(session.session_id))
        guest = Actor(session.session_id, Role.GUEST)

        with pytest.raises(UnauthorizedError):
            handler.handle(guest, order_id, Transition.CANCEL)

        assert uow.orders.get_by_id(order_id).status is OrderStatus.PLACED
        assert publisher.events == []
        dto = ShowOrderHandler(uow=uow, clock=FakeClock()).handle(guest, order_id)
        assert dto.status == "placed"


class TestShowOrder:

    def test_customer_sees_progress(self):
        uow = FakeUnitOfWork()
        clock = FakeClock()
        handler, _ = _make_handler(uow, clock)
        order_id = _seed_order(uow)
        handler.handle(STORE, order_id, Transition.ACCEPT)
        clock.advance(minutes=5)

        dto = ShowOrderHandler(uow=uow, clock=clock).handle(CUSTOMER, order_id)

        assert dto.progress.overall == 20
        preparation = dto.progress.stages[0]
        assert (preparation.stage, preparation.percent, preparation.minutes_left) == (
            "preparation",
            50,
            5,
        )

    def test_stranger_is_forbidden(self):
        uow = FakeUnitOfWork()
        order_id = _seed_order(uow)
        with pytest.raises(ForbiddenError):
            ShowOrderHandler(uow=uow, clock=FakeClock()).handle(
                Actor("u2", Role.CUSTOMER), order_id
            )

    def test_driver_sees_offered_order_until_declined(self):
        uow = FakeUnitOfWork()
        handler, _ = _make_handler(uow)
        order_id = _prepared(uow, handler)
        show = ShowOrderHandler(uow=uow, clock=FakeClock())

        assert show.handle(DRIVER_A, order_id).status == "prepared"
        handler.handle(DRIVER_A, order_id, Transition.DECLINE)
        with pytest.raises(ForbiddenError):
            show.handle(DRIVER_A, order_id)

    def test_customer_sees_merged_guest_order(self):
        uow = FakeUnitOfWork()
        order_id = _seed_order(uow, Owner.guest("g1"))
        uow.sessions.add_merge(GuestMerge(session_id="g1", user_id="u1", merged_at=T0))

        dto = ShowOrderHandler(uow=uow, clock=FakeClock()).handle(CUSTOMER, order_id)

        assert dto.customer == "guest:g1"
