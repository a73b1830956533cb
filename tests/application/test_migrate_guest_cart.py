"""Tests for MigrateGuestCartHandler."""

import pytest

from marketplace.application.migrate_guest_cart import MigrateGuestCartHandler
from marketplace.domain.exceptions import (
    ConflictError,
    ExpiredError,
    ForbiddenError,
    UnauthorizedError,
)
from marketplace.domain.model.actor import Actor, Role
from marketplace.domain.model.cart import Cart
from marketplace.domain.model.session import GuestSession
from marketplace.domain.model.value_objects import Owner
from tests.fakes import T0, FakeClock, FakeEventPublisher, FakeGuestSigner, FakeUnitOfWork

ALICE = Actor("alice", Role.CUSTOMER)
BOB = Actor("bob", Role.CUSTOMER)


def _guest_setup(quantity: int = 3):
    session = GuestSession.start(T0, 24)
    cart = Cart.open(session.owner, T0, expires_at=session.expires_at)
    if quantity:
        cart.add_line("pY", "s1", quantity, T0)
    uow = FakeUnitOfWork(carts=[cart], sessions=[session])
    clock = FakeClock()
    signer = FakeGuestSigner(clock)
    credential = signer.issue(session.session_id, session.expires_at)
    return uow, clock, signer, session, credential


def _make_handler(uow, signer, clock):
    publisher = FakeEventPublisher()
    handler = MigrateGuestCartHandler(uow=uow, signer=signer, publisher=publisher, clock=clock)
    return handler, publisher


class TestMigrateGuestCart:

    def test_guest_lines_move_to_user_cart(self):
        uow, clock, signer, session, credential = _guest_setup()
        handler, publisher = _make_handler(uow, signer, clock)

        dto = handler.handle(ALICE, credential)

        assert [(line.product_id, line.quantity) for line in dto.lines] == [("pY", 3)]
        assert uow.carts.get(Owner.user("alice")).item_count == 3
        assert uow.carts.get(session.owner) is None
        stored = uow.sessions.get(session.session_id)
        assert stored.consumed_by == "alice"
        assert uow.sessions.get_merge(session.session_id).user_id == "alice"
        assert publisher.names() == ["guest-migrated"]
        assert publisher.events[0].product_ids == ("pY",)

    def test_quantities_merge_with_existing_user_line(self):
        uow, clock, signer, _, credential = _guest_setup()
        user_cart = Cart.open(Owner.user("alice"), T0)
        user_cart.add_line("pY", "s1", 2, T0)
        uow.carts.save(user_cart)
        handler, _ = _make_handler(uow, signer, clock)

        dto = handler.handle(ALICE, credential)

        assert [(line.product_id, line.quantity) for line in dto.lines] == [("pY", 5)]

    def test_second_run_is_a_no_op(self):
        uow, clock, signer, _, credential = _guest_setup()
        handler, publisher = _make_handler(uow, signer, clock)

        handler.handle(ALICE, credential)
        dto = handler.handle(ALICE, credential)

        assert dto.item_count == 3
        assert uow.commits == 1
        assert len(publisher.events) == 1

    def test_session_merged_by_another_user_conflicts(self):
        uow, clock, signer, _, credential = _guest_setup()
        handler, _ = _make_handler(uow, signer, clock)
        handler.handle(ALICE, credential)

        with pytest.raises(ConflictError, match="another user"):
            handler.handle(BOB, credential)
        assert uow.carts.get(Owner.user("bob")) is None

    def test_empty_guest_cart_changes_nothing(self):
        uow, clock, signer, session, credential = _guest_setup(quantity=0)
        handler, publisher = _make_handler(uow, signer, clock)

        dto = handler.handle(ALICE, credential)

        assert dto.lines == []
        assert not uow.sessions.get(session.session_id).is_consumed
        assert publisher.events == []

    def test_expired_credential(self):
        uow, clock, signer, _, credential = _guest_setup()
        clock.advance(hours=25)
        handler, _ = _make_handler(uow, signer, clock)
        with pytest.raises(ExpiredError):
            handler.handle(ALICE, credential)

    def test_tampered_credential(self):
        uow, clock, signer, _, _ = _guest_setup()
        handler, _ = _make_handler(uow, signer, clock)
        with pytest.raises(UnauthorizedError):
            handler.handle(ALICE, "not-a-credential")

    def test_guest_cannot_adopt_a_cart(self):
        uow, clock, signer, session, credential = _guest_setup()
        handler, _ = _make_handler(uow, signer, clock)
        with pytest.raises(ForbiddenError):
            handler.handle(Actor(session.session_id, Role.GUEST), credential)
