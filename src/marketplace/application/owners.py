"""Shared helpers: who owns the cart an actor is working on.

Must be called inside an open unit of work.
"""

from __future__ import annotations

from datetime import datetime

from marketplace.domain.exceptions import ExpiredError, UnauthorizedError
from marketplace.domain.model.actor import Actor, Role
from marketplace.domain.model.cart import Cart
from marketplace.domain.model.session import GuestSession
from marketplace.domain.model.value_objects import Owner
from marketplace.domain.repository.unit_of_work import UnitOfWork


def active_session(uow: UnitOfWork, session_id: str, now: datetime) -> GuestSession:
    """Load a guest session that may still shop.

    Unknown and already-merged sessions are Unauthorized; lapsed ones are
    Expired.
    """
    session = uow.sessions.get(session_id)
    if session is None or session.is_consumed:
        raise UnauthorizedError("Guest session is not recognised")
    if session.is_expired(now):
        raise ExpiredError(f"Guest session {session_id} has expired")
    return session


def require_live_guest(uow: UnitOfWork, actor: Actor, now: datetime) -> None:
    """Guests only change things while their session is active; merged ones may still read."""
    if actor.role is Role.GUEST:
        active_session(uow, actor.identity, now)


def resolve_owner(uow: UnitOfWork, actor: Actor, now: datetime) -> Owner:
    require_live_guest(uow, actor, now)
    return actor.as_owner()


def get_or_create_cart(uow: UnitOfWork, owner: Owner, now: datetime) -> Cart:
    """Return the owner's cart, opening (but not saving) a new one if missing."""
    cart = uow.carts.get(owner)
    if cart is not None:
        return cart
    expires_at = None
    if owner.is_guest:
        session = uow.sessions.get(owner.id)
        expires_at = session.expires_at if session is not None else None
    return Cart.open(owner, now, expires_at=expires_at)
