"""Application service: Guest Migration use case.

When a visitor logs in, the cart they built as a guest is folded into
their user cart and the guest session is retired. Running the migration
again for the same session and user changes nothing, so a retried login
is always safe.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import structlog

from marketplace.application.dto import CartDTO, cart_to_dto
from marketplace.application.owners import get_or_create_cart
from marketplace.application.ports import GuestCredentialSigner
from marketplace.domain.events import EventPublisher, GuestMigrated
from marketplace.domain.exceptions import ConflictError, ExpiredError
from marketplace.domain.model.actor import Actor, Role
from marketplace.domain.model.session import GuestMerge
from marketplace.domain.model.value_objects import Owner, utc_now
from marketplace.domain.repository.unit_of_work import UnitOfWork
from marketplace.domain.service.authorization import require_role

logger = structlog.get_logger(__name__)


class MigrateGuestCartHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        signer: GuestCredentialSigner,
        publisher: EventPublisher,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow = uow
        self._signer = signer
        self._publisher = publisher
        self._clock = clock

    def handle(self, actor: Actor, guest_credential: str) -> CartDTO:
        """Merge the guest cart behind ``guest_credential`` into ``actor``'s cart.

        Returns the user's cart. It comes back unchanged when the guest
        cart is empty or gone, or when this user already merged the
        session. A session merged by someone else is a Conflict.
        """
        require_role(
            actor, Role.CUSTOMER, Role.STORE, Role.DRIVER, action="adopt a guest cart"
        )
        session_id = self._signer.verify(guest_credential)
        now = self._clock()
        user_owner = Owner.user(actor.identity)

        with self._uow:
            user_cart = get_or_create_cart(self._uow, user_owner, now)
            session = self._uow.sessions.get(session_id)
            if session is None:
                return cart_to_dto(user_cart)
            if session.is_consumed:
                if session.consumed_by == actor.identity:
                    return cart_to_dto(user_cart)
                raise ConflictError(
                    f"Guest session {session_id} was already merged by another user"
                )
            if session.is_expired(now):
                raise ExpiredError(f"Guest session {session_id} has expired")

            guest_cart = self._uow.carts.get(session.owner)
            if guest_cart is None or guest_cart.is_empty:
                return cart_to_dto(user_cart)

            merged = user_cart.absorb(guest_cart, now)
            product_ids = tuple(line.product_id for line in guest_cart.lines)
            self._uow.carts.save(user_cart)
            self._uow.carts.delete(session.owner)
            session.consume(actor.identity, now)
            self._uow.sessions.save(session)
            self._uow.sessions.add_merge(
                GuestMerge(session_id=session_id, user_id=actor.identity, merged_at=now)
            )
            self._uow.commit()

        logger.info(
            "guest_cart_migrated",
            session_id=session_id,
            user_id=actor.identity,
            lines=merged,
        )
        self._publisher.publish(
            GuestMigrated(
                occurred_at=now,
                session_id=session_id,
                user_id=actor.identity,
                lines=merged,
                product_ids=product_ids,
            )
        )
        return cart_to_dto(user_cart)
