"""Application service: Session Registry.

Issues anonymous guest sessions, each created together with its empty
cart, and slides their expiry forward on request. The credential handed
back to the visitor is signed by a ``GuestCredentialSigner``; it is always
verified before the registry is consulted.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import structlog

from marketplace.application.dto import GuestSessionDTO, cart_to_dto, format_time
from marketplace.application.owners import active_session, get_or_create_cart
from marketplace.application.ports import GuestCredentialSigner
from marketplace.domain.exceptions import DomainException
from marketplace.domain.model.cart import Cart
from marketplace.domain.model.session import GuestSession
from marketplace.domain.model.value_objects import utc_now
from marketplace.domain.repository.unit_of_work import UnitOfWork

logger = structlog.get_logger(__name__)

DEFAULT_SESSION_HOURS = 24


class SessionRegistry:

    def __init__(
        self,
        uow: UnitOfWork,
        signer: GuestCredentialSigner,
        clock: Callable[[], datetime] = utc_now,
        ttl_hours: int = DEFAULT_SESSION_HOURS,
    ) -> None:
        self._uow = uow
        self._signer = signer
        self._clock = clock
        self._ttl_hours = ttl_hours

    def create_guest_session(self, metadata: dict[str, str] | None = None) -> GuestSessionDTO:
        now = self._clock()
        session = GuestSession.start(now, self._ttl_hours, metadata)
        cart = Cart.open(session.owner, now, expires_at=session.expires_at)

        with self._uow:
            self._uow.sessions.save(session)
            self._uow.carts.save(cart)
            self._uow.commit()

        logger.info(
            "guest_session_created",
            session_id=session.session_id,
            expires_at=session.expires_at.isoformat(),
        )
        return self._to_dto(session, cart)

    def find_by_credential(self, credential: str) -> GuestSession | None:
        """Return the live session behind a credential, or None.

        A bad signature, a lapsed expiry, a merged session or an unknown
        id all come back as None rather than an error.
        """
        try:
            session_id = self._signer.verify(credential)
        except DomainException:
            return None

        with self._uow:
            session = self._uow.sessions.get(session_id)
        if session is None or not session.is_active(self._clock()):
            return None
        return session

    def extend(self, credential: str, hours: int) -> GuestSessionDTO:
        """Push the session (and its cart) expiry out; re-issue the credential."""
        session_id = self._signer.verify(credential)
        now = self._clock()

        with self._uow:
            session = active_session(self._uow, session_id, now)
            session.extend(hours, now)
            cart = get_or_create_cart(self._uow, session.owner, now)
            cart.expires_at = session.expires_at
            self._uow.sessions.save(session)
            self._uow.carts.save(cart)
            self._uow.commit()

        logger.info(
            "guest_session_extended",
            session_id=session.session_id,
            hours=hours,
            expires_at=session.expires_at.isoformat(),
        )
        return self._to_dto(session, cart)

    # --- Mapping --------------------------------------------------------------

    def _to_dto(self, session: GuestSession, cart: Cart) -> GuestSessionDTO:
        return GuestSessionDTO(
            session_id=session.session_id,
            credential=self._signer.issue(session.session_id, session.expires_at),
            expires_at=format_time(session.expires_at),  # type: ignore[arg-type]
            cart=cart_to_dto(cart),
        )
