"""Application service: Cleanup Sweeper.

Background reaper for abandoned guest state. Each run removes

1. guest sessions that have expired, or whose session and cart have both
   been idle past the inactivity threshold, together with their carts;
2. guest carts whose session no longer exists and that are themselves
   expired or idle past the threshold.

Every record is deleted in its own unit of work, so one bad record is
logged and skipped without aborting the run, and a record that vanished
concurrently is simply counted as already gone.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

import structlog

from marketplace.domain.model.cart import Cart
from marketplace.domain.model.session import GuestSession
from marketplace.domain.model.value_objects import Owner, utc_now
from marketplace.domain.repository.unit_of_work import UnitOfWork

logger = structlog.get_logger(__name__)

DEFAULT_INACTIVITY_HOURS = 24
AGGRESSIVE_INACTIVITY_HOURS = 6
DEFAULT_BATCH_SIZE = 2000
DEFAULT_INTERVAL_SECONDS = 3600


@dataclass(frozen=True)
class SweepReport:
    sessions_deleted: int = 0
    carts_deleted: int = 0
    orphan_carts_deleted: int = 0
    failures: int = 0

    @property
    def total_deleted(self) -> int:
        return self.sessions_deleted + self.carts_deleted + self.orphan_carts_deleted


@dataclass(frozen=True)
class SweepStats:
    expired_sessions: int
    inactive_sessions: int
    active_sessions: int
    expired_carts: int
    orphaned_carts: int


class CleanupSweeper:

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Callable[[], datetime] = utc_now,
        inactivity_hours: int = DEFAULT_INACTIVITY_HOURS,
        aggressive: bool = False,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        self._uow = uow
        self._clock = clock
        self._inactivity = timedelta(
            hours=AGGRESSIVE_INACTIVITY_HOURS if aggressive else inactivity_hours
        )
        self._batch_size = batch_size

    # --- Predicates -----------------------------------------------------------

    def _session_is_stale(self, session: GuestSession, cart: Cart | None, now: datetime) -> bool:
        if session.is_expired(now):
            return True
        last = session.last_activity(cart.updated_at if cart is not None else None)
        return last < now - self._inactivity

    def _orphan_is_stale(self, cart: Cart, now: datetime) -> bool:
        return cart.is_expired(now) or cart.updated_at < now - self._inactivity

    # --- Runs -----------------------------------------------------------------

    def run_once(self, now: datetime | None = None) -> SweepReport:
        now = now or self._clock()
        with self._uow:
            sessions = self._uow.sessions.list_all()
            carts = {cart.owner.id: cart for cart in self._uow.carts.list_guest_carts()}

        stale = [
            s.session_id
            for s in sessions
            if self._session_is_stale(s, carts.get(s.session_id), now)
        ][: self._batch_size]

        sessions_deleted = carts_deleted = orphans_deleted = failures = 0
        for session_id in stale:
            try:
                deleted_session, deleted_cart = self._delete_session(session_id, now)
            except Exception:
                failures += 1
                logger.exception("sweep_session_failed", session_id=session_id)
                continue
            sessions_deleted += deleted_session
            carts_deleted += deleted_cart

        known = {s.session_id for s in sessions}
        budget = max(0, self._batch_size - len(stale))
        orphans = [
            cart.owner
            for session_id, cart in carts.items()
            if session_id not in known and self._orphan_is_stale(cart, now)
        ][:budget]

        for owner in orphans:
            try:
                orphans_deleted += self._delete_orphan(owner, now)
            except Exception:
                failures += 1
                logger.exception("sweep_cart_failed", owner=owner.key)

        report = SweepReport(
            sessions_deleted=sessions_deleted,
            carts_deleted=carts_deleted,
            orphan_carts_deleted=orphans_deleted,
            failures=failures,
        )
        logger.info(
            "sweep_completed",
            sessions_deleted=report.sessions_deleted,
            carts_deleted=report.carts_deleted,
            orphan_carts_deleted=report.orphan_carts_deleted,
            failures=report.failures,
        )
        return report

    def _delete_session(self, session_id: str, now: datetime) -> tuple[int, int]:
        with self._uow:
            session = self._uow.sessions.get(session_id)
            if session is None:
                return 0, 0
            # re-check: the session may have been extended since the scan
            if not self._session_is_stale(session, self._uow.carts.get(session.owner), now):
                return 0, 0
            deleted_session = self._uow.sessions.delete(session_id)
            deleted_cart = self._uow.carts.delete(session.owner)
            self._uow.commit()
        return int(deleted_session), int(deleted_cart)

    def _delete_orphan(self, owner: Owner, now: datetime) -> int:
        with self._uow:
            if self._uow.sessions.get(owner.id) is not None:
                return 0
            cart = self._uow.carts.get(owner)
            if cart is None or not self._orphan_is_stale(cart, now):
                return 0
            deleted = self._uow.carts.delete(owner)
            self._uow.commit()
        return int(deleted)

    def run_forever(
        self,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        stop_event: threading.Event | None = None,
    ) -> None:
        """Sweep every ``interval_seconds`` until ``stop_event`` is set."""
        stop_event = stop_event or threading.Event()
        logger.info("sweeper_started", interval_seconds=interval_seconds)
        while not stop_event.is_set():
            try:
                self.run_once()
            except Exception:
                logger.exception("sweep_failed")
            stop_event.wait(interval_seconds)
        logger.info("sweeper_stopped")

    # --- Reporting ------------------------------------------------------------

    def stats(self, now: datetime | None = None) -> SweepStats:
        now = now or self._clock()
        with self._uow:
            sessions = self._uow.sessions.list_all()
            carts = {cart.owner.id: cart for cart in self._uow.carts.list_guest_carts()}

        expired = inactive = active = 0
        for session in sessions:
            if session.is_expired(now):
                expired += 1
            elif self._session_is_stale(session, carts.get(session.session_id), now):
                inactive += 1
            else:
                active += 1

        known = {s.session_id for s in sessions}
        return SweepStats(
            expired_sessions=expired,
            inactive_sessions=inactive,
            active_sessions=active,
            expired_carts=sum(1 for c in carts.values() if c.is_expired(now)),
            orphaned_carts=sum(1 for sid in carts if sid not in known),
        )
