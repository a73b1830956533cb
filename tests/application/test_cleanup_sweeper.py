"""Tests for the cleanup sweeper."""

import threading
from datetime import timedelta

from marketplace.application.cleanup_sweeper import CleanupSweeper
from marketplace.domain.model.cart import Cart
from marketplace.domain.model.session import GuestSession
from marketplace.domain.model.value_objects import Owner
from tests.fakes import T0, FakeClock, FakeUnitOfWork


def _session(session_id: str, ttl_hours: int = 48, at=T0) -> tuple[GuestSession, Cart]:
    session = GuestSession.start(at, ttl_hours)
    session.session_id = session_id
    cart = Cart.open(session.owner, at, expires_at=session.expires_at)
    return session, cart


def _world() -> FakeUnitOfWork:
    """Fresh, idle, expired and orphaned guest state as of T0 + 30h."""
    fresh, fresh_cart = _session("fresh", at=T0 + timedelta(hours=29))
    idle, idle_cart = _session("idle")
    expired, expired_cart = _session("expired", ttl_hours=2)
    busy, busy_cart = _session("busy")
    busy_cart.add_line("p1", "s1", 1, T0 + timedelta(hours=28))

    orphan = Cart.open(Owner.guest("gone"), T0, expires_at=T0 + timedelta(hours=1))
    user_cart = Cart.open(Owner.user("u1"), T0)

    return FakeUnitOfWork(
        carts=[fresh_cart, idle_cart, expired_cart, busy_cart, orphan, user_cart],
        sessions=[fresh, idle, expired, busy],
    )


NOW = T0 + timedelta(hours=30)


class TestRunOnce:

    def test_removes_stale_guest_state(self):
        uow = _world()
        report = CleanupSweeper(uow, clock=FakeClock(NOW)).run_once()

        assert report.sessions_deleted == 2
        assert report.carts_deleted == 2
        assert report.orphan_carts_deleted == 1
        assert report.failures == 0
        assert report.total_deleted == 5
        assert {s.session_id for s in uow.sessions.list_all()} == {"fresh", "busy"}
        assert uow.carts.get(Owner.guest("gone")) is None
        assert uow.carts.get(Owner.user("u1")) is not None

    def test_cart_activity_keeps_session_alive(self):
        uow = _world()
        CleanupSweeper(uow, clock=FakeClock(NOW)).run_once()
        assert uow.sessions.get("busy") is not None
        assert uow.carts.get(Owner.guest("busy")).item_count == 1

    def test_aggressive_mode_shortens_idle_window(self):
        uow = _world()
        report = CleanupSweeper(uow, clock=FakeClock(NOW), aggressive=True).run_once(
            NOW + timedelta(hours=7)
        )
        assert report.sessions_deleted == 4

    def test_second_run_finds_nothing(self):
        uow = _world()
        sweeper = CleanupSweeper(uow, clock=FakeClock(NOW))
        sweeper.run_once()
        assert sweeper.run_once().total_deleted == 0

    def test_batch_size_caps_a_run(self):
        uow = _world()
        report = CleanupSweeper(uow, clock=FakeClock(NOW), batch_size=1).run_once()
        assert report.total_deleted == 2  # one session plus its cart

    def test_failure_is_counted_and_skipped(self):
        uow = _world()
        original_delete = uow.sessions.delete

        def flaky_delete(session_id):
            if session_id == "idle":
                raise OSError("disk full")
            return original_delete(session_id)

        uow.sessions.delete = flaky_delete
        report = CleanupSweeper(uow, clock=FakeClock(NOW)).run_once()

        assert report.failures == 1
        assert report.sessions_deleted == 1
        assert uow.sessions.get("idle") is not None


class TestStatsAndLoop:

    def test_stats(self):
        stats = CleanupSweeper(_world(), clock=FakeClock(NOW)).stats()
        assert stats.expired_sessions == 1
        assert stats.inactive_sessions == 1
        assert stats.active_sessions == 2
        assert stats.expired_carts == 2
        assert stats.orphaned_carts == 1

    def test_run_forever_stops_on_event(self):
        uow = _world()
        sweeper = CleanupSweeper(uow, clock=FakeClock(NOW))
        stop = threading.Event()
        stop.set()
        sweeper.run_forever(interval_seconds=0, stop_event=stop)
        assert uow.sessions.get("idle") is not None

    def test_run_forever_sweeps_before_waiting(self):
        uow = _world()
        stop = threading.Event()

        class OneShot(CleanupSweeper):
            def run_once(self, now=None):
                report = super().run_once(now)
                stop.set()
                return report

        OneShot(uow, clock=FakeClock(NOW)).run_forever(interval_seconds=0, stop_event=stop)
        assert uow.sessions.get("idle") is None
