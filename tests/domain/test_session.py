"""Unit tests for guest sessions."""

from datetime import timedelta

import pytest

from marketplace.domain.exceptions import ValidationError
from marketplace.domain.model.session import GuestSession
from tests.fakes import T0


class TestGuestSession:

    def test_start_sets_ttl(self):
        session = GuestSession.start(T0, ttl_hours=24)
        assert session.session_id.startswith("guest_")
        assert session.expires_at == T0 + timedelta(hours=24)
        assert session.is_active(T0)

    def test_expiry_is_a_time_predicate(self):
        session = GuestSession.start(T0, ttl_hours=1)
        assert not session.is_expired(T0 + timedelta(hours=1))
        assert session.is_expired(T0 + timedelta(hours=1, seconds=1))

    def test_extend_moves_expiry_forward(self):
        session = GuestSession.start(T0, ttl_hours=1)
        later = T0 + timedelta(minutes=30)
        session.extend(24, later)
        assert session.expires_at == later + timedelta(hours=24)
        assert session.updated_at == later

    def test_extend_never_moves_expiry_backwards(self):
        session = GuestSession.start(T0, ttl_hours=48)
        session.extend(1, T0)
        assert session.expires_at == T0 + timedelta(hours=48)

    def test_consume_once(self):
        session = GuestSession.start(T0, ttl_hours=24)
        session.consume("u1", T0)
        assert session.consumed_by == "u1"
        assert not session.is_active(T0)
        with pytest.raises(ValidationError, match="already merged"):
            session.consume("u1", T0)

    def test_last_activity_prefers_newer_cart(self):
        session = GuestSession.start(T0, ttl_hours=24)
        later = T0 + timedelta(hours=2)
        assert session.last_activity(later) == later
        assert session.last_activity(None) == T0
