"""Guest session: a time-limited identity for an unauthenticated visitor.

Active vs expired is a pure time predicate (``now > expires_at``); there
is no stored state flag for it. A session that has been merged into a
user's cart is *consumed*: it stays on record until the sweeper reaps it
so a retried merge can recognise it and do nothing.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from marketplace.domain.exceptions import ValidationError
from marketplace.domain.model.value_objects import Owner


def new_session_id() -> str:
    return f"guest_{secrets.token_hex(12)}"


@dataclass
class GuestSession:
    session_id: str
    created_at: datetime
    updated_at: datetime
    expires_at: datetime
    metadata: dict[str, str] = field(default_factory=dict)
    consumed_at: datetime | None = None
    consumed_by: str | None = None

    @staticmethod
    def start(now: datetime, ttl_hours: int, metadata: dict[str, str] | None = None) -> GuestSession:
        if ttl_hours <= 0:
            raise ValidationError("Session TTL must be positive")
        return GuestSession(
            session_id=new_session_id(),
            created_at=now,
            updated_at=now,
            expires_at=now + timedelta(hours=ttl_hours),
            metadata=dict(metadata or {}),
        )

    @property
    def owner(self) -> Owner:
        return Owner.guest(self.session_id)

    @property
    def is_consumed(self) -> bool:
        return self.consumed_at is not None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def is_active(self, now: datetime) -> bool:
        return not self.is_consumed and not self.is_expired(now)

    def last_activity(self, cart_updated_at: datetime | None = None) -> datetime:
        if cart_updated_at is not None and cart_updated_at > self.updated_at:
            return cart_updated_at
        return self.updated_at

    def extend(self, hours: int, now: datetime) -> None:
        """Slide the expiry forward; it never moves backwards."""
        if hours <= 0:
            raise ValidationError("Extension must be a positive number of hours")
        proposed = now + timedelta(hours=hours)
        if proposed > self.expires_at:
            self.expires_at = proposed
        self.updated_at = now

    def consume(self, user_id: str, now: datetime) -> None:
        if self.is_consumed:
            raise ValidationError(f"Session {self.session_id} was already merged")
        self.consumed_at = now
        self.consumed_by = user_id
        self.updated_at = now


@dataclass(frozen=True)
class GuestMerge:
    """Record that a guest session's cart was folded into a user's cart."""

    session_id: str
    user_id: str
    merged_at: datetime
