"""Interfaces the application layer needs from the outside world.

Credentials are opaque strings here; the infrastructure layer decides
how they are signed and what they carry.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from marketplace.domain.model.actor import Actor


class IdentityProvider(ABC):

    @abstractmethod
    def resolve(self, credential: str) -> Actor:
        """Return who the credential belongs to.

        Raises UnauthorizedError if it cannot be trusted and ExpiredError
        if it was valid but has lapsed.
        """


class GuestCredentialSigner(ABC):

    @abstractmethod
    def issue(self, session_id: str, expires_at: datetime) -> str:
        """Return a signed credential for a guest session."""

    @abstractmethod
    def verify(self, credential: str) -> str:
        """Return the session id inside a credential.

        Raises UnauthorizedError on a bad signature or payload and
        ExpiredError once the embedded expiry has passed.
        """
