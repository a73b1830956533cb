"""Abstract repository for guest sessions and their merge records."""

from __future__ import annotations

from abc import ABC, abstractmethod

from marketplace.domain.model.session import GuestMerge, GuestSession


class SessionRepository(ABC):

    @abstractmethod
    def get(self, session_id: str) -> GuestSession | None:
        """Return a session by its ID, or None if not found."""

    @abstractmethod
    def save(self, session: GuestSession) -> None:
        """Persist a new or updated session."""

    @abstractmethod
    def delete(self, session_id: str) -> bool:
        """Remove a session. Returns False if it was already gone."""

    @abstractmethod
    def list_all(self) -> list[GuestSession]:
        """Return every stored session."""

    @abstractmethod
    def add_merge(self, merge: GuestMerge) -> None:
        """Record that a session's cart was merged into a user's cart."""

    @abstractmethod
    def list_merges(self) -> list[GuestMerge]:
        """Return every merge record."""

    def get_merge(self, session_id: str) -> GuestMerge | None:
        for merge in self.list_merges():
            if merge.session_id == session_id:
                return merge
        return None

    def merges_for_user(self, user_id: str) -> list[GuestMerge]:
        return [m for m in self.list_merges() if m.user_id == user_id]
