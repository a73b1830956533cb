"""JSON-document-backed implementation of SessionRepository."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from marketplace.domain.model.session import GuestMerge, GuestSession
from marketplace.domain.repository.session_repository import SessionRepository


class JsonSessionRepository(SessionRepository):

    def __init__(self, sessions: dict[str, Any], merges: list[dict]) -> None:
        self._sessions = sessions
        self._merges = merges

    # --- SessionRepository interface ------------------------------------------

    def get(self, session_id: str) -> GuestSession | None:
        raw = self._sessions.get(session_id)
        return self._to_domain(raw) if raw is not None else None

    def save(self, session: GuestSession) -> None:
        self._sessions[session.session_id] = self._to_raw(session)

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def list_all(self) -> list[GuestSession]:
        return [self._to_domain(raw) for raw in self._sessions.values()]

    def add_merge(self, merge: GuestMerge) -> None:
        self._merges.append({
            "session_id": merge.session_id,
            "user_id": merge.user_id,
            "merged_at": merge.merged_at.isoformat(),
        })

    def list_merges(self) -> list[GuestMerge]:
        return [
            GuestMerge(
                session_id=raw["session_id"],
                user_id=raw["user_id"],
                merged_at=datetime.fromisoformat(raw["merged_at"]),
            )
            for raw in self._merges
        ]

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(session: GuestSession) -> dict:
        return {
            "session_id": session.session_id,
            "created_at": session.created_at.isoformat(),
            "updated_at": session.updated_at.isoformat(),
            "expires_at": session.expires_at.isoformat(),
            "metadata": dict(session.metadata),
            "consumed_at": session.consumed_at.isoformat() if session.consumed_at else None,
            "consumed_by": session.consumed_by,
        }

    @staticmethod
    def _to_domain(raw: dict) -> GuestSession:
        consumed_at = raw.get("consumed_at")
        return GuestSession(
            session_id=raw["session_id"],
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=datetime.fromisoformat(raw["updated_at"]),
            expires_at=datetime.fromisoformat(raw["expires_at"]),
            metadata=dict(raw.get("metadata") or {}),
            consumed_at=datetime.fromisoformat(consumed_at) if consumed_at else None,
            consumed_by=raw.get("consumed_by"),
        )
