"""Signed credentials (JWT via python-jose).

Two kinds of token share one secret:

- user tokens ``{sub, role, exp}`` issued by the identity provider
  (here, by ``TokenIdentityProvider.issue`` for tooling and tests);
- guest tokens ``{sid, role: "guest", exp}`` issued with a session.

Either kind resolves to an ``Actor``; a guest token resolves to the
session id acting in the guest role.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from marketplace.application.ports import GuestCredentialSigner, IdentityProvider
from marketplace.domain.exceptions import (
    ExpiredError,
    UnauthorizedError,
    ValidationError,
)
from marketplace.domain.model.actor import Actor, Role

GUEST_ROLE = Role.GUEST.value


class _JwtCodec:

    def __init__(self, secret_key: str, algorithm: str = "HS256") -> None:
        if not secret_key:
            raise ValidationError("A signing secret is required")
        self._secret_key = secret_key
        self._algorithm = algorithm

    def encode(self, claims: dict[str, Any]) -> str:
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def decode(self, token: str) -> dict[str, Any]:
        """Decode and validate a token, mapping jose errors to domain ones."""
        if not token:
            raise UnauthorizedError("No credential presented")
        try:
            return jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except ExpiredSignatureError as exc:
            raise ExpiredError("Credential has expired") from exc
        except JWTError as exc:
            raise UnauthorizedError("Credential could not be verified") from exc


class JwtGuestCredentialSigner(GuestCredentialSigner):

    def __init__(self, secret_key: str, algorithm: str = "HS256") -> None:
        self._codec = _JwtCodec(secret_key, algorithm)

    def issue(self, session_id: str, expires_at: datetime) -> str:
        return self._codec.encode({"sid": session_id, "role": GUEST_ROLE, "exp": expires_at})

    def verify(self, credential: str) -> str:
        payload = self._codec.decode(credential)
        session_id = payload.get("sid")
        if payload.get("role") != GUEST_ROLE or not session_id:
            raise UnauthorizedError("Not a guest session credential")
        return str(session_id)


class TokenIdentityProvider(IdentityProvider):

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        token_minutes: int = 60,
    ) -> None:
        self._codec = _JwtCodec(secret_key, algorithm)
        self._token_minutes = token_minutes

    def issue(self, identity: str, role: Role, now: datetime | None = None) -> str:
        """Mint a user token. Guests get theirs from the session registry."""
        if role is Role.GUEST:
            raise ValidationError("Guest credentials are issued with a session")
        now = now or datetime.now(timezone.utc)
        return self._codec.encode({
            "sub": identity,
            "role": role.value,
            "exp": now + timedelta(minutes=self._token_minutes),
        })

    def resolve(self, credential: str) -> Actor:
        payload = self._codec.decode(credential)
        try:
            role = Role(payload.get("role"))
        except ValueError as exc:
            raise UnauthorizedError("Credential carries an unknown role") from exc

        identity = payload.get("sid") if role is Role.GUEST else payload.get("sub")
        if not identity:
            raise UnauthorizedError("Credential carries no identity")
        return Actor(identity=str(identity), role=role)
