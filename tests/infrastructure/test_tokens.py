"""Tests for JWT credentials."""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from marketplace.domain.exceptions import ExpiredError, UnauthorizedError, ValidationError
from marketplace.domain.model.actor import Actor, Role
from marketplace.infrastructure.security.tokens import (
    JwtGuestCredentialSigner,
    TokenIdentityProvider,
)

SECRET = "test-secret"


def _future(hours: int = 1) -> datetime:
    return datetime.now(timezone.utc) + timedelta(hours=hours)


class TestGuestCredentials:

    def test_round_trip(self):
        signer = JwtGuestCredentialSigner(SECRET)
        credential = signer.issue("guest_abc", _future())
        assert signer.verify(credential) == "guest_abc"

    def test_expired(self):
        signer = JwtGuestCredentialSigner(SECRET)
        credential = signer.issue("guest_abc", _future(-1))
        with pytest.raises(ExpiredError):
            signer.verify(credential)

    def test_wrong_secret(self):
        credential = JwtGuestCredentialSigner("other").issue("guest_abc", _future())
        with pytest.raises(UnauthorizedError):
            JwtGuestCredentialSigner(SECRET).verify(credential)

    def test_user_token_is_not_a_guest_credential(self):
        token = TokenIdentityProvider(SECRET).issue("u1", Role.CUSTOMER)
        with pytest.raises(UnauthorizedError, match="Not a guest"):
            JwtGuestCredentialSigner(SECRET).verify(token)

    def test_secret_required(self):
        with pytest.raises(ValidationError):
            JwtGuestCredentialSigner("")


class TestIdentityProvider:

    def test_user_token_resolves_to_actor(self):
        provider = TokenIdentityProvider(SECRET)
        assert provider.resolve(provider.issue("s1", Role.STORE)) == Actor("s1", Role.STORE)

    def test_guest_credential_resolves_to_session(self):
        credential = JwtGuestCredentialSigner(SECRET).issue("guest_abc", _future())
        actor = TokenIdentityProvider(SECRET).resolve(credential)
        assert actor == Actor("guest_abc", Role.GUEST)

    def test_expired_user_token(self):
        provider = TokenIdentityProvider(SECRET, token_minutes=5)
        token = provider.issue("u1", Role.CUSTOMER, now=datetime.now(timezone.utc) - timedelta(hours=1))
        with pytest.raises(ExpiredError):
            provider.resolve(token)

    def test_unknown_role(self):
        token = jwt.encode({"sub": "u1", "role": "pirate", "exp": _future()}, SECRET, algorithm="HS256")
        with pytest.raises(UnauthorizedError, match="unknown role"):
            TokenIdentityProvider(SECRET).resolve(token)

    def test_missing_identity(self):
        token = jwt.encode({"role": "customer", "exp": _future()}, SECRET, algorithm="HS256")
        with pytest.raises(UnauthorizedError, match="no identity"):
            TokenIdentityProvider(SECRET).resolve(token)

    def test_empty_credential(self):
        with pytest.raises(UnauthorizedError):
            TokenIdentityProvider(SECRET).resolve("")

    def test_guests_are_not_minted_here(self):
        with pytest.raises(ValidationError):
            TokenIdentityProvider(SECRET).issue("g1", Role.GUEST)
