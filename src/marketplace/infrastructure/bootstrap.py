"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from marketplace.application.cleanup_sweeper import CleanupSweeper
from marketplace.application.guest_sessions import SessionRegistry
from marketplace.infrastructure.config import Settings, get_settings
from marketplace.infrastructure.notifications import LoggingEventPublisher
from marketplace.infrastructure.persistence.json_store import JsonDocumentStore
from marketplace.infrastructure.persistence.json_unit_of_work import JsonUnitOfWork
from marketplace.infrastructure.security.tokens import (
    JwtGuestCredentialSigner,
    TokenIdentityProvider,
)


def document_store(settings: Settings | None = None) -> JsonDocumentStore:
    settings = settings or get_settings()
    return JsonDocumentStore(
        settings.data_dir,
        lock_timeout=settings.store_lock_timeout_seconds,
    )


def unit_of_work(settings: Settings | None = None) -> JsonUnitOfWork:
    return JsonUnitOfWork(document_store(settings))


def event_publisher() -> LoggingEventPublisher:
    return LoggingEventPublisher()


def guest_signer(settings: Settings | None = None) -> JwtGuestCredentialSigner:
    settings = settings or get_settings()
    return JwtGuestCredentialSigner(settings.secret_key, settings.token_algorithm)


def identity_provider(settings: Settings | None = None) -> TokenIdentityProvider:
    settings = settings or get_settings()
    return TokenIdentityProvider(
        settings.secret_key,
        settings.token_algorithm,
        token_minutes=settings.user_token_minutes,
    )


def session_registry(settings: Settings | None = None) -> SessionRegistry:
    settings = settings or get_settings()
    return SessionRegistry(
        uow=unit_of_work(settings),
        signer=guest_signer(settings),
        ttl_hours=settings.guest_session_hours,
    )


def cleanup_sweeper(settings: Settings | None = None) -> CleanupSweeper:
    settings = settings or get_settings()
    return CleanupSweeper(
        uow=unit_of_work(settings),
        inactivity_hours=settings.session_inactivity_hours,
        aggressive=settings.aggressive_cleanup,
        batch_size=settings.sweep_batch_size,
    )
