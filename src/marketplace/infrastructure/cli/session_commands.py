"""CLI commands for anonymous guest sessions."""

from __future__ import annotations

import click

from marketplace.infrastructure.bootstrap import session_registry
from marketplace.infrastructure.cli.common import CLI_ERRORS


@click.command("start")
@click.option("--ip", "ip_address", default=None, help="Visitor IP address.")
@click.option("--user-agent", default=None, help="Visitor user agent.")
@click.option("--device", "device_type", default=None, help="Device type.")
@click.option("--referrer", default=None, help="Referring URL.")
def session_start(
    ip_address: str | None,
    user_agent: str | None,
    device_type: str | None,
    referrer: str | None,
) -> None:
    """Start a guest session with an empty cart; prints its credential."""
    metadata = {
        key: value
        for key, value in (
            ("ip_address", ip_address),
            ("user_agent", user_agent),
            ("device_type", device_type),
            ("referrer", referrer),
        )
        if value
    }

    try:
        dto = session_registry().create_guest_session(metadata)
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Session: {dto.session_id}")
    click.echo(f"Expires: {dto.expires_at}")
    click.echo(f"Token:   {dto.credential}")


@click.command("extend")
@click.option("--guest", "credential", required=True, help="Guest session credential.")
@click.option("--hours", default=24, type=int, show_default=True, help="Hours from now.")
def session_extend(credential: str, hours: int) -> None:
    """Push a guest session's expiry out and re-issue its credential."""
    try:
        dto = session_registry().extend(credential, hours)
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Session: {dto.session_id}")
    click.echo(f"Expires: {dto.expires_at}")
    click.echo(f"Token:   {dto.credential}")


@click.command("check")
@click.option("--guest", "credential", required=True, help="Guest session credential.")
def session_check(credential: str) -> None:
    """Report whether a guest credential still maps to a live session."""
    try:
        session = session_registry().find_by_credential(credential)
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    if session is None:
        raise click.ClickException("No active session for this credential.")
    click.echo(f"Session {session.session_id} active until {session.expires_at.isoformat()}")
