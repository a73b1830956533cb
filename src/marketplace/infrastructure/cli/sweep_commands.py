"""CLI commands for the guest-state cleanup sweeper."""

from __future__ import annotations

import click

from marketplace.infrastructure.bootstrap import cleanup_sweeper
from marketplace.infrastructure.cli.common import CLI_ERRORS
from marketplace.infrastructure.config import get_settings


@click.command("run")
@click.option("--loop", is_flag=True, default=False, help="Keep sweeping on the configured interval.")
def sweep_run(loop: bool) -> None:
    """Delete stale guest sessions and orphaned guest carts."""
    sweeper = cleanup_sweeper()

    if loop:
        try:
            sweeper.run_forever(get_settings().sweep_interval_seconds)
        except KeyboardInterrupt:
            click.echo("Sweeper stopped.")
        return

    try:
        report = sweeper.run_once()
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Deleted {report.sessions_deleted} sessions, {report.carts_deleted} carts, "
        f"{report.orphan_carts_deleted} orphaned carts ({report.failures} failures)."
    )


@click.command("stats")
def sweep_stats() -> None:
    """Show how much guest state is live, stale or orphaned."""
    try:
        stats = cleanup_sweeper().stats()
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Active sessions:   {stats.active_sessions}")
    click.echo(f"Inactive sessions: {stats.inactive_sessions}")
    click.echo(f"Expired sessions:  {stats.expired_sessions}")
    click.echo(f"Expired carts:     {stats.expired_carts}")
    click.echo(f"Orphaned carts:    {stats.orphaned_carts}")
