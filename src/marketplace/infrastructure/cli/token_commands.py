"""CLI command for minting user credentials (local tooling only)."""

from __future__ import annotations

import click

from marketplace.domain.model.actor import Role
from marketplace.infrastructure.bootstrap import identity_provider
from marketplace.infrastructure.cli.common import CLI_ERRORS


@click.command("issue")
@click.option("--identity", required=True, help="User, store or driver ID.")
@click.option(
    "--role",
    required=True,
    type=click.Choice([r.value for r in Role if r is not Role.GUEST]),
    help="Role the credential acts in.",
)
def token_issue(identity: str, role: str) -> None:
    """Print a signed credential for IDENTITY acting as ROLE."""
    try:
        token = identity_provider().issue(identity, Role(role))
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    click.echo(token)
