"""Shared CLI helpers: credentials and output formatting."""

from __future__ import annotations

import click

from marketplace.application.dto import CartDTO, OrderDTO
from marketplace.domain.exceptions import DomainException, ServiceUnavailableError
from marketplace.domain.model.actor import Actor
from marketplace.infrastructure.bootstrap import identity_provider

# Errors a command turns into a friendly message instead of a traceback.
CLI_ERRORS = (DomainException, ServiceUnavailableError)

token_option = click.option(
    "--token",
    envvar="MARKETPLACE_TOKEN",
    required=True,
    help="User or guest credential (or set MARKETPLACE_TOKEN).",
)


def resolve_actor(token: str) -> Actor:
    try:
        return identity_provider().resolve(token)
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))


def display_cart(dto: CartDTO) -> None:
    click.echo(f"Cart {dto.owner}  ({dto.item_count} items)")
    if dto.expires_at:
        click.echo(f"Expires: {dto.expires_at}")
    if not dto.lines:
        click.echo("  (empty)")
        return
    click.echo(f"  {'Product':<12} {'Store':<12} {'Catalog':<10} {'Qty':>5}")
    click.echo(f"  {'-'*42}")
    for line in dto.lines:
        click.echo(
            f"  {line.product_id:<12} {line.store_id:<12} "
            f"{line.catalog_id or '-':<10} {line.quantity:>5}"
        )
    if dto.total is not None:
        click.echo(f"  {'-'*42}")
        click.echo(f"  {'Cart Total':<29} {dto.total:>12}")


def display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    kind = "takeout" if dto.is_takeout else "non-takeout"
    click.echo(f"Order #{dto.id}  (status={dto.status}, {kind})")
    click.echo(f"Customer: {dto.customer}")
    click.echo(f"Store:    {dto.store_id}")
    if dto.driver_id:
        click.echo(f"Driver:   {dto.driver_id}")
    click.echo(f"Placed:   {dto.placed_at}")
    click.echo(f"Paid:     {'yes' if dto.is_paid else 'no'}")
    click.echo()

    click.echo(f"  {'Product':<20} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*47}")
    for item in dto.items:
        click.echo(
            f"  {item.product_name:<20} {item.quantity:>5} {item.unit_price:>10} {item.line_total:>10}"
        )
    click.echo(f"  {'-'*47}")
    click.echo(f"  {'Delivery Fee':<27} {dto.delivery_fee:>20}")
    click.echo(f"  {'Order Amount':<27} {dto.amount:>20}")

    if dto.milestones:
        click.echo()
        for milestone in dto.milestones:
            click.echo(f"  {milestone.name:<16} {milestone.state:<10} {milestone.at}")

    if dto.progress is not None:
        click.echo()
        click.echo(f"Progress: {dto.progress.overall}%")
        for stage in dto.progress.stages:
            left = "-" if stage.minutes_left is None else f"{stage.minutes_left} min"
            click.echo(f"  {stage.stage:<12} {stage.percent:>3}%  {left}")

    if dto.rating is not None or dto.comment or dto.reactions:
        click.echo()
        click.echo(f"Feedback: {dto.rating or '-'}/5 {dto.comment or ''}".rstrip())
        if dto.reactions:
            click.echo(f"Reactions: {', '.join(dto.reactions)}")


def display_order_row(dto: OrderDTO) -> None:
    click.echo(
        f"#{dto.id:<5} {dto.status:<22} {dto.store_id:<12} {dto.amount:>10}  {dto.placed_at}"
    )
