"""CLI commands for the Cart aggregate."""

from __future__ import annotations

import click

from marketplace.application.manage_cart import (
    AddToCartHandler,
    ClearCartHandler,
    ClearStoreLinesHandler,
    RemoveFromCartHandler,
    UpdateCartLineHandler,
)
from marketplace.application.migrate_guest_cart import MigrateGuestCartHandler
from marketplace.application.show_cart import ShowCartHandler, ValidateCartHandler
from marketplace.infrastructure.bootstrap import (
    event_publisher,
    guest_signer,
    unit_of_work,
)
from marketplace.infrastructure.cli.common import (
    CLI_ERRORS,
    display_cart,
    resolve_actor,
    token_option,
)

catalog_option = click.option("--catalog", "catalog_id", default=None, help="Catalog the product was picked from.")


@click.command("show")
@token_option
def cart_show(token: str) -> None:
    """Show the cart with today's prices."""
    actor = resolve_actor(token)
    handler = ShowCartHandler(uow=unit_of_work())

    try:
        dto = handler.handle(actor)
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    display_cart(dto)


@click.command("add")
@token_option
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--qty", "quantity", default=1, type=int, show_default=True, help="Units to add.")
@catalog_option
def cart_add(token: str, product_id: str, quantity: int, catalog_id: str | None) -> None:
    """Add a product to the cart."""
    actor = resolve_actor(token)
    handler = AddToCartHandler(uow=unit_of_work())

    try:
        dto = handler.handle(actor, product_id, quantity, catalog_id=catalog_id)
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    display_cart(dto)


@click.command("update")
@token_option
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--qty", "quantity", required=True, type=int, help="New quantity (at least 1).")
@catalog_option
def cart_update(token: str, product_id: str, quantity: int, catalog_id: str | None) -> None:
    """Change the quantity of a cart line."""
    actor = resolve_actor(token)
    handler = UpdateCartLineHandler(uow=unit_of_work())

    try:
        dto = handler.handle(actor, product_id, quantity, catalog_id=catalog_id)
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    display_cart(dto)


@click.command("remove")
@token_option
@click.option("--product", "product_id", required=True, help="Product ID.")
@catalog_option
def cart_remove(token: str, product_id: str, catalog_id: str | None) -> None:
    """Remove a product from the cart."""
    actor = resolve_actor(token)
    handler = RemoveFromCartHandler(uow=unit_of_work())

    try:
        dto = handler.handle(actor, product_id, catalog_id=catalog_id)
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    display_cart(dto)


@click.command("clear")
@token_option
@click.option("--store", "store_id", default=None, help="Only drop this store's lines.")
def cart_clear(token: str, store_id: str | None) -> None:
    """Empty the cart (or just one store's lines)."""
    actor = resolve_actor(token)

    try:
        if store_id is None:
            ClearCartHandler(uow=unit_of_work()).handle(actor)
        else:
            dto = ClearStoreLinesHandler(uow=unit_of_work()).handle(actor, store_id)
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    if store_id is None:
        click.echo("Cart cleared.")
    else:
        display_cart(dto)


@click.command("validate")
@token_option
def cart_validate(token: str) -> None:
    """Check every line against the live catalog."""
    actor = resolve_actor(token)
    handler = ValidateCartHandler(uow=unit_of_work())

    try:
        issues = handler.handle(actor)
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    if not issues:
        click.echo("Cart is valid.")
        return
    for issue in issues:
        hint = f" (max {issue.max_quantity})" if issue.max_quantity is not None else ""
        click.echo(f"  {issue.action:<7} {issue.product_id:<12} {issue.reason}{hint}")


@click.command("merge")
@token_option
@click.option("--guest", "guest_credential", required=True, help="Guest session credential.")
def cart_merge(token: str, guest_credential: str) -> None:
    """Adopt a guest cart into the logged-in user's cart."""
    actor = resolve_actor(token)
    handler = MigrateGuestCartHandler(
        uow=unit_of_work(),
        signer=guest_signer(),
        publisher=event_publisher(),
    )

    try:
        dto = handler.handle(actor, guest_credential)
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    display_cart(dto)
