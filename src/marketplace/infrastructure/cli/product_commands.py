"""CLI commands for the product read model."""

from __future__ import annotations

import click

from marketplace.application.add_product import AddProductHandler
from marketplace.application.list_products import ListProductsHandler
from marketplace.application.update_product import UpdateProductHandler
from marketplace.infrastructure.bootstrap import unit_of_work
from marketplace.infrastructure.cli.common import CLI_ERRORS


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Price (e.g. 15.00).")
@click.option("--store", "store_id", required=True, help="Store that sells it.")
@click.option("--stock", default=0, type=int, show_default=True, help="Units on hand.")
def product_add(name: str, price: str, store_id: str, stock: int) -> None:
    """Add a new product to the catalog."""
    handler = AddProductHandler(uow=unit_of_work())

    try:
        product = handler.handle(name=name, price=price, store_id=store_id, stock=stock)
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Product #{product.id} '{product.name}' added at {product.price} "
        f"(store={product.store_id}, stock={product.stock})"
    )


@click.command("list")
@click.option("--store", "store_id", default=None, help="Only this store's products.")
def product_list(store_id: str | None) -> None:
    """List products in the catalog."""
    handler = ListProductsHandler(uow=unit_of_work())

    try:
        products = handler.handle(store_id=store_id)
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'Name':<20} {'Store':<12} {'Price':>10} {'Stock':>6}  Available")
    click.echo("-" * 68)
    for p in products:
        click.echo(
            f"{p.id:<6} {p.name:<20} {p.store_id:<12} {str(p.price):>10} "
            f"{p.stock:>6}  {'yes' if p.available else 'no'}"
        )


@click.command("update")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--price", default=None, help="New price (e.g. 29.99).")
@click.option("--stock", default=None, type=int, help="New stock level.")
@click.option("--available/--unavailable", default=None, help="Whether it can be sold.")
def product_update(
    product_id: str,
    price: str | None,
    stock: int | None,
    available: bool | None,
) -> None:
    """Update a product's price, stock or availability."""
    handler = UpdateProductHandler(uow=unit_of_work())

    try:
        product = handler.handle(
            product_id=product_id,
            new_price=price,
            available=available,
            stock=stock,
        )
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Product #{product.id} updated: price={product.price}, "
        f"stock={product.stock}, available={'yes' if product.available else 'no'}"
    )
