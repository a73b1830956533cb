"""CLI commands for the Order aggregate."""

from __future__ import annotations

from datetime import datetime, timezone

import click

from marketplace.application.adjust_estimate import AdjustEstimateHandler
from marketplace.application.dashboard import DashboardHandler
from marketplace.application.dto import OrderFilter, OrderItemSpec
from marketplace.application.order_feedback import AddFeedbackHandler
from marketplace.application.order_queries import (
    AvailableOrdersHandler,
    GuestOrdersHandler,
    ListOrdersHandler,
)
from marketplace.application.place_order import PlaceOrderHandler
from marketplace.application.set_payment import SetPaymentHandler
from marketplace.application.show_order import ShowOrderHandler
from marketplace.application.transition_order import TransitionOrderHandler
from marketplace.domain.model.fulfillment import OrderStatus, Transition
from marketplace.domain.model.order import REACTIONS, ContactDetails
from marketplace.domain.model.timeline import Stage
from marketplace.infrastructure.bootstrap import (
    event_publisher,
    guest_signer,
    unit_of_work,
)
from marketplace.infrastructure.cli.common import (
    CLI_ERRORS,
    display_order,
    display_order_row,
    resolve_actor,
    token_option,
)
from marketplace.infrastructure.config import get_settings

order_id_option = click.option("--id", "order_id", required=True, type=int, help="Order ID.")


def _parse_items(raw: str) -> list[OrderItemSpec]:
    """Parse 'P1:3,P2:5' into OrderItemSpec list."""
    specs: list[OrderItemSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductId:Quantity'."
            )
        product_id, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product_id}'."
            )
        specs.append(OrderItemSpec(product_id=product_id.strip(), quantity=qty))
    return specs


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


@click.command("place")
@token_option
@click.option("--store", "store_id", required=True, help="Store to order from.")
@click.option("--items", required=True, help="Items as 'ProductId:Qty,ProductId:Qty'.")
@click.option("--fee", "delivery_fee", default="0", show_default=True, help="Delivery fee.")
@click.option("--takeout/--no-takeout", default=True, show_default=True, help="Delivered by a driver.")
@click.option("--name", default=None, help="Name for the order.")
@click.option("--phone", default=None, help="Contact phone number.")
@click.option("--address", default=None, help="Delivery address.")
@click.option("--lat", "latitude", default=None, type=float, help="Delivery latitude.")
@click.option("--lng", "longitude", default=None, type=float, help="Delivery longitude.")
def order_place(
    token: str,
    store_id: str,
    items: str,
    delivery_fee: str,
    takeout: bool,
    name: str | None,
    phone: str | None,
    address: str | None,
    latitude: float | None,
    longitude: float | None,
) -> None:
    """Place an order from matching cart lines."""
    actor = resolve_actor(token)
    specs = _parse_items(items)
    contact = ContactDetails(
        name=name, phone=phone, address=address, latitude=latitude, longitude=longitude
    )

    handler = PlaceOrderHandler(uow=unit_of_work(), publisher=event_publisher())

    try:
        dto = handler.handle(
            actor,
            store_id=store_id,
            item_specs=specs,
            delivery_fee=delivery_fee,
            is_takeout=takeout,
            contact=contact,
        )
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{dto.id} placed.")
    display_order(dto)


@click.command("move")
@token_option
@order_id_option
@click.option(
    "--action",
    required=True,
    type=click.Choice([t.value for t in Transition]),
    help="Lifecycle step to take.",
)
@click.option("--driver", "driver_id", default=None, help="Driver an admin acts for (claim/decline).")
def order_move(token: str, order_id: int, action: str, driver_id: str | None) -> None:
    """Move an order through its lifecycle (accept, prepare, claim, ...)."""
    actor = resolve_actor(token)
    handler = TransitionOrderHandler(
        uow=unit_of_work(),
        publisher=event_publisher(),
        estimate_minutes=get_settings().stage_estimate_minutes,
    )

    try:
        dto = handler.handle(actor, order_id, Transition(action), driver_id=driver_id)
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{dto.id}: {action} -> {dto.status}")


@click.command("show")
@token_option
@order_id_option
def order_show(token: str, order_id: int) -> None:
    """Show an order with its live progress."""
    actor = resolve_actor(token)
    handler = ShowOrderHandler(uow=unit_of_work())

    try:
        dto = handler.handle(actor, order_id)
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    display_order(dto)


@click.command("list")
@token_option
@click.option(
    "--status",
    "statuses",
    multiple=True,
    type=click.Choice([s.value for s in OrderStatus]),
    help="Only these statuses (repeatable).",
)
@click.option("--from", "placed_from", default=None, type=click.DateTime(), help="Placed on or after (UTC).")
@click.option("--to", "placed_to", default=None, type=click.DateTime(), help="Placed on or before (UTC).")
@click.option("--active-only", is_flag=True, default=False, help="Hide closed orders.")
def order_list(
    token: str,
    statuses: tuple[str, ...],
    placed_from: datetime | None,
    placed_to: datetime | None,
    active_only: bool,
) -> None:
    """List the orders visible to you, newest first."""
    actor = resolve_actor(token)
    criteria = OrderFilter(
        statuses=frozenset(statuses),
        placed_from=_as_utc(placed_from),
        placed_to=_as_utc(placed_to),
        active_only=active_only,
    )

    try:
        orders = ListOrdersHandler(uow=unit_of_work()).handle(actor, criteria)
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    if not orders:
        click.echo("No orders found.")
        return
    for dto in orders:
        display_order_row(dto)


@click.command("available")
@token_option
@click.option("--driver", "driver_id", default=None, help="Driver an admin looks on behalf of.")
def order_available(token: str, driver_id: str | None) -> None:
    """List prepared takeout orders waiting for a driver."""
    actor = resolve_actor(token)

    try:
        orders = AvailableOrdersHandler(uow=unit_of_work()).handle(actor, driver_id)
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    if not orders:
        click.echo("No orders available.")
        return
    for dto in orders:
        display_order_row(dto)


@click.command("guest")
@click.option("--guest", "credential", required=True, help="Guest session credential.")
def order_guest(credential: str) -> None:
    """List orders placed under a guest session."""
    handler = GuestOrdersHandler(uow=unit_of_work(), signer=guest_signer())

    try:
        orders = handler.handle(credential)
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    if not orders:
        click.echo("No orders found.")
        return
    for dto in orders:
        display_order_row(dto)


@click.command("adjust")
@token_option
@order_id_option
@click.option("--stage", required=True, type=click.Choice([s.value for s in Stage]), help="Stage estimate to move.")
@click.option("--minutes", required=True, type=int, help="Minutes to add (negative to bring forward).")
def order_adjust(token: str, order_id: int, stage: str, minutes: int) -> None:
    """Adjust a stage's estimated completion time."""
    actor = resolve_actor(token)
    handler = AdjustEstimateHandler(
        uow=unit_of_work(),
        default_minutes=get_settings().stage_estimate_minutes,
    )

    try:
        dto = handler.handle(actor, order_id, Stage(stage), minutes)
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    display_order(dto)


@click.command("feedback")
@token_option
@order_id_option
@click.option("--rating", default=None, type=click.IntRange(1, 5), help="Rating from 1 to 5.")
@click.option("--comment", default=None, help="Free-text comment.")
@click.option("--reaction", "reactions", multiple=True, type=click.Choice(sorted(REACTIONS)), help="Reaction (repeatable).")
def order_feedback(
    token: str,
    order_id: int,
    rating: int | None,
    comment: str | None,
    reactions: tuple[str, ...],
) -> None:
    """Leave feedback on a delivered or received order."""
    actor = resolve_actor(token)

    try:
        AddFeedbackHandler(uow=unit_of_work()).handle(
            actor, order_id, rating=rating, comment=comment, reactions=list(reactions)
        )
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Feedback recorded for order #{order_id}.")


@click.command("pay")
@token_option
@order_id_option
@click.option("--paid/--unpaid", default=True, show_default=True, help="New payment flag.")
def order_pay(token: str, order_id: int, paid: bool) -> None:
    """Mark an order paid or unpaid."""
    actor = resolve_actor(token)

    try:
        SetPaymentHandler(uow=unit_of_work()).handle(actor, order_id, paid)
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} marked {'paid' if paid else 'unpaid'}.")


@click.command("dashboard")
@token_option
def order_dashboard(token: str) -> None:
    """Show order counts and revenue for your scope."""
    actor = resolve_actor(token)

    try:
        dto = DashboardHandler(uow=unit_of_work()).handle(actor)
    except CLI_ERRORS as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Dashboard for {dto.scope}")
    click.echo(f"  Active orders:  {dto.total_active}")
    click.echo(f"  Placed:         {dto.placed}")
    click.echo(f"  Accepted:       {dto.accepted}")
    click.echo(f"  Pending:        {dto.pending}")
    click.echo(f"  Completed:      {dto.completed}")
    click.echo(f"  Revenue:        {dto.revenue}")
    if dto.available_to_drivers is not None:
        click.echo(f"  Awaiting driver: {dto.available_to_drivers}")
