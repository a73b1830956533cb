import click

from marketplace.infrastructure.cli.cart_commands import (
    cart_add,
    cart_clear,
    cart_merge,
    cart_remove,
    cart_show,
    cart_update,
    cart_validate,
)
from marketplace.infrastructure.cli.order_commands import (
    order_adjust,
    order_available,
    order_dashboard,
    order_feedback,
    order_guest,
    order_list,
    order_move,
    order_pay,
    order_place,
    order_show,
)
from marketplace.infrastructure.cli.product_commands import (
    product_add,
    product_list,
    product_update,
)
from marketplace.infrastructure.cli.session_commands import (
    session_check,
    session_extend,
    session_start,
)
from marketplace.infrastructure.cli.sweep_commands import sweep_run, sweep_stats
from marketplace.infrastructure.cli.token_commands import token_issue
from marketplace.infrastructure.config import get_settings
from marketplace.infrastructure.logging import configure_logging


@click.group()
def cli() -> None:
    """Marketplace: carts, guest sessions and order fulfillment."""
    settings = get_settings()
    configure_logging(settings.log_level, json_output=settings.log_json)


@cli.group()
def cart() -> None:
    """Manage carts."""


@cli.group()
def order() -> None:
    """Place and fulfill orders."""


@cli.group()
def product() -> None:
    """Manage the product read model."""


@cli.group()
def session() -> None:
    """Manage guest sessions."""


@cli.group()
def sweep() -> None:
    """Clean up abandoned guest state."""


@cli.group()
def token() -> None:
    """Issue user credentials."""


# Register subcommands
cart.add_command(cart_add)
cart.add_command(cart_clear)
cart.add_command(cart_merge)
cart.add_command(cart_remove)
cart.add_command(cart_show)
cart.add_command(cart_update)
cart.add_command(cart_validate)
order.add_command(order_adjust)
order.add_command(order_available)
order.add_command(order_dashboard)
order.add_command(order_feedback)
order.add_command(order_guest)
order.add_command(order_list)
order.add_command(order_move)
order.add_command(order_pay)
order.add_command(order_place)
order.add_command(order_show)
product.add_command(product_add)
product.add_command(product_list)
product.add_command(product_update)
session.add_command(session_check)
session.add_command(session_extend)
session.add_command(session_start)
sweep.add_command(sweep_run)
sweep.add_command(sweep_stats)
token.add_command(token_issue)
