"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from marketplace.domain.model.cart import Cart
from marketplace.domain.model.order import Order
from marketplace.domain.model.timeline import Actual, Estimated
from marketplace.domain.service.progress_calculator import OrderProgress

_TIME_FORMAT = "%Y-%m-%d %H:%M UTC"


def format_time(value: datetime | None) -> str | None:
    return value.strftime(_TIME_FORMAT) if value is not None else None


# --- Inputs ---------------------------------------------------------------------


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: what the customer asked for (product id + quantity)."""

    product_id: str
    quantity: int


@dataclass(frozen=True)
class OrderFilter:
    """Input: narrowing for order listings. Empty means no narrowing."""

    statuses: frozenset[str] = frozenset()
    placed_from: datetime | None = None
    placed_to: datetime | None = None
    active_only: bool = False


# --- Carts ----------------------------------------------------------------------


@dataclass(frozen=True)
class CartLineDTO:
    product_id: str
    store_id: str
    catalog_id: str | None
    quantity: int
    added_at: str


@dataclass(frozen=True)
class CartDTO:
    owner: str
    lines: list[CartLineDTO]
    item_count: int
    updated_at: str
    expires_at: str | None = None
    total: str | None = None  # only filled in when priced against the catalog


@dataclass(frozen=True)
class CartIssueDTO:
    """One line that can no longer be ordered as-is."""

    product_id: str
    catalog_id: str | None
    action: str  # "remove" or "update"
    reason: str
    max_quantity: int | None = None


@dataclass(frozen=True)
class GuestSessionDTO:
    session_id: str
    credential: str
    expires_at: str
    cart: CartDTO


# --- Orders ---------------------------------------------------------------------


@dataclass(frozen=True)
class OrderLineItemDTO:
    """Output: a single line item as displayed to the user."""

    product_id: str
    product_name: str
    catalog_id: str | None
    quantity: int
    unit_price: str  # formatted, e.g. "$15.00"
    line_total: str


@dataclass(frozen=True)
class MilestoneDTO:
    name: str
    state: str  # "actual" or "estimated"
    at: str


@dataclass(frozen=True)
class StageProgressDTO:
    stage: str
    percent: int
    minutes_left: int | None


@dataclass(frozen=True)
class ProgressDTO:
    overall: int
    stages: list[StageProgressDTO]
    is_completed: bool
    is_canceled: bool


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: int
    customer: str
    store_id: str
    status: str
    items: list[OrderLineItemDTO]
    total: str
    delivery_fee: str
    amount: str
    placed_at: str
    is_takeout: bool
    is_paid: bool
    is_active: bool
    driver_id: str | None = None
    milestones: list[MilestoneDTO] = field(default_factory=list)
    rating: int | None = None
    comment: str | None = None
    reactions: tuple[str, ...] = ()
    progress: ProgressDTO | None = None


@dataclass(frozen=True)
class DashboardDTO:
    scope: str
    total_active: int
    placed: int
    accepted: int
    pending: int
    completed: int
    revenue: str
    available_to_drivers: int | None = None


# --- Mapping --------------------------------------------------------------------


def cart_to_dto(cart: Cart, total: str | None = None) -> CartDTO:
    return CartDTO(
        owner=cart.owner.key,
        lines=[
            CartLineDTO(
                product_id=line.product_id,
                store_id=line.store_id,
                catalog_id=line.catalog_id,
                quantity=line.quantity,
                added_at=format_time(line.added_at),  # type: ignore[arg-type]
            )
            for line in cart.lines
        ],
        item_count=cart.item_count,
        updated_at=format_time(cart.updated_at),  # type: ignore[arg-type]
        expires_at=format_time(cart.expires_at),
        total=total,
    )


def progress_to_dto(progress: OrderProgress) -> ProgressDTO:
    return ProgressDTO(
        overall=progress.overall,
        stages=[
            StageProgressDTO(
                stage=stage.value,
                percent=p.percent,
                minutes_left=p.minutes_left,
            )
            for stage, p in progress.stages.items()
        ],
        is_completed=progress.is_completed,
        is_canceled=progress.is_canceled,
    )


def order_to_dto(order: Order, progress: OrderProgress | None = None) -> OrderDTO:
    milestones = []
    for milestone, stamp in order.timeline.items():
        if isinstance(stamp, Actual):
            milestones.append(MilestoneDTO(milestone.value, "actual", format_time(stamp.at)))  # type: ignore[arg-type]
        elif isinstance(stamp, Estimated):
            milestones.append(MilestoneDTO(milestone.value, "estimated", format_time(stamp.at)))  # type: ignore[arg-type]

    feedback = order.feedback
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        customer=order.customer.key,
        store_id=order.store_id,
        status=order.status.value,
        items=[
            OrderLineItemDTO(
                product_id=item.product_id,
                product_name=item.product_name,
                catalog_id=item.catalog_id,
                quantity=item.quantity.value,
                unit_price=str(item.unit_price),
                line_total=str(item.line_total),
            )
            for item in order.items
        ],
        total=str(order.total),
        delivery_fee=str(order.delivery_fee),
        amount=str(order.amount),
        placed_at=format_time(order.placed_at),  # type: ignore[arg-type]
        is_takeout=order.is_takeout,
        is_paid=order.is_paid,
        is_active=order.is_active,
        driver_id=order.driver_id,
        milestones=milestones,
        rating=feedback.rating if feedback else None,
        comment=feedback.comment if feedback else None,
        reactions=feedback.reactions if feedback else (),
        progress=progress_to_dto(progress) if progress is not None else None,
    )
