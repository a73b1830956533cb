"""JSON-document-backed implementation of OrderRepository."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from marketplace.domain.exceptions import ConflictError
from marketplace.domain.model.fulfillment import OrderStatus
from marketplace.domain.model.order import (
    ContactDetails,
    Feedback,
    Order,
    OrderLineItem,
)
from marketplace.domain.model.timeline import (
    NOT_REACHED,
    Actual,
    Estimated,
    Milestone,
    StageTime,
)
from marketplace.domain.model.value_objects import Money, Owner, Quantity
from marketplace.domain.repository.order_repository import OrderRepository


class JsonOrderRepository(OrderRepository):

    def __init__(self, collection: dict[str, Any], meta: dict[str, Any]) -> None:
        self._orders = collection
        self._meta = meta

    # --- OrderRepository interface --------------------------------------------

    def next_id(self) -> int:
        highest = max((int(key) for key in self._orders), default=0)
        next_id = max(self._meta.get("next_order_id", 1), highest + 1)
        self._meta["next_order_id"] = next_id + 1
        return next_id

    def get_by_id(self, order_id: int) -> Order | None:
        raw = self._orders.get(str(order_id))
        return self._to_domain(raw) if raw is not None else None

    def save(self, order: Order) -> None:
        if order.id is None:
            order.id = self.next_id()
        else:
            stored = self._orders.get(str(order.id))
            if stored is not None and stored.get("version", 0) != order.version:
                raise ConflictError(
                    f"Order #{order.id} was changed by someone else; reload and retry"
                )
        order.version += 1
        self._orders[str(order.id)] = self._to_raw(order)

    def list_all(self) -> list[Order]:
        return [self._to_domain(raw) for raw in self._orders.values()]

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        timeline = {}
        for milestone, stamp in order.timeline.items():
            if isinstance(stamp, Actual):
                timeline[milestone.value] = {"state": "actual", "at": stamp.at.isoformat()}
            elif isinstance(stamp, Estimated):
                timeline[milestone.value] = {"state": "estimated", "at": stamp.at.isoformat()}

        feedback = None
        if order.feedback is not None:
            feedback = {
                "rating": order.feedback.rating,
                "comment": order.feedback.comment,
                "reactions": list(order.feedback.reactions),
            }

        return {
            "id": order.id,
            "version": order.version,
            "customer": order.customer.key,
            "store_id": order.store_id,
            "status": order.status.value,
            "placed_at": order.placed_at.isoformat(),
            "is_takeout": order.is_takeout,
            "is_paid": order.is_paid,
            "is_active": order.is_active,
            "driver_id": order.driver_id,
            "excluded_drivers": sorted(order.excluded_drivers),
            "delivery_fee": str(order.delivery_fee.amount),
            "currency": order.delivery_fee.currency,
            "items": [
                {
                    "product_id": item.product_id,
                    "product_name": item.product_name,
                    "catalog_id": item.catalog_id,
                    "quantity": item.quantity.value,
                    "unit_price": str(item.unit_price.amount),
                    "currency": item.unit_price.currency,
                }
                for item in order.items
            ],
            "timeline": timeline,
            "contact": {
                "name": order.contact.name,
                "phone": order.contact.phone,
                "address": order.contact.address,
                "latitude": order.contact.latitude,
                "longitude": order.contact.longitude,
            },
            "feedback": feedback,
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        items = [
            OrderLineItem(
                product_id=i["product_id"],
                product_name=i["product_name"],
                catalog_id=i.get("catalog_id"),
                quantity=Quantity(i["quantity"]),
                unit_price=Money(Decimal(i["unit_price"]), i.get("currency", "USD")),
            )
            for i in raw["items"]
        ]

        timeline: dict[Milestone, StageTime] = {m: NOT_REACHED for m in Milestone}
        for name, stamp in raw.get("timeline", {}).items():
            at = datetime.fromisoformat(stamp["at"])
            timeline[Milestone(name)] = Actual(at) if stamp["state"] == "actual" else Estimated(at)

        feedback = None
        if raw.get("feedback"):
            feedback = Feedback(
                rating=raw["feedback"].get("rating"),
                comment=raw["feedback"].get("comment"),
                reactions=tuple(raw["feedback"].get("reactions", ())),
            )

        return Order(
            id=raw["id"],
            version=raw.get("version", 0),
            customer=Owner.parse(raw["customer"]),
            store_id=raw["store_id"],
            items=items,
            placed_at=datetime.fromisoformat(raw["placed_at"]),
            delivery_fee=Money(Decimal(raw["delivery_fee"]), raw.get("currency", "USD")),
            is_takeout=raw.get("is_takeout", True),
            status=OrderStatus(raw["status"]),
            driver_id=raw.get("driver_id"),
            excluded_drivers=set(raw.get("excluded_drivers", [])),
            is_paid=raw.get("is_paid", False),
            is_active=raw.get("is_active", True),
            timeline=timeline,
            contact=ContactDetails(**(raw.get("contact") or {})),
            feedback=feedback,
        )
