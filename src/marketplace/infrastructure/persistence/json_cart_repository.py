"""JSON-document-backed implementation of CartRepository."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from marketplace.domain.model.cart import Cart, CartLine
from marketplace.domain.model.value_objects import Owner
from marketplace.domain.repository.cart_repository import CartRepository


def _time(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class JsonCartRepository(CartRepository):

    def __init__(self, collection: dict[str, Any]) -> None:
        self._carts = collection

    # --- CartRepository interface ---------------------------------------------

    def get(self, owner: Owner) -> Cart | None:
        raw = self._carts.get(owner.key)
        return self._to_domain(raw) if raw is not None else None

    def save(self, cart: Cart) -> None:
        self._carts[cart.owner.key] = self._to_raw(cart)

    def delete(self, owner: Owner) -> bool:
        return self._carts.pop(owner.key, None) is not None

    def list_guest_carts(self) -> list[Cart]:
        return [
            self._to_domain(raw)
            for key, raw in self._carts.items()
            if Owner.parse(key).is_guest
        ]

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(cart: Cart) -> dict:
        return {
            "owner": cart.owner.key,
            "created_at": cart.created_at.isoformat(),
            "updated_at": cart.updated_at.isoformat(),
            "expires_at": cart.expires_at.isoformat() if cart.expires_at else None,
            "lines": [
                {
                    "product_id": line.product_id,
                    "store_id": line.store_id,
                    "catalog_id": line.catalog_id,
                    "quantity": line.quantity,
                    "added_at": line.added_at.isoformat(),
                }
                for line in cart.lines
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Cart:
        return Cart(
            owner=Owner.parse(raw["owner"]),
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=datetime.fromisoformat(raw["updated_at"]),
            expires_at=_time(raw.get("expires_at")),
            lines=[
                CartLine(
                    product_id=line["product_id"],
                    store_id=line["store_id"],
                    catalog_id=line.get("catalog_id"),
                    quantity=line["quantity"],
                    added_at=datetime.fromisoformat(line["added_at"]),
                )
                for line in raw.get("lines", [])
            ],
        )
