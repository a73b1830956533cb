"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from marketplace.domain.model.order import Order
from marketplace.domain.model.value_objects import Owner


class OrderRepository(ABC):

    @abstractmethod
    def next_id(self) -> int:
        """Generate the next unique order ID."""

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist a new or updated order.

        Raises ConflictError if the stored version no longer matches the
        loaded one; bumps ``order.version`` on success.
        """

    @abstractmethod
    def list_all(self) -> list[Order]:
        """Return every order."""

    # --- Filters --------------------------------------------------------------

    def list_for_customers(self, customers: list[Owner]) -> list[Order]:
        wanted = set(customers)
        return [o for o in self.list_all() if o.customer in wanted]

    def list_for_store(self, store_id: str) -> list[Order]:
        return [o for o in self.list_all() if o.store_id == store_id]

    def list_for_driver(self, driver_id: str) -> list[Order]:
        return [o for o in self.list_all() if o.driver_id == driver_id]

    def list_available_for_driver(self, driver_id: str) -> list[Order]:
        return [
            o
            for o in self.list_all()
            if o.is_available_to_drivers and driver_id not in o.excluded_drivers
        ]

    def list_by_guest_session(self, session_id: str) -> list[Order]:
        return [o for o in self.list_all() if o.guest_session_id == session_id]
