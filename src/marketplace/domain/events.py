"""Domain events handed to the notification sink.

Publishing is fire-and-forget: a sink that fails must never undo or fail
the operation that raised the event.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class DomainEvent:
    occurred_at: datetime

    @property
    def name(self) -> str:
        return "domain-event"


@dataclass(frozen=True)
class OrderPlaced(DomainEvent):
    order_id: int = 0
    customer: str = ""
    store_id: str = ""
    amount: str = ""

    @property
    def name(self) -> str:
        return "order-placed"


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    order_id: int = 0
    previous: str = ""
    current: str = ""
    transition: str = ""
    actor: str = ""

    @property
    def name(self) -> str:
        return "order-status-changed"


@dataclass(frozen=True)
class GuestMigrated(DomainEvent):
    session_id: str = ""
    user_id: str = ""
    lines: int = 0
    product_ids: tuple[str, ...] = field(default_factory=tuple)

    @property
    def name(self) -> str:
        return "guest-migrated"


class EventPublisher(ABC):

    @abstractmethod
    def publish(self, event: DomainEvent) -> None:
        """Hand an event to the sink. Must not raise."""
