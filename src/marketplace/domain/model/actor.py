"""Who is asking: an identity plus the role it acts in."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from marketplace.domain.exceptions import ValidationError
from marketplace.domain.model.value_objects import Owner


class Role(Enum):
    CUSTOMER = "customer"
    GUEST = "guest"
    STORE = "store"
    DRIVER = "driver"
    ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    identity: str
    role: Role

    def __post_init__(self) -> None:
        if not self.identity or not str(self.identity).strip():
            raise ValidationError("Actor identity is required")

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    def as_owner(self) -> Owner:
        """The cart/customer identity this actor shops under."""
        if self.role is Role.GUEST:
            return Owner.guest(self.identity)
        return Owner.user(self.identity)

    def __str__(self) -> str:
        return f"{self.role.value}:{self.identity}"
