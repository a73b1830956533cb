"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum

from marketplace.domain.exceptions import ValidationError


def utc_now() -> datetime:
    """Default clock. Handlers accept any zero-argument callable instead."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Money:
    """Monetary amount with currency, backed by Decimal."""

    amount: Decimal
    currency: str = "USD"

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValidationError(
                f"Money amount must be a Decimal, got {type(self.amount).__name__}"
            )
        if self.amount < Decimal("0"):
            raise ValidationError(
                f"Money amount cannot be negative, got {self.amount}"
            )

    # --- Arithmetic helpers ---------------------------------------------------

    def __add__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, factor: int) -> Money:
        if not isinstance(factor, int):
            raise TypeError(f"Can only multiply Money by int, got {type(factor).__name__}")
        return Money(self.amount * factor, self.currency)

    def __lt__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount < other.amount

    def __str__(self) -> str:
        return f"${self.amount:.2f}"

    def _assert_same_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise ValidationError(
                f"Cannot combine {self.currency} with {other.currency}"
            )

    # --- Factories ------------------------------------------------------------

    @staticmethod
    def of(amount: str | float | int | Decimal, currency: str = "USD") -> Money:
        """Coerce to Decimal via ``str`` so floats don't leak binary noise."""
        try:
            return Money(Decimal(str(amount)), currency)
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc

    @staticmethod
    def zero(currency: str = "USD") -> Money:
        return Money(Decimal("0.00"), currency)


@dataclass(frozen=True)
class Quantity:
    """A positive integer quantity."""

    value: int

    def __post_init__(self) -> None:
        # bool is an int subclass; True must not sneak in as 1
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive")

    def __str__(self) -> str:
        return str(self.value)


class OwnerKind(Enum):
    USER = "user"
    GUEST = "guest"


@dataclass(frozen=True)
class Owner:
    """Who a cart (or an order's customer side) belongs to.

    Exactly one of an authenticated user id or an anonymous session id,
    never both. ``key`` is the stable storage key, e.g. ``user:42``.
    """

    kind: OwnerKind
    id: str

    def __post_init__(self) -> None:
        if not self.id or not str(self.id).strip():
            raise ValidationError("Owner id is required")

    @staticmethod
    def user(user_id: str) -> Owner:
        return Owner(OwnerKind.USER, str(user_id))

    @staticmethod
    def guest(session_id: str) -> Owner:
        return Owner(OwnerKind.GUEST, str(session_id))

    @staticmethod
    def parse(key: str) -> Owner:
        kind, sep, ident = key.partition(":")
        if not sep:
            raise ValidationError(f"Invalid owner key: {key!r}")
        try:
            return Owner(OwnerKind(kind), ident)
        except ValueError as exc:
            raise ValidationError(f"Invalid owner kind in {key!r}") from exc

    @property
    def is_guest(self) -> bool:
        return self.kind is OwnerKind.GUEST

    @property
    def key(self) -> str:
        return f"{self.kind.value}:{self.id}"

    def __str__(self) -> str:
        return self.key
