"""Domain-level exceptions.

Every business rule violation is a subclass of DomainException so the CLI
layer can catch them uniformly and display user-friendly messages.
Infrastructure failures use ServiceUnavailableError, which is deliberately
outside that hierarchy: callers may retry it, but never "fix" their input.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """Malformed input or a violated invariant. Nothing was changed."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class UnauthorizedError(DomainException):
    """No usable identity was presented."""


class ForbiddenError(DomainException):
    """An identity was presented but lacks the role or ownership required."""


class InvalidTransitionError(DomainException):
    """The fulfillment state machine rejects the requested move."""


class ProductUnavailableError(DomainException):
    """The product exists but is not currently sellable."""


class ExpiredError(DomainException):
    """The guest session (and therefore its cart) has passed its TTL."""


class ConflictError(DomainException):
    """A concurrent mutation invalidated an assumption made by the caller."""


class AlreadyAssignedError(ConflictError):
    """Another driver claimed the order first."""


class InsufficientStockError(ConflictError):
    """The requested quantity exceeds the stock currently on hand."""


class ServiceUnavailableError(Exception):
    """The persistent store could not be reached in time. Safe to retry."""

    retryable = True
