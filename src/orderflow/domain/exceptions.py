"""Domain-level exceptions.

Every failure the ordering pipeline knows how to classify is a subclass of
DomainException, so the HTTP layer, the CLI and the queue consumers can
decide uniformly whether to reject, retry or drop.  Anything that is *not*
a DomainException is unclassified and is allowed to propagate.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated by the caller's input."""


class InsufficientStockError(ValidationError):
    """A product does not have enough stock available for the request."""

    def __init__(self, product_id: str, requested: int, available: int) -> None:
        super().__init__(f"Insufficient stock. Available: {available}")
        self.product_id = product_id
        self.requested = requested
        self.available = available


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class ConflictError(DomainException):
    """A conditional write lost against a concurrent writer."""


class MessageFormatError(DomainException):
    """A queue payload could not be parsed. Terminal: never worth a retry."""


class TransientError(DomainException):
    """The table store or queue is temporarily unavailable. Retryable."""
