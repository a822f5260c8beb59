"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
Only ``Contention`` is worth retrying; everything else is a definitive answer.
"""


class DomainException(Exception):
    """Base class for all domain errors."""

    retryable = False


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class InvalidItem(ValidationError):
    """A line item references an unknown product or carries bad values."""


class InvalidQuantity(ValidationError):
    """A quantity is zero, negative or not an integer."""


class InvalidCustomItem(ValidationError):
    """An off-catalog item has no description or no positive price."""


class InvalidPayment(ValidationError):
    """A payment has a bad method, amount or installment count."""


class PaymentMismatch(ValidationError):
    """Payments do not add up to the sale total."""


class InsufficientStock(DomainException):
    """Not enough on-hand quantity to reserve."""


class ApprovalRequired(DomainException):
    """The sale has custom items still waiting for an administrator."""


class InvalidState(DomainException):
    """The requested transition is not allowed from the current state."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


NotFound = EntityNotFoundError


class PermissionDenied(DomainException):
    """The caller's role may not perform this operation."""


class Contention(DomainException):
    """A row lock could not be acquired in time."""

    retryable = True


class InvariantViolation(DomainException):
    """Internal ledger guard tripped; indicates a coordinator bug."""
