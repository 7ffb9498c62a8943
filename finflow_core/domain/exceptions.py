"""Domain-specific exceptions"""

from typing import Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Input is malformed or out of range; raised before any write"""

    pass


class NotFoundError(DomainException):
    """Entity does not exist or is not owned by the requesting space"""

    pass


class ConflictError(DomainException):
    """Entity state forbids the operation (e.g. debt already settled)"""

    pass


class PersistenceError(DomainException):
    """A write to the store failed.

    ``step`` names the sub-step of the operation that failed so callers can
    report it without exposing driver error text.
    """

    def __init__(self, message: str, step: Optional[str] = None):
        super().__init__(message)
        self.step = step

    def __str__(self) -> str:
        message = super().__str__()
        return f"{self.step}: {message}" if self.step else message
