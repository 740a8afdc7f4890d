from __future__ import annotations


class ValidationError(Exception):
    """Malformed input, rejected before anything is written."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field
        self.details = {"field": field} if field else {}


class NotFoundError(Exception):
    pass


class OrderNotFoundError(NotFoundError):
    pass


class TableNotFoundError(NotFoundError):
    pass


class InvalidTransitionError(Exception):
    pass


class CancellationNotAllowedError(InvalidTransitionError):
    pass


class OrderConflictError(Exception):
    pass


class IdempotencyConflictError(Exception):
    pass


class PersistenceError(Exception):
    """Store failure; the transaction was rolled back and nothing was committed."""
