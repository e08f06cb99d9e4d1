"""Exception hierarchy for the lending core engine."""

from typing import Optional


class LendingError(Exception):
    """Base exception for all lending engine errors."""


class InvalidArgumentError(LendingError, ValueError):
    """Raised when an input is out of range or a required reference is missing."""


class InvalidTransitionError(LendingError):
    """Raised when a lifecycle operation is attempted from a disallowed state."""

    def __init__(self, entity: str, operation: str, current_state: str,
                 message: Optional[str] = None):
        self.entity = entity
        self.operation = operation
        self.current_state = current_state
        super().__init__(
            message or f"Cannot {operation} {entity} in state {current_state}"
        )


class InconsistentAggregateError(LendingError):
    """Raised when a payment, installment and loan do not belong together."""
