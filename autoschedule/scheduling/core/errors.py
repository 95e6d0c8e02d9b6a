"""
Error taxonomy for the scheduling engine.

A task that cannot be placed is not an error: it comes back with empty
schedule fields. Only bad input, internal invariant breaks and caller
cancellation are raised.
"""

from typing import Optional


class SchedulingError(Exception):
    """Base class for everything the engine raises."""


class InvalidInputError(SchedulingError, ValueError):
    """Settings or tasks the engine refuses to work with. Raised before any placement."""

    def __init__(self, message: str, field: Optional[str] = None, task_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.task_id = task_id

    def to_dict(self) -> dict:
        result = {"error": "invalid_input", "message": self.message}
        if self.field:
            result["field"] = self.field
        if self.task_id is not None:
            result["task_id"] = self.task_id
        return result


class InvariantViolationError(SchedulingError, RuntimeError):
    """A committed placement broke a scheduling invariant. Always a bug in the engine."""


class SchedulingCancelledError(SchedulingError):
    """The caller asked the run to stop between two placements."""
