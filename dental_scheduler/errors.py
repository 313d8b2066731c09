"""Exception taxonomy for the scheduling engine.

None of these subclass ``ValueError``: pydantic only wraps ``ValueError``
and ``AssertionError`` raised inside validators, so these propagate from
model construction unchanged.

A search that legitimately finds nothing is not an error. It comes back
as a normal result with zero confidence.
"""

from typing import Any, Optional


class SchedulingError(Exception):
    """Base class for all scheduling engine errors."""

    retryable: bool = False


class InvalidIntervalError(SchedulingError):
    """Raised when an interval has ``start >= end``."""


class InvalidRequestError(SchedulingError):
    """Raised for a malformed slot request or scheduling context."""


class SlotUnavailableError(SchedulingError):
    """Raised when a commit-time re-check finds the slot already taken.

    The caller should run a fresh search and offer the client a new time.
    """

    retryable = True

    def __init__(self, message: str, conflicts: Optional[list[Any]] = None) -> None:
        super().__init__(message)
        self.conflicts = conflicts or []
