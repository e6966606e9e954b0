"""
Domain-specific exception hierarchy for the chairbook application.
"""

from __future__ import annotations

from typing import Sequence, TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .models import Booking


class ChairbookError(Exception):
    """Base class for all application-level errors."""


class ConfigurationError(ChairbookError):
    """Raised when the shop configuration cannot produce a schedule."""


class SchedulingConflict(ChairbookError):
    """Raised when a proposed booking cannot be accepted for its slot."""

    def __init__(self, message: str, conflicts: Sequence["Booking"] = (), reason: str | None = None):
        super().__init__(message)
        self.conflicts = tuple(conflicts)
        self.reason = reason


class StoreError(ChairbookError):
    """Raised when the booking store cannot be read or written."""


class BookingNotFoundError(StoreError):
    """Raised when a booking id does not exist in the store."""


class AccessDeniedError(ChairbookError):
    """Raised when a privileged action is attempted without authorisation."""
