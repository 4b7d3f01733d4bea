"""Exceptions raised by the scheduling engine and booking layer."""

from __future__ import annotations

from datetime import date
from typing import Optional


class SchedulingError(Exception):
    """Base class for all scheduling failures."""

    kind = "SchedulingError"

    def __init__(self, message: str, installer_id: Optional[int] = None, day: Optional[date] = None):
        super().__init__(message)
        self.message = message
        self.installer_id = installer_id
        self.day = day


class ConfigurationError(SchedulingError):
    """Raised when the configuration leaves no structural working time, or is malformed."""

    kind = "ConfigurationError"


class AvailabilityConflict(SchedulingError):
    """Raised when an installer is marked out for the day or for hours the slice touches."""

    kind = "AvailabilityConflict"


class DailyCapExceeded(SchedulingError):
    """Raised when an installer's clock hours on a day would exceed the daily cap."""

    kind = "DailyCapExceeded"


class OverlapConflict(SchedulingError):
    """Raised when a slice overlaps another schedule's slice for the same installer."""

    kind = "OverlapConflict"


class DuplicateJobError(Exception):
    """Raised when a job number is already booked."""

    pass


class JobNotFoundError(Exception):
    """Raised when a schedule id does not exist."""

    pass


# Override tag that bypasses each recoverable failure
RECOVERABLE_BY = {
    AvailabilityConflict: "availability",
    DailyCapExceeded: "hours_or_overlap",
    OverlapConflict: "hours_or_overlap",
}

FAILURE_KINDS = {
    cls.kind: cls
    for cls in (ConfigurationError, AvailabilityConflict, DailyCapExceeded, OverlapConflict)
}


def is_recoverable(error: SchedulingError) -> bool:
    """Return True when setting an override would let the request through."""
    return type(error) in RECOVERABLE_BY
