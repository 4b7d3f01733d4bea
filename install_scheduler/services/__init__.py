"""Services for scheduling logic."""

from .calendar import ShiftReport, is_non_working_day, is_weekend, shift_start, to_wall_clock
from .conflicts import (
    ExistingAssignments,
    ExistingSlice,
    Failure,
    ValidationResult,
    check_slices,
    validate_slices,
)
from .slicing import Slice, generate_slices, per_installer_clock_hours

__all__ = [
    "ShiftReport",
    "is_non_working_day",
    "is_weekend",
    "shift_start",
    "to_wall_clock",
    "ExistingAssignments",
    "ExistingSlice",
    "Failure",
    "ValidationResult",
    "check_slices",
    "validate_slices",
    "Slice",
    "generate_slices",
    "per_installer_clock_hours",
]
