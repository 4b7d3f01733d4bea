"""Calendar day classification and weekend/holiday start shifting."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from install_scheduler.config import SchedulingConfig
from install_scheduler.exceptions import ConfigurationError
from install_scheduler.overrides import Override

logger = logging.getLogger(__name__)

WEEKEND_DAYS = {5, 6}  # Saturday, Sunday


def to_wall_clock(value: datetime) -> datetime:
    """Drop the UTC offset from an aware datetime, keeping its local wall-clock time."""
    if value.tzinfo is None:
        return value
    return value.replace(tzinfo=None)


def is_weekend(day: date) -> bool:
    return day.weekday() in WEEKEND_DAYS


def is_holiday(day: date, cfg: SchedulingConfig) -> bool:
    return day in cfg.holidays


def is_non_working_day(day: date, cfg: SchedulingConfig) -> bool:
    """True when the date is a weekend day or a configured holiday."""
    if isinstance(day, datetime):
        day = day.date()
    return is_weekend(day) or is_holiday(day, cfg)


@dataclass(frozen=True)
class ShiftReport:
    """Outcome of normalizing a requested start onto a working day."""

    shifted: bool
    reason: Optional[str]  # "weekend", "holiday" or None
    original: datetime
    effective: datetime

    @property
    def original_date(self) -> date:
        return self.original.date()

    @property
    def effective_date(self) -> date:
        return self.effective.date()

    def to_dict(self) -> dict:
        return {
            "shifted": self.shifted,
            "reason": self.reason,
            "original_date": self.original.isoformat(),
            "effective_date": self.effective.isoformat(),
        }


def shift_start(
    requested_start: datetime,
    cfg: SchedulingConfig,
    overrides: Iterable[Override] = (),
) -> ShiftReport:
    """
    Move a requested start forward past weekends and holidays.

    Time-of-day is preserved. With the core-hours override the start is
    returned unchanged, since work on non-working days is then permitted.

    Args:
        requested_start: Start requested by the user
        cfg: SchedulingConfig with the holiday set
        overrides: Override kinds in effect for the request

    Returns:
        ShiftReport with original and effective start
    """
    if Override.CORE_HOURS in set(overrides):
        return ShiftReport(shifted=False, reason=None, original=requested_start, effective=requested_start)

    first_day = requested_start.date()
    if not is_non_working_day(first_day, cfg):
        return ShiftReport(shifted=False, reason=None, original=requested_start, effective=requested_start)

    reason = "weekend" if is_weekend(first_day) else "holiday"
    candidate = requested_start
    steps = 0
    while is_non_working_day(candidate.date(), cfg):
        candidate = candidate + timedelta(days=1)
        steps += 1
        if steps > cfg.max_iteration_days:
            raise ConfigurationError(
                f"No working day within {cfg.max_iteration_days} days of {first_day.isoformat()}"
            )

    logger.info(
        "Start %s falls on a %s; shifted to %s",
        first_day.isoformat(),
        reason,
        candidate.date().isoformat(),
    )
    return ShiftReport(shifted=True, reason=reason, original=requested_start, effective=candidate)
