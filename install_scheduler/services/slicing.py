"""Slice generation: split a job's per-installer clock hours into per-day working windows."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Tuple

from install_scheduler.config import SchedulingConfig
from install_scheduler.exceptions import ConfigurationError
from install_scheduler.overrides import Override

from .calendar import is_non_working_day

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Slice:
    """One contiguous single-day block of each assigned installer's time."""

    schedule_id: Optional[int]
    slice_index: int
    start: datetime
    duration_hours: float
    part_index: int = 1
    parts_total: int = 1
    remaining_man_hours: float = 0.0

    @property
    def end(self) -> datetime:
        return self.start + timedelta(hours=self.duration_hours)

    @property
    def day(self) -> date:
        return self.start.date()

    @property
    def label(self) -> str:
        if self.parts_total > 1:
            return f"Part {self.part_index}/{self.parts_total}"
        return "Single part"

    def to_dict(self) -> dict:
        return {
            "schedule_id": self.schedule_id,
            "slice_index": self.slice_index,
            "start": self.start.isoformat(),
            "duration_hours": self.duration_hours,
            "part_index": self.part_index,
            "parts_total": self.parts_total,
            "remaining_man_hours": self.remaining_man_hours,
        }


def per_installer_clock_hours(total_man_hours: float, installer_count: int) -> float:
    """Elapsed hours each installer spends when the work content is shared evenly."""
    if installer_count < 1:
        raise ValueError(f"installer_count must be at least 1, got {installer_count}")
    if total_man_hours < 0:
        raise ValueError(f"total_man_hours cannot be negative, got {total_man_hours}")
    return float(total_man_hours) / installer_count


def check_workable_window(cfg: SchedulingConfig) -> None:
    """Raise ConfigurationError when travel reservations consume the whole core window."""
    if cfg.workable_hours_per_day <= 0:
        raise ConfigurationError(
            "No working time available inside core hours after reserving drive time "
            f"(core {cfg.core_start_hour}:00-{cfg.core_end_hour}:00, "
            f"drive out {cfg.drive_out_minutes:g} min, return {cfg.drive_return_minutes:g} min). "
            "Adjust drive or core settings."
        )


def _at_hour(day: date, hour: int, tzinfo) -> datetime:
    return datetime.combine(day, time(hour), tzinfo=tzinfo)


def _day_window(day: date, cfg: SchedulingConfig, non_working: bool, tzinfo) -> Tuple[datetime, datetime]:
    # Non-working days reached with spillover enabled offer the whole calendar day
    if non_working:
        start = datetime.combine(day, time.min, tzinfo=tzinfo)
        return start, start + timedelta(days=1)
    return _at_hour(day, cfg.core_start_hour, tzinfo), _at_hour(day, cfg.core_end_hour, tzinfo)


def generate_slices(
    effective_start: datetime,
    total_man_hours: float,
    installer_count: int,
    cfg: SchedulingConfig,
    overrides: Iterable[Override] = (),
    schedule_id: Optional[int] = None,
) -> List[Slice]:
    """
    Convert a job's labor estimate into an ordered list of day slices.

    Each slice's duration is elapsed clock time, identical for every assigned
    installer. Work spills over day by day inside the core window with
    outbound and return travel reserved at either end.

    Args:
        effective_start: Start after weekend/holiday shifting
        total_man_hours: Aggregate work content across all installers
        installer_count: Number of installers sharing the work (>= 1)
        cfg: SchedulingConfig snapshot
        overrides: Override kinds in effect; CORE_HOURS yields a single slice
        schedule_id: Optional id stamped onto each slice

    Returns:
        List of Slice objects with part numbering and remaining man-hours

    Raises:
        ConfigurationError: If no working time remains once travel is reserved,
            or the work cannot be placed within the iteration ceiling
    """
    per_installer = per_installer_clock_hours(total_man_hours, installer_count)
    if per_installer == 0:
        return []

    if Override.CORE_HOURS in set(overrides):
        logger.debug("Core-hours override: single %.2fh slice at %s", per_installer, effective_start)
        raw = [(effective_start, per_installer)]
        return _finalize(raw, total_man_hours, installer_count, schedule_id)

    check_workable_window(cfg)

    tzinfo = effective_start.tzinfo
    first_day = effective_start.date()
    cursor = effective_start
    if cursor.time() < time(cfg.core_start_hour):
        cursor = _at_hour(first_day, cfg.core_start_hour, tzinfo)

    drive_out = timedelta(minutes=cfg.drive_out_minutes)
    drive_return = timedelta(minutes=cfg.drive_return_minutes)

    raw: List[Tuple[datetime, float]] = []
    remaining = per_installer
    day = cursor.date()
    iterations = 0
    while remaining > 0 and iterations < cfg.max_iteration_days:
        iterations += 1
        non_working = is_non_working_day(day, cfg)
        if non_working and not cfg.weekend_spillover_allowed:
            day = day + timedelta(days=1)
            continue

        window_start, window_end = _day_window(day, cfg, non_working, tzinfo)
        work_start = window_start + drive_out
        work_end_cap = window_end - drive_return
        if work_end_cap <= work_start:
            day = day + timedelta(days=1)
            continue

        # A later start chosen on the first day is honored, never past the cap
        if day == first_day and work_start < cursor < work_end_cap:
            work_start = cursor

        available = (work_end_cap - work_start).total_seconds() / 3600
        slice_hours = min(remaining, available)
        raw.append((work_start, slice_hours))
        remaining -= slice_hours
        day = day + timedelta(days=1)

    if remaining > 0:
        raise ConfigurationError(
            f"Could not place {per_installer:.2f}h per installer within "
            f"{cfg.max_iteration_days} days of {first_day.isoformat()}; {remaining:.2f}h left over"
        )

    slices = _finalize(raw, total_man_hours, installer_count, schedule_id)
    logger.debug("Generated %d slice(s) for %.2f man-hours across %d installer(s)",
                 len(slices), total_man_hours, installer_count)
    return slices


def _finalize(
    raw: List[Tuple[datetime, float]],
    total_man_hours: float,
    installer_count: int,
    schedule_id: Optional[int],
) -> List[Slice]:
    slices: List[Slice] = []
    accrued = 0.0
    for idx, (start, hours) in enumerate(raw):
        accrued += hours
        remaining_man_hours = max(0.0, round(total_man_hours - accrued * installer_count, 6))
        slices.append(
            Slice(
                schedule_id=schedule_id,
                slice_index=idx,
                start=start,
                duration_hours=hours,
                part_index=idx + 1,
                parts_total=len(raw),
                remaining_man_hours=remaining_man_hours,
            )
        )
    return slices


def with_schedule_id(slices: List[Slice], schedule_id: int) -> List[Slice]:
    """Return copies of slices stamped with a persisted schedule id."""
    return [replace(s, schedule_id=schedule_id) for s in slices]


def total_clock_hours(slices: Iterable[Slice]) -> float:
    return sum(s.duration_hours for s in slices)
