"""Conflict validation of generated slices against availability and existing assignments."""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Set

from install_scheduler.config import SchedulingConfig
from install_scheduler.exceptions import (
    AvailabilityConflict,
    DailyCapExceeded,
    OverlapConflict,
    SchedulingError,
)
from install_scheduler.overrides import Override

from .calendar import to_wall_clock
from .slicing import Slice

logger = logging.getLogger(__name__)

CAP_TOLERANCE = 1e-6


@dataclass(frozen=True)
class ExistingSlice:
    """A slice already persisted for another schedule, seen from one installer."""

    schedule_id: int
    installer_id: int
    start: datetime
    duration_hours: float

    def __post_init__(self):
        object.__setattr__(self, "start", to_wall_clock(self.start))

    @property
    def end(self) -> datetime:
        return self.start + timedelta(hours=self.duration_hours)

    @property
    def day(self) -> date:
        return self.start.date()


@dataclass
class ExistingAssignments:
    """Read-only snapshot of other schedules' slices, indexed by installer and day."""

    by_installer: Dict[int, List[ExistingSlice]] = field(default_factory=dict)

    @classmethod
    def from_slices(cls, slices: Iterable[ExistingSlice]) -> "ExistingAssignments":
        grouped: Dict[int, List[ExistingSlice]] = defaultdict(list)
        for s in slices:
            grouped[s.installer_id].append(s)
        for items in grouped.values():
            items.sort(key=lambda s: (s.start, s.schedule_id))
        return cls(by_installer=dict(grouped))

    def on_day(
        self,
        installer_id: int,
        day: date,
        exclude_schedule_id: Optional[int] = None,
    ) -> List[ExistingSlice]:
        return [
            s
            for s in self.by_installer.get(installer_id, [])
            if s.day == day and (exclude_schedule_id is None or s.schedule_id != exclude_schedule_id)
        ]

    def assigned_hours(self, installer_id: int, day: date, exclude_schedule_id: Optional[int] = None) -> float:
        return sum(s.duration_hours for s in self.on_day(installer_id, day, exclude_schedule_id))

    def __len__(self) -> int:
        return sum(len(items) for items in self.by_installer.values())


@dataclass(frozen=True)
class Failure:
    kind: str
    message: str
    installer_id: Optional[int] = None
    day: Optional[date] = None

    @classmethod
    def from_error(cls, error: SchedulingError) -> "Failure":
        return cls(kind=error.kind, message=error.message, installer_id=error.installer_id, day=error.day)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "message": self.message,
            "installer_id": self.installer_id,
            "day": self.day.isoformat() if self.day else None,
        }


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    failure: Optional[Failure] = None

    @classmethod
    def success(cls) -> "ValidationResult":
        return cls(ok=True)

    @classmethod
    def failed(cls, error: SchedulingError) -> "ValidationResult":
        return cls(ok=False, failure=Failure.from_error(error))

    def to_dict(self) -> dict:
        return {"ok": self.ok, "failure": self.failure.to_dict() if self.failure else None}


def hours_touched(start: datetime, duration_hours: float) -> Set[int]:
    """Integer clock hours on the start day touched by [start, start + duration)."""
    if duration_hours <= 0:
        return set()
    first = start.hour
    end_offset = start.minute / 60 + start.second / 3600 + duration_hours
    last = min(23, first + math.ceil(end_offset - 1e-9) - 1)
    return set(range(first, last + 1))


def check_availability(
    slice_: Slice,
    installer_id: int,
    per_installer_hours: float,
    cfg: SchedulingConfig,
) -> None:
    """
    Raise AvailabilityConflict if the installer is out during the slice.

    The touched hours span the full per-installer clock hours from the slice
    start, clipped to the slice's day.
    """
    record = cfg.availability_for(installer_id, slice_.day)
    if record is None:
        return
    if record.out_all_day:
        raise AvailabilityConflict(
            f"Installer {installer_id} is out all day on {slice_.day.isoformat()}. "
            "Use availability override to allow.",
            installer_id=installer_id,
            day=slice_.day,
        )
    clash = hours_touched(slice_.start, per_installer_hours) & set(record.out_hours)
    if clash:
        hours = ", ".join(f"{h:02d}:00" for h in sorted(clash))
        raise AvailabilityConflict(
            f"Installer {installer_id} is unavailable at {hours} on {slice_.day.isoformat()}. "
            "Use availability override to allow.",
            installer_id=installer_id,
            day=slice_.day,
        )


def check_overlap(slice_: Slice, installer_id: int, day_slices: Sequence[ExistingSlice]) -> None:
    new_start, new_end = slice_.start, slice_.end
    for other in day_slices:
        if other.start < new_end and new_start < other.end:
            raise OverlapConflict(
                f"Installer {installer_id} already works on schedule {other.schedule_id} "
                f"from {other.start:%H:%M} to {other.end:%H:%M} on {slice_.day.isoformat()}; "
                f"new slice {new_start:%H:%M}-{new_end:%H:%M} overlaps. Use override to allow.",
                installer_id=installer_id,
                day=slice_.day,
            )


def check_daily_cap(
    slice_: Slice,
    installer_id: int,
    day_slices: Sequence[ExistingSlice],
    cap: float,
) -> None:
    assigned = sum(s.duration_hours for s in day_slices)
    total = assigned + slice_.duration_hours
    if total > cap + CAP_TOLERANCE:
        raise DailyCapExceeded(
            f"Installer {installer_id} would work {total:.2f}h on {slice_.day.isoformat()} "
            f"({assigned:.2f}h already assigned), exceeding the {cap:g}h daily limit. Use override to allow.",
            installer_id=installer_id,
            day=slice_.day,
        )


def check_slices(
    slices: Sequence[Slice],
    installer_ids: Sequence[int],
    per_installer_hours: float,
    cfg: SchedulingConfig,
    existing: ExistingAssignments,
    overrides: Iterable[Override] = (),
    exclude_schedule_id: Optional[int] = None,
) -> None:
    """
    Validate slices for every assigned installer, raising on the first conflict.

    Args:
        slices: Generated slices for the job
        installer_ids: Installers assigned to the job
        per_installer_hours: Total clock hours per installer for the job
        cfg: SchedulingConfig with availability and daily cap
        existing: Snapshot of other schedules' slices
        overrides: AVAILABILITY skips availability; DAILY_LIMIT skips overlap and cap
        exclude_schedule_id: Schedule being edited, whose own slices are ignored

    Raises:
        AvailabilityConflict, OverlapConflict, DailyCapExceeded
    """
    active = set(overrides)
    check_avail = Override.AVAILABILITY not in active
    check_limits = Override.DAILY_LIMIT not in active

    for slice_ in slices:
        for installer_id in installer_ids:
            if check_avail:
                check_availability(slice_, installer_id, per_installer_hours, cfg)
            if check_limits:
                day_slices = existing.on_day(installer_id, slice_.day, exclude_schedule_id)
                check_overlap(slice_, installer_id, day_slices)
                check_daily_cap(slice_, installer_id, day_slices, cfg.daily_hour_cap)


def validate_slices(
    slices: Sequence[Slice],
    installer_ids: Sequence[int],
    per_installer_hours: float,
    cfg: SchedulingConfig,
    existing: ExistingAssignments,
    overrides: Iterable[Override] = (),
    exclude_schedule_id: Optional[int] = None,
) -> ValidationResult:
    """Run check_slices and report the outcome as a ValidationResult."""
    try:
        check_slices(
            slices,
            installer_ids,
            per_installer_hours,
            cfg,
            existing,
            overrides=overrides,
            exclude_schedule_id=exclude_schedule_id,
        )
    except (AvailabilityConflict, OverlapConflict, DailyCapExceeded) as e:
        logger.warning("%s: %s", e.kind, e.message)
        return ValidationResult.failed(e)
    return ValidationResult.success()
