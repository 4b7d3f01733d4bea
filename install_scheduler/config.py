"""Scheduling configuration snapshot: core hours, drive reservations, holidays, availability."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .exceptions import ConfigurationError

DEFAULT_CORE_START_HOUR = 8
DEFAULT_CORE_END_HOUR = 16
DEFAULT_DAILY_HOUR_CAP = 8.0
MAX_ITERATION_DAYS = 100


@dataclass(frozen=True)
class AvailabilityRecord:
    """One installer's exceptions for one day."""

    out_all_day: bool = False
    out_hours: frozenset = frozenset()

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "AvailabilityRecord":
        out_all_day = bool(raw.get("out_all_day", raw.get("out", False)))
        hours = raw.get("out_hours", raw.get("outHours")) or []
        return cls(out_all_day=out_all_day, out_hours=frozenset(int(h) for h in hours))

    def to_dict(self) -> Dict[str, Any]:
        return {"out": self.out_all_day, "outHours": sorted(self.out_hours)}


@dataclass(frozen=True)
class SchedulingConfig:
    """
    Immutable configuration passed explicitly into every engine call.

    Attributes:
        core_start_hour: Start of the daily business window (0-23)
        core_end_hour: End of the daily business window (0-23, > start)
        drive_out_minutes: Outbound travel reserved at the start of each day
        drive_return_minutes: Return travel reserved at the end of each day
        holidays: Calendar dates treated as non-working
        availability: date -> installer id -> AvailabilityRecord
        weekend_spillover_allowed: Let multi-day work continue on non-working
            days using the full calendar day instead of skipping them
        daily_hour_cap: Per-installer clock-hour limit per day
        max_iteration_days: Ceiling on days walked by the slice generator
    """

    core_start_hour: int = DEFAULT_CORE_START_HOUR
    core_end_hour: int = DEFAULT_CORE_END_HOUR
    drive_out_minutes: float = 0
    drive_return_minutes: float = 0
    holidays: frozenset = frozenset()
    availability: Mapping[date, Mapping[int, AvailabilityRecord]] = field(default_factory=dict)
    weekend_spillover_allowed: bool = False
    daily_hour_cap: float = DEFAULT_DAILY_HOUR_CAP
    max_iteration_days: int = MAX_ITERATION_DAYS

    def __post_init__(self):
        if not (0 <= self.core_start_hour <= 23 and 0 <= self.core_end_hour <= 23):
            raise ConfigurationError(
                f"Core hours must be within 0-23, got {self.core_start_hour}-{self.core_end_hour}"
            )
        if self.core_end_hour <= self.core_start_hour:
            raise ConfigurationError(
                f"Core end hour ({self.core_end_hour}) must be after core start hour ({self.core_start_hour})"
            )
        if self.drive_out_minutes < 0 or self.drive_return_minutes < 0:
            raise ConfigurationError("Drive minutes cannot be negative")
        if self.daily_hour_cap <= 0:
            raise ConfigurationError(f"Daily hour cap must be positive, got {self.daily_hour_cap}")
        if self.max_iteration_days < 1:
            raise ConfigurationError("max_iteration_days must be at least 1")

    @property
    def core_span_hours(self) -> float:
        return float(self.core_end_hour - self.core_start_hour)

    @property
    def workable_hours_per_day(self) -> float:
        """Core span left once outbound and return travel are reserved."""
        return self.core_span_hours - self.drive_out_minutes / 60 - self.drive_return_minutes / 60

    def availability_for(self, installer_id: int, day: date) -> Optional[AvailabilityRecord]:
        return self.availability.get(day, {}).get(installer_id)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "SchedulingConfig":
        """Build a config from the plain settings shape (ISO date strings, nested dicts)."""
        try:
            holidays = frozenset(_parse_date(d) for d in raw.get("holidays") or [])
            availability: Dict[date, Dict[int, AvailabilityRecord]] = {}
            for day_key, per_installer in (raw.get("availability") or {}).items():
                day = _parse_date(day_key)
                availability[day] = {
                    int(inst_id): AvailabilityRecord.from_dict(record or {})
                    for inst_id, record in (per_installer or {}).items()
                }
            return cls(
                core_start_hour=int(raw.get("core_start_hour", DEFAULT_CORE_START_HOUR)),
                core_end_hour=int(raw.get("core_end_hour", DEFAULT_CORE_END_HOUR)),
                drive_out_minutes=float(raw.get("drive_out_minutes", 0) or 0),
                drive_return_minutes=float(raw.get("drive_return_minutes", 0) or 0),
                holidays=holidays,
                availability=availability,
                weekend_spillover_allowed=bool(raw.get("weekend_spillover_allowed", False)),
                daily_hour_cap=float(raw.get("daily_hour_cap", DEFAULT_DAILY_HOUR_CAP)),
                max_iteration_days=int(raw.get("max_iteration_days", MAX_ITERATION_DAYS)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid scheduling settings: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        return {
            "core_start_hour": self.core_start_hour,
            "core_end_hour": self.core_end_hour,
            "drive_out_minutes": self.drive_out_minutes,
            "drive_return_minutes": self.drive_return_minutes,
            "holidays": sorted(d.isoformat() for d in self.holidays),
            "availability": {
                day.isoformat(): {str(inst): rec.to_dict() for inst, rec in per_installer.items()}
                for day, per_installer in sorted(self.availability.items())
            },
            "weekend_spillover_allowed": self.weekend_spillover_allowed,
            "daily_hour_cap": self.daily_hour_cap,
            "max_iteration_days": self.max_iteration_days,
        }


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def load_config(path: str | Path) -> SchedulingConfig:
    """
    Load scheduling settings from a JSON or YAML file.

    Args:
        path: Path to a .json, .yaml or .yml file

    Returns:
        SchedulingConfig snapshot
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            raw = json.loads(text)
        else:
            raw = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Could not parse config file {path}: {e}") from e
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    # Allow settings nested under a top-level "scheduling" key
    if "scheduling" in raw and isinstance(raw["scheduling"], dict):
        raw = raw["scheduling"]
    return SchedulingConfig.from_dict(raw)
