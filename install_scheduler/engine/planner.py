"""Planner - runs date shifting, slice generation and conflict validation for one job request."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from install_scheduler.config import SchedulingConfig
from install_scheduler.exceptions import ConfigurationError
from install_scheduler.overrides import Override, OverrideReport, overrides_from_flags, resolve_overrides
from install_scheduler.services.calendar import ShiftReport, shift_start, to_wall_clock
from install_scheduler.services.conflicts import (
    ExistingAssignments,
    ValidationResult,
    validate_slices,
)
from install_scheduler.services.slicing import Slice, generate_slices, per_installer_clock_hours

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobRequest:
    """Transient input for one planning call."""

    requested_start: datetime
    total_man_hours: float
    installer_ids: Tuple[int, ...]
    overrides: frozenset = frozenset()

    def __post_init__(self):
        # Core hours, holidays and stored slices are all local wall-clock time
        object.__setattr__(self, "requested_start", to_wall_clock(self.requested_start))
        object.__setattr__(self, "installer_ids", tuple(dict.fromkeys(self.installer_ids)))
        object.__setattr__(self, "overrides", frozenset(self.overrides))
        if not self.installer_ids:
            raise ValueError("A job request needs at least one installer")
        if self.total_man_hours < 0:
            raise ValueError(f"total_man_hours cannot be negative, got {self.total_man_hours}")

    @classmethod
    def from_flags(
        cls,
        requested_start: datetime,
        total_man_hours: float,
        installer_ids: Iterable[int],
        override_core_hours: bool = False,
        override_daily_limit: bool = False,
        override_availability: bool = False,
    ) -> "JobRequest":
        return cls(
            requested_start=requested_start,
            total_man_hours=total_man_hours,
            installer_ids=tuple(installer_ids),
            overrides=overrides_from_flags(override_core_hours, override_daily_limit, override_availability),
        )

    @property
    def installer_count(self) -> int:
        return len(self.installer_ids)

    @property
    def per_installer_hours(self) -> float:
        return per_installer_clock_hours(self.total_man_hours, self.installer_count)


@dataclass(frozen=True)
class PlanResult:
    """Either a complete slice list or exactly one failure, plus audit reports."""

    shift: ShiftReport
    slices: List[Slice]
    validation: ValidationResult
    override_report: OverrideReport = field(default_factory=OverrideReport)

    @property
    def ok(self) -> bool:
        return self.validation.ok

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "shift": self.shift.to_dict(),
            "slices": [s.to_dict() for s in self.slices],
            "validation": self.validation.to_dict(),
            **self.override_report.to_dict(),
        }


class SchedulingEngine:
    """
    Plans jobs against a fixed config snapshot.

    The engine holds no mutable state: each call works only on its
    arguments, so one instance may be shared across threads. Serializing
    validate+persist is the caller's job (see services.booking).
    """

    def __init__(self, cfg: SchedulingConfig):
        self.cfg = cfg

    def plan(
        self,
        request: JobRequest,
        existing: Optional[ExistingAssignments] = None,
        schedule_id: Optional[int] = None,
        exclude_schedule_id: Optional[int] = None,
    ) -> PlanResult:
        """
        Plan one job request.

        Args:
            request: JobRequest with start, labor, installers and overrides
            existing: Snapshot of other schedules' slices (empty if None)
            schedule_id: Optional id stamped onto generated slices
            exclude_schedule_id: Schedule being edited; its slices are ignored

        Returns:
            PlanResult with shift report, slices (empty on failure),
            validation outcome and override tags
        """
        existing = existing or ExistingAssignments()
        override_report = resolve_overrides(request.overrides)
        if override_report.any:
            logger.info("Rule overrides in effect: %s", ", ".join(override_report.tags))

        shift = ShiftReport(
            shifted=False,
            reason=None,
            original=request.requested_start,
            effective=request.requested_start,
        )
        try:
            shift = shift_start(request.requested_start, self.cfg, request.overrides)
            slices = generate_slices(
                shift.effective,
                request.total_man_hours,
                request.installer_count,
                self.cfg,
                overrides=request.overrides,
                schedule_id=schedule_id,
            )
        except ConfigurationError as e:
            logger.error("Planning failed: %s", e.message)
            return PlanResult(
                shift=shift,
                slices=[],
                validation=ValidationResult.failed(e),
                override_report=override_report,
            )

        validation = validate_slices(
            slices,
            request.installer_ids,
            request.per_installer_hours,
            self.cfg,
            existing,
            overrides=request.overrides,
            exclude_schedule_id=exclude_schedule_id,
        )
        if not validation.ok:
            return PlanResult(shift=shift, slices=[], validation=validation, override_report=override_report)

        logger.info(
            "Planned %.2f man-hours for %d installer(s) in %d slice(s) starting %s",
            request.total_man_hours,
            request.installer_count,
            len(slices),
            shift.effective.isoformat(),
        )
        return PlanResult(shift=shift, slices=slices, validation=validation, override_report=override_report)


def plan_job(
    request: JobRequest,
    cfg: SchedulingConfig,
    existing: Optional[ExistingAssignments] = None,
    schedule_id: Optional[int] = None,
    exclude_schedule_id: Optional[int] = None,
) -> PlanResult:
    """Convenience function to plan a job with a one-off SchedulingEngine."""
    engine = SchedulingEngine(cfg)
    return engine.plan(
        request,
        existing=existing,
        schedule_id=schedule_id,
        exclude_schedule_id=exclude_schedule_id,
    )
