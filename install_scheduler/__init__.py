"""Scheduling engine for booking installer jobs against a shared calendar.

Modules:
- config: load and validate the scheduling settings snapshot (JSON or YAML)
- overrides: override kinds and the audit report of bypassed rules
- exceptions: typed scheduling failures
- services.calendar: weekend/holiday classification and start shifting
- services.slicing: multi-day slice generation inside core hours
- services.conflicts: availability, overlap and daily-cap validation
- services.booking: locked validate+persist against the database
- engine: planner tying shift, slicing and validation together
- domain: SQLAlchemy models and repositories
- data_io: CSV helpers and daily load summaries
- cli: command-line interface entrypoints
"""

from .config import AvailabilityRecord, SchedulingConfig, load_config
from .engine import JobRequest, PlanResult, SchedulingEngine, plan_job
from .overrides import Override, OverrideReport, resolve_overrides

__all__ = [
    "AvailabilityRecord",
    "SchedulingConfig",
    "load_config",
    "JobRequest",
    "PlanResult",
    "SchedulingEngine",
    "plan_job",
    "Override",
    "OverrideReport",
    "resolve_overrides",
]
