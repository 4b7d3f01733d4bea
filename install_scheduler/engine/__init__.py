"""Scheduling engine: plans a job request into validated day slices."""

from .planner import JobRequest, PlanResult, SchedulingEngine, plan_job

__all__ = [
    "JobRequest",
    "PlanResult",
    "SchedulingEngine",
    "plan_job",
]
