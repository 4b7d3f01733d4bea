"""Booking - validate and persist a job's slices as one atomic unit."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import date
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from install_scheduler.config import SchedulingConfig
from install_scheduler.domain.models import Schedule
from install_scheduler.domain.repositories import InstallerRepository, ScheduleRepository, SliceRepository
from install_scheduler.engine.planner import JobRequest, PlanResult, SchedulingEngine
from install_scheduler.exceptions import DuplicateJobError, JobNotFoundError
from install_scheduler.overrides import Override
from install_scheduler.services.conflicts import ExistingAssignments
from install_scheduler.services.slicing import with_schedule_id

logger = logging.getLogger(__name__)

LockKey = Tuple[int, date]


class InstallerDayLocks:
    """
    Registry of mutexes keyed by (installer_id, date).

    Keys are always acquired in sorted order so two bookings touching the
    same installer-days cannot deadlock. An entry lives only while some
    booking holds or waits on it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        # key -> [lock, holders and waiters]
        self._locks: Dict[LockKey, list] = {}

    def _checkout(self, key: LockKey) -> threading.Lock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._locks[key] = entry
            entry[1] += 1
            return entry[0]

    def _checkin(self, key: LockKey) -> None:
        with self._guard:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, keys: Iterable[LockKey]) -> Iterator[List[LockKey]]:
        ordered = sorted(set(keys))
        acquired: List[Tuple[LockKey, threading.Lock]] = []
        try:
            for key in ordered:
                lock = self._checkout(key)
                try:
                    lock.acquire()
                except BaseException:
                    self._checkin(key)
                    raise
                acquired.append((key, lock))
            yield ordered
        finally:
            for key, lock in reversed(acquired):
                lock.release()
                self._checkin(key)

    def is_locked(self, key: LockKey) -> bool:
        with self._guard:
            entry = self._locks.get(key)
        return entry is not None and entry[0].locked()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


# Process-wide registry used when the caller does not supply one
DEFAULT_LOCKS = InstallerDayLocks()


@dataclass
class BookingResult:
    plan: PlanResult
    schedule: Optional[Schedule] = None

    @property
    def ok(self) -> bool:
        return self.plan.ok and self.schedule is not None

    def to_dict(self) -> dict:
        payload = self.plan.to_dict()
        payload["schedule_id"] = self.schedule.id if self.schedule is not None else None
        return payload


def lock_keys(plan: PlanResult, installer_ids: Iterable[int]) -> List[LockKey]:
    ids = list(installer_ids)
    return sorted({(inst, s.day) for s in plan.slices for inst in ids})


def book_job(
    session: Session,
    request: JobRequest,
    cfg: SchedulingConfig,
    job_number: str,
    title: Optional[str] = None,
    description: Optional[str] = None,
    address: Optional[str] = None,
    schedule_id: Optional[int] = None,
    locks: Optional[InstallerDayLocks] = None,
) -> BookingResult:
    """
    Plan a job and persist its slices, creating or updating the schedule.

    The provisional plan determines which installer-days are touched; those
    keys are locked, the existing-assignment snapshot is re-read and the job
    re-planned under the lock, and the schedule plus its full slice set are
    committed in one transaction. Nothing is written when planning fails.

    Args:
        session: Database session
        request: JobRequest to book
        cfg: SchedulingConfig snapshot
        job_number: Unique job number
        title: Optional job title
        description: Optional job description
        address: Optional site address
        schedule_id: Existing schedule to update (its own slices are excluded
            from conflict checks and fully replaced)
        locks: Lock registry shared by concurrent bookers (default: process-wide)

    Returns:
        BookingResult with the plan and, on success, the persisted schedule

    Raises:
        DuplicateJobError: If another schedule already uses job_number
        JobNotFoundError: If schedule_id does not exist
        ValueError: If an installer id is unknown
    """
    locks = locks or DEFAULT_LOCKS
    engine = SchedulingEngine(cfg)

    schedule = None
    if schedule_id is not None:
        schedule = ScheduleRepository.get_by_id(session, schedule_id)
        if schedule is None:
            raise JobNotFoundError(f"Schedule {schedule_id} not found")

    clash = ScheduleRepository.get_by_job_number(session, job_number)
    if clash is not None and clash.id != schedule_id:
        raise DuplicateJobError(f"Job number {job_number} already exists")

    installers = InstallerRepository.get_many(session, request.installer_ids)
    missing = set(request.installer_ids) - {inst.id for inst in installers}
    if missing:
        raise ValueError(f"Unknown installer id(s): {sorted(missing)}")

    provisional = engine.plan(request, ExistingAssignments(), exclude_schedule_id=schedule_id)
    if not provisional.ok:
        return BookingResult(plan=provisional)

    keys = lock_keys(provisional, request.installer_ids)
    with locks.hold(keys):
        days = {day for _, day in keys}
        snapshot = SliceRepository.existing_assignments(
            session, request.installer_ids, days=days, exclude_schedule_id=schedule_id
        )
        plan = engine.plan(request, snapshot, schedule_id=schedule_id, exclude_schedule_id=schedule_id)
        if not plan.ok:
            session.rollback()
            return BookingResult(plan=plan)

        overrides = request.overrides
        try:
            is_new = schedule is None
            if is_new:
                schedule = Schedule()
            schedule.job_number = job_number
            schedule.title = title if title is not None else schedule.title
            schedule.description = description if description is not None else schedule.description
            schedule.address = address if address is not None else schedule.address
            schedule.date = plan.shift.effective
            schedule.man_hours = request.total_man_hours
            schedule.core_hours_override = Override.CORE_HOURS in overrides
            schedule.override_hours = Override.DAILY_LIMIT in overrides
            schedule.override_availability = Override.AVAILABILITY in overrides
            schedule.installers = installers
            if is_new:
                ScheduleRepository.add(session, schedule)
            ScheduleRepository.replace_slices(session, schedule, plan.slices)
            session.commit()
        except IntegrityError as e:
            session.rollback()
            raise DuplicateJobError(f"Job number {job_number} already exists") from e
        except Exception:
            session.rollback()
            raise

        plan = replace(plan, slices=with_schedule_id(plan.slices, schedule.id))

    logger.info("Booked job %s (schedule %s) with %d slice(s)", job_number, schedule.id, len(plan.slices))
    return BookingResult(plan=plan, schedule=schedule)


def delete_job(session: Session, schedule_id: int) -> None:
    """Delete a booked job. Raises JobNotFoundError if it does not exist."""
    if not ScheduleRepository.delete(session, schedule_id):
        raise JobNotFoundError(f"Schedule {schedule_id} not found")
    logger.info("Deleted schedule %s", schedule_id)
