"""Repository classes for data access."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session, selectinload

from install_scheduler.services.conflicts import ExistingAssignments, ExistingSlice
from install_scheduler.services.slicing import Slice

from .models import Installer, Schedule, ScheduleSlice, schedule_installers


class InstallerRepository:
    """Repository for installer data access."""

    @staticmethod
    def get_all(session: Session) -> List[Installer]:
        """Get all installers."""
        return list(session.scalars(select(Installer).order_by(Installer.id)))

    @staticmethod
    def get_by_id(session: Session, installer_id: int) -> Optional[Installer]:
        """Get installer by ID."""
        return session.get(Installer, installer_id)

    @staticmethod
    def get_many(session: Session, installer_ids: Iterable[int]) -> List[Installer]:
        """Get installers by ID, in ID order."""
        ids = list(installer_ids)
        if not ids:
            return []
        return list(session.scalars(select(Installer).where(Installer.id.in_(ids)).order_by(Installer.id)))

    @staticmethod
    def create(session: Session, installer: Installer) -> Installer:
        """Create a new installer."""
        session.add(installer)
        session.commit()
        session.refresh(installer)
        return installer

    @staticmethod
    def delete(session: Session, installer_id: int) -> bool:
        """Delete an installer. Returns True if a row was removed."""
        installer = session.get(Installer, installer_id)
        if installer is None:
            return False
        session.delete(installer)
        session.commit()
        return True


class ScheduleRepository:
    """Repository for schedule (job) data access. Writes are left to the caller to commit."""

    @staticmethod
    def get_all(session: Session) -> List[Schedule]:
        """Get all schedules with installers and slices loaded."""
        stmt = (
            select(Schedule)
            .options(selectinload(Schedule.installers), selectinload(Schedule.slices))
            .order_by(Schedule.date, Schedule.id)
        )
        return list(session.scalars(stmt))

    @staticmethod
    def get_by_id(session: Session, schedule_id: int) -> Optional[Schedule]:
        """Get schedule by ID."""
        return session.get(Schedule, schedule_id)

    @staticmethod
    def get_by_job_number(session: Session, job_number: str) -> Optional[Schedule]:
        """Get schedule by its job number."""
        return session.scalars(select(Schedule).where(Schedule.job_number == job_number)).first()

    @staticmethod
    def add(session: Session, schedule: Schedule) -> Schedule:
        """Stage a new schedule and flush so it receives an id."""
        session.add(schedule)
        session.flush()
        return schedule

    @staticmethod
    def replace_slices(session: Session, schedule: Schedule, slices: Sequence[Slice]) -> None:
        """Discard a schedule's slices and store a freshly generated set."""
        schedule.slices.clear()
        session.flush()
        for s in slices:
            schedule.slices.append(
                ScheduleSlice(slice_index=s.slice_index, start=s.start, duration_hours=s.duration_hours)
            )
        session.flush()

    @staticmethod
    def delete(session: Session, schedule_id: int) -> bool:
        """Delete a schedule with its installer links and slices. Returns True if removed."""
        schedule = session.get(Schedule, schedule_id)
        if schedule is None:
            return False
        schedule.installers.clear()
        session.delete(schedule)
        session.commit()
        return True


class SliceRepository:
    """Repository for persisted slice data access."""

    @staticmethod
    def get_by_schedule(session: Session, schedule_id: int) -> List[ScheduleSlice]:
        """Get all slices of a schedule in order."""
        stmt = (
            select(ScheduleSlice)
            .where(ScheduleSlice.schedule_id == schedule_id)
            .order_by(ScheduleSlice.slice_index)
        )
        return list(session.scalars(stmt))

    @staticmethod
    def existing_assignments(
        session: Session,
        installer_ids: Iterable[int],
        days: Optional[Iterable[date]] = None,
        exclude_schedule_id: Optional[int] = None,
    ) -> ExistingAssignments:
        """
        Build the engine's snapshot of slices assigned to the given installers.

        Args:
            session: Database session
            installer_ids: Installers whose slices are needed
            days: Optional calendar days to restrict the snapshot to
            exclude_schedule_id: Schedule being edited, left out of the snapshot

        Returns:
            ExistingAssignments snapshot
        """
        ids = list(installer_ids)
        if not ids:
            return ExistingAssignments()

        stmt = (
            select(ScheduleSlice, schedule_installers.c.installer_id)
            .join(schedule_installers, schedule_installers.c.schedule_id == ScheduleSlice.schedule_id)
            .where(schedule_installers.c.installer_id.in_(ids))
        )
        if exclude_schedule_id is not None:
            stmt = stmt.where(ScheduleSlice.schedule_id != exclude_schedule_id)
        if days is not None:
            day_list = sorted(set(days))
            if not day_list:
                return ExistingAssignments()
            day_filters = [
                and_(
                    ScheduleSlice.start >= datetime.combine(d, time.min),
                    ScheduleSlice.start < datetime.combine(d + timedelta(days=1), time.min),
                )
                for d in day_list
            ]
            stmt = stmt.where(or_(*day_filters))

        rows = session.execute(stmt).all()
        return ExistingAssignments.from_slices(
            ExistingSlice(
                schedule_id=slice_row.schedule_id,
                installer_id=installer_id,
                start=slice_row.start,
                duration_hours=slice_row.duration_hours,
            )
            for slice_row, installer_id in rows
        )
