"""SQLAlchemy models for installer job bookings."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Table, Text, func
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


schedule_installers = Table(
    "schedule_installers",
    Base.metadata,
    Column("schedule_id", Integer, ForeignKey("schedules.id", ondelete="CASCADE"), primary_key=True),
    Column("installer_id", Integer, ForeignKey("installers.id", ondelete="CASCADE"), primary_key=True),
)


class Installer(Base):
    """Installer who can be assigned to jobs."""

    __tablename__ = "installers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    email = Column(String(200), nullable=True)

    schedules = relationship("Schedule", secondary=schedule_installers, back_populates="installers")

    def __repr__(self) -> str:
        return f"<Installer(id={self.id}, name='{self.name}')>"


class Schedule(Base):
    """A booked job with its labor estimate and the overrides it was booked with."""

    __tablename__ = "schedules"
    # Deleted ids are never handed out again
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    job_number = Column(String(50), nullable=False, unique=True)
    title = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    address = Column(String(500), nullable=True)
    date = Column(DateTime, nullable=False)  # Effective start after weekend/holiday shift
    man_hours = Column(Float, nullable=False, default=0.0)

    # Override flags
    core_hours_override = Column(Boolean, nullable=False, default=False)
    override_hours = Column(Boolean, nullable=False, default=False)
    override_availability = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    # Relationships
    installers = relationship("Installer", secondary=schedule_installers, back_populates="schedules")
    slices = relationship(
        "ScheduleSlice",
        back_populates="schedule",
        cascade="all, delete-orphan",
        order_by="ScheduleSlice.slice_index",
    )

    @property
    def installer_ids(self) -> list[int]:
        return sorted(inst.id for inst in self.installers)

    def __repr__(self) -> str:
        return f"<Schedule(id={self.id}, job='{self.job_number}', date={self.date}, man_hours={self.man_hours})>"


class ScheduleSlice(Base):
    """One day's block of per-installer clock hours for a schedule."""

    __tablename__ = "schedule_slices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    schedule_id = Column(Integer, ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False)
    slice_index = Column(Integer, nullable=False)
    start = Column(DateTime, nullable=False)
    duration_hours = Column(Float, nullable=False)

    schedule = relationship("Schedule", back_populates="slices")

    def __repr__(self) -> str:
        return f"<ScheduleSlice(schedule={self.schedule_id}, idx={self.slice_index}, start={self.start}, hours={self.duration_hours})>"
