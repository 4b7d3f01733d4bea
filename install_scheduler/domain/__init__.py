"""Domain models and data access layer."""

from .models import Base, Installer, Schedule, ScheduleSlice, schedule_installers
from .repositories import InstallerRepository, ScheduleRepository, SliceRepository

__all__ = [
    "Base",
    "Installer",
    "Schedule",
    "ScheduleSlice",
    "schedule_installers",
    "InstallerRepository",
    "ScheduleRepository",
    "SliceRepository",
]
