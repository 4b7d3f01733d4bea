"""Pytest configuration and shared fixtures."""

from datetime import date, datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from install_scheduler.config import SchedulingConfig
from install_scheduler.domain.models import Base, Installer

# 2025-09-05 is a Friday
FRIDAY = date(2025, 9, 5)
SATURDAY = date(2025, 9, 6)
SUNDAY = date(2025, 9, 7)
MONDAY = date(2025, 9, 8)
TUESDAY = date(2025, 9, 9)
WEDNESDAY = date(2025, 9, 10)


def at(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute)


def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (deselect with '-m \"not integration\"')"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


@pytest.fixture
def cfg():
    """Core hours 08:00-16:00, no travel, no holidays."""
    return SchedulingConfig(core_start_hour=8, core_end_hour=16)


@pytest.fixture
def db_session():
    """Create in-memory database session for testing."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def installers(db_session):
    """Three installers persisted with ids 1, 2, 3."""
    crew = [
        Installer(id=1, name="Ana Ortiz", email="ana@example.com"),
        Installer(id=2, name="Ben Walsh", email="ben@example.com"),
        Installer(id=3, name="Chen Li"),
    ]
    db_session.add_all(crew)
    db_session.commit()
    return crew
