"""Tests for weekend/holiday classification and start shifting."""

from datetime import date

import pytest

from conftest import FRIDAY, MONDAY, SATURDAY, SUNDAY, TUESDAY, WEDNESDAY, at
from install_scheduler.config import SchedulingConfig
from install_scheduler.exceptions import ConfigurationError
from install_scheduler.overrides import Override
from install_scheduler.services.calendar import is_non_working_day, is_weekend, shift_start


def test_weekend_classification(cfg):
    assert is_weekend(SATURDAY)
    assert is_weekend(SUNDAY)
    assert not is_weekend(FRIDAY)
    assert is_non_working_day(SATURDAY, cfg)
    assert not is_non_working_day(MONDAY, cfg)


def test_holiday_is_non_working():
    cfg = SchedulingConfig(holidays=frozenset({TUESDAY}))
    assert is_non_working_day(TUESDAY, cfg)
    assert is_non_working_day(at(TUESDAY, 10), cfg)
    assert not is_non_working_day(WEDNESDAY, cfg)


def test_working_day_is_not_shifted(cfg):
    report = shift_start(at(FRIDAY, 8), cfg)
    assert not report.shifted
    assert report.reason is None
    assert report.effective == at(FRIDAY, 8)


def test_saturday_start_moves_to_monday(cfg):
    """Saturday start with no override lands on Monday, time-of-day preserved."""
    report = shift_start(at(SATURDAY, 8), cfg)
    assert report.shifted
    assert report.reason == "weekend"
    assert report.original_date == SATURDAY
    assert report.effective == at(MONDAY, 8)


def test_sunday_start_keeps_time_of_day(cfg):
    report = shift_start(at(SUNDAY, 13, 30), cfg)
    assert report.effective == at(MONDAY, 13, 30)


def test_weekend_then_holiday_reports_weekend():
    cfg = SchedulingConfig(holidays=frozenset({MONDAY}))
    report = shift_start(at(SATURDAY, 9), cfg)
    assert report.effective == at(TUESDAY, 9)
    assert report.reason == "weekend"


def test_weekday_holiday_reports_holiday():
    cfg = SchedulingConfig(holidays=frozenset({TUESDAY, WEDNESDAY}))
    report = shift_start(at(TUESDAY, 8), cfg)
    assert report.shifted
    assert report.reason == "holiday"
    assert report.effective == at(date(2025, 9, 11), 8)


def test_core_hours_override_keeps_weekend_start(cfg):
    report = shift_start(at(SATURDAY, 8), cfg, {Override.CORE_HOURS})
    assert not report.shifted
    assert report.effective == at(SATURDAY, 8)


def test_daily_limit_override_still_shifts(cfg):
    report = shift_start(at(SATURDAY, 8), cfg, {Override.DAILY_LIMIT})
    assert report.effective == at(MONDAY, 8)


def test_shift_guard_raises_when_no_working_day():
    # Every weekday for three weeks is a holiday, ceiling of 10 days
    holidays = frozenset(date(2025, 9, d) for d in range(1, 27))
    cfg = SchedulingConfig(holidays=holidays, max_iteration_days=10)
    with pytest.raises(ConfigurationError):
        shift_start(at(FRIDAY, 8), cfg)


def test_shift_report_to_dict(cfg):
    payload = shift_start(at(SATURDAY, 8), cfg).to_dict()
    assert payload == {
        "shifted": True,
        "reason": "weekend",
        "original_date": "2025-09-06T08:00:00",
        "effective_date": "2025-09-08T08:00:00",
    }
