"""Tests for multi-day slice generation."""

from datetime import timedelta

import pytest

from conftest import FRIDAY, MONDAY, SATURDAY, TUESDAY, WEDNESDAY, at
from install_scheduler.config import SchedulingConfig
from install_scheduler.exceptions import ConfigurationError
from install_scheduler.overrides import Override
from install_scheduler.services.calendar import is_non_working_day
from install_scheduler.services.slicing import generate_slices, total_clock_hours


def _starts_and_hours(slices):
    return [(s.start, s.duration_hours) for s in slices]


def test_friday_job_spills_over_weekend(cfg):
    """20 man-hours from Friday 08:00 with one installer: Fri 8h, Mon 8h, Tue 4h."""
    slices = generate_slices(at(FRIDAY, 8), 20, 1, cfg)

    assert _starts_and_hours(slices) == [
        (at(FRIDAY, 8), 8.0),
        (at(MONDAY, 8), 8.0),
        (at(TUESDAY, 8), 4.0),
    ]
    assert [s.part_index for s in slices] == [1, 2, 3]
    assert all(s.parts_total == 3 for s in slices)
    assert [s.slice_index for s in slices] == [0, 1, 2]
    assert [s.remaining_man_hours for s in slices] == [12.0, 4.0, 0.0]


def test_drive_time_is_reserved_inside_core_hours():
    """30 min out and back leaves a 7h window starting 08:30."""
    cfg = SchedulingConfig(drive_out_minutes=30, drive_return_minutes=30)
    slices = generate_slices(at(MONDAY, 8), 7, 1, cfg)

    assert len(slices) == 1
    assert slices[0].start == at(MONDAY, 8, 30)
    assert slices[0].duration_hours == pytest.approx(7.0)
    assert slices[0].end == at(MONDAY, 15, 30)


def test_drive_time_consuming_whole_window_is_configuration_error():
    cfg = SchedulingConfig(drive_out_minutes=240, drive_return_minutes=240)
    with pytest.raises(ConfigurationError):
        generate_slices(at(MONDAY, 8), 4, 1, cfg)


def test_core_hours_override_skips_window_check():
    cfg = SchedulingConfig(drive_out_minutes=240, drive_return_minutes=240)
    slices = generate_slices(at(MONDAY, 8), 4, 1, cfg, {Override.CORE_HOURS})
    assert _starts_and_hours(slices) == [(at(MONDAY, 8), 4.0)]


def test_core_hours_override_emits_single_unclamped_slice(cfg):
    slices = generate_slices(at(SATURDAY, 6), 30, 2, cfg, {Override.CORE_HOURS})
    assert len(slices) == 1
    assert slices[0].start == at(SATURDAY, 6)
    assert slices[0].duration_hours == 15.0
    assert slices[0].remaining_man_hours == 0.0


def test_work_is_shared_between_installers(cfg):
    slices = generate_slices(at(MONDAY, 8), 24, 3, cfg)
    assert _starts_and_hours(slices) == [(at(MONDAY, 8), 8.0)]
    assert slices[0].remaining_man_hours == 0.0


def test_remaining_man_hours_counts_all_installers(cfg):
    slices = generate_slices(at(MONDAY, 8), 40, 2, cfg)
    assert [s.duration_hours for s in slices] == [8.0, 8.0, 4.0]
    assert [s.remaining_man_hours for s in slices] == [24.0, 8.0, 0.0]


def test_early_start_is_clamped_to_core_start(cfg):
    slices = generate_slices(at(MONDAY, 5), 4, 1, cfg)
    assert slices[0].start == at(MONDAY, 8)


def test_later_start_on_first_day_is_honored(cfg):
    slices = generate_slices(at(FRIDAY, 10), 20, 1, cfg)
    assert _starts_and_hours(slices) == [
        (at(FRIDAY, 10), 6.0),
        (at(MONDAY, 8), 8.0),
        (at(TUESDAY, 8), 6.0),
    ]


def test_holiday_mid_job_is_skipped():
    cfg = SchedulingConfig(holidays=frozenset({TUESDAY}))
    slices = generate_slices(at(MONDAY, 8), 12, 1, cfg)
    assert _starts_and_hours(slices) == [(at(MONDAY, 8), 8.0), (at(WEDNESDAY, 8), 4.0)]


def test_weekend_spillover_uses_full_day_when_allowed():
    cfg = SchedulingConfig(weekend_spillover_allowed=True)
    slices = generate_slices(at(FRIDAY, 8), 20, 1, cfg)
    assert _starts_and_hours(slices) == [(at(FRIDAY, 8), 8.0), (at(SATURDAY, 0), 12.0)]


def test_weekend_spillover_still_reserves_travel():
    cfg = SchedulingConfig(weekend_spillover_allowed=True, drive_out_minutes=60, drive_return_minutes=60)
    slices = generate_slices(at(FRIDAY, 8), 30, 1, cfg)
    assert slices[0].start == at(FRIDAY, 9)
    assert slices[0].duration_hours == 6.0
    assert slices[1].start == at(SATURDAY, 1)
    assert slices[1].duration_hours == 22.0
    assert slices[2].start == at(SATURDAY + timedelta(days=1), 1)
    assert slices[2].duration_hours == 2.0


def test_iteration_ceiling_raises_instead_of_truncating():
    cfg = SchedulingConfig(max_iteration_days=3)
    with pytest.raises(ConfigurationError):
        generate_slices(at(FRIDAY, 8), 30, 1, cfg)


def test_zero_hours_yields_no_slices(cfg):
    assert generate_slices(at(MONDAY, 8), 0, 2, cfg) == []


def test_invalid_installer_count(cfg):
    with pytest.raises(ValueError):
        generate_slices(at(MONDAY, 8), 8, 0, cfg)


def test_identical_inputs_yield_identical_slices():
    cfg = SchedulingConfig(drive_out_minutes=20, drive_return_minutes=45, holidays=frozenset({TUESDAY}))
    first = generate_slices(at(FRIDAY, 9, 15), 37.5, 2, cfg, schedule_id=7)
    second = generate_slices(at(FRIDAY, 9, 15), 37.5, 2, cfg, schedule_id=7)
    assert first == second
    assert [s.to_dict() for s in first] == [s.to_dict() for s in second]
    assert all(s.schedule_id == 7 for s in first)


@pytest.mark.parametrize(
    "start, man_hours, installers, drive_out, drive_return",
    [
        (at(FRIDAY, 8), 20, 1, 0, 0),
        (at(FRIDAY, 11, 45), 55, 3, 25, 35),
        (at(MONDAY, 8), 100 / 3, 1, 15, 0),
        (at(WEDNESDAY, 14), 7.3, 2, 0, 50),
    ],
)
def test_slices_sum_to_per_installer_hours_on_working_days(start, man_hours, installers, drive_out, drive_return):
    cfg = SchedulingConfig(
        drive_out_minutes=drive_out,
        drive_return_minutes=drive_return,
        holidays=frozenset({TUESDAY}),
    )
    slices = generate_slices(start, man_hours, installers, cfg)

    assert total_clock_hours(slices) == pytest.approx(man_hours / installers, abs=1e-6)
    assert not any(is_non_working_day(s.day, cfg) for s in slices)
    assert slices[-1].remaining_man_hours == pytest.approx(0.0, abs=1e-6)
    for s in slices:
        day_end = at(s.day, cfg.core_end_hour) - timedelta(minutes=drive_return)
        assert s.end <= day_end + timedelta(seconds=1)
