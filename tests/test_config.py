"""Tests for loading and validating scheduling settings."""

import json
from pathlib import Path

import pytest

from conftest import MONDAY
from install_scheduler.config import AvailabilityRecord, SchedulingConfig, load_config
from install_scheduler.exceptions import ConfigurationError

EXAMPLE_CONFIG = Path(__file__).resolve().parent.parent / "config" / "scheduling.example.yaml"


def test_defaults():
    cfg = SchedulingConfig()
    assert (cfg.core_start_hour, cfg.core_end_hour) == (8, 16)
    assert cfg.daily_hour_cap == 8.0
    assert cfg.max_iteration_days == 100
    assert cfg.weekend_spillover_allowed is False
    assert cfg.workable_hours_per_day == 8.0


def test_workable_hours_subtract_travel():
    cfg = SchedulingConfig(drive_out_minutes=30, drive_return_minutes=45)
    assert cfg.workable_hours_per_day == pytest.approx(6.75)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"core_start_hour": 16, "core_end_hour": 8},
        {"core_start_hour": 8, "core_end_hour": 24},
        {"drive_out_minutes": -5},
        {"daily_hour_cap": 0},
        {"max_iteration_days": 0},
    ],
)
def test_invalid_settings_are_rejected(kwargs):
    with pytest.raises(ConfigurationError):
        SchedulingConfig(**kwargs)


def test_availability_record_accepts_both_key_styles():
    assert AvailabilityRecord.from_dict({"out": True}).out_all_day
    assert AvailabilityRecord.from_dict({"outHours": [8, "9"]}).out_hours == {8, 9}
    assert AvailabilityRecord.from_dict({"out_hours": [14]}).out_hours == {14}
    assert AvailabilityRecord.from_dict({}).to_dict() == {"out": False, "outHours": []}


def test_from_dict_parses_dates_and_installer_ids():
    cfg = SchedulingConfig.from_dict(
        {
            "core_start_hour": 7,
            "core_end_hour": 15,
            "holidays": ["2025-12-25"],
            "availability": {"2025-09-08": {"4": {"outHours": [7]}}},
        }
    )
    assert cfg.core_start_hour == 7
    assert len(cfg.holidays) == 1
    assert cfg.availability_for(4, MONDAY).out_hours == {7}
    assert cfg.availability_for(5, MONDAY) is None


def test_from_dict_wraps_bad_values():
    with pytest.raises(ConfigurationError):
        SchedulingConfig.from_dict({"holidays": ["not-a-date"]})
    with pytest.raises(ConfigurationError):
        SchedulingConfig.from_dict({"core_start_hour": "eight"})


def test_to_dict_round_trips_through_from_dict():
    cfg = SchedulingConfig.from_dict(
        {
            "drive_out_minutes": 30,
            "holidays": ["2025-12-26", "2025-12-25"],
            "availability": {"2025-09-08": {"1": {"out": True}}},
            "weekend_spillover_allowed": True,
        }
    )
    payload = cfg.to_dict()
    assert payload["holidays"] == ["2025-12-25", "2025-12-26"]
    assert payload["availability"] == {"2025-09-08": {"1": {"out": True, "outHours": []}}}
    assert SchedulingConfig.from_dict(payload) == cfg


def test_load_yaml_with_scheduling_section(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text(
        "scheduling:\n"
        "  core_start_hour: 9\n"
        "  core_end_hour: 17\n"
        "  drive_out_minutes: 15\n"
        "  holidays:\n"
        "    - 2025-12-25\n",
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert (cfg.core_start_hour, cfg.core_end_hour) == (9, 17)
    assert cfg.drive_out_minutes == 15
    assert len(cfg.holidays) == 1


def test_load_json(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"daily_hour_cap": 10, "max_iteration_days": 30}), encoding="utf-8")
    cfg = load_config(path)
    assert cfg.daily_hour_cap == 10.0
    assert cfg.max_iteration_days == 30


def test_load_rejects_non_mapping(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(path)


def test_example_config_loads():
    cfg = load_config(EXAMPLE_CONFIG)
    assert cfg.drive_out_minutes == 30
    assert cfg.availability_for(1, MONDAY).out_all_day
    assert cfg.availability_for(2, MONDAY).out_hours == {8, 9}
