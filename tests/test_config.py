"""Tests for generator configuration and diagnostics."""

import logging

import pytest
from pydantic import ValidationError

from app.coach_scheduler.config import GeneratorConfig, TieBreak
from app.coach_scheduler.diagnostics import DiagnosticLog, Severity
from app.coach_scheduler.models import Availability, Coach, CoachStore, EmploymentType, Shift, Store
from app.coach_scheduler.solver import generate_week_schedule
from app.coach_scheduler.timeutils import week_days


def test_defaults() -> None:
    config = GeneratorConfig()
    assert config.full_time_max_work_days == 5
    assert config.min_rest_days == 2
    assert config.weekend_weekdays == frozenset({5, 6, 0})
    assert config.tie_break == TieBreak.RANDOM


def test_from_env() -> None:
    config = GeneratorConfig.from_env(
        {
            "SCHEDULER_TIE_BREAK": "coach_id",
            "SCHEDULER_RANDOM_SEED": "17",
            "SCHEDULER_FULL_TIME_MAX_DAYS": "4",
        }
    )
    assert config.tie_break == TieBreak.COACH_ID
    assert config.random_seed == 17
    assert config.full_time_max_work_days == 4


def test_from_env_empty_is_default() -> None:
    assert GeneratorConfig.from_env({}) == GeneratorConfig()


def test_invalid_config_rejected() -> None:
    with pytest.raises(ValidationError):
        GeneratorConfig(full_time_max_work_days=8)
    with pytest.raises(ValidationError):
        GeneratorConfig(weekend_weekdays=frozenset({7}))
    with pytest.raises(ValidationError):
        GeneratorConfig.from_env({"SCHEDULER_TIE_BREAK": "alphabetical"})


def test_seeded_rng_repeats() -> None:
    config = GeneratorConfig(random_seed=9)
    assert config.make_rng().random() == config.make_rng().random()


def test_diagnostic_log_mirrors_to_logging(caplog: pytest.LogCaptureFixture) -> None:
    log = DiagnosticLog(logging.getLogger("test.diagnostics"))
    with caplog.at_level(logging.INFO, logger="test.diagnostics"):
        log.info("summary")
        log.warning("short", store_id="s1", date_str="2026-10-19", shift_id="day")
        log.error("broken", coach_id="c1")

    assert len(log) == 3
    assert [d.severity for d in log] == [Severity.INFO, Severity.WARNING, Severity.ERROR]
    assert [d.message for d in log.warnings()] == ["short"]
    assert [d.message for d in log.errors()] == ["broken"]
    assert log.for_slot("s1", "2026-10-19", "day")[0].message == "short"
    assert [r.levelno for r in caplog.records] == [logging.INFO, logging.WARNING, logging.ERROR]
    assert "s1/2026-10-19/day: short" in caplog.text


def test_env_cap_reaches_generation() -> None:
    coach = Coach(
        id="c1",
        name="A",
        employment_type=EmploymentType.FULL_TIME,
        stores=[CoachStore(store_id="s1", is_primary=True)],
        availability=Availability(week_schedule={d: {"day": True} for d in range(7)}),
    )
    store = Store(id="s1", name="North", shifts=[Shift(id="day", name="全天", start="09:00", end="18:00")])
    config = GeneratorConfig.from_env({"SCHEDULER_FULL_TIME_MAX_DAYS": "3", "SCHEDULER_TIE_BREAK": "coach_id"})

    result = generate_week_schedule([coach], [store], week_days("2026-10-19"), config)
    assert len(result.assignments) == 3
