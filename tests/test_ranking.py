"""Tests for candidate filtering and fairness ranking."""

from app.coach_scheduler.config import GeneratorConfig, TieBreak
from app.coach_scheduler.diagnostics import DiagnosticLog
from app.coach_scheduler.models import Availability, Coach, CoachStore, EmploymentType, Shift
from app.coach_scheduler.ranking import filter_candidates, rank_candidates, select_coaches
from app.coach_scheduler.state import GenerationState
from app.coach_scheduler.timeutils import week_days

WEEK = week_days("2026-10-19")  # Mon 19 .. Fri 23, Sat 24, Sun 25
SHIFT = Shift(id="day", name="全天", start="09:00", end="18:00")
SHORT = Shift(id="short", name="短班", start="09:00", end="12:00")
DETERMINISTIC = GeneratorConfig(tie_break=TieBreak.COACH_ID)


def _make_coach(
    coach_id: str,
    primary: str | None = None,
    secondary: tuple[str, ...] = (),
    employment_type: EmploymentType = EmploymentType.PART_TIME,
    week_schedule: dict | None = None,
) -> Coach:
    stores = [CoachStore(store_id=primary, is_primary=True)] if primary else []
    stores += [CoachStore(store_id=s, is_primary=False) for s in secondary]
    availability = None if week_schedule is None else Availability(week_schedule=week_schedule)
    return Coach(
        id=coach_id,
        name=coach_id,
        employment_type=employment_type,
        stores=stores,
        availability=availability,
    )


def _state(coaches: list[Coach]) -> GenerationState:
    return GenerationState(WEEK, [c.id for c in coaches])


def test_primary_store_first_even_with_more_hours() -> None:
    primary = _make_coach("p", primary="s1")
    secondary = _make_coach("x", primary="s2", secondary=("s1",))
    state = _state([primary, secondary])
    state.record_assignment("p", WEEK[0], "s1", SHIFT)

    ranked = rank_candidates([secondary, primary], "s1", WEEK[1], state, DETERMINISTIC)
    assert [c.id for c in ranked] == ["p", "x"]


def test_lower_hours_first_on_weekdays() -> None:
    busy = _make_coach("a", primary="s1")
    idle = _make_coach("b", primary="s1")
    state = _state([busy, idle])
    state.record_assignment("a", WEEK[0], "s1", SHIFT)

    ranked = rank_candidates([busy, idle], "s1", WEEK[1], state, DETERMINISTIC)
    assert [c.id for c in ranked] == ["b", "a"]


def test_weekend_fairness_beats_hours() -> None:
    """On a weekend day, a coach without weekend work yet goes first."""
    weekend_worker = _make_coach("a", primary="s1")
    weekday_worker = _make_coach("b", primary="s1")
    state = _state([weekend_worker, weekday_worker])
    state.record_assignment("a", "2026-10-23", "s1", SHORT)  # Friday, 3h
    state.record_assignment("b", WEEK[0], "s1", SHIFT)  # Monday, 9h
    state.record_assignment("b", WEEK[1], "s1", SHIFT)  # Tuesday, 9h

    ranked = rank_candidates([weekend_worker, weekday_worker], "s1", "2026-10-24", state, DETERMINISTIC)
    assert [c.id for c in ranked] == ["b", "a"]

    # Same two coaches on a weekday: hours decide
    ranked = rank_candidates([weekend_worker, weekday_worker], "s1", WEEK[2], state, DETERMINISTIC)
    assert [c.id for c in ranked] == ["a", "b"]


def test_coach_id_tie_break_is_stable() -> None:
    coaches = [_make_coach(c, primary="s1") for c in ("c3", "c1", "c2")]
    ranked = rank_candidates(coaches, "s1", WEEK[0], _state(coaches), DETERMINISTIC)
    assert [c.id for c in ranked] == ["c1", "c2", "c3"]


def test_random_tie_break_reproducible_with_seed() -> None:
    coaches = [_make_coach(f"c{i}", primary="s1") for i in range(8)]
    config = GeneratorConfig(random_seed=3)
    first = rank_candidates(coaches, "s1", WEEK[0], _state(coaches), config)
    second = rank_candidates(coaches, "s1", WEEK[0], _state(coaches), config)
    assert [c.id for c in first] == [c.id for c in second]
    assert sorted(c.id for c in first) == sorted(c.id for c in coaches)


def test_filter_excludes_unavailable_and_capped() -> None:
    off_wednesday = _make_coach("off", primary="s1", week_schedule={1: {"day": True}})
    capped = _make_coach(
        "capped",
        primary="s1",
        employment_type=EmploymentType.FULL_TIME,
        week_schedule={d: {"day": True} for d in range(7)},
    )
    free = _make_coach("free", primary="s1")
    state = _state([off_wednesday, capped, free])
    for d in WEEK[:5]:
        state.record_assignment("capped", d, "s1", SHIFT)

    assert [c.id for c in filter_candidates([off_wednesday, capped, free], WEEK[5], "day", state, DETERMINISTIC)] == [
        "free"
    ]


def test_filter_honours_exclude_ids() -> None:
    coaches = [_make_coach("a", primary="s1"), _make_coach("b", primary="s1")]
    result = filter_candidates(coaches, WEEK[0], "day", _state(coaches), DETERMINISTIC, exclude_ids=["a"])
    assert [c.id for c in result] == ["b"]


def test_select_returns_at_most_count() -> None:
    coaches = [_make_coach(f"c{i}", primary="s1") for i in range(4)]
    selected = select_coaches(coaches, 2, WEEK[0], "day", "s1", _state(coaches), DETERMINISTIC)
    assert [c.id for c in selected] == ["c0", "c1"]


def test_select_short_supply_returns_all_and_warns() -> None:
    coaches = [_make_coach("only", primary="s1")]
    diagnostics = DiagnosticLog()
    selected = select_coaches(
        coaches, 3, WEEK[0], "day", "s1", _state(coaches), DETERMINISTIC, diagnostics=diagnostics
    )
    assert [c.id for c in selected] == ["only"]
    warnings = diagnostics.warnings()
    assert len(warnings) == 1
    assert warnings[0].slot == ("s1", WEEK[0], "day")
    assert "relaxed pass found 1" in warnings[0].message


def test_select_empty_pool() -> None:
    diagnostics = DiagnosticLog()
    assert select_coaches([], 1, WEEK[0], "day", "s1", _state([]), DETERMINISTIC, diagnostics=diagnostics) == []
    assert len(diagnostics.warnings()) == 1
