"""Tests for the in-memory assignment store."""

import threading

import pytest

from app.coach_scheduler.models import ScheduleAssignment
from app.coach_scheduler.repository import CrossStoreConflictError, InMemoryAssignmentStore, merge_week
from app.coach_scheduler.timeutils import week_days

WEEK = week_days("2026-10-19")
NEXT_WEEK = week_days("2026-10-26")


def _assign(coach_id: str, date_str: str, store_id: str = "s1", shift_id: str = "day") -> ScheduleAssignment:
    return ScheduleAssignment(date_str=date_str, coach_id=coach_id, store_id=store_id, shift_id=shift_id)


def test_replace_range_only_touches_range() -> None:
    store = InMemoryAssignmentStore([_assign("c1", WEEK[0]), _assign("c1", NEXT_WEEK[0])])

    created = store.replace_range(WEEK[0], WEEK[-1], [_assign("c2", WEEK[1]), _assign("c2", WEEK[2])])

    assert created == 2
    assert [a.coach_id for a in store.query_range(WEEK[0], WEEK[-1])] == ["c2", "c2"]
    assert [a.date_str for a in store.query_range(NEXT_WEEK[0], NEXT_WEEK[-1])] == [NEXT_WEEK[0]]
    assert len(store) == 3


def test_replace_range_rejects_rows_outside() -> None:
    store = InMemoryAssignmentStore([_assign("c1", WEEK[0])])
    with pytest.raises(ValueError):
        store.replace_range(WEEK[0], WEEK[-1], [_assign("c1", NEXT_WEEK[0])])
    # Nothing deleted on failure
    assert len(store) == 1


def test_inverted_range_rejected() -> None:
    store = InMemoryAssignmentStore()
    with pytest.raises(ValueError):
        store.delete_range(WEEK[-1], WEEK[0])
    with pytest.raises(ValueError):
        store.query_range("2026-10-40", WEEK[0])


def test_concurrent_saves_of_same_week() -> None:
    store = InMemoryAssignmentStore()
    batches = [[_assign(f"c{i}", d) for d in WEEK] for i in range(4)]

    threads = [threading.Thread(target=store.replace_range, args=(WEEK[0], WEEK[-1], b)) for b in batches]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    # Exactly one batch survives
    rows = store.query_range(WEEK[0], WEEK[-1])
    assert len(rows) == 7
    assert len({a.coach_id for a in rows}) == 1


def test_add_assignment() -> None:
    store = InMemoryAssignmentStore()
    created = store.add_assignment(WEEK[0], "c1", "s1", "day", shift_name="全天")
    assert created is not None
    assert created.shift_name == "全天"

    # Identical slot is a no-op, a second shift at the same store is fine
    assert store.add_assignment(WEEK[0], "c1", "s1", "day") is None
    assert store.add_assignment(WEEK[0], "c1", "s1", "night") is not None
    assert len(store) == 2


def test_add_assignment_cross_store_conflict() -> None:
    store = InMemoryAssignmentStore([_assign("c1", WEEK[0], "s1")])
    with pytest.raises(CrossStoreConflictError) as exc_info:
        store.add_assignment(WEEK[0], "c1", "s2", "day")
    assert exc_info.value.existing_store_id == "s1"
    # Another day is fine
    assert store.add_assignment(WEEK[1], "c1", "s2", "day") is not None


def test_delete() -> None:
    row = _assign("c1", WEEK[0])
    store = InMemoryAssignmentStore([row])
    assert store.delete(row.id)
    assert not store.delete(row.id)
    assert store.all() == []


def test_merge_week() -> None:
    existing = [_assign("old", WEEK[0]), _assign("keep", NEXT_WEEK[0])]
    generated = [_assign("new", WEEK[0])]
    merged = merge_week(existing, generated, WEEK)
    assert [a.coach_id for a in merged] == ["keep", "new"]


def _run_during_insert(monkeypatch: pytest.MonkeyPatch, store: InMemoryAssignmentStore, action) -> threading.Thread:
    """Start ``action`` on another thread while replace_range is mid-write."""
    original = store._insert_locked
    worker = threading.Thread(target=action)

    def insert_with_competitor(assignments):
        worker.start()
        # The competitor must block until the replace has finished
        worker.join(timeout=0.2)
        assert worker.is_alive()
        return original(assignments)

    monkeypatch.setattr(store, "_insert_locked", insert_with_competitor)
    return worker


def test_reader_never_sees_half_replaced_week(monkeypatch: pytest.MonkeyPatch) -> None:
    store = InMemoryAssignmentStore([_assign("old", WEEK[0])])
    seen: list[list[str]] = []
    worker = _run_during_insert(
        monkeypatch, store, lambda: seen.append([a.coach_id for a in store.query_range(WEEK[0], WEEK[-1])])
    )

    store.replace_range(WEEK[0], WEEK[-1], [_assign("new", WEEK[0])])
    worker.join()

    assert seen == [["new"]]


def test_manual_add_cannot_slip_between_delete_and_insert(monkeypatch: pytest.MonkeyPatch) -> None:
    store = InMemoryAssignmentStore()
    errors: list[Exception] = []

    def add_elsewhere() -> None:
        try:
            store.add_assignment(WEEK[0], "c1", "s2", "day")
        except CrossStoreConflictError as exc:
            errors.append(exc)

    worker = _run_during_insert(monkeypatch, store, add_elsewhere)
    store.replace_range(WEEK[0], WEEK[-1], [_assign("c1", WEEK[0], "s1")])
    worker.join()

    assert len(errors) == 1
    assert {a.store_id for a in store.query_range(WEEK[0], WEEK[0]) if a.coach_id == "c1"} == {"s1"}
