"""Per-coach workload statistics over a date range."""

from collections import defaultdict
from typing import Iterable

from .models import Coach, LegacyShiftType, ScheduleAssignment, Store, WorkloadStats
from .timeutils import TimeRange, merge_and_sum_duration, time_range

# Hour blocks for assignments stored before stores defined their own shifts
LEGACY_HOURS = {
    "MORNING": ("10:00", "20:00"),
    "EVENING": ("13:00", "23:00"),
    "EVENING_EXTENDED": ("13:00", "01:00"),
}


def legacy_block(assignment: ScheduleAssignment) -> tuple[str, str]:
    """Default start/end for an assignment whose shift id cannot be resolved."""
    if assignment.shift_type == LegacyShiftType.MORNING or (
        assignment.shift_type is None and assignment.shift_id == "morning"
    ):
        return LEGACY_HOURS["MORNING"]
    if assignment.is_extended:
        return LEGACY_HOURS["EVENING_EXTENDED"]
    return LEGACY_HOURS["EVENING"]


def resolve_interval(assignment: ScheduleAssignment, stores_by_id: dict[str, Store]) -> TimeRange:
    """Minute interval actually covered by an assignment."""
    store = stores_by_id.get(assignment.store_id)
    shift = store.get_shift(assignment.shift_id) if store else None
    if shift is not None:
        return shift.interval()
    return time_range(*legacy_block(assignment))


def compute_stats(
    coaches: list[Coach],
    assignments: Iterable[ScheduleAssignment],
    stores: list[Store],
    date_range: Iterable[str],
) -> dict[str, WorkloadStats]:
    """Shift counts, worked dates and non-overlapping hours per coach.

    Assignments outside ``date_range`` or for unknown coaches are ignored.
    Every known coach gets an entry, even with no assignments.
    """
    dates = set(date_range)
    stores_by_id = {s.id: s for s in stores}
    stats = {c.id: WorkloadStats() for c in coaches}

    by_coach_date: dict[tuple[str, str], list[ScheduleAssignment]] = defaultdict(list)
    for assignment in assignments:
        if assignment.date_str in dates and assignment.coach_id in stats:
            by_coach_date[(assignment.coach_id, assignment.date_str)].append(assignment)

    for (coach_id, date_str), day_assignments in by_coach_date.items():
        entry = stats[coach_id]
        entry.total_shifts += len(day_assignments)
        entry.worked_dates.add(date_str)
        entry.extended += sum(1 for a in day_assignments if a.is_extended)
        entry.total_hours += merge_and_sum_duration(
            resolve_interval(a, stores_by_id) for a in day_assignments
        )

    return stats


def sort_by_hours(stats: dict[str, WorkloadStats]) -> list[tuple[str, WorkloadStats]]:
    """Heaviest workload first."""
    return sorted(stats.items(), key=lambda item: item[1].total_hours, reverse=True)
