"""Constraint validation for schedules."""

from collections import defaultdict
from typing import Iterable

from .availability import is_available
from .config import GeneratorConfig
from .models import Coach, ScheduleAssignment, Store
from .timeutils import week_days
from .workload import compute_stats


class ConstraintViolation:
    """A single constraint violation."""

    def __init__(
        self,
        constraint_name: str,
        description: str,
        severity: str = "hard",
        assignment: ScheduleAssignment | None = None,
    ) -> None:
        self.constraint_name = constraint_name
        self.description = description
        self.severity = severity  # "hard" or "soft"
        self.assignment = assignment

    def __str__(self) -> str:
        return f"[{self.severity.upper()}] {self.constraint_name}: {self.description}"


class ValidationResult:
    """Result of schedule validation."""

    def __init__(
        self,
        hard_violations: list[ConstraintViolation],
        soft_violations: list[ConstraintViolation],
        soft_penalty: float,
    ) -> None:
        self.hard_violations = hard_violations
        self.soft_violations = soft_violations
        self.soft_penalty = soft_penalty

    def is_valid(self) -> bool:
        """Check if schedule satisfies all hard constraints."""
        return len(self.hard_violations) == 0

    def __str__(self) -> str:
        if self.is_valid():
            return f"Valid schedule (Soft penalty: {self.soft_penalty:.2f})"
        return f"Invalid schedule ({len(self.hard_violations)} violations)"


def validate_schedule(
    assignments: list[ScheduleAssignment],
    coaches: list[Coach],
    stores: list[Store],
    dates: Iterable[str] | None = None,
    config: GeneratorConfig | None = None,
) -> ValidationResult:
    """Validate assignments against the scheduling rules.

    ``dates`` bounds the coverage check and defaults to the dates present in
    ``assignments``. Returns ValidationResult with hard violations and a soft
    penalty score (lower is better).
    """
    config = config or GeneratorConfig()
    coach_dict = {c.id: c for c in coaches}
    store_dict = {s.id: s for s in stores}
    dates = sorted(set(dates) if dates is not None else {a.date_str for a in assignments})

    violations: list[ConstraintViolation] = []
    violations.extend(_check_references(assignments, coach_dict, store_dict))
    violations.extend(_check_cross_store_same_day(assignments))
    violations.extend(_check_duplicate_slot(assignments))
    violations.extend(_check_shift_applicability(assignments, store_dict))
    violations.extend(_check_availability(assignments, coach_dict))

    soft = _check_coverage(assignments, stores, dates)
    soft.extend(_check_full_time_workdays(assignments, coach_dict, config))
    penalty = _calculate_soft_penalty(assignments, coaches, stores, dates)

    return ValidationResult(hard_violations=violations, soft_violations=soft, soft_penalty=penalty)


def _check_references(
    assignments: list[ScheduleAssignment],
    coach_dict: dict[str, Coach],
    store_dict: dict[str, Store],
) -> list[ConstraintViolation]:
    """Every assignment must point at a known coach and store."""
    violations: list[ConstraintViolation] = []
    for a in assignments:
        if a.coach_id not in coach_dict:
            violations.append(
                ConstraintViolation("Unknown Coach", f"{a.coach_id} on {a.date_str}", assignment=a)
            )
        if a.store_id not in store_dict:
            violations.append(
                ConstraintViolation("Unknown Store", f"{a.store_id} on {a.date_str}", assignment=a)
            )
    return violations


def _check_cross_store_same_day(assignments: list[ScheduleAssignment]) -> list[ConstraintViolation]:
    """No coach works at two different stores on the same date."""
    violations: list[ConstraintViolation] = []
    stores_by_coach_date: dict[tuple[str, str], set[str]] = defaultdict(set)
    for a in assignments:
        stores_by_coach_date[(a.coach_id, a.date_str)].add(a.store_id)

    for (coach_id, date_str), store_ids in sorted(stores_by_coach_date.items()):
        if len(store_ids) > 1:
            violations.append(
                ConstraintViolation(
                    "Cross Store Same Day",
                    f"{coach_id} assigned to stores {', '.join(sorted(store_ids))} on {date_str}",
                )
            )
    return violations


def _check_duplicate_slot(assignments: list[ScheduleAssignment]) -> list[ConstraintViolation]:
    """A coach appears at most once per (date, store, shift)."""
    violations: list[ConstraintViolation] = []
    seen: set[tuple[str, str, str, str]] = set()
    for a in assignments:
        if a.slot_key in seen:
            violations.append(
                ConstraintViolation(
                    "Duplicate Slot",
                    f"{a.coach_id} booked twice into {a.store_id}/{a.date_str}/{a.shift_id}",
                    assignment=a,
                )
            )
        seen.add(a.slot_key)
    return violations


def _check_shift_applicability(
    assignments: list[ScheduleAssignment], store_dict: dict[str, Store]
) -> list[ConstraintViolation]:
    """Assigned shifts exist at their store and apply on that weekday."""
    violations: list[ConstraintViolation] = []
    for a in assignments:
        store = store_dict.get(a.store_id)
        if store is None or not store.shifts:
            continue
        shift = store.get_shift(a.shift_id)
        if shift is None:
            violations.append(
                ConstraintViolation(
                    "Unknown Shift", f"{a.shift_id} at {store.name} on {a.date_str}", assignment=a
                )
            )
        elif not shift.applies_on(a.date_str):
            violations.append(
                ConstraintViolation(
                    "Shift Not Applicable",
                    f"{shift.name} at {store.name} does not run on {a.date_str}",
                    assignment=a,
                )
            )
    return violations


def _check_availability(
    assignments: list[ScheduleAssignment], coach_dict: dict[str, Coach]
) -> list[ConstraintViolation]:
    """Coaches are only booked into shifts their availability allows."""
    violations: list[ConstraintViolation] = []
    for a in assignments:
        coach = coach_dict.get(a.coach_id)
        if coach and not is_available(coach, a.date_str, a.shift_id):
            violations.append(
                ConstraintViolation(
                    "Coach Unavailable",
                    f"{coach.name} not available for {a.shift_id} on {a.date_str}",
                    assignment=a,
                )
            )
    return violations


def _check_full_time_workdays(
    assignments: list[ScheduleAssignment],
    coach_dict: dict[str, Coach],
    config: GeneratorConfig,
) -> list[ConstraintViolation]:
    """Soft: full-time coaches work at most the configured days per Monday-based week."""
    violations: list[ConstraintViolation] = []
    dates_by_coach_week: dict[tuple[str, str], set[str]] = defaultdict(set)
    for a in assignments:
        monday = week_days(a.date_str)[0]
        dates_by_coach_week[(a.coach_id, monday)].add(a.date_str)

    for (coach_id, monday), worked in sorted(dates_by_coach_week.items()):
        coach = coach_dict.get(coach_id)
        if coach and coach.is_full_time and len(worked) > config.full_time_max_work_days:
            violations.append(
                ConstraintViolation(
                    "Full Time Rest Days",
                    f"{coach.name} works {len(worked)} days in week of {monday} "
                    f"(max {config.full_time_max_work_days})",
                    severity="soft",
                )
            )
    return violations


def _check_coverage(
    assignments: list[ScheduleAssignment], stores: list[Store], dates: list[str]
) -> list[ConstraintViolation]:
    """Soft: every applicable shift reaches its minimum head-count."""
    violations: list[ConstraintViolation] = []
    counts: dict[tuple[str, str, str], int] = defaultdict(int)
    for a in assignments:
        counts[(a.store_id, a.date_str, a.shift_id)] += 1

    for store in stores:
        if store.archived:
            continue
        for date_str in dates:
            for shift in store.shifts_on(date_str):
                assigned = counts[(store.id, date_str, shift.id)]
                if assigned < shift.min_coaches:
                    violations.append(
                        ConstraintViolation(
                            "Understaffed",
                            f"{store.name} {date_str} {shift.name}: "
                            f"{assigned} of minimum {shift.min_coaches}",
                            severity="soft",
                        )
                    )
    return violations


def _calculate_soft_penalty(
    assignments: list[ScheduleAssignment],
    coaches: list[Coach],
    stores: list[Store],
    dates: list[str],
) -> float:
    """Calculate soft constraint penalty score.

    Lower is better. Penalizes:
    - Understaffed slots (per missing coach)
    - Uneven hours among affiliated coaches (std deviation)
    """
    penalty = 0.0

    missing: dict[tuple[str, str, str], int] = defaultdict(int)
    for a in assignments:
        missing[(a.store_id, a.date_str, a.shift_id)] -= 1
    for store in stores:
        if store.archived:
            continue
        for date_str in dates:
            for shift in store.shifts_on(date_str):
                gap = shift.min_coaches + missing[(store.id, date_str, shift.id)]
                if gap > 0:
                    penalty += gap * 10

    affiliated = [c for c in coaches if c.stores]
    stats = compute_stats(affiliated, assignments, stores, dates)
    hours = [s.total_hours for s in stats.values()]
    if len(hours) > 1:
        mean = sum(hours) / len(hours)
        variance = sum((h - mean) ** 2 for h in hours) / len(hours)
        penalty += variance**0.5

    return penalty
