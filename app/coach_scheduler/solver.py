"""Greedy week schedule generator."""

import logging
import random
from dataclasses import dataclass, field
from typing import Iterable

from .config import GeneratorConfig
from .diagnostics import DiagnosticLog
from .models import Coach, ScheduleAssignment, ScheduleInputError, Shift, Store
from .ranking import select_coaches
from .state import GenerationState
from .timeutils import intervals_overlap, parse_date

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7


@dataclass
class SlotOutcome:
    """How one (store, date, shift) slot was staffed."""

    store_id: str
    date_str: str
    shift_id: str
    min_coaches: int
    target: int
    coach_ids: list[str] = field(default_factory=list)

    @property
    def understaffed(self) -> bool:
        return len(self.coach_ids) < self.min_coaches

    @property
    def empty(self) -> bool:
        return not self.coach_ids


class GenerationResult:
    """Assignments for one week plus everything worth reporting about them."""

    def __init__(
        self,
        week: list[str],
        assignments: list[ScheduleAssignment],
        slots: list[SlotOutcome],
        diagnostics: DiagnosticLog,
        state: GenerationState,
    ) -> None:
        self.week = week
        self.assignments = assignments
        self.slots = slots
        self.diagnostics = diagnostics
        self.state = state

    def warnings(self) -> list[str]:
        return [str(d) for d in self.diagnostics.warnings()]

    def understaffed_slots(self) -> list[SlotOutcome]:
        return [s for s in self.slots if s.understaffed]

    def empty_slots(self) -> list[SlotOutcome]:
        return [s for s in self.slots if s.empty]

    def hours_by_coach(self) -> dict[str, float]:
        return {cs.coach_id: cs.hours_so_far for cs in self.state}


def _check_inputs(stores: list[Store], week: list[str]) -> None:
    """Fail fast on anything that would corrupt interval arithmetic."""
    for date_str in week:
        try:
            parse_date(date_str)
        except ValueError as exc:
            raise ScheduleInputError(str(exc)) from exc

    for store in stores:
        for shift in store.shifts:
            try:
                shift.interval()
            except ValueError as exc:
                raise ScheduleInputError(f"Store {store.name}, shift {shift.id}: {exc}") from exc
            if shift.max_coaches < shift.min_coaches:
                raise ScheduleInputError(
                    f"Store {store.name}, shift {shift.id}: maxCoaches below minCoaches"
                )


def store_pool(coaches: list[Coach], store: Store) -> list[Coach]:
    """Primary coaches of the store first, then secondary ones."""
    primary = [c for c in coaches if c.is_primary_at(store.id)]
    primary_ids = {c.id for c in primary}
    secondary = [c for c in coaches if c.is_secondary_at(store.id) and c.id not in primary_ids]
    return primary + secondary


def _has_time_conflict(coach: Coach, date_str: str, shift: Shift, state: GenerationState) -> bool:
    candidate = shift.interval()
    return any(
        intervals_overlap(candidate, held)
        for held in state.coach(coach.id).intervals_on(date_str)
    )


def generate_week_schedule(
    coaches: list[Coach],
    stores: list[Store],
    week: Iterable[str],
    config: GeneratorConfig | None = None,
) -> GenerationResult:
    """Assign coaches to every applicable shift of every active store for a week.

    Args:
        coaches: Coach snapshot with affiliations and availability
        stores: Store snapshot; archived stores are skipped
        week: Dates (YYYY-MM-DD) to schedule, processed chronologically
        config: Generation rules; defaults to ``GeneratorConfig()``

    Returns:
        GenerationResult with fresh assignments and diagnostics

    Raises:
        ScheduleInputError: On malformed dates or shift times
    """
    config = config or GeneratorConfig()
    week = sorted(week)
    _check_inputs(stores, week)

    rng = config.make_rng()
    state = GenerationState(week, (c.id for c in coaches))
    diagnostics = DiagnosticLog(logger)
    assignments: list[ScheduleAssignment] = []
    slots: list[SlotOutcome] = []

    active_stores = [s for s in stores if not s.archived]

    for store in active_stores:
        if not store.shifts:
            diagnostics.warning(f"store {store.name} has no shifts configured", store_id=store.id)
            continue

        pool = store_pool(coaches, store)
        if not pool:
            diagnostics.warning(
                f"store {store.name} has no primary or secondary coaches", store_id=store.id
            )
            continue

        for date_str in week:
            for shift in store.shifts_on(date_str):
                outcome = _staff_slot(
                    store, date_str, shift, pool, state, config, diagnostics, rng, assignments
                )
                slots.append(outcome)

    _check_rest_days(coaches, state, config, diagnostics)

    return GenerationResult(week, assignments, slots, diagnostics, state)


def _staff_slot(
    store: Store,
    date_str: str,
    shift: Shift,
    pool: list[Coach],
    state: GenerationState,
    config: GeneratorConfig,
    diagnostics: DiagnosticLog,
    rng: random.Random,
    assignments: list[ScheduleAssignment],
) -> SlotOutcome:
    slot = {"store_id": store.id, "date_str": date_str, "shift_id": shift.id}
    target = shift.max_coaches
    outcome = SlotOutcome(store.id, date_str, shift.id, shift.min_coaches, target)
    if target == 0:
        return outcome

    # One store per coach per day, and no overlapping shifts
    available = [
        c for c in pool if state.locked_store(c.id, date_str) in (None, store.id)
    ]
    free = [c for c in available if not _has_time_conflict(c, date_str, shift, state)]

    selected = select_coaches(
        free,
        target,
        date_str,
        shift.id,
        store.id,
        state,
        config=config,
        diagnostics=diagnostics,
        rng=rng,
    )

    if not selected:
        diagnostics.warning(f"no coach available for {shift.name}, slot left empty", **slot)
        return outcome

    if len(selected) < shift.min_coaches:
        diagnostics.warning(
            f"{shift.name} staffed with {len(selected)} of minimum {shift.min_coaches}",
            **slot,
        )

    for coach in selected:
        assignments.append(
            ScheduleAssignment(
                date_str=date_str,
                coach_id=coach.id,
                store_id=store.id,
                shift_id=shift.id,
                shift_name=shift.name,
            )
        )
        state.record_assignment(coach.id, date_str, store.id, shift)
        outcome.coach_ids.append(coach.id)

    return outcome


def _check_rest_days(
    coaches: list[Coach],
    state: GenerationState,
    config: GeneratorConfig,
    diagnostics: DiagnosticLog,
) -> None:
    """Post-run check that full-time coaches kept their rest days."""
    period = max(DAYS_PER_WEEK, len(state.week))
    for coach in coaches:
        if not coach.stores:
            continue
        coach_state = state.coach(coach.id)
        rest_days = period - coach_state.days_worked
        if coach.is_full_time and (
            coach_state.days_worked > config.full_time_max_work_days
            or rest_days < config.min_rest_days
        ):
            diagnostics.warning(
                f"full-time coach {coach.name} works {coach_state.days_worked} days "
                f"with {rest_days} rest days",
                coach_id=coach.id,
            )
        diagnostics.info(
            f"{coach.name}: {coach_state.days_worked} days, {rest_days} rest, "
            f"{coach_state.hours_so_far:.1f}h",
            coach_id=coach.id,
        )
