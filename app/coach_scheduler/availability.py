"""Availability and workday-cap eligibility checks."""

from enum import Enum

from .config import GeneratorConfig
from .models import Coach
from .state import GenerationState
from .timeutils import day_of_week


class Strictness(str, Enum):
    """Candidate filtering pass.

    STRICT lets coaches without any configured availability through untouched.
    RELAXED applies the full-time workday cap to every full-time coach, so its
    set is never larger than the strict one; it is computed for the shortage
    report only.
    """

    STRICT = "strict"
    RELAXED = "relaxed"


def is_available(coach: Coach, date_str: str, shift_id: str) -> bool:
    """Per-weekday, per-shift availability lookup.

    Legacy morning/evening flags are folded into shift ids when the coach is
    loaded, so only the canonical mapping is consulted here.
    """
    return coach.can_work_shift(day_of_week(date_str), shift_id)


def exceeds_workday_cap(
    coach: Coach,
    date_str: str,
    state: GenerationState,
    config: GeneratorConfig,
) -> bool:
    """Full-time coaches at the cap may only take more shifts on days they already work."""
    if not coach.is_full_time:
        return False
    return (
        state.days_worked(coach.id) >= config.full_time_max_work_days
        and not state.works_today(coach.id, date_str)
    )


def is_eligible(
    coach: Coach,
    date_str: str,
    shift_id: str,
    state: GenerationState,
    config: GeneratorConfig | None = None,
    strictness: Strictness = Strictness.STRICT,
) -> bool:
    """Check whether a coach may be assigned to a shift on a date.

    A coach with no availability configured is eligible in the strict pass
    without further checks. Everyone else must be available for the shift and,
    if full-time, below the workday cap.
    """
    config = config or GeneratorConfig()
    if not coach.has_availability:
        if strictness == Strictness.STRICT:
            return True
        return not exceeds_workday_cap(coach, date_str, state, config)
    if not is_available(coach, date_str, shift_id):
        return False
    return not exceeds_workday_cap(coach, date_str, state, config)
