"""Candidate filtering and fairness ranking for a single slot."""

import random
from typing import Iterable

from .availability import Strictness, is_eligible
from .config import GeneratorConfig, TieBreak
from .diagnostics import DiagnosticLog
from .models import Coach
from .state import GenerationState
from .timeutils import is_weekend


def filter_candidates(
    pool: Iterable[Coach],
    date_str: str,
    shift_id: str,
    state: GenerationState,
    config: GeneratorConfig,
    strictness: Strictness = Strictness.STRICT,
    exclude_ids: Iterable[str] = (),
) -> list[Coach]:
    """Coaches from the pool eligible under the given pass."""
    excluded = set(exclude_ids)
    return [
        c
        for c in pool
        if c.id not in excluded and is_eligible(c, date_str, shift_id, state, config, strictness)
    ]


def weekend_dates(week: Iterable[str], config: GeneratorConfig) -> list[str]:
    return [d for d in week if is_weekend(d, config.weekend_weekdays)]


def rank_candidates(
    candidates: list[Coach],
    store_id: str,
    date_str: str,
    state: GenerationState,
    config: GeneratorConfig,
    rng: random.Random | None = None,
) -> list[Coach]:
    """Order candidates by store affinity, weekend fairness, then hours so far.

    Each criterion only separates coaches tied on the previous ones. Coaches
    tied on all three are shuffled, or ordered by id with ``TieBreak.COACH_ID``.
    """
    rng = rng or config.make_rng()
    weekend_slot = is_weekend(date_str, config.weekend_weekdays)
    weekend = weekend_dates(state.week, config) if weekend_slot else []

    def sort_key(coach: Coach) -> tuple[bool, bool, float, float | str]:
        primary_here = coach.is_primary_at(store_id)
        had_weekend = weekend_slot and state.worked_weekend(coach.id, weekend)
        tie = coach.id if config.tie_break == TieBreak.COACH_ID else rng.random()
        return (not primary_here, had_weekend, state.hours_so_far(coach.id), tie)

    return sorted(candidates, key=sort_key)


def select_coaches(
    pool: list[Coach],
    count: int,
    date_str: str,
    shift_id: str,
    store_id: str,
    state: GenerationState,
    config: GeneratorConfig | None = None,
    diagnostics: DiagnosticLog | None = None,
    rng: random.Random | None = None,
    exclude_ids: Iterable[str] = (),
) -> list[Coach]:
    """Pick up to ``count`` coaches for one (store, date, shift) slot.

    Returns fewer than ``count`` when supply runs short; the slot is then
    understaffed rather than blocked.
    """
    config = config or GeneratorConfig()
    diagnostics = diagnostics if diagnostics is not None else DiagnosticLog()
    exclude_ids = list(exclude_ids)
    slot = {"store_id": store_id, "date_str": date_str, "shift_id": shift_id}

    candidates = filter_candidates(
        pool, date_str, shift_id, state, config, Strictness.STRICT, exclude_ids
    )

    if len(candidates) < count:
        relaxed = filter_candidates(
            pool, date_str, shift_id, state, config, Strictness.RELAXED, exclude_ids
        )
        diagnostics.warning(
            f"only {len(candidates)} strict candidates for {count} places; "
            f"relaxed pass found {len(relaxed)} "
            f"({', '.join(c.name for c in relaxed) or 'none'})",
            **slot,
        )
        if len(relaxed) > len(candidates):
            candidates = relaxed

    ranked = rank_candidates(candidates, store_id, date_str, state, config, rng)
    return ranked[:count]
