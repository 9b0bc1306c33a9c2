"""Running per-coach state threaded through one generation run."""

from dataclasses import dataclass, field
from typing import Iterable, Iterator

from .models import Shift
from .timeutils import TimeRange, merge_and_sum_duration


@dataclass
class CoachState:
    """What one coach has been given so far this week.

    Attributes:
        coach_id: ID of the coach.
        hours_so_far: Non-overlapping assigned hours across the week.
        dates_worked: Distinct dates with at least one assignment.
        daily_shifts: Date -> shifts held that day, in assignment order.
        daily_store: Date -> the single store the coach is locked to that day.
    """

    coach_id: str
    hours_so_far: float = 0.0
    dates_worked: set[str] = field(default_factory=set)
    daily_shifts: dict[str, list[Shift]] = field(default_factory=dict)
    daily_store: dict[str, str] = field(default_factory=dict)

    @property
    def days_worked(self) -> int:
        return len(self.dates_worked)

    def works_on(self, date_str: str) -> bool:
        return date_str in self.dates_worked

    def shifts_on(self, date_str: str) -> list[Shift]:
        return self.daily_shifts.get(date_str, [])

    def intervals_on(self, date_str: str) -> list[TimeRange]:
        return [s.interval() for s in self.shifts_on(date_str)]

    def hours_on(self, date_str: str) -> float:
        return merge_and_sum_duration(self.intervals_on(date_str))

    def record(self, date_str: str, store_id: str, shift: Shift) -> float:
        """Book a shift and return the coach's merged hours for that day.

        The day's previous merged total is swapped for the new one so a second
        overlapping shift only adds its uncovered minutes.
        """
        previous = self.hours_on(date_str)
        self.daily_shifts.setdefault(date_str, []).append(shift)
        current = self.hours_on(date_str)
        self.hours_so_far += current - previous
        self.dates_worked.add(date_str)
        self.daily_store[date_str] = store_id
        return current


class GenerationState:
    """Owned, mutable state for one week's generation, keyed by coach id."""

    def __init__(self, week: Iterable[str], coach_ids: Iterable[str] = ()) -> None:
        self.week = list(week)
        self._coaches: dict[str, CoachState] = {}
        for coach_id in coach_ids:
            self.coach(coach_id)

    def coach(self, coach_id: str) -> CoachState:
        if coach_id not in self._coaches:
            self._coaches[coach_id] = CoachState(coach_id=coach_id)
        return self._coaches[coach_id]

    def works_today(self, coach_id: str, date_str: str) -> bool:
        return self.coach(coach_id).works_on(date_str)

    def days_worked(self, coach_id: str) -> int:
        return self.coach(coach_id).days_worked

    def hours_so_far(self, coach_id: str) -> float:
        return self.coach(coach_id).hours_so_far

    def locked_store(self, coach_id: str, date_str: str) -> str | None:
        return self.coach(coach_id).daily_store.get(date_str)

    def worked_weekend(self, coach_id: str, weekend_dates: Iterable[str]) -> bool:
        worked = self.coach(coach_id).dates_worked
        return any(d in worked for d in weekend_dates)

    def record_assignment(self, coach_id: str, date_str: str, store_id: str, shift: Shift) -> float:
        return self.coach(coach_id).record(date_str, store_id, shift)

    def __iter__(self) -> Iterator[CoachState]:
        return iter(self._coaches.values())

    def __contains__(self, coach_id: object) -> bool:
        return coach_id in self._coaches
