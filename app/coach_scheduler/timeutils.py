"""Wall-clock time arithmetic and calendar helpers."""

import re
from calendar import monthrange
from datetime import date, timedelta
from typing import Iterable, NamedTuple, Protocol

MINUTES_PER_DAY = 24 * 60

# 0=Sun .. 6=Sat; Friday counts as weekend for fairness
WEEKEND_WEEKDAYS = frozenset({0, 5, 6})

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


class HasTimes(Protocol):
    start: str
    end: str


class TimeRange(NamedTuple):
    """Minute offsets from local midnight; ``end`` may exceed 1440."""

    start: int
    end: int

    @property
    def minutes(self) -> int:
        return self.end - self.start


def to_minutes(time_str: str) -> int:
    """Parse an ``HH:MM`` string into minutes since midnight (0-1439)."""
    match = _TIME_RE.match(time_str.strip()) if isinstance(time_str, str) else None
    if match is None:
        raise ValueError(f"Invalid time {time_str!r}, expected HH:MM")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"Invalid time {time_str!r}, out of range")
    return hour * 60 + minute


def time_range(start: str, end: str) -> TimeRange:
    """Convert start/end strings to a range, rolling ``end`` past midnight if needed.

    ``13:00``-``01:00`` becomes (780, 1500).
    """
    start_minutes = to_minutes(start)
    end_minutes = to_minutes(end)
    if end_minutes < start_minutes:
        end_minutes += MINUTES_PER_DAY
    return TimeRange(start_minutes, end_minutes)


def shift_interval(shift: HasTimes) -> TimeRange:
    """Minute interval of anything carrying ``start``/``end`` time strings."""
    return time_range(shift.start, shift.end)


def merge_intervals(ranges: Iterable[TimeRange]) -> list[TimeRange]:
    """Merge overlapping or touching ranges, sorted by start."""
    merged: list[TimeRange] = []
    for current in sorted(ranges, key=lambda r: r.start):
        if merged and current.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = TimeRange(last.start, max(last.end, current.end))
        else:
            merged.append(current)
    return merged


def merge_and_sum_duration(ranges: Iterable[TimeRange]) -> float:
    """Total covered time in hours, counting overlapping minutes once."""
    ranges = list(ranges)
    if not ranges:
        return 0.0
    if len(ranges) == 1:
        return ranges[0].minutes / 60
    return sum(r.minutes for r in merge_intervals(ranges)) / 60


def intervals_overlap(a: TimeRange, b: TimeRange) -> bool:
    """Half-open overlap test; back-to-back ranges do not overlap."""
    return not (a.end <= b.start or a.start >= b.end)


def parse_date(date_str: str) -> date:
    """Parse a ``YYYY-MM-DD`` string."""
    try:
        parsed = date.fromisoformat(date_str)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid date {date_str!r}, expected YYYY-MM-DD") from exc
    if len(date_str) != 10:
        raise ValueError(f"Invalid date {date_str!r}, expected YYYY-MM-DD")
    return parsed


def format_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def day_of_week(date_str: str) -> int:
    """Weekday index with 0=Sunday .. 6=Saturday."""
    return (parse_date(date_str).weekday() + 1) % 7


def is_weekend(date_str: str, weekend_weekdays: Iterable[int] = WEEKEND_WEEKDAYS) -> bool:
    return day_of_week(date_str) in set(weekend_weekdays)


def _as_date(anchor: date | str) -> date:
    return parse_date(anchor) if isinstance(anchor, str) else anchor


def week_days(anchor: date | str) -> list[str]:
    """The seven dates (Monday..Sunday) of the week containing ``anchor``."""
    day = _as_date(anchor)
    monday = day - timedelta(days=day.weekday())
    return [format_date(monday + timedelta(days=i)) for i in range(7)]


def month_days(anchor: date | str) -> list[str]:
    """Every date of the month containing ``anchor``."""
    day = _as_date(anchor)
    _, last = monthrange(day.year, day.month)
    return [format_date(date(day.year, day.month, d)) for d in range(1, last + 1)]


def date_range(start: date | str, end: date | str) -> list[str]:
    """Inclusive list of dates between ``start`` and ``end``."""
    current, last = _as_date(start), _as_date(end)
    days: list[str] = []
    while current <= last:
        days.append(format_date(current))
        current += timedelta(days=1)
    return days
