"""In-memory assignment store with replace-by-date-range semantics."""

import logging
import threading
from typing import Iterable

from .models import ScheduleAssignment
from .timeutils import parse_date

logger = logging.getLogger(__name__)


class CrossStoreConflictError(ValueError):
    """A coach is already booked at a different store on that date."""

    def __init__(self, coach_id: str, date_str: str, existing_store_id: str) -> None:
        super().__init__(
            f"Coach {coach_id} already works at store {existing_store_id} on {date_str}"
        )
        self.coach_id = coach_id
        self.date_str = date_str
        self.existing_store_id = existing_store_id


def _in_range(date_str: str, start: str, end: str) -> bool:
    # ISO dates compare lexicographically
    return start <= date_str <= end


def _check_range(start: str, end: str) -> None:
    if parse_date(start) > parse_date(end):
        raise ValueError(f"Range start {start} is after end {end}")


class InMemoryAssignmentStore:
    """Assignment storage used by the app and tests.

    ``replace_range`` deletes and inserts under a lock keyed by the date range,
    so at most one save per range is in flight.
    """

    def __init__(self, assignments: Iterable[ScheduleAssignment] = ()) -> None:
        self._rows: dict[str, ScheduleAssignment] = {}
        self._guard = threading.Lock()
        self._range_locks: dict[tuple[str, str], threading.Lock] = {}
        self.bulk_create(assignments)

    def _lock_for(self, start: str, end: str) -> threading.Lock:
        with self._guard:
            return self._range_locks.setdefault((start, end), threading.Lock())

    # Callers of the *_locked helpers must hold self._guard

    def _insert_locked(self, assignments: Iterable[ScheduleAssignment]) -> int:
        count = 0
        for assignment in assignments:
            self._rows[assignment.id] = assignment
            count += 1
        return count

    def _delete_range_locked(self, start: str, end: str) -> int:
        doomed = [k for k, a in self._rows.items() if _in_range(a.date_str, start, end)]
        for key in doomed:
            del self._rows[key]
        return len(doomed)

    def bulk_create(self, assignments: Iterable[ScheduleAssignment]) -> int:
        with self._guard:
            count = self._insert_locked(assignments)
        logger.debug("Created %d assignments", count)
        return count

    def delete_range(self, start: str, end: str) -> int:
        _check_range(start, end)
        with self._guard:
            deleted = self._delete_range_locked(start, end)
        logger.debug("Deleted %d assignments in %s..%s", deleted, start, end)
        return deleted

    def delete(self, assignment_id: str) -> bool:
        with self._guard:
            return self._rows.pop(assignment_id, None) is not None

    def query_range(self, start: str, end: str) -> list[ScheduleAssignment]:
        _check_range(start, end)
        with self._guard:
            rows = [a for a in self._rows.values() if _in_range(a.date_str, start, end)]
        return sorted(rows, key=lambda a: a.date_str)

    def all(self) -> list[ScheduleAssignment]:
        with self._guard:
            return sorted(self._rows.values(), key=lambda a: a.date_str)

    def replace_range(
        self, start: str, end: str, assignments: Iterable[ScheduleAssignment]
    ) -> int:
        """Delete everything in ``start..end`` then insert ``assignments``.

        Both steps run under one hold of the store lock, so readers and manual
        adds never see the range half replaced.
        """
        _check_range(start, end)
        assignments = list(assignments)
        for a in assignments:
            if not _in_range(a.date_str, start, end):
                raise ValueError(f"Assignment on {a.date_str} outside {start}..{end}")
        with self._lock_for(start, end), self._guard:
            deleted = self._delete_range_locked(start, end)
            created = self._insert_locked(assignments)
        logger.debug("Replaced %d assignments with %d in %s..%s", deleted, created, start, end)
        return created

    def add_assignment(
        self,
        date_str: str,
        coach_id: str,
        store_id: str,
        shift_id: str,
        shift_name: str = "",
    ) -> ScheduleAssignment | None:
        """Manually book one coach into one slot.

        Returns None if the identical slot is already booked. Raises
        CrossStoreConflictError if the coach works at another store that day.
        """
        with self._guard:
            for a in self._rows.values():
                if a.date_str != date_str or a.coach_id != coach_id:
                    continue
                if a.store_id != store_id:
                    raise CrossStoreConflictError(coach_id, date_str, a.store_id)
                if a.shift_id == shift_id:
                    return None
            assignment = ScheduleAssignment(
                date_str=date_str,
                coach_id=coach_id,
                store_id=store_id,
                shift_id=shift_id,
                shift_name=shift_name,
            )
            self._rows[assignment.id] = assignment
        return assignment

    def __len__(self) -> int:
        return len(self._rows)


def merge_week(
    existing: Iterable[ScheduleAssignment],
    generated: Iterable[ScheduleAssignment],
    week: Iterable[str],
) -> list[ScheduleAssignment]:
    """Drop existing rows for the week's dates and append the generated ones."""
    dates = set(week)
    kept = [a for a in existing if a.date_str not in dates]
    return kept + list(generated)
