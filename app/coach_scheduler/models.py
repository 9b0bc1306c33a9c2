"""Data models for coaches, stores, shifts, and schedule assignments."""

import json
import uuid
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .timeutils import TimeRange, day_of_week, parse_date, time_range, to_minutes


class ScheduleInputError(ValueError):
    """Raised when generator input is malformed (bad times, dates, shift fields)."""


class EmploymentType(str, Enum):
    """Coach employment type."""

    FULL_TIME = "FULL_TIME"
    PART_TIME = "PART_TIME"


class LegacyShiftType(str, Enum):
    """Shift kind used by assignments stored before stores defined their own shifts."""

    MORNING = "MORNING"
    EVENING = "EVENING"


# Old availability records used these per-day flags instead of shift ids
LEGACY_AVAILABILITY_FIELDS = {
    "canWorkMorning": "morning",
    "canWorkEvening": "evening",
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Shift(_CamelModel):
    """A named time window at a store."""

    id: str
    name: str
    start: str  # HH:MM
    end: str  # HH:MM, earlier than start means the shift ends after midnight
    days_of_week: list[int] | None = Field(default=None, alias="daysOfWeek")  # 0=Sun .. 6=Sat
    min_coaches: int = Field(default=1, alias="minCoaches", ge=0)
    max_coaches: int = Field(default=1, alias="maxCoaches", ge=0)
    store_id: str | None = Field(default=None, alias="storeId")

    @field_validator("start", "end")
    @classmethod
    def check_time(cls, v: str) -> str:
        to_minutes(v)
        return v.strip()

    @field_validator("days_of_week")
    @classmethod
    def check_weekdays(cls, v: list[int] | None) -> list[int] | None:
        if v is None:
            return v
        for day in v:
            if not 0 <= day <= 6:
                raise ValueError(f"Weekday {day} out of range 0-6")
        return v

    @field_validator("min_coaches", "max_coaches", mode="before")
    @classmethod
    def default_staffing(cls, v: Any) -> Any:
        """Null staffing targets fall back to one coach."""
        return 1 if v is None else v

    @model_validator(mode="after")
    def check_staffing_range(self) -> "Shift":
        if self.max_coaches < self.min_coaches:
            raise ValueError(
                f"Shift {self.id}: maxCoaches {self.max_coaches} < minCoaches {self.min_coaches}"
            )
        return self

    @property
    def start_minutes(self) -> int:
        return to_minutes(self.start)

    def interval(self) -> TimeRange:
        """Minute interval, with the end rolled past midnight where needed."""
        return time_range(self.start, self.end)

    def duration_hours(self) -> float:
        return self.interval().minutes / 60

    def applies_on(self, date_str: str) -> bool:
        """Empty or missing ``days_of_week`` means every day."""
        if not self.days_of_week:
            return True
        return day_of_week(date_str) in self.days_of_week


class Availability(_CamelModel):
    """Per-weekday shift availability: weekday -> shift id -> workable."""

    week_schedule: dict[int, dict[str, bool]] = Field(default_factory=dict, alias="weekSchedule")

    @field_validator("week_schedule", mode="before")
    @classmethod
    def normalize_legacy_days(cls, v: Any) -> Any:
        """Fold ``canWorkMorning``/``canWorkEvening`` flags into shift-id keys."""
        if not isinstance(v, dict):
            return v
        normalized: dict[Any, Any] = {}
        for weekday, day in v.items():
            if not isinstance(day, dict):
                normalized[weekday] = day
                continue
            # null means not available, same as false
            shifts = {
                k: False if val is None else val
                for k, val in day.items()
                if k not in LEGACY_AVAILABILITY_FIELDS
            }
            for legacy_field, shift_id in LEGACY_AVAILABILITY_FIELDS.items():
                if legacy_field in day and shift_id not in shifts:
                    shifts[shift_id] = day[legacy_field] is True
            normalized[weekday] = shifts
        return normalized

    @field_validator("week_schedule")
    @classmethod
    def check_weekdays(cls, v: dict[int, dict[str, bool]]) -> dict[int, dict[str, bool]]:
        for weekday in v:
            if not 0 <= weekday <= 6:
                raise ValueError(f"Weekday {weekday} out of range 0-6")
        return v


class CoachStore(_CamelModel):
    """A coach's affiliation with a store."""

    store_id: str = Field(alias="storeId")
    is_primary: bool = Field(default=False, alias="isPrimary")


class Coach(_CamelModel):
    """Coach with store affiliations and optional availability."""

    id: str
    name: str
    color: str = ""
    avatar: str = ""
    employment_type: EmploymentType | None = Field(default=None, alias="employmentType")
    stores: list[CoachStore] = Field(default_factory=list)
    availability: Availability | None = None

    @field_validator("stores", mode="before")
    @classmethod
    def null_stores(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("availability", mode="before")
    @classmethod
    def null_week_schedule(cls, v: Any) -> Any:
        """An availability object without a week schedule counts as unconfigured."""
        if isinstance(v, dict):
            schedule = v.get("weekSchedule", v.get("week_schedule"))
            if schedule is None:
                return None
        return v

    @property
    def is_full_time(self) -> bool:
        return self.employment_type == EmploymentType.FULL_TIME

    @property
    def has_availability(self) -> bool:
        return self.availability is not None

    @property
    def primary_store_id(self) -> str | None:
        for link in self.stores:
            if link.is_primary:
                return link.store_id
        return None

    def is_primary_at(self, store_id: str) -> bool:
        return any(link.store_id == store_id and link.is_primary for link in self.stores)

    def is_secondary_at(self, store_id: str) -> bool:
        return any(link.store_id == store_id and not link.is_primary for link in self.stores)

    def can_work_shift(self, weekday: int, shift_id: str) -> bool:
        """Check configured availability for a weekday (0=Sun) and shift id.

        No availability at all means available everywhere. Once anything is
        configured, a missing weekday is a day off and a missing shift id on a
        configured day is unavailable.
        """
        if self.availability is None:
            return True
        day = self.availability.week_schedule.get(weekday)
        if day is None:
            return False
        return day.get(shift_id) is True


class Store(_CamelModel):
    """Store with its shift definitions."""

    id: str
    name: str
    archived: bool = False
    shifts: list[Shift] = Field(default_factory=list)
    morning_shift_start: str | None = Field(default=None, alias="morningShiftStart")
    morning_shift_end: str | None = Field(default=None, alias="morningShiftEnd")
    evening_shift_start: str | None = Field(default=None, alias="eveningShiftStart")
    evening_shift_end: str | None = Field(default=None, alias="eveningShiftEnd")
    evening_extended_end: str | None = Field(default=None, alias="eveningExtendedEnd")

    @field_validator("shifts", mode="before")
    @classmethod
    def null_shifts(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("archived", mode="before")
    @classmethod
    def null_archived(cls, v: Any) -> Any:
        return False if v is None else v

    @model_validator(mode="after")
    def attach_shifts(self) -> "Store":
        """Synthesize morning/evening shifts from legacy columns and link shifts to the store."""
        if not self.shifts:
            if self.morning_shift_start and self.morning_shift_end:
                self.shifts.append(
                    Shift(id="morning", name="早班", start=self.morning_shift_start, end=self.morning_shift_end)
                )
            if self.evening_shift_start and self.evening_shift_end:
                self.shifts.append(
                    Shift(id="evening", name="晚班", start=self.evening_shift_start, end=self.evening_shift_end)
                )
        for shift in self.shifts:
            if shift.store_id is None:
                shift.store_id = self.id
        return self

    def get_shift(self, shift_id: str) -> Shift | None:
        for shift in self.shifts:
            if shift.id == shift_id:
                return shift
        return None

    def shifts_on(self, date_str: str) -> list[Shift]:
        """Shifts applicable on a date, earliest start first."""
        applicable = [s for s in self.shifts if s.applies_on(date_str)]
        return sorted(applicable, key=lambda s: s.start_minutes)


class ScheduleAssignment(_CamelModel):
    """One coach booked into one (store, date, shift) slot."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    date_str: str = Field(alias="dateStr")
    coach_id: str = Field(alias="coachId")
    store_id: str = Field(alias="storeId")
    shift_id: str = Field(alias="shiftId")
    shift_name: str = Field(default="", alias="shiftName")
    shift_type: LegacyShiftType | None = Field(default=None, alias="shiftType")
    is_extended: bool = Field(default=False, alias="isExtended")

    @field_validator("date_str")
    @classmethod
    def check_date(cls, v: str) -> str:
        parse_date(v)
        return v

    @field_validator("is_extended", mode="before")
    @classmethod
    def null_extended(cls, v: Any) -> Any:
        return False if v is None else v

    @property
    def slot_key(self) -> tuple[str, str, str, str]:
        """Uniqueness key: (date, store, shift, coach)."""
        return (self.date_str, self.store_id, self.shift_id, self.coach_id)


class WorkloadStats(BaseModel):
    """Aggregated workload of one coach over a date range."""

    total_shifts: int = 0
    total_hours: float = 0.0
    worked_dates: set[str] = Field(default_factory=set)
    extended: int = 0  # legacy extended-evening assignments

    @property
    def days_worked(self) -> int:
        return len(self.worked_dates)

    def rest_days(self, period_days: int) -> int:
        return max(0, period_days - self.days_worked)


def _read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def load_coaches_from_json(json_path: Path) -> list[Coach]:
    """Load coaches from a JSON array."""
    return [Coach.model_validate(item) for item in _read_json(json_path)]


def load_stores_from_json(json_path: Path) -> list[Store]:
    """Load stores (with shifts) from a JSON array."""
    return [Store.model_validate(item) for item in _read_json(json_path)]


def load_assignments_from_json(json_path: Path) -> list[ScheduleAssignment]:
    """Load persisted schedule assignments from a JSON array."""
    return [ScheduleAssignment.model_validate(item) for item in _read_json(json_path)]


def parse_snapshot(data: dict[str, Any]) -> tuple[list[Coach], list[Store], list[ScheduleAssignment]]:
    """Parse ``{"coaches": [...], "stores": [...], "schedules": [...]}``."""
    coaches = [Coach.model_validate(item) for item in data.get("coaches") or []]
    stores = [Store.model_validate(item) for item in data.get("stores") or []]
    schedules = [ScheduleAssignment.model_validate(item) for item in data.get("schedules") or []]
    return coaches, stores, schedules


def load_snapshot_from_json(
    json_path: Path,
) -> tuple[list[Coach], list[Store], list[ScheduleAssignment]]:
    """Load coaches, stores and existing assignments from one JSON document."""
    return parse_snapshot(_read_json(json_path))


def dump_assignments_to_json(assignments: list[ScheduleAssignment], json_path: Path) -> None:
    """Write assignments as a JSON array using the camelCase wire names."""
    payload = [a.model_dump(mode="json", by_alias=True, exclude_none=True) for a in assignments]
    with json_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
