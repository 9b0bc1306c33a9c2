"""Coach shift scheduler module."""

from .config import GeneratorConfig, TieBreak
from .models import (
    Coach,
    EmploymentType,
    ScheduleAssignment,
    ScheduleInputError,
    Shift,
    Store,
    WorkloadStats,
)
from .solver import GenerationResult, generate_week_schedule
from .validator import ValidationResult, validate_schedule
from .workload import compute_stats

__all__ = [
    "Coach",
    "EmploymentType",
    "GenerationResult",
    "GeneratorConfig",
    "ScheduleAssignment",
    "ScheduleInputError",
    "Shift",
    "Store",
    "TieBreak",
    "ValidationResult",
    "WorkloadStats",
    "compute_stats",
    "generate_week_schedule",
    "validate_schedule",
]
