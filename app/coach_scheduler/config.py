"""Generator configuration."""

import os
import random
from enum import Enum
from typing import Mapping

from pydantic import BaseModel, Field, field_validator

from .timeutils import WEEKEND_WEEKDAYS


class TieBreak(str, Enum):
    """How coaches tied on every fairness criterion are ordered."""

    RANDOM = "random"
    COACH_ID = "coach_id"


class GeneratorConfig(BaseModel):
    """Tunable rules for week schedule generation."""

    full_time_max_work_days: int = Field(default=5, ge=1, le=7)
    min_rest_days: int = Field(default=2, ge=0, le=7)
    weekend_weekdays: frozenset[int] = WEEKEND_WEEKDAYS  # 0=Sun .. 6=Sat
    tie_break: TieBreak = TieBreak.RANDOM
    random_seed: int | None = None

    @field_validator("weekend_weekdays")
    @classmethod
    def check_weekdays(cls, v: frozenset[int]) -> frozenset[int]:
        for day in v:
            if not 0 <= day <= 6:
                raise ValueError(f"Weekday {day} out of range 0-6")
        return v

    def make_rng(self) -> random.Random:
        """Private RNG for tie-breaking; seeded runs are reproducible."""
        return random.Random(self.random_seed)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "GeneratorConfig":
        """Build a config from ``SCHEDULER_*`` environment variables."""
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}
        if env.get("SCHEDULER_TIE_BREAK"):
            values["tie_break"] = env["SCHEDULER_TIE_BREAK"]
        if env.get("SCHEDULER_RANDOM_SEED"):
            values["random_seed"] = env["SCHEDULER_RANDOM_SEED"]
        if env.get("SCHEDULER_FULL_TIME_MAX_DAYS"):
            values["full_time_max_work_days"] = env["SCHEDULER_FULL_TIME_MAX_DAYS"]
        return cls.model_validate(values)
