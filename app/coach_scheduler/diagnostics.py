"""Structured diagnostics collected while generating or checking a schedule."""

import logging
from enum import Enum
from typing import Iterator

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    """Diagnostic severity."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class Diagnostic(BaseModel):
    """One diagnostic record, attributable to a slot where it concerns one."""

    severity: Severity
    message: str
    store_id: str | None = None
    date_str: str | None = None
    shift_id: str | None = None
    coach_id: str | None = None

    @property
    def slot(self) -> tuple[str | None, str | None, str | None]:
        return (self.store_id, self.date_str, self.shift_id)

    def __str__(self) -> str:
        location = "/".join(part for part in self.slot if part)
        prefix = f"[{self.severity.value.upper()}]"
        return f"{prefix} {location}: {self.message}" if location else f"{prefix} {self.message}"


class DiagnosticLog:
    """Collects diagnostics and mirrors each one to a stdlib logger."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self.records: list[Diagnostic] = []
        self._log = log or logger

    def add(
        self,
        severity: Severity,
        message: str,
        *,
        store_id: str | None = None,
        date_str: str | None = None,
        shift_id: str | None = None,
        coach_id: str | None = None,
    ) -> Diagnostic:
        record = Diagnostic(
            severity=severity,
            message=message,
            store_id=store_id,
            date_str=date_str,
            shift_id=shift_id,
            coach_id=coach_id,
        )
        self.records.append(record)
        self._log.log(_LOG_LEVELS[severity], str(record))
        return record

    def info(self, message: str, **slot: str | None) -> Diagnostic:
        return self.add(Severity.INFO, message, **slot)

    def warning(self, message: str, **slot: str | None) -> Diagnostic:
        return self.add(Severity.WARNING, message, **slot)

    def error(self, message: str, **slot: str | None) -> Diagnostic:
        return self.add(Severity.ERROR, message, **slot)

    def warnings(self) -> list[Diagnostic]:
        return [r for r in self.records if r.severity == Severity.WARNING]

    def errors(self) -> list[Diagnostic]:
        return [r for r in self.records if r.severity == Severity.ERROR]

    def for_slot(self, store_id: str, date_str: str, shift_id: str) -> list[Diagnostic]:
        return [r for r in self.records if r.slot == (store_id, date_str, shift_id)]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)
