"""Data models for Abacus time tracking."""

import math
import os
from dataclasses import dataclass, field
from datetime import date as Date

from errors import EntryValidationError
from patterns import Patterns, parse_decimal


@dataclass
class TimeEntry:
    """A time entry to be written to Abacus."""

    project: str
    service_type: str
    hours: float
    date: str  # YYYY-MM-DD
    description: str = ""

    def __post_init__(self):
        if not isinstance(self.hours, (int, float)) or not math.isfinite(self.hours) or self.hours <= 0:
            raise EntryValidationError(f"Hours must be greater than 0 (got {self.hours})")
        invalid = EntryValidationError(f"Invalid date '{self.date}'. Expected YYYY-MM-DD")
        if not isinstance(self.date, str) or not Patterns.DATE_FORMAT.match(self.date):
            raise invalid
        try:
            Date.fromisoformat(self.date)
        except ValueError:
            raise invalid


@dataclass
class ExistingEntry:
    """A row scraped from the services grid.

    ``row_index`` is only meaningful together with ``generation``: it names a
    position in one particular render of the grid.
    """

    date: str  # DD.MM.YYYY
    project: str
    service_type: str
    text: str
    hours: str  # locale formatted, e.g. "8,00" or "8.00 STD"
    status: str
    row_index: int
    generation: int = 0

    @property
    def hours_value(self) -> float | None:
        """Hours as a number, or None if the cell could not be parsed."""
        return parse_decimal(self.hours)

    def same_row_content(self, other: "ExistingEntry") -> bool:
        return (self.date, self.project, self.service_type, self.hours, self.text) == (
            other.date,
            other.project,
            other.service_type,
            other.hours,
            other.text,
        )


@dataclass
class WeeklyReport:
    worked: float
    target: float
    difference: float


@dataclass
class SaldoData:
    overtime: float
    extra_time: float
    total: float


@dataclass
class VacationData:
    entitlement: float
    used: float
    remaining: float
    planned_by_year_end: float
    remaining_by_year_end: float


@dataclass
class MissingDay:
    date: str  # DD.MM.YYYY
    day_name: str


@dataclass
class StatusCache:
    """Snapshot of the last known weekly status, stored as status.json."""

    updated_at: str
    month: str  # MM.YYYY
    week_number: int
    monday: str
    friday: str
    worked: float
    target: float
    remaining: float
    missing_days: list[MissingDay] = field(default_factory=list)
    saldo: dict | None = None
    vacation: dict | None = None

    def to_dict(self) -> dict:
        return {
            "updatedAt": self.updated_at,
            "month": self.month,
            "weekNumber": self.week_number,
            "monday": self.monday,
            "friday": self.friday,
            "worked": self.worked,
            "target": self.target,
            "remaining": self.remaining,
            "missingDays": [{"date": d.date, "dayName": d.day_name} for d in self.missing_days],
            "saldo": self.saldo,
            "vacation": self.vacation,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StatusCache":
        return cls(
            updated_at=data["updatedAt"],
            month=data.get("month", ""),
            week_number=int(data["weekNumber"]),
            monday=data.get("monday", ""),
            friday=data.get("friday", ""),
            worked=float(data.get("worked", 0)),
            target=float(data.get("target", 0)),
            remaining=float(data.get("remaining", 0)),
            missing_days=[
                MissingDay(date=d["date"], day_name=d.get("dayName", ""))
                for d in data.get("missingDays") or []
            ],
            saldo=data.get("saldo"),
            vacation=data.get("vacation"),
        )


@dataclass
class BatchResult:
    created: int = 0
    skipped: int = 0


@dataclass
class AppConfig:
    """Resolved runtime configuration."""

    url: str
    locale: str
    headless: bool
    semi_manual: bool
    debug: bool
    config_dir: str
    sources: dict[str, str] = field(default_factory=dict)

    @property
    def config_file(self) -> str:
        return os.path.join(self.config_dir, "config.json")

    @property
    def state_path(self) -> str:
        return os.path.join(self.config_dir, "state.json")

    @property
    def status_cache_path(self) -> str:
        return os.path.join(self.config_dir, "status.json")

    @property
    def aliases_path(self) -> str:
        return os.path.join(self.config_dir, "aliases.json")

    @property
    def refresh_log_path(self) -> str:
        return os.path.join(self.config_dir, "refresh.log")

    @property
    def lock_path(self) -> str:
        return os.path.join(self.config_dir, "session.lock")


# ---------------------------------------------------------------------------
# Operation outcomes
# ---------------------------------------------------------------------------


@dataclass
class Success:
    value: object = None


@dataclass
class CaptchaRequired:
    url: str = ""


@dataclass
class Failure:
    error: BaseException

