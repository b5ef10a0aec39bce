"""
Data models for the Biometric DTR Loader.

This module contains the core data structures used throughout the application
for representing raw clock readings, computed daily metrics and employee
attendance time cards.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
import json
from enum import Enum

from biometric_dtr.datetime_utils import days_in_month, parse_month


RAW_TIME_FIELDS = (
    "am_arrival",
    "am_departure",
    "pm_arrival",
    "pm_departure",
    "ot_arrival",
    "ot_departure",
)

SOURCE_FIELDS = (
    "late",
    "undertime",
    "overtime",
    "total_hours",
)


class UndertimeKind(Enum):
    """Enumeration of the shapes an undertime value can take."""
    NUMERIC = "NUMERIC"
    WEEKEND = "WEEKEND"
    NOT_APPLICABLE = "NOT_APPLICABLE"


@dataclass(frozen=True)
class Undertime:
    """
    Undertime for one day.

    Either a numeric shortfall against the standard workday, a weekend
    marker carrying the day name, or nothing at all. The two text columns
    used by storage and reports are derived from it, never the reverse.
    """
    kind: UndertimeKind = UndertimeKind.NOT_APPLICABLE
    hours: int = 0
    minutes: int = 0
    day_name: str = ""

    @classmethod
    def numeric(cls, hours: int, minutes: int) -> 'Undertime':
        return cls(UndertimeKind.NUMERIC, hours=hours, minutes=minutes)

    @classmethod
    def weekend(cls, day_name: str) -> 'Undertime':
        return cls(UndertimeKind.WEEKEND, day_name=day_name)

    @classmethod
    def not_applicable(cls) -> 'Undertime':
        return cls()

    @property
    def hours_text(self) -> str:
        if self.kind == UndertimeKind.NUMERIC:
            return str(self.hours)
        if self.kind == UndertimeKind.WEEKEND:
            return self.day_name
        return ""

    @property
    def minutes_text(self) -> str:
        if self.kind == UndertimeKind.NUMERIC:
            return str(self.minutes)
        if self.kind == UndertimeKind.WEEKEND:
            return self.day_name
        return ""

    @property
    def total_minutes(self) -> int:
        """Minutes short of the workday; zero unless numeric."""
        if self.kind == UndertimeKind.NUMERIC:
            return self.hours * 60 + self.minutes
        return 0

    @classmethod
    def from_texts(cls, hours_text: str, minutes_text: str) -> 'Undertime':
        """Rebuild an undertime value from its two stored text columns."""
        hours_text = (hours_text or "").strip()
        minutes_text = (minutes_text or "").strip()

        if not hours_text and not minutes_text:
            return cls.not_applicable()

        if hours_text.isdigit() and minutes_text.isdigit():
            return cls.numeric(int(hours_text), int(minutes_text))

        if hours_text and hours_text == minutes_text:
            return cls.weekend(hours_text)

        return cls.not_applicable()


@dataclass
class RawDailyRecord:
    """
    Clock readings for one employee on one day, as found in the source file.

    The four source fields hold values the terminal export already
    computed; when non-empty they replace the calculator's own value for
    that field only.
    """
    am_arrival: str = ""
    am_departure: str = ""
    pm_arrival: str = ""
    pm_departure: str = ""
    ot_arrival: str = ""
    ot_departure: str = ""
    late: str = ""
    undertime: str = ""
    overtime: str = ""
    total_hours: str = ""

    @property
    def has_work_entries(self) -> bool:
        """True if any of the six clock readings is non-empty."""
        return any(getattr(self, name) for name in RAW_TIME_FIELDS)

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in RAW_TIME_FIELDS + SOURCE_FIELDS}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RawDailyRecord':
        return cls(**{name: str(data.get(name) or "") for name in RAW_TIME_FIELDS + SOURCE_FIELDS})


@dataclass
class DailyMetrics:
    """Attendance fields derived from one day's raw record."""
    total_hours: str = ""
    late: str = ""
    early_out: str = ""
    overtime: str = ""
    remarks: str = ""
    undertime: Undertime = field(default_factory=Undertime.not_applicable)

    @property
    def undertime_hours(self) -> str:
        return self.undertime.hours_text

    @property
    def undertime_minutes(self) -> str:
        return self.undertime.minutes_text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_hours": self.total_hours,
            "late": self.late,
            "early_out": self.early_out,
            "overtime": self.overtime,
            "remarks": self.remarks,
            "undertime_hours": self.undertime_hours,
            "undertime_minutes": self.undertime_minutes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DailyMetrics':
        return cls(
            total_hours=data.get("total_hours") or "",
            late=data.get("late") or "",
            early_out=data.get("early_out") or "",
            overtime=data.get("overtime") or "",
            remarks=data.get("remarks") or "",
            undertime=Undertime.from_texts(
                data.get("undertime_hours") or "", data.get("undertime_minutes") or ""
            ),
        )


@dataclass
class DayRecord:
    """
    One row of an employee's time card: the day, its raw readings and metrics.
    """
    day: int
    date_weekday: str
    raw: RawDailyRecord
    metrics: DailyMetrics

    def to_dict(self) -> Dict[str, Any]:
        """Flatten to the row shape used by storage and reports."""
        data: Dict[str, Any] = {"day": self.day, "date_weekday": self.date_weekday}
        data.update({name: getattr(self.raw, name) for name in RAW_TIME_FIELDS})
        data.update(self.metrics.to_dict())
        data["source"] = {name: getattr(self.raw, name) for name in SOURCE_FIELDS}
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DayRecord':
        raw_data = {name: data.get(name) for name in RAW_TIME_FIELDS}
        raw_data.update(data.get("source") or {})
        return cls(
            day=int(data["day"]),
            date_weekday=data.get("date_weekday") or "",
            raw=RawDailyRecord.from_dict(raw_data),
            metrics=DailyMetrics.from_dict(data),
        )


@dataclass
class EmployeeAttendance:
    """
    A month of attendance for one employee.

    The time card always holds one record per calendar day of ``month``,
    numbered 1..N in order; downstream reports index it by day number.
    """
    user_id: str
    name: str
    month: str
    time_card: List[DayRecord]
    department: str = ""
    attendance_date_range: str = ""
    tabling_date: str = ""

    def __post_init__(self):
        """Validate data after initialization."""
        self._validate()

    def _validate(self):
        """Validate the employee attendance data."""
        if not self.user_id or not self.user_id.strip():
            raise ValueError("Employee user ID cannot be empty")

        if not self.name or not self.name.strip():
            raise ValueError("Employee name cannot be empty")

        year, month_num = parse_month(self.month)
        expected_days = days_in_month(year, month_num)

        if len(self.time_card) != expected_days:
            raise ValueError(
                f"Time card for {self.name} ({self.month}) has {len(self.time_card)} days, "
                f"expected {expected_days}"
            )

        for index, record in enumerate(self.time_card, start=1):
            if record.day != index:
                raise ValueError(
                    f"Time card for {self.name} ({self.month}) is not contiguous: "
                    f"position {index} holds day {record.day}"
                )

    @property
    def key(self) -> tuple:
        """Composite identity used by persistence."""
        return (self.user_id, self.name, self.month)

    @property
    def days_in_month(self) -> int:
        return len(self.time_card)

    def get_day(self, day: int) -> Optional[DayRecord]:
        """Get the record for a day number, or None when out of range."""
        if 1 <= day <= len(self.time_card):
            return self.time_card[day - 1]
        return None

    def get_total_undertime_minutes(self) -> int:
        """Sum of numeric undertime across the month."""
        return sum(record.metrics.undertime.total_minutes for record in self.time_card)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the employee attendance to a dictionary for serialization."""
        return {
            "user_id": self.user_id,
            "name": self.name,
            "department": self.department,
            "month": self.month,
            "attendance_date_range": self.attendance_date_range,
            "tabling_date": self.tabling_date,
            "time_card": [record.to_dict() for record in self.time_card],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EmployeeAttendance':
        """Create an EmployeeAttendance from a dictionary."""
        return cls(
            user_id=data["user_id"],
            name=data["name"],
            department=data.get("department") or "",
            month=data["month"],
            attendance_date_range=data.get("attendance_date_range") or "",
            tabling_date=data.get("tabling_date") or "",
            time_card=[DayRecord.from_dict(record) for record in data["time_card"]],
        )

    def to_json(self) -> str:
        """Convert the employee attendance to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> 'EmployeeAttendance':
        """Create an EmployeeAttendance from a JSON string."""
        data = json.loads(json_str)
        return cls.from_dict(data)


@dataclass
class TimeSummary:
    """Recomputed day-by-day view of an employee's month for reports."""
    time_summary: List[DayRecord] = field(default_factory=list)
    days_in_month: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time_summary": [record.to_dict() for record in self.time_summary],
            "days_in_month": self.days_in_month,
        }
