"""
Daily metrics calculator.

A single pure function derives late, early-out, overtime, undertime, total
hours and remarks from one day's raw clock readings. Both export formats
and the report summary go through it.
"""

import logging
import re
from dataclasses import dataclass
from datetime import time
from typing import List, Optional

from config.settings import STANDARD_SHIFT

from biometric_dtr.datetime_utils import (
    format_duration,
    is_weekend,
    minutes_since_midnight,
    parse_time_of_day,
    round_minutes,
    weekday_name,
)
from biometric_dtr.models import DailyMetrics, RawDailyRecord, Undertime

logger = logging.getLogger(__name__)

UNDERTIME_SOURCE_PATTERN = re.compile(r'^(\d+):(\d+)$')


@dataclass(frozen=True)
class ShiftPolicy:
    """The fixed standard shift the metrics are measured against."""
    start_time: time
    end_time: time
    work_minutes: int
    daily_hours: float

    @classmethod
    def from_settings(cls, config: Optional[dict] = None) -> 'ShiftPolicy':
        config = config or STANDARD_SHIFT
        return cls(
            start_time=parse_time_of_day(config["start_time"]),
            end_time=parse_time_of_day(config["end_time"]),
            work_minutes=int(config["work_minutes"]),
            daily_hours=float(config["daily_hours"]),
        )


DEFAULT_SHIFT = ShiftPolicy.from_settings()


def _pair_minutes(arrival: Optional[time], departure: Optional[time]) -> float:
    """Minutes between an arrival and a departure, or 0 unless both exist and out > in."""
    if arrival is None or departure is None or departure <= arrival:
        return 0.0
    return minutes_since_midnight(departure) - minutes_since_midnight(arrival)


def _parse_source_undertime(value: str) -> Optional[Undertime]:
    if not value:
        return None

    match = UNDERTIME_SOURCE_PATTERN.match(value.strip())
    if not match:
        logger.debug(f"Ignoring unreadable undertime value from source: '{value}'")
        return None

    return Undertime.numeric(int(match.group(1)), int(match.group(2)))


def calculate_daily_metrics(record: RawDailyRecord, year: int, month: int, day: int,
                            shift: ShiftPolicy = DEFAULT_SHIFT) -> DailyMetrics:
    """
    Compute the attendance metrics for one day.

    Args:
        record: Raw clock readings (and optional source-computed values)
        year: Calendar year of the day
        month: 1-based month of the day
        day: Day of the month
        shift: Standard shift to measure against

    Returns:
        DailyMetrics for the day
    """
    am_in = parse_time_of_day(record.am_arrival)
    am_out = parse_time_of_day(record.am_departure)
    pm_in = parse_time_of_day(record.pm_arrival)
    pm_out = parse_time_of_day(record.pm_departure)
    ot_in = parse_time_of_day(record.ot_arrival)
    ot_out = parse_time_of_day(record.ot_departure)

    regular_minutes = _pair_minutes(am_in, am_out) + _pair_minutes(pm_in, pm_out)
    overtime_pair_minutes = _pair_minutes(ot_in, ot_out)
    worked_minutes = regular_minutes + overtime_pair_minutes
    has_work_entries = record.has_work_entries

    remarks: List[str] = []

    undertime = _parse_source_undertime(record.undertime)
    if undertime is None:
        if is_weekend(year, month, day):
            if has_work_entries:
                undertime = Undertime.not_applicable()
            else:
                undertime = Undertime.weekend(weekday_name(year, month, day))
        elif has_work_entries:
            shortfall = max(shift.work_minutes - regular_minutes, 0)
            short_hours, short_minutes = divmod(round_minutes(shortfall), 60)
            if short_hours or short_minutes:
                undertime = Undertime.numeric(short_hours, short_minutes)
            else:
                undertime = Undertime.not_applicable()
        else:
            undertime = Undertime.not_applicable()

    late = record.late
    if not late and am_in is not None:
        late_minutes = round_minutes(minutes_since_midnight(am_in) - minutes_since_midnight(shift.start_time))
        if late_minutes > 0:
            late = format_duration(late_minutes)
            remarks.append("Late")

    early_out = ""
    if pm_out is not None:
        early_minutes = round_minutes(minutes_since_midnight(shift.end_time) - minutes_since_midnight(pm_out))
        if early_minutes > 0:
            early_out = format_duration(early_minutes)
            remarks.append("Early Out")

    overtime = record.overtime
    if not overtime:
        excess = round_minutes(worked_minutes - shift.daily_hours * 60)
        if excess > 0:
            overtime = format_duration(excess)
            remarks.append("Overtime")

    total_hours = record.total_hours
    if not total_hours and has_work_entries and worked_minutes > 0:
        total_hours = format_duration(worked_minutes)

    return DailyMetrics(
        total_hours=total_hours,
        late=late,
        early_out=early_out,
        overtime=overtime,
        remarks=", ".join(remarks),
        undertime=undertime,
    )
