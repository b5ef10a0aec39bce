"""
Dense time cards and on-demand time summaries.

Both parsers and the report side build time cards the same way: one
record per calendar day, metrics recomputed from the raw readings, and an
empty raw record standing in for any day the source did not cover.
"""

import logging
from typing import Dict, List, Mapping, Optional

from biometric_dtr.datetime_utils import date_weekday_label, days_in_month, parse_month
from biometric_dtr.metrics import DEFAULT_SHIFT, ShiftPolicy, calculate_daily_metrics
from biometric_dtr.models import DayRecord, EmployeeAttendance, RawDailyRecord, TimeSummary

logger = logging.getLogger(__name__)


def build_time_card(records: Mapping[int, RawDailyRecord], year: int, month: int,
                    shift: ShiftPolicy = DEFAULT_SHIFT) -> List[DayRecord]:
    """
    Build the day 1..N time card for a month from sparse raw records.

    Args:
        records: Raw readings keyed by day of month; missing days are allowed
        year: Calendar year
        month: 1-based month
        shift: Standard shift for the metrics

    Returns:
        Exactly days_in_month(year, month) DayRecords, in day order
    """
    time_card = []
    for day in range(1, days_in_month(year, month) + 1):
        raw = records.get(day) or RawDailyRecord()
        time_card.append(DayRecord(
            day=day,
            date_weekday=date_weekday_label(year, month, day),
            raw=raw,
            metrics=calculate_daily_metrics(raw, year, month, day, shift),
        ))
    return time_card


def compute_time_summary(employee: Optional[EmployeeAttendance], month: Optional[str],
                         shift: ShiftPolicy = DEFAULT_SHIFT) -> TimeSummary:
    """
    Recalculate an employee's month independently of storage.

    Args:
        employee: Employee whose raw readings are used
        month: Month to lay out, 'YYYY-MM'

    Returns:
        TimeSummary with one entry per day of the month, or an empty summary
        when either argument is missing
    """
    if employee is None or not month:
        return TimeSummary()

    year, month_num = parse_month(month)
    if month != employee.month:
        logger.debug(f"Summarising {employee.name} ({employee.month}) as month {month}")

    raw_by_day: Dict[int, RawDailyRecord] = {record.day: record.raw for record in employee.time_card}
    time_card = build_time_card(raw_by_day, year, month_num, shift)
    return TimeSummary(time_summary=time_card, days_in_month=len(time_card))
