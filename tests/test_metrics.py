from biometric_dtr.metrics import DEFAULT_SHIFT, ShiftPolicy, calculate_daily_metrics
from biometric_dtr.models import RawDailyRecord, UndertimeKind

# 2025-03-01 is a Saturday, 2025-03-03 a Monday
MONDAY = (2025, 3, 3)
SATURDAY = (2025, 3, 1)


def full_day(**overrides):
    times = {"am_arrival": "08:00", "am_departure": "12:00", "pm_arrival": "13:00", "pm_departure": "17:00"}
    times.update(overrides)
    return RawDailyRecord(**times)


def test_default_shift_from_settings():
    assert DEFAULT_SHIFT.start_time.hour == 8
    assert DEFAULT_SHIFT.end_time.hour == 17
    assert DEFAULT_SHIFT.work_minutes == 480


def test_regular_day_has_nothing_to_report():
    metrics = calculate_daily_metrics(full_day(), *MONDAY)

    assert metrics.total_hours == "8h 00m"
    assert metrics.late == ""
    assert metrics.early_out == ""
    assert metrics.overtime == ""
    assert metrics.remarks == ""
    assert metrics.undertime.kind == UndertimeKind.NOT_APPLICABLE
    assert metrics.undertime_hours == ""


def test_late_arrival():
    metrics = calculate_daily_metrics(full_day(am_arrival="08:15"), *MONDAY)

    assert metrics.late == "0h 15m"
    assert metrics.remarks == "Late"
    assert metrics.undertime_hours == "0"
    assert metrics.undertime_minutes == "15"
    assert metrics.total_hours == "7h 45m"


def test_early_out():
    metrics = calculate_daily_metrics(full_day(pm_departure="16:30"), *MONDAY)

    assert metrics.early_out == "0h 30m"
    assert metrics.remarks == "Early Out"
    assert metrics.undertime.total_minutes == 30


def test_overtime_from_longer_afternoon():
    metrics = calculate_daily_metrics(full_day(pm_departure="17:30"), *MONDAY)

    assert metrics.overtime == "0h 30m"
    assert metrics.remarks == "Overtime"
    assert metrics.total_hours == "8h 30m"


def test_ot_pair_counts_toward_overtime_not_undertime():
    metrics = calculate_daily_metrics(full_day(pm_departure="16:00", ot_arrival="18:00", ot_departure="20:00"), *MONDAY)

    assert metrics.overtime == "1h 00m"
    assert metrics.undertime_hours == "1"
    assert metrics.undertime_minutes == "0"
    assert metrics.remarks == "Early Out, Overtime"


def test_remarks_order():
    metrics = calculate_daily_metrics(
        full_day(am_arrival="08:30", pm_departure="16:00", ot_arrival="17:00", ot_departure="20:00"), *MONDAY
    )
    assert metrics.remarks == "Late, Early Out, Overtime"


def test_afternoon_only_and_pm_clock_text():
    record = RawDailyRecord(pm_arrival="1:00 PM", pm_departure="5:00 PM")
    metrics = calculate_daily_metrics(record, *MONDAY)

    assert metrics.late == ""
    assert metrics.total_hours == "4h 00m"
    assert metrics.undertime_hours == "4"


def test_departure_before_arrival_counts_nothing():
    record = RawDailyRecord(am_arrival="12:00", am_departure="08:00")
    metrics = calculate_daily_metrics(record, *MONDAY)

    assert metrics.total_hours == ""
    assert metrics.undertime_hours == "8"
    assert metrics.undertime_minutes == "0"


def test_empty_weekday():
    metrics = calculate_daily_metrics(RawDailyRecord(), *MONDAY)

    assert metrics.total_hours == ""
    assert metrics.remarks == ""
    assert metrics.undertime.kind == UndertimeKind.NOT_APPLICABLE


def test_empty_weekend_carries_day_name():
    metrics = calculate_daily_metrics(RawDailyRecord(), *SATURDAY)

    assert metrics.undertime.kind == UndertimeKind.WEEKEND
    assert metrics.undertime_hours == "Saturday"
    assert metrics.undertime_minutes == "Saturday"
    assert metrics.undertime.total_minutes == 0


def test_weekend_work_has_no_undertime():
    metrics = calculate_daily_metrics(RawDailyRecord(am_arrival="09:00", am_departure="12:00"), *SATURDAY)

    assert metrics.undertime.kind == UndertimeKind.NOT_APPLICABLE
    assert metrics.late == "1h 00m"
    assert metrics.total_hours == "3h 00m"


def test_source_values_take_precedence():
    record = full_day(am_arrival="08:45", late="0:45", undertime="1:30", overtime="2:00", total_hours="9:00")
    metrics = calculate_daily_metrics(record, *MONDAY)

    assert metrics.late == "0:45"
    assert metrics.overtime == "2:00"
    assert metrics.total_hours == "9:00"
    assert metrics.undertime_hours == "1"
    assert metrics.undertime_minutes == "30"
    assert "Late" not in metrics.remarks


def test_source_undertime_overrides_weekend_marker():
    metrics = calculate_daily_metrics(RawDailyRecord(undertime="0:20"), *SATURDAY)
    assert metrics.undertime.kind == UndertimeKind.NUMERIC
    assert metrics.undertime.total_minutes == 20


def test_unreadable_source_undertime_is_recomputed():
    metrics = calculate_daily_metrics(full_day(am_arrival="08:10", undertime="n/a"), *MONDAY)
    assert metrics.undertime_hours == "0"
    assert metrics.undertime_minutes == "10"


def test_seconds_round_to_minutes():
    metrics = calculate_daily_metrics(full_day(am_arrival="08:00:40"), *MONDAY)
    assert metrics.late == "0h 01m"


def test_half_minute_late_rounds_up():
    metrics = calculate_daily_metrics(full_day(am_arrival="08:00:30"), *MONDAY)

    assert metrics.late == "0h 01m"
    assert metrics.remarks == "Late"
    assert metrics.undertime_hours == "0"
    assert metrics.undertime_minutes == "1"


def test_seconds_under_half_a_minute_are_not_late():
    metrics = calculate_daily_metrics(full_day(am_arrival="08:00:20"), *MONDAY)

    assert metrics.late == ""
    assert metrics.remarks == ""
    assert metrics.undertime.kind == UndertimeKind.NOT_APPLICABLE


def test_custom_shift():
    shift = ShiftPolicy.from_settings({
        "start_time": "09:00",
        "end_time": "18:00",
        "work_minutes": 480,
        "daily_hours": 8,
    })
    record = RawDailyRecord(am_arrival="09:00", am_departure="13:00", pm_arrival="14:00", pm_departure="18:00")
    metrics = calculate_daily_metrics(record, *MONDAY, shift=shift)

    assert metrics.late == ""
    assert metrics.early_out == ""
    assert metrics.undertime.kind == UndertimeKind.NOT_APPLICABLE
