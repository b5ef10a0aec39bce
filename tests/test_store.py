import sqlite3

import pytest

from biometric_dtr.models import EmployeeAttendance, RawDailyRecord
from biometric_dtr.parsers import BlockFormatParser
from biometric_dtr.store import SQLiteAttendanceStore, StoreError
from biometric_dtr.summary import build_time_card


def count_rows(store, table):
    return store.connection.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


def employee(name="Juan Dela Cruz", user_id="1001", month="2025-03", records=None, department="Admin"):
    year, month_num = (int(part) for part in month.split("-"))
    return EmployeeAttendance(
        user_id=user_id,
        name=name,
        department=department,
        month=month,
        time_card=build_time_card(records or {}, year, month_num),
    )


def test_save_and_query_round_trip(store, block_workbook):
    parsed = BlockFormatParser().parse_workbook(block_workbook).employees
    store.save_all(parsed)

    stored = store.query_employees()
    assert [e.to_dict() for e in stored] == [e.to_dict() for e in parsed]


def test_only_days_with_readings_are_written(store, block_workbook):
    store.save_all(BlockFormatParser().parse_workbook(block_workbook).employees)

    # Juan: days 3, 4, 5; Maria: day 3
    assert count_rows(store, "employees") == 2
    assert count_rows(store, "time_records") == 4


def test_reload_replaces_day_records(store, block_workbook):
    parsed = BlockFormatParser().parse_workbook(block_workbook).employees
    store.save_all(parsed)
    store.save_all(parsed)

    assert count_rows(store, "employees") == 2
    assert count_rows(store, "time_records") == 4


def test_upsert_updates_header_fields(store):
    first_id = store.upsert_employee(employee(department="Admin"))
    second_id = store.upsert_employee(employee(department="Finance"))

    assert first_id == second_id
    assert store.find_employee("1001", "Juan Dela Cruz", "2025-03") == first_id
    assert store.query_employees()[0].department == "Finance"


def test_employee_identity_includes_month(store):
    store.save_all([employee(month="2025-03"), employee(month="2025-04")])

    assert count_rows(store, "employees") == 2
    assert store.find_employee("1001", "Juan Dela Cruz", "2025-05") is None


def test_query_filters(store):
    store.save_all([
        employee(),
        employee(name="Maria Santos", user_id="1002"),
        employee(name="Maria Santos", user_id="1002", month="2025-04"),
    ])

    assert [e.name for e in store.query_employees(name_filter="dela")] == ["Juan Dela Cruz"]
    assert [e.month for e in store.query_employees(name_filter="MARIA")] == ["2025-03", "2025-04"]
    assert [e.name for e in store.query_employees(month_filter="2025-04")] == ["Maria Santos"]
    assert store.query_employees(name_filter="maria", month_filter="2025-05") == []


def test_name_filter_matches_wildcards_literally(store):
    store.save_all([
        employee(name="a_b", user_id="1"),
        employee(name="axb", user_id="2"),
        employee(name="100% Reyes", user_id="3"),
    ])

    assert [e.name for e in store.query_employees(name_filter="a_b")] == ["a_b"]
    assert [e.name for e in store.query_employees(name_filter="%")] == ["100% Reyes"]
    assert [e.name for e in store.query_employees(name_filter="0% r")] == ["100% Reyes"]


def test_absent_days_are_default_filled(store):
    store.save_all([employee(records={
        3: RawDailyRecord(am_arrival="08:00", am_departure="12:00"),
    })])

    stored = store.query_employees()[0]
    assert len(stored.time_card) == 31
    assert stored.get_day(1).metrics.undertime_hours == "Saturday"
    assert stored.get_day(2).date_weekday == "02 Sun"
    assert stored.get_day(3).raw.am_arrival == "08:00"
    assert stored.get_day(3).metrics.undertime_hours == "4"


def test_source_values_survive_storage(store):
    store.save_all([employee(records={6: RawDailyRecord(undertime="0:30")})])

    day = store.query_employees()[0].get_day(6)
    assert day.raw.undertime == "0:30"
    assert day.metrics.undertime_minutes == "30"


def test_failed_batch_is_rolled_back(store, monkeypatch):
    calls = []

    def failing_replace(employee_id, time_card):
        calls.append(employee_id)
        if len(calls) == 2:
            raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(store, "replace_day_records", failing_replace)

    with pytest.raises(StoreError):
        store.save_all([employee(), employee(name="Maria Santos", user_id="1002")])

    assert count_rows(store, "employees") == 0


def test_keys_listing(store):
    store.save_all([employee(name="Maria Santos", user_id="1002"), employee()])
    assert store.list_employee_keys() == [
        ("1001", "Juan Dela Cruz", "2025-03"),
        ("1002", "Maria Santos", "2025-03"),
    ]


def test_data_persists_across_connections(tmp_path):
    path = tmp_path / "dtr.db"
    with SQLiteAttendanceStore(path) as first:
        first.save_all([employee()])

    with SQLiteAttendanceStore(path) as second:
        assert [e.key for e in second.query_employees()] == [("1001", "Juan Dela Cruz", "2025-03")]
