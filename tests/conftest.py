"""Shared fixtures: export workbooks and a throwaway attendance store."""

from datetime import datetime, time

import pytest
from openpyxl import Workbook

from biometric_dtr.store import SQLiteAttendanceStore

from sheets import write_block, write_captions


@pytest.fixture
def block_workbook():
    """Three blocks at B, Q and AF; the third has no User ID."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Att.log report"
    write_captions(ws)

    write_block(ws, 2, name="Juan Dela Cruz", user_id="1001", dept="Admin", days={
        3: {"am_arrival": "08:15", "am_departure": "12:00", "pm_arrival": "13:00", "pm_departure": "17:00"},
        4: {"am_arrival": time(8, 0), "am_departure": "12:00", "pm_arrival": "13:00", "pm_departure": "17:30"},
        5: {"am_arrival": "08:45", "am_departure": "12:00", "pm_arrival": "13:00", "pm_departure": "17:00",
            "late": "0:45", "undertime": "1:30"},
    })
    write_block(ws, 17, name="Maria Santos", user_id="1002", dept="Finance", days={
        3: {"am_arrival": "08:00", "am_departure": "12:00", "pm_arrival": "13:00", "pm_departure": "16:00"},
    })
    write_block(ws, 32, name="No Badge", dept="Admin", days={
        3: {"am_arrival": "08:00"},
    })
    return wb


@pytest.fixture
def block_file(tmp_path, block_workbook):
    path = tmp_path / "march_block.xlsx"
    block_workbook.save(path)
    return str(path)


@pytest.fixture
def simple_workbook():
    wb = Workbook()
    ws = wb.active
    ws.title = "Clock Events"
    ws.append(["Name", "Date", "Timetable", "Clock In", "Clock Out"])
    ws.append(["Ana Reyes", "03/03/2025", "AM", "08:10", "12:00"])
    ws.append(["Ana Reyes", "03/03/2025", "PM", "13:00", "17:00"])
    ws.append(["Ana Reyes", datetime(2025, 3, 4), "am", time(8, 0), time(12, 0)])
    ws.append(["Ana Reyes", "2025-03-05", "OT", "18:00", "20:00"])
    ws.append([None, "03/03/2025", "AM", "08:00", "12:00"])
    ws.append(["Ana Reyes", "31/02/2025", "AM", "08:00", "12:00"])
    ws.append(["Ben Cruz", "01/04/2025", "PM", "13:00", "17:00"])
    ws.append(["Ana Reyes", "06/03/2025", "LUNCH", "12:00", "13:00"])
    return wb


@pytest.fixture
def simple_file(tmp_path, simple_workbook):
    path = tmp_path / "clock_events.xlsx"
    simple_workbook.save(path)
    return str(path)


@pytest.fixture
def store(tmp_path):
    attendance_store = SQLiteAttendanceStore(tmp_path / "dtr.db")
    yield attendance_store
    attendance_store.close()
