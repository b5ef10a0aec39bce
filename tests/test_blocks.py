from datetime import datetime

import pytest
from openpyxl import Workbook

from biometric_dtr import datetime_utils
from biometric_dtr.blocks import BlockDiscovery, parse_day_number
from biometric_dtr.grid import WorksheetGrid
from biometric_dtr.policy import BlockLayoutPolicy

from sheets import write_block, write_captions


@pytest.fixture
def grid(block_workbook):
    return WorksheetGrid(block_workbook.active)


def test_global_fields(grid):
    fields = BlockDiscovery().extract_global_fields(grid)
    assert fields.attendance_date_range == "2025-03-01~2025-03-31"
    assert fields.tabling_date == "2025-04-02"
    assert fields.report_month == "2025-03"


def test_missing_date_range_uses_current_month(monkeypatch):
    monkeypatch.setattr(datetime_utils, "now_local", lambda: datetime(2024, 11, 5))
    wb = Workbook()
    ws = wb.active
    write_captions(ws, date_range=None)
    write_block(ws, 2, name="A", user_id="1")

    fields = BlockDiscovery().extract_global_fields(WorksheetGrid(ws))
    assert fields.attendance_date_range == ""
    assert fields.report_month == "2024-11"


def test_caption_without_range_keeps_its_neighbour(monkeypatch):
    monkeypatch.setattr(datetime_utils, "now_local", lambda: datetime(2024, 11, 5))
    wb = Workbook()
    ws = wb.active
    write_captions(ws, date_range=None)
    ws["A2"] = "Date range"
    ws["B2"] = "March 2025"
    write_block(ws, 2, name="A", user_id="1")

    fields = BlockDiscovery().extract_global_fields(WorksheetGrid(ws))
    assert fields.attendance_date_range == "March 2025"
    assert fields.report_month == "2024-11"


def test_blocks_partition_columns(grid):
    found = BlockDiscovery().discover(grid)

    assert [block.span for block in found.blocks] == ["B:P", "Q:AE"]
    assert [block.name for block in found.blocks] == ["Juan Dela Cruz", "Maria Santos"]
    assert [block.user_id for block in found.blocks] == ["1001", "1002"]
    assert [block.department for block in found.blocks] == ["Admin", "Finance"]


def test_last_block_extends_to_last_column(grid):
    anchors, max_anchor_row = BlockDiscovery().find_anchor_columns(grid)
    assert [column for column, _ in anchors] == [1, 16, 31]
    assert max_anchor_row == 3


def test_three_blocks_span_to_last_column():
    wb = Workbook()
    ws = wb.active
    write_captions(ws)
    write_block(ws, 2, name="Juan Dela Cruz", user_id="1001")
    write_block(ws, 17, name="Maria Santos", user_id="1002")
    write_block(ws, 32, name="Pedro Reyes", user_id="1003")
    grid = WorksheetGrid(ws)

    found = BlockDiscovery().discover(grid)
    assert [block.span for block in found.blocks] == ["B:P", "Q:AE", "AF:AR"]
    assert found.blocks[-1].end_column == grid.last_column
    assert found.skipped_blocks == []


def test_block_without_user_id_is_skipped(grid):
    found = BlockDiscovery().discover(grid)
    assert len(found.skipped_blocks) == 1
    assert "AF:" in found.skipped_blocks[0]
    assert "No Badge" in found.skipped_blocks[0]


def test_data_rows_follow_in_out_sub_headers(grid):
    block = BlockDiscovery().discover(grid).blocks[0]
    assert block.data_start_row == 5
    assert block.data_end_row == 9


def test_data_start_fallback_without_sub_headers():
    wb = Workbook()
    ws = wb.active
    write_captions(ws)
    write_block(ws, 2, name="A", user_id="1", sub_headers=False)
    grid = WorksheetGrid(ws)

    block = BlockDiscovery().discover(grid).blocks[0]
    assert block.data_start_row == 5

    policy = BlockLayoutPolicy().with_overrides({"data_start_fallback_offset": 3})
    block = BlockDiscovery(policy).discover(grid).blocks[0]
    assert block.data_start_row == 6


def test_sheet_without_anchor_yields_nothing():
    wb = Workbook()
    ws = wb.active
    ws["A1"] = "Summary"
    ws["B3"] = "Name"
    ws["C3"] = "Somebody"

    found = BlockDiscovery().discover(WorksheetGrid(ws))
    assert found.blocks == []


def test_read_day_records(grid):
    discovery = BlockDiscovery()
    block = discovery.discover(grid).blocks[0]
    records = discovery.read_day_records(grid, block, "2025-03")

    assert sorted(records) == [1, 2, 3, 4, 5]
    assert records[1].has_work_entries is False
    assert records[3].am_arrival == "08:15"
    assert records[3].pm_departure == "17:00"
    assert records[4].am_arrival == "08:00"
    assert records[5].late == "0:45"
    assert records[5].undertime == "1:30"
    assert records[5].overtime == ""


def test_read_day_records_skips_days_outside_month():
    wb = Workbook()
    ws = wb.active
    write_captions(ws, date_range="2025-02-01~2025-02-28")
    write_block(ws, 2, name="A", user_id="1", labels=["27 Thu", "28 Fri", "30 Sun"],
                days={3: {"am_arrival": "08:00"}})
    grid = WorksheetGrid(ws)
    discovery = BlockDiscovery()
    block = discovery.discover(grid).blocks[0]

    assert sorted(discovery.read_day_records(grid, block, "2025-02")) == [27, 28]


@pytest.mark.parametrize("value, expected", [
    ("05 Sat", 5),
    ("12", 12),
    (7, 7),
    (7.5, None),
    ("Total", None),
    (None, None),
])
def test_parse_day_number(value, expected):
    assert parse_day_number(value) == expected


def test_policy_rejects_incomplete_offsets():
    with pytest.raises(ValueError):
        BlockLayoutPolicy(field_offsets={"am_arrival": 1})
