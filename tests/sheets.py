"""Builders for small worksheets shaped like real terminal exports."""

from datetime import datetime

# 1-based column offsets from the day anchor
OFFSETS = {
    "am_arrival": 1,
    "am_departure": 3,
    "pm_arrival": 6,
    "pm_departure": 8,
    "ot_arrival": 10,
    "ot_departure": 12,
    "late": 13,
    "undertime": 14,
    "overtime": 19,
    "total_hours": 20,
}

MARCH_2025_LABELS = ["01 Sat", "02 Sun", "03 Mon", "04 Tue", "05 Wed"]


def write_block(ws, anchor_col, name=None, user_id=None, dept=None, days=None,
                labels=MARCH_2025_LABELS, anchor_row=4, sub_headers=True):
    """Write one employee block with its anchor at (anchor_row, anchor_col), 1-based."""
    header_row = anchor_row - 1
    if dept is not None:
        ws.cell(row=header_row, column=anchor_col, value="Dept.")
        ws.cell(row=header_row, column=anchor_col + 1, value=dept)
    if name is not None:
        ws.cell(row=header_row, column=anchor_col + 3, value="Name")
        ws.cell(row=header_row, column=anchor_col + 4, value=name)
    if user_id is not None:
        ws.cell(row=header_row, column=anchor_col + 7, value="User ID")
        ws.cell(row=header_row, column=anchor_col + 8, value=user_id)

    ws.cell(row=anchor_row, column=anchor_col, value="Date/Weekday")
    ws.cell(row=anchor_row, column=anchor_col + 1, value="Before Noon")
    ws.cell(row=anchor_row, column=anchor_col + 6, value="After Noon")

    if sub_headers:
        for offset in (1, 6, 10):
            ws.cell(row=anchor_row + 1, column=anchor_col + offset, value="In")
            ws.cell(row=anchor_row + 1, column=anchor_col + offset + 2, value="Out")

    # With no In/Out row the first day sits two rows below the anchor
    first_data_row = anchor_row + 2
    days = days or {}
    for index, label in enumerate(labels):
        row = first_data_row + index
        ws.cell(row=row, column=anchor_col, value=label)
        for field, value in days.get(index + 1, {}).items():
            ws.cell(row=row, column=anchor_col + OFFSETS[field], value=value)


def write_captions(ws, date_range="2025-03-01~2025-03-31", tabling_date=datetime(2025, 4, 2)):
    ws["A1"] = "Attendance Record Report"
    if date_range is not None:
        ws["A2"] = "Date"
        ws["B2"] = date_range
    if tabling_date is not None:
        ws["D2"] = "Tabling date:"
        ws["E2"] = tabling_date


