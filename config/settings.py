"""
Configuration settings for the Biometric DTR Loader.

This module contains application configuration constants and settings
that can be adjusted for different environments or terminal export layouts.
"""

# File Processing Configuration
SUPPORTED_FILE_EXTENSIONS = ['.xlsx', '.xlsm']

# Persistence Configuration
DATABASE_PATH = 'dtr.db'  # Overridden by DTR_DATABASE_PATH

# Logging Configuration
LOG_LEVEL = 'INFO'  # Overridden by DTR_LOG_LEVEL

# Standard shift used by the daily metrics calculator
STANDARD_SHIFT = {
    "start_time": "08:00",  # Arrivals after this are late
    "end_time": "17:00",  # Departures before this are early outs
    "work_minutes": 480,  # AM + PM minutes expected on a weekday
    "daily_hours": 8,  # Worked hours above this count as overtime
}

# Block (multi-employee) export layout
BLOCK_LAYOUT_CONFIG = {
    "day_anchor_label": 'Date/Weekday',  # Matches "Date" or "Date/Weekday"
    "attendance_date_label": 'Date',  # Prefix of the attendance date range caption
    "tabling_date_label": 'Tabling date:',  # Prefix of the tabling date caption
    "name_label": 'Name',
    "user_id_label": 'User ID',
    "department_label": 'Dept.',
    "sub_header_labels": ['In', 'Out'],
    "header_search_start_row": 0,  # 0-based
    "header_search_end_row": 100,  # 0-based, inclusive
    "sub_header_window": 5,  # Rows below the lowest day anchor searched for In/Out
    "data_start_fallback_offset": 2,  # Rows below the day anchor when no In/Out is found
    "max_sheets": 20,  # Worksheets scanned per workbook
    # Column offsets relative to the day-anchor column
    "field_offsets": {
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
    },
}

# Simple (one row per clock event) export layout
SIMPLE_FORMAT_CONFIG = {
    "header_row": 1,  # 1-based, as openpyxl counts rows
    "header_scan_columns": 26,  # Columns A-Z
    "name_header": 'Name',
    "date_header": 'Date',
    "timetable_header": 'Timetable',
    "clock_in_header": 'Clock In',
    "clock_out_header": 'Clock Out',
    # Tried in order after DD/MM/YYYY; never month-first
    "date_fallback_formats": ['%Y-%m-%d'],
}
