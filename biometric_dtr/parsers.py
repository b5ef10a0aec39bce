"""
File parser interfaces and implementations for the Biometric DTR Loader.

This module defines the abstract base class for file parsers and provides
concrete implementations for the two terminal export layouts: the block
layout (one column group per employee, repeated across the sheet) and the
simple layout (one row per clock event).
"""

import logging
from abc import ABC, abstractmethod
from collections import OrderedDict
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import openpyxl
from openpyxl.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from config.settings import SIMPLE_FORMAT_CONFIG, SUPPORTED_FILE_EXTENSIONS

from biometric_dtr.blocks import BlockDiscovery
from biometric_dtr.datetime_utils import format_month, parse_date_text, parse_month, render_date_value, render_time_value
from biometric_dtr.detector import DocumentFormat
from biometric_dtr.grid import WorksheetGrid
from biometric_dtr.metrics import DEFAULT_SHIFT, ShiftPolicy
from biometric_dtr.models import EmployeeAttendance, RawDailyRecord
from biometric_dtr.policy import BlockLayoutPolicy
from biometric_dtr.summary import build_time_card

logger = logging.getLogger(__name__)


class WorkbookReadError(ValueError):
    """The workbook could not be opened or parsed."""
    pass


class UnsupportedFileError(WorkbookReadError):
    """The file extension is not a supported spreadsheet format."""
    pass


class LoadResult:
    """
    Standard result format returned by all file parsers.

    Holds the employees found plus diagnostics about what was skipped, so
    the caller can report partial success.
    """

    def __init__(self, file_format: DocumentFormat, source_file: str = "",
                 employees: Optional[List[EmployeeAttendance]] = None):
        self.file_format = file_format
        self.source_file = source_file
        self.employees = employees or []
        self.warnings: List[str] = []
        self.parsed_sheets: List[str] = []
        self.skipped_sheets: List[str] = []
        self.parsed_at = datetime.now()

    def add_warning(self, message: str) -> None:
        """Add a diagnostic message about a skipped block, row or sheet."""
        self.warnings.append(message)

    @property
    def total_days(self) -> int:
        return sum(len(employee.time_card) for employee in self.employees)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the result to a dictionary."""
        return {
            "file_format": self.file_format.value,
            "employees": [employee.to_dict() for employee in self.employees],
            "metadata": {
                "source_file": self.source_file,
                "parsed_at": self.parsed_at.isoformat(),
                "total_employees": len(self.employees),
                "total_days": self.total_days,
                "parsed_sheets": self.parsed_sheets,
                "skipped_sheets": self.skipped_sheets,
                "warnings": self.warnings,
            },
        }


class FileParser(ABC):
    """
    Abstract base class for file parsers.

    This class defines the interface that all file parsers must implement
    and holds the file and workbook handling they share.
    """

    def __init__(self, shift: ShiftPolicy = DEFAULT_SHIFT):
        self.shift = shift

    @abstractmethod
    def parse_workbook(self, workbook: Workbook, source_file: str = "") -> LoadResult:
        """
        Parse an already opened workbook.

        Args:
            workbook: Workbook loaded with data_only=True
            source_file: Path used in diagnostics

        Returns:
            LoadResult with every employee found
        """
        pass

    def parse(self, file_path: str) -> LoadResult:
        """
        Parse the file and return structured data.

        Args:
            file_path: Path to the file to parse

        Returns:
            LoadResult with every employee found

        Raises:
            FileNotFoundError: If the file doesn't exist
            WorkbookReadError: If the file cannot be read as a workbook
        """
        workbook = self.open_workbook(file_path)
        try:
            return self.parse_workbook(workbook, file_path)
        finally:
            workbook.close()

    def open_workbook(self, file_path: str) -> Workbook:
        """Check the file and open it with cached cell values; the caller closes it."""
        self._validate_file_exists(file_path)
        return self._load_excel_workbook(file_path)

    def _validate_file_exists(self, file_path: str) -> None:
        """
        Validate that the file exists, is readable and has a supported extension.

        Raises:
            FileNotFoundError: If the file doesn't exist
            PermissionError: If the file cannot be read
            UnsupportedFileError: If the extension is not supported
        """
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        if not path.is_file():
            raise ValueError(f"Path is not a file: {file_path}")

        if path.suffix.lower() not in SUPPORTED_FILE_EXTENSIONS:
            raise UnsupportedFileError(
                f"Unsupported file type '{path.suffix}' for {file_path}; "
                f"expected one of {', '.join(SUPPORTED_FILE_EXTENSIONS)}"
            )

        # Try to open the file to check permissions
        try:
            with open(file_path, 'rb') as f:
                f.read(1)
        except PermissionError:
            raise PermissionError(f"Cannot read file: {file_path}")

    def _load_excel_workbook(self, file_path: str) -> Workbook:
        """
        Load an Excel workbook from the given file path.

        Raises:
            WorkbookReadError: If the file is not a valid Excel file
        """
        try:
            return openpyxl.load_workbook(file_path, data_only=True)
        except Exception as e:
            raise WorkbookReadError(f"Invalid Excel file format: {file_path}. Error: {str(e)}") from e

    def first_worksheet(self, workbook: Workbook) -> Worksheet:
        """
        Get the first worksheet from the workbook.

        Raises:
            WorkbookReadError: If the workbook has no worksheets
        """
        if not workbook.worksheets:
            raise WorkbookReadError("Workbook contains no worksheets")

        return workbook.worksheets[0]

    def _cell_value_to_string(self, cell_value: Any) -> str:
        """Convert a cell value to a string, handling None."""
        if cell_value is None:
            return ""

        return str(cell_value).strip()

    def _get_column_mapping(self, worksheet: Worksheet, header_row: int,
                            expected_headers: List[str]) -> Dict[str, int]:
        """
        Create a mapping from header names to column numbers.

        Args:
            worksheet: The Excel worksheet
            header_row: Row number containing the headers (1-based)
            expected_headers: List of expected header names

        Returns:
            Dictionary mapping header names to column numbers (1-based)
        """
        column_mapping = {}
        expected_lower = {header.lower(): header for header in expected_headers}

        for col_num in range(1, worksheet.max_column + 1):
            cell_value = worksheet.cell(row=header_row, column=col_num).value
            header_name = self._cell_value_to_string(cell_value).lower()

            if header_name in expected_lower and expected_lower[header_name] not in column_mapping:
                column_mapping[expected_lower[header_name]] = col_num

        return column_mapping


class BlockFormatParser(FileParser):
    """
    Parser for block-layout exports.

    Each worksheet (up to the policy's sheet limit) may hold several
    employees side by side. Blocks are found by ``BlockDiscovery``; each
    accepted block becomes one EmployeeAttendance for the worksheet's
    reporting month.
    """

    def __init__(self, policy: Optional[BlockLayoutPolicy] = None, shift: ShiftPolicy = DEFAULT_SHIFT):
        super().__init__(shift)
        self.discovery = BlockDiscovery(policy)

    @property
    def policy(self) -> BlockLayoutPolicy:
        return self.discovery.policy

    def parse_sheet(self, worksheet: Worksheet) -> Tuple[List[EmployeeAttendance], List[str]]:
        """
        Parse one worksheet.

        Returns:
            Employees found on the sheet and messages for skipped blocks
        """
        grid = WorksheetGrid(worksheet)
        found = self.discovery.discover(grid)
        fields = found.global_fields
        year, month = parse_month(fields.report_month)

        employees = []
        for block in found.blocks:
            records = self.discovery.read_day_records(grid, block, fields.report_month)
            employees.append(EmployeeAttendance(
                user_id=block.user_id,
                name=block.name,
                department=block.department,
                month=fields.report_month,
                attendance_date_range=fields.attendance_date_range,
                tabling_date=fields.tabling_date,
                time_card=build_time_card(records, year, month, self.shift),
            ))
            logger.info(
                f"Parsed employee '{block.name}' (User ID: {block.user_id}) from block {block.span} "
                f"of sheet '{grid.title}' with {len(records)} day rows"
            )

        return employees, found.skipped_blocks

    def parse_workbook(self, workbook: Workbook, source_file: str = "") -> LoadResult:
        result = LoadResult(DocumentFormat.BLOCK, source_file)
        worksheets = workbook.worksheets[:self.policy.max_sheets]

        if len(workbook.worksheets) > len(worksheets):
            result.add_warning(
                f"Only the first {self.policy.max_sheets} of {len(workbook.worksheets)} sheets were read"
            )

        for worksheet in worksheets:
            logger.info(f"--- Parsing sheet: {worksheet.title} ---")
            employees, skipped = self.parse_sheet(worksheet)

            for message in skipped:
                result.add_warning(message)

            if employees:
                result.parsed_sheets.append(worksheet.title)
                result.employees.extend(employees)
            else:
                result.skipped_sheets.append(worksheet.title)

        logger.info(f"Block layout: {len(result.employees)} employees from {len(result.parsed_sheets)} sheets")
        return result


class SimpleFormatParser(FileParser):
    """
    Parser for flat clock-event exports.

    The first worksheet holds one row per (employee, date, session) with
    Name | Date | Timetable | Clock In | Clock Out columns. Rows are grouped
    by employee and month; the terminal gives no user ID or department, so
    the name doubles as the user ID.
    """

    SESSION_FIELDS = {
        "AM": ("am_arrival", "am_departure"),
        "PM": ("pm_arrival", "pm_departure"),
        "OT": ("ot_arrival", "ot_departure"),
    }

    def __init__(self, shift: ShiftPolicy = DEFAULT_SHIFT,
                 date_fallback_formats: Optional[List[str]] = None):
        super().__init__(shift)
        if date_fallback_formats is None:
            date_fallback_formats = SIMPLE_FORMAT_CONFIG["date_fallback_formats"]
        self.date_fallback_formats = list(date_fallback_formats)

    def _parse_date_cell(self, cell_value: Any) -> Optional[date]:
        """
        Parse a Date column value.

        Native date cells are used as-is; text goes through the day-first
        parser and then the configured fallback formats.
        """
        if cell_value is None:
            return None

        if isinstance(cell_value, datetime):
            return cell_value.date()

        if isinstance(cell_value, date):
            return cell_value

        if isinstance(cell_value, (int, float)) and not isinstance(cell_value, bool):
            # Serial number in a cell without a date format
            try:
                return date.fromisoformat(render_date_value(cell_value))
            except ValueError:
                return None

        return parse_date_text(str(cell_value), self.date_fallback_formats)

    def parse_workbook(self, workbook: Workbook, source_file: str = "") -> LoadResult:
        result = LoadResult(DocumentFormat.SIMPLE, source_file)
        worksheet = self.first_worksheet(workbook)

        headers = [
            SIMPLE_FORMAT_CONFIG["name_header"],
            SIMPLE_FORMAT_CONFIG["date_header"],
            SIMPLE_FORMAT_CONFIG["timetable_header"],
            SIMPLE_FORMAT_CONFIG["clock_in_header"],
            SIMPLE_FORMAT_CONFIG["clock_out_header"],
        ]
        header_row = SIMPLE_FORMAT_CONFIG["header_row"]
        columns = self._get_column_mapping(worksheet, header_row, headers)

        missing = [header for header in headers if header not in columns]
        if missing:
            raise WorkbookReadError(f"Sheet '{worksheet.title}' is missing columns: {', '.join(missing)}")

        name_col, date_col, timetable_col, in_col, out_col = (columns[header] for header in headers)

        # (name, year, month) -> {day: RawDailyRecord}
        grouped: "OrderedDict[Tuple[str, int, int], Dict[int, RawDailyRecord]]" = OrderedDict()

        for row_num in range(header_row + 1, worksheet.max_row + 1):
            name = self._cell_value_to_string(worksheet.cell(row=row_num, column=name_col).value)
            date_value = worksheet.cell(row=row_num, column=date_col).value
            timetable = self._cell_value_to_string(worksheet.cell(row=row_num, column=timetable_col).value).upper()

            if not name and date_value in (None, "") and not timetable:
                continue

            if not name or date_value in (None, "") or not timetable:
                message = (
                    f"Row {row_num}: missing essential data "
                    f"(Name='{name}', Date='{date_value}', Timetable='{timetable}')"
                )
                logger.warning(f"Skipping {message}")
                result.add_warning(message)
                continue

            entry_date = self._parse_date_cell(date_value)
            if entry_date is None:
                message = f"Row {row_num}: invalid date '{date_value}' for '{name}'"
                logger.warning(f"Skipping {message}")
                result.add_warning(message)
                continue

            session = self.SESSION_FIELDS.get(timetable)
            if session is None:
                message = f"Row {row_num}: unknown timetable '{timetable}' for '{name}'"
                logger.warning(f"Ignoring {message}")
                result.add_warning(message)
                continue

            key = (name, entry_date.year, entry_date.month)
            days = grouped.setdefault(key, {})
            record = days.setdefault(entry_date.day, RawDailyRecord())

            arrival_field, departure_field = session
            setattr(record, arrival_field, render_time_value(worksheet.cell(row=row_num, column=in_col).value))
            setattr(record, departure_field, render_time_value(worksheet.cell(row=row_num, column=out_col).value))

        for (name, year, month), days in grouped.items():
            result.employees.append(EmployeeAttendance(
                user_id=name,
                name=name,
                month=format_month(year, month),
                time_card=build_time_card(days, year, month, self.shift),
            ))

        result.parsed_sheets.append(worksheet.title)
        logger.info(f"Simple layout: {len(result.employees)} employee-months from sheet '{worksheet.title}'")
        return result
