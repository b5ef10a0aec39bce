"""
Block discovery for the multi-employee export layout.

A block-layout worksheet repeats the same group of columns once per
employee, left to right. Each group starts at a "Date/Weekday" column (the
anchor) and carries its own Name / User ID / Dept. header cells above a day
by day grid of clock readings. Nothing about the number or position of
the groups is known up front; this module finds them.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from biometric_dtr.datetime_utils import (
    current_month,
    days_in_month,
    parse_month,
    render_date_value,
    render_time_value,
)
from biometric_dtr.grid import CellRange, Coordinate, WorksheetGrid, cell_address, index_to_column_letter
from biometric_dtr.locator import DAY_ANCHOR_PATTERN, MatchMode, find_all, find_first, normalize_text
from biometric_dtr.models import RawDailyRecord
from biometric_dtr.policy import BlockLayoutPolicy

logger = logging.getLogger(__name__)

DATE_RANGE_PATTERN = re.compile(r'^(\d{4}-\d{2})-\d{2}~\d{4}-\d{2}-\d{2}$')
LEADING_DAY_PATTERN = re.compile(r'^(\d+)')


@dataclass
class GlobalFields:
    """Captions printed once per worksheet."""
    attendance_date_range: str = ""
    tabling_date: str = ""
    report_month: str = ""


@dataclass
class EmployeeBlock:
    """One employee's column group on a worksheet (0-based coordinates)."""
    anchor_column: int
    end_column: int
    header_row: int
    name: str = ""
    user_id: str = ""
    department: str = ""
    data_start_row: int = -1
    data_end_row: int = -1

    @property
    def span(self) -> str:
        return f"{index_to_column_letter(self.anchor_column)}:{index_to_column_letter(self.end_column)}"


@dataclass
class SheetDiscovery:
    """Everything found on one worksheet."""
    sheet_title: str
    global_fields: GlobalFields
    blocks: List[EmployeeBlock] = field(default_factory=list)
    skipped_blocks: List[str] = field(default_factory=list)


def _source_text(value: Any) -> str:
    """Cell value as text, with blank and zero cells reading as ''."""
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)) and value == 0:
        return ""
    return render_time_value(value)


def parse_day_number(value: Any) -> Optional[int]:
    """Day of month from an anchor-column cell: leading digits of text, or a number."""
    if value is None:
        return None

    if isinstance(value, (datetime, date)):
        return value.day

    if isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        if float(value).is_integer():
            return int(value)
        return None

    match = LEADING_DAY_PATTERN.match(str(value).strip())
    if match:
        return int(match.group(1))
    return None


class BlockDiscovery:
    """
    Partitions a worksheet into employee blocks.

    The label search (``locator``) is generic; the structural assumptions
    applied on top of it (blocks are contiguous, left to right, with
    row-aligned sub-headers) all come from the ``BlockLayoutPolicy``.
    """

    def __init__(self, policy: Optional[BlockLayoutPolicy] = None):
        self.policy = policy or BlockLayoutPolicy()

    def _header_rect(self, grid: WorksheetGrid, start_column: int = 0,
                     end_column: Optional[int] = None) -> CellRange:
        return CellRange(
            start_row=self.policy.header_search_start_row,
            start_column=start_column,
            end_row=self.policy.header_search_end_row,
            end_column=grid.last_column if end_column is None else end_column,
        )

    def extract_global_fields(self, grid: WorksheetGrid) -> GlobalFields:
        """
        Locate the attendance date range and tabling date captions.

        The value of each caption is the cell to its right. The reporting
        month is the leading YYYY-MM of a 'YYYY-MM-DD~YYYY-MM-DD' range, or
        the current month when no such range is printed.
        """
        rect = self._header_rect(grid)
        fields = GlobalFields()

        date_captions = find_all(grid, self.policy.attendance_date_label, rect, MatchMode.PREFIX)
        candidates = [grid.text(cell.row, cell.column + 1) for cell in date_captions]
        for candidate in candidates:
            if DATE_RANGE_PATTERN.match(candidate):
                fields.attendance_date_range = candidate
                break
        else:
            # Day-column headers start with "Date" as well
            captions = [
                value for cell, value in zip(date_captions, candidates)
                if not DAY_ANCHOR_PATTERN.match(normalize_text(grid.text(cell.row, cell.column)))
            ]
            if captions:
                fields.attendance_date_range = captions[0]

        tabling_captions = find_all(grid, self.policy.tabling_date_label, rect, MatchMode.PREFIX)
        if tabling_captions:
            caption = tabling_captions[0]
            fields.tabling_date = render_date_value(grid.value(caption.row, caption.column + 1))

        match = DATE_RANGE_PATTERN.match(fields.attendance_date_range)
        if match:
            fields.report_month = match.group(1)
        else:
            fields.report_month = current_month()
            logger.warning(
                f"Sheet '{grid.title}': no attendance date range found "
                f"(got '{fields.attendance_date_range}'); using current month {fields.report_month}"
            )

        logger.info(
            f"Sheet '{grid.title}': date range '{fields.attendance_date_range}', "
            f"tabling date '{fields.tabling_date}', report month {fields.report_month}"
        )
        return fields

    def find_anchor_columns(self, grid: WorksheetGrid) -> Tuple[List[Tuple[int, int]], int]:
        """
        Find every day-anchor column.

        Returns:
            Sorted (column, first_header_row) pairs and the lowest anchor row
            across all columns (-1 when there are none)
        """
        matches = [
            cell
            for cell in find_all(grid, self.policy.day_anchor_label, self._header_rect(grid), MatchMode.DAY_ANCHOR)
            # The attendance date caption reads "Date" too
            if not DATE_RANGE_PATTERN.match(grid.text(cell.row, cell.column + 1))
        ]

        first_row_by_column: Dict[int, int] = {}
        for cell in matches:
            if cell.column not in first_row_by_column or cell.row < first_row_by_column[cell.column]:
                first_row_by_column[cell.column] = cell.row

        max_anchor_row = max((cell.row for cell in matches), default=-1)
        return sorted(first_row_by_column.items()), max_anchor_row

    def _header_value(self, grid: WorksheetGrid, label: str, rect: CellRange) -> Optional[str]:
        cell = find_first(grid, label, rect, MatchMode.EXACT)
        if cell is None:
            return None
        value = grid.text(cell.row, cell.column + 1)
        logger.debug(f"Found '{label}' header at {cell.address}: '{value}'")
        return value

    def _find_data_start_row(self, grid: WorksheetGrid, block: EmployeeBlock, max_anchor_row: int) -> int:
        rect = CellRange(
            start_row=max_anchor_row,
            start_column=block.anchor_column,
            end_row=max_anchor_row + self.policy.sub_header_window,
            end_column=block.end_column,
        )

        sub_headers: List[Coordinate] = []
        for label in self.policy.sub_header_labels:
            sub_headers.extend(find_all(grid, label, rect, MatchMode.EXACT))

        if sub_headers:
            return max(cell.row for cell in sub_headers) + 1

        fallback = max_anchor_row + self.policy.data_start_fallback_offset
        logger.warning(
            f"Sheet '{grid.title}' block {block.span}: no In/Out sub-headers found; "
            f"assuming data starts at row {fallback + 1}"
        )
        return fallback

    def _find_data_end_row(self, grid: WorksheetGrid, block: EmployeeBlock) -> int:
        """Last row before the first blank day cell (a blank first row is tolerated)."""
        end_row = block.data_start_row - 1
        for row in range(block.data_start_row, grid.last_row + 1):
            if row > block.data_start_row and _source_text(grid.value(row, block.anchor_column)) == "":
                break
            end_row = row
        return end_row

    def discover(self, grid: WorksheetGrid) -> SheetDiscovery:
        """
        Find all employee blocks on a worksheet.

        Blocks without a name or user ID are skipped and reported in
        ``skipped_blocks``; a sheet without any day anchor yields no blocks.
        """
        result = SheetDiscovery(sheet_title=grid.title, global_fields=self.extract_global_fields(grid))

        anchors, max_anchor_row = self.find_anchor_columns(grid)
        if not anchors:
            logger.warning(f"No '{self.policy.day_anchor_label}' headers found in sheet '{grid.title}'")
            return result

        logger.info(
            f"Sheet '{grid.title}': day anchor columns "
            f"{', '.join(index_to_column_letter(column) for column, _ in anchors)}"
        )

        for index, (anchor_column, header_row) in enumerate(anchors):
            if index + 1 < len(anchors):
                end_column = anchors[index + 1][0] - 1
            else:
                end_column = grid.last_column

            block = EmployeeBlock(anchor_column=anchor_column, end_column=end_column, header_row=header_row)
            rect = self._header_rect(grid, anchor_column, end_column)

            block.name = self._header_value(grid, self.policy.name_label, rect) or ""
            block.user_id = self._header_value(grid, self.policy.user_id_label, rect) or ""
            block.department = self._header_value(grid, self.policy.department_label, rect) or ""

            if not block.name or not block.user_id:
                message = (
                    f"Sheet '{grid.title}' block {index + 1} ({block.span}): "
                    f"missing name ('{block.name}') or user ID ('{block.user_id}')"
                )
                logger.warning(f"Skipping {message}")
                result.skipped_blocks.append(message)
                continue

            block.data_start_row = self._find_data_start_row(grid, block, max_anchor_row)
            block.data_end_row = self._find_data_end_row(grid, block)
            logger.debug(
                f"Block {block.span} for '{block.name}': data rows "
                f"{block.data_start_row + 1}-{block.data_end_row + 1}"
            )
            result.blocks.append(block)

        return result

    def read_day_records(self, grid: WorksheetGrid, block: EmployeeBlock,
                         report_month: str) -> Dict[int, RawDailyRecord]:
        """
        Read the raw clock readings of a block, keyed by day of month.

        Rows whose anchor cell does not hold a day within the reporting
        month are logged and skipped.
        """
        year, month = parse_month(report_month)
        last_day = days_in_month(year, month)
        offsets = self.policy.field_offsets
        records: Dict[int, RawDailyRecord] = {}

        for row in range(block.data_start_row, block.data_end_row + 1):
            raw_day = grid.value(row, block.anchor_column)
            day = parse_day_number(raw_day)

            if day is None or not 1 <= day <= last_day:
                if _source_text(raw_day):
                    logger.warning(
                        f"Invalid day '{raw_day}' at {cell_address(row, block.anchor_column)} "
                        f"for '{block.name}'; skipping row"
                    )
                continue

            records[day] = RawDailyRecord(**{
                name: _source_text(grid.value(row, block.anchor_column + offset))
                for name, offset in offsets.items()
            })

        return records
