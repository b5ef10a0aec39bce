"""
Zero-based cell access over an openpyxl worksheet.

The discovery code reasons in 0-based (row, column) coordinates; openpyxl
counts from 1. ``WorksheetGrid`` is the only place that converts between the
two, and it exposes merged ranges as 0-based rectangles.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from openpyxl.utils import column_index_from_string, get_column_letter
from openpyxl.worksheet.worksheet import Worksheet


@dataclass(frozen=True)
class Coordinate:
    """A 0-based cell position."""
    row: int
    column: int

    @property
    def address(self) -> str:
        return cell_address(self.row, self.column)


@dataclass(frozen=True)
class CellRange:
    """An inclusive 0-based rectangle of cells."""
    start_row: int
    start_column: int
    end_row: int
    end_column: int

    def contains(self, row: int, column: int) -> bool:
        return (self.start_row <= row <= self.end_row
                and self.start_column <= column <= self.end_column)

    @property
    def anchor(self) -> Coordinate:
        return Coordinate(self.start_row, self.start_column)

    def __str__(self) -> str:
        return f"{cell_address(self.start_row, self.start_column)}:{cell_address(self.end_row, self.end_column)}"


def column_letter_to_index(letter: str) -> int:
    """'A' -> 0, 'AF' -> 31."""
    return column_index_from_string(letter.strip().upper()) - 1


def index_to_column_letter(index: int) -> str:
    """0 -> 'A', 31 -> 'AF'."""
    return get_column_letter(index + 1)


def cell_address(row: int, column: int) -> str:
    """Excel-style address of a 0-based coordinate, e.g. (2, 1) -> 'B3'."""
    return f"{index_to_column_letter(column)}{row + 1}"


class WorksheetGrid:
    """
    Read-only 0-based view of a worksheet.

    Cells outside the used range read as None.
    """

    def __init__(self, worksheet: Worksheet):
        self.worksheet = worksheet
        self.title = worksheet.title
        self.last_row = worksheet.max_row - 1
        self.last_column = worksheet.max_column - 1
        self.merged_ranges: List[CellRange] = [
            CellRange(
                start_row=merged.min_row - 1,
                start_column=merged.min_col - 1,
                end_row=merged.max_row - 1,
                end_column=merged.max_col - 1,
            )
            for merged in worksheet.merged_cells.ranges
        ]

    def value(self, row: int, column: int) -> Any:
        """Raw cell value at a 0-based position."""
        if row < 0 or column < 0 or row > self.last_row or column > self.last_column:
            return None
        return self.worksheet.cell(row=row + 1, column=column + 1).value

    def text(self, row: int, column: int) -> str:
        """Cell value as stripped text; blank cells give ''."""
        value = self.value(row, column)
        if value is None:
            return ""
        return str(value).strip()

    def merged_anchor(self, row: int, column: int) -> Optional[Coordinate]:
        """Top-left cell of the merged range covering a position, if any."""
        for merged in self.merged_ranges:
            if merged.contains(row, column):
                return merged.anchor
        return None

    def clamp(self, start_row: int, start_column: int,
              end_row: int, end_column: int) -> Tuple[int, int, int, int]:
        """Clip a rectangle to the used range of the worksheet."""
        return (
            max(start_row, 0),
            max(start_column, 0),
            min(end_row, self.last_row),
            min(end_column, self.last_column),
        )
