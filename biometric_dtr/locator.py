"""
Text-match locator.

Finds the cells of a worksheet whose text matches a header label. Matching
is case-insensitive and whitespace-normalised; slashes in a label tolerate
surrounding whitespace (header captions often wrap at the slash). Merged
ranges are matched through their top-left anchor cell.
"""

import re
from enum import Enum
from typing import List, Optional, Pattern

from biometric_dtr.grid import CellRange, Coordinate, WorksheetGrid


class MatchMode(Enum):
    """How a label is compared with a cell's text."""
    EXACT = "EXACT"  # Whole cell text equals the label
    PREFIX = "PREFIX"  # Cell text starts with the label
    DAY_ANCHOR = "DAY_ANCHOR"  # "Date" or "Date/Weekday"


DAY_ANCHOR_PATTERN = re.compile(r'^date(\s*/\s*weekday)?$', re.IGNORECASE)

_WHITESPACE = re.compile(r'\s+')


def normalize_text(text: str) -> str:
    """Lower-case and collapse whitespace runs (including line breaks) to one space."""
    return _WHITESPACE.sub(' ', text).strip().lower()


def build_pattern(label: str, mode: MatchMode) -> Pattern:
    """
    Compile the pattern used to match a label.

    Args:
        label: Header text to look for, e.g. "User ID" or "Tabling date:"
        mode: Exact, prefix or day-anchor matching

    Returns:
        Compiled case-insensitive pattern applied to normalised cell text
    """
    if mode == MatchMode.DAY_ANCHOR:
        return DAY_ANCHOR_PATTERN

    normalized = re.sub(r'\s*/\s*', '/', normalize_text(label))
    escaped = re.escape(normalized).replace(r'\ ', r'\s+')
    escaped = escaped.replace(r'\/', '/').replace('/', r'\s*/\s*')

    if mode == MatchMode.PREFIX:
        return re.compile(f'^{escaped}', re.IGNORECASE)
    return re.compile(f'^{escaped}$', re.IGNORECASE)


def _matches(grid: WorksheetGrid, row: int, column: int, pattern: Pattern) -> bool:
    value = grid.value(row, column)
    if not isinstance(value, str):
        return False

    text = normalize_text(value)
    if not text:
        return False
    return bool(pattern.search(text))


def _clamped(grid: WorksheetGrid, rect: CellRange) -> CellRange:
    return CellRange(*grid.clamp(rect.start_row, rect.start_column, rect.end_row, rect.end_column))


def find_first(grid: WorksheetGrid, label: str, rect: CellRange,
               mode: MatchMode = MatchMode.EXACT) -> Optional[Coordinate]:
    """
    Find the first cell in a rectangle matching a label.

    Merged ranges whose anchor lies inside the rectangle are checked first,
    then ordinary cells in row-major order.

    Returns:
        Coordinate of the match, or None if nothing matches
    """
    pattern = build_pattern(label, mode)
    rect = _clamped(grid, rect)

    for merged in grid.merged_ranges:
        anchor = merged.anchor
        if rect.contains(anchor.row, anchor.column) and _matches(grid, anchor.row, anchor.column, pattern):
            return anchor

    for row in range(rect.start_row, rect.end_row + 1):
        for column in range(rect.start_column, rect.end_column + 1):
            if _matches(grid, row, column, pattern):
                return Coordinate(row, column)

    return None


def find_all(grid: WorksheetGrid, label: str, rect: CellRange,
             mode: MatchMode = MatchMode.EXACT) -> List[Coordinate]:
    """
    Find every cell in a rectangle matching a label, in row-major order.

    A merged range contributes only its top-left anchor, and only when the
    anchor lies inside the rectangle.
    """
    pattern = build_pattern(label, mode)
    rect = _clamped(grid, rect)
    found: List[Coordinate] = []

    for row in range(rect.start_row, rect.end_row + 1):
        for column in range(rect.start_column, rect.end_column + 1):
            anchor = grid.merged_anchor(row, column)
            if anchor is not None and anchor != Coordinate(row, column):
                continue
            if _matches(grid, row, column, pattern):
                found.append(Coordinate(row, column))

    return found
