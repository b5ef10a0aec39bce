"""
Export format detection.

Terminal exports come in two shapes: a flat list with one row per clock
event, and the block layout where each employee occupies a repeating group
of columns. The flat list is recognised by its header row.
"""

import logging
from enum import Enum
from typing import Set

from config.settings import SIMPLE_FORMAT_CONFIG

from biometric_dtr.grid import WorksheetGrid

logger = logging.getLogger(__name__)


class DocumentFormat(Enum):
    """Supported export layouts."""
    SIMPLE = "SIMPLE"
    BLOCK = "BLOCK"


REQUIRED_SIMPLE_HEADERS = {
    SIMPLE_FORMAT_CONFIG["name_header"].lower(),
    SIMPLE_FORMAT_CONFIG["date_header"].lower(),
    SIMPLE_FORMAT_CONFIG["timetable_header"].lower(),
    SIMPLE_FORMAT_CONFIG["clock_in_header"].lower(),
    SIMPLE_FORMAT_CONFIG["clock_out_header"].lower(),
}


def read_header_row(grid: WorksheetGrid) -> Set[str]:
    """Lower-cased, trimmed texts of the first row, columns A-Z."""
    header_row = SIMPLE_FORMAT_CONFIG["header_row"] - 1
    return {
        grid.text(header_row, column).lower()
        for column in range(SIMPLE_FORMAT_CONFIG["header_scan_columns"])
    } - {""}


def detect_format(grid: WorksheetGrid) -> DocumentFormat:
    """
    Classify a workbook by its first worksheet.

    Returns:
        SIMPLE when the header row holds every flat-format column name,
        BLOCK otherwise
    """
    headers = read_header_row(grid)
    if REQUIRED_SIMPLE_HEADERS.issubset(headers):
        logger.info(f"Sheet '{grid.title}' has a flat clock-event header row")
        return DocumentFormat.SIMPLE

    logger.info(f"Sheet '{grid.title}' treated as block layout")
    return DocumentFormat.BLOCK
