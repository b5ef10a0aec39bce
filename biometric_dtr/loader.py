"""
Load orchestration: detect the export layout, parse, and persist.

A load reads the workbook once, picks the parser from the first worksheet,
builds the complete result and closes the workbook before anything is
handed to a store.
"""

import logging
from typing import List, Optional, Tuple

from biometric_dtr.detector import DocumentFormat, detect_format
from biometric_dtr.grid import WorksheetGrid
from biometric_dtr.metrics import DEFAULT_SHIFT, ShiftPolicy
from biometric_dtr.parsers import BlockFormatParser, FileParser, LoadResult, SimpleFormatParser
from biometric_dtr.policy import BlockLayoutPolicy
from biometric_dtr.store import AttendanceStore

logger = logging.getLogger(__name__)


class AttendanceLoader:
    """
    Entry point for turning a terminal export into employee time cards.

    Example:
        loader = AttendanceLoader()
        result = loader.load("march.xlsx")
        for employee in result.employees:
            print(employee.name, employee.get_total_undertime_minutes())
    """

    def __init__(self, policy: Optional[BlockLayoutPolicy] = None, shift: ShiftPolicy = DEFAULT_SHIFT):
        self.block_parser = BlockFormatParser(policy, shift)
        self.simple_parser = SimpleFormatParser(shift)

    def parser_for(self, file_format: DocumentFormat) -> FileParser:
        if file_format == DocumentFormat.SIMPLE:
            return self.simple_parser
        return self.block_parser

    def load(self, file_path: str) -> LoadResult:
        """
        Parse a workbook into employee attendance records.

        Args:
            file_path: Path to an .xlsx/.xlsm export

        Returns:
            LoadResult with the employees and load diagnostics

        Raises:
            FileNotFoundError: If the file doesn't exist
            UnsupportedFileError: If the file type is not supported
            WorkbookReadError: If the workbook cannot be read
        """
        logger.info(f"Loading attendance file: {file_path}")

        workbook = self.block_parser.open_workbook(file_path)

        try:
            first_sheet = self.block_parser.first_worksheet(workbook)
            file_format = detect_format(WorksheetGrid(first_sheet))
            result = self.parser_for(file_format).parse_workbook(workbook, file_path)
        finally:
            workbook.close()

        logger.info(
            f"Loaded {len(result.employees)} employees ({result.file_format.value} layout) "
            f"from {file_path} with {len(result.warnings)} warnings"
        )
        return result

    def load_into_store(self, file_path: str, store: AttendanceStore) -> LoadResult:
        """
        Parse a workbook and save every employee in one store transaction.

        Nothing is written when parsing fails. Reloading the same file
        replaces the previously stored time cards.
        """
        result = self.load(file_path)
        store.save_all(result.employees)
        logger.info(f"Stored {len(result.employees)} employees from {file_path}")
        return result


def list_employees(store: AttendanceStore) -> List[Tuple[str, str, str]]:
    """(user_id, name, month) for every stored employee, ordered by name then month."""
    return store.list_employee_keys()
