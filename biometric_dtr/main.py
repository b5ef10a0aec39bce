#!/usr/bin/env python3
"""
Biometric DTR Loader - Main Application Entry Point

This module provides the command-line interface for loading time-clock
exports into the attendance database and reading them back.
"""

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from config.settings import DATABASE_PATH, LOG_LEVEL

from biometric_dtr.cli import UserInterface
from biometric_dtr.loader import AttendanceLoader
from biometric_dtr.store import SQLiteAttendanceStore, StoreError
from biometric_dtr.summary import compute_time_summary

logger = logging.getLogger(__name__)


class DTRApp:
    """Main application controller for the Biometric DTR Loader."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self.ui = UserInterface()

    def run_load(self, file_path: str, dry_run: bool = False) -> int:
        """
        Parse an export and store it.

        Args:
            file_path: Path to the .xlsx/.xlsm export
            dry_run: Parse and report without touching the database

        Returns:
            Process exit code
        """
        loader = AttendanceLoader()
        self.ui.display_progress(f"Reading {file_path}")

        try:
            if dry_run:
                result = loader.load(file_path)
            else:
                with SQLiteAttendanceStore(self.db_path) as store:
                    result = loader.load_into_store(file_path, store)
        except (FileNotFoundError, PermissionError, ValueError) as e:
            logger.error(f"Load failed for {file_path}: {e}")
            self.ui.display_error(str(e))
            return 1
        except StoreError as e:
            logger.error(f"Could not store {file_path}: {e}")
            self.ui.display_error(str(e))
            return 1

        self.ui.display_load_summary(result)
        self.ui.display_warnings(result.warnings)

        if dry_run:
            self.ui.display_warning("Dry run: nothing was written")
        elif result.employees:
            self.ui.display_success(f"Stored {len(result.employees)} employees in {self.db_path}")
        else:
            self.ui.display_warning("No employees found in file")
        return 0

    def run_query(self, name: Optional[str], month: Optional[str], as_json: bool = False) -> int:
        try:
            with SQLiteAttendanceStore(self.db_path) as store:
                employees = store.query_employees(name, month)
        except StoreError as e:
            self.ui.display_error(str(e))
            return 1

        if as_json:
            print(json.dumps([employee.to_dict() for employee in employees], indent=2))
        else:
            self.ui.display_employees(employees)
        return 0

    def run_summary(self, user_id: str, name: str, month: str) -> int:
        try:
            with SQLiteAttendanceStore(self.db_path) as store:
                employees = store.query_employees(name, month)
        except StoreError as e:
            self.ui.display_error(str(e))
            return 1

        employee = next(
            (emp for emp in employees if emp.user_id == user_id and emp.name == name),
            None,
        )
        if employee is None:
            self.ui.display_error(f"No stored record for {name} ({user_id}) in {month}")
            return 1

        self.ui.display_time_summary(employee, compute_time_summary(employee, month))
        return 0


def create_cli_parser() -> argparse.ArgumentParser:
    """Create and configure the command-line argument parser."""
    parser = argparse.ArgumentParser(
        description="Biometric DTR Loader - Import time-clock exports into daily time records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  biometric-dtr load exports/march_2025.xlsx
  biometric-dtr query --name dela --month 2025-03
  biometric-dtr summary --user-id 1001 --name "Juan Dela Cruz" --month 2025-03
        """
    )

    parser.add_argument(
        "--db",
        default=os.getenv("DTR_DATABASE_PATH", DATABASE_PATH),
        help="Path to the SQLite attendance database (default: %(default)s)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="Biometric DTR Loader 1.0.0"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    load_parser = subparsers.add_parser("load", help="Parse an export and store it")
    load_parser.add_argument("file", help="Path to the .xlsx/.xlsm export")
    load_parser.add_argument("--dry-run", action="store_true", help="Parse only, do not store")

    query_parser = subparsers.add_parser("query", help="List stored employees")
    query_parser.add_argument("--name", help="Case-insensitive part of the employee name")
    query_parser.add_argument("--month", help="Month as YYYY-MM")
    query_parser.add_argument("--json", action="store_true", help="Print full records as JSON")

    summary_parser = subparsers.add_parser("summary", help="Show a day-by-day time summary")
    summary_parser.add_argument("--user-id", required=True)
    summary_parser.add_argument("--name", required=True)
    summary_parser.add_argument("--month", required=True, help="Month as YYYY-MM")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    load_dotenv()

    logging.basicConfig(
        level=os.getenv("DTR_LOG_LEVEL", LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    parser = create_cli_parser()
    args = parser.parse_args(argv)

    app = DTRApp(args.db)
    if args.command == "load":
        exit_code = app.run_load(args.file, args.dry_run)
    elif args.command == "query":
        exit_code = app.run_query(args.name, args.month, args.json)
    else:
        exit_code = app.run_summary(args.user_id, args.name, args.month)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
