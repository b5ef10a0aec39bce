"""
Command Line Interface utilities for the Biometric DTR Loader.

This module provides console display helpers for load results, stored
employees and day-by-day time summaries.
"""

from typing import List

from biometric_dtr.datetime_utils import convert_to_12_hour, format_duration
from biometric_dtr.models import EmployeeAttendance, TimeSummary
from biometric_dtr.parsers import LoadResult


class UserInterface:
    """Handles CLI display."""

    @staticmethod
    def display_progress(message: str) -> None:
        """Display a progress message to the user."""
        print(f"⏳ {message}")

    @staticmethod
    def display_success(message: str) -> None:
        """Display a success message to the user."""
        print(f"✅ {message}")

    @staticmethod
    def display_error(message: str) -> None:
        """Display an error message to the user."""
        print(f"❌ {message}")

    @staticmethod
    def display_warning(message: str) -> None:
        """Display a warning message to the user."""
        print(f"⚠️  {message}")

    @staticmethod
    def display_warnings(warnings: List[str]) -> None:
        """
        Display the diagnostics collected during a load.

        Args:
            warnings: Messages about skipped blocks, rows and sheets
        """
        if not warnings:
            return

        print("\n⚠️  Skipped during load:")
        for i, warning in enumerate(warnings, 1):
            print(f"   {i}. {warning}")
        print()

    @staticmethod
    def display_load_summary(result: LoadResult) -> None:
        """Display what a load found."""
        print(f"\n📊 Load Summary:")
        print(f"   Layout: {result.file_format.value}")
        print(f"   Employees: {len(result.employees)}")
        print(f"   Day records: {result.total_days}")
        if result.parsed_sheets:
            print(f"   Sheets read: {', '.join(result.parsed_sheets)}")
        if result.skipped_sheets:
            print(f"   Sheets without employees: {', '.join(result.skipped_sheets)}")

    @staticmethod
    def display_employees(employees: List[EmployeeAttendance]) -> None:
        if not employees:
            print("No matching employees.")
            return

        print(f"{'User ID':<12} {'Name':<28} {'Dept.':<16} {'Month':<8} {'Undertime':>10}")
        for employee in employees:
            undertime = format_duration(employee.get_total_undertime_minutes())
            print(
                f"{employee.user_id:<12} {employee.name:<28} {employee.department:<16} "
                f"{employee.month:<8} {undertime:>10}"
            )

    @staticmethod
    def display_time_summary(employee: EmployeeAttendance, summary: TimeSummary) -> None:
        """
        Print a day-by-day time summary.

        Args:
            employee: Employee the summary belongs to
            summary: Recomputed days for the month
        """
        print(f"\n🗓️  {employee.name} ({employee.user_id}) - {employee.month}, {summary.days_in_month} days")
        print(
            f"{'Day':<8} {'AM In':>9} {'AM Out':>9} {'PM In':>9} {'PM Out':>9} "
            f"{'Hours':>8} {'Late':>8} {'UT h':>9} {'UT m':>9}  Remarks"
        )
        for record in summary.time_summary:
            raw, metrics = record.raw, record.metrics
            print(
                f"{record.date_weekday:<8} "
                f"{convert_to_12_hour(raw.am_arrival):>9} {convert_to_12_hour(raw.am_departure):>9} "
                f"{convert_to_12_hour(raw.pm_arrival):>9} {convert_to_12_hour(raw.pm_departure):>9} "
                f"{metrics.total_hours:>8} {metrics.late:>8} "
                f"{metrics.undertime_hours:>9} {metrics.undertime_minutes:>9}  {metrics.remarks}"
            )
