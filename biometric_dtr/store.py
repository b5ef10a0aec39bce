"""
Persistence for employee time cards.

``AttendanceStore`` is the interface the loader writes through and report
code reads from. ``SQLiteAttendanceStore`` implements it on a local SQLite
file: one ``employees`` row per (user ID, name, month) and one
``time_records`` row per stored day.
"""

import logging
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from biometric_dtr.datetime_utils import parse_month
from biometric_dtr.metrics import DEFAULT_SHIFT, ShiftPolicy
from biometric_dtr.models import RAW_TIME_FIELDS, SOURCE_FIELDS, DailyMetrics, DayRecord, EmployeeAttendance, RawDailyRecord
from biometric_dtr.summary import build_time_card

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Custom exception for persistence failures."""
    pass


SCHEMA = """
CREATE TABLE IF NOT EXISTS employees (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    userId TEXT NOT NULL,
    name TEXT NOT NULL,
    department TEXT,
    month TEXT,
    attendanceDateRange TEXT,
    tablingDate TEXT,
    UNIQUE(userId, name, month)
);

CREATE TABLE IF NOT EXISTS time_records (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    employee_id INTEGER NOT NULL,
    day INTEGER NOT NULL,
    dateWeekday TEXT,
    am_arrival TEXT,
    am_departure TEXT,
    pm_arrival TEXT,
    pm_departure TEXT,
    ot_arrival TEXT,
    ot_departure TEXT,
    total_hours TEXT,
    late TEXT,
    early_out TEXT,
    overtime TEXT,
    remarks TEXT,
    undertime_hours TEXT,
    undertime_minutes TEXT,
    source_late TEXT,
    source_undertime TEXT,
    source_overtime TEXT,
    source_total_hours TEXT,
    FOREIGN KEY (employee_id) REFERENCES employees(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_time_records_employee ON time_records(employee_id, day);
"""

METRIC_COLUMNS = (
    "total_hours",
    "late",
    "early_out",
    "overtime",
    "remarks",
    "undertime_hours",
    "undertime_minutes",
)

TIME_RECORD_COLUMNS = (
    ("employee_id", "day", "dateWeekday")
    + RAW_TIME_FIELDS
    + METRIC_COLUMNS
    + tuple(f"source_{name}" for name in SOURCE_FIELDS)
)


class AttendanceStore(ABC):
    """
    Interface for saving and querying employee time cards.

    Employees are identified by (user_id, name, month). Saving an employee
    that already exists replaces its day records wholesale.
    """

    @abstractmethod
    def find_employee(self, user_id: str, name: str, month: str) -> Optional[int]:
        """Storage ID of an employee, or None when not stored."""
        pass

    @abstractmethod
    def upsert_employee(self, employee: EmployeeAttendance) -> int:
        """Insert or update the employee row and return its storage ID."""
        pass

    @abstractmethod
    def replace_day_records(self, employee_id: int, time_card: List[DayRecord]) -> None:
        """Delete every stored day of the employee, then store ``time_card``."""
        pass

    @abstractmethod
    def query_employees(self, name_filter: Optional[str] = None,
                        month_filter: Optional[str] = None) -> List[EmployeeAttendance]:
        """
        Stored employees with full time cards.

        Args:
            name_filter: Case-insensitive substring of the name
            month_filter: Exact 'YYYY-MM' month
        """
        pass

    @abstractmethod
    def list_employee_keys(self) -> List[Tuple[str, str, str]]:
        pass

    @abstractmethod
    def transaction(self):
        """Context manager that commits on success and rolls back on error."""
        pass

    def save_all(self, employees: Iterable[EmployeeAttendance]) -> None:
        """Save a batch of employees atomically."""
        with self.transaction():
            for employee in employees:
                employee_id = self.upsert_employee(employee)
                self.replace_day_records(employee_id, employee.time_card)


class SQLiteAttendanceStore(AttendanceStore):
    """SQLite-backed attendance store."""

    def __init__(self, db_path: Union[str, Path], shift: ShiftPolicy = DEFAULT_SHIFT):
        self.db_path = str(db_path)
        self.shift = shift
        self._depth = 0

        try:
            self.connection = sqlite3.connect(self.db_path)
            self.connection.row_factory = sqlite3.Row
            self.connection.execute("PRAGMA foreign_keys = ON;")
            self.connection.execute("PRAGMA journal_mode = WAL;")
            self.connection.executescript(SCHEMA)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open attendance database {self.db_path}: {e}") from e

        logger.debug(f"Opened attendance database {self.db_path}")

    def __enter__(self) -> 'SQLiteAttendanceStore':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.connection.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        # Nested calls join the outermost transaction
        if self._depth:
            self._depth += 1
            try:
                yield self.connection
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            yield self.connection
            self.connection.commit()
        except sqlite3.Error as e:
            self.connection.rollback()
            logger.error(f"Attendance database transaction rolled back: {e}")
            raise StoreError(f"Database error: {e}") from e
        except Exception:
            self.connection.rollback()
            raise
        finally:
            self._depth = 0

    def find_employee(self, user_id: str, name: str, month: str) -> Optional[int]:
        try:
            row = self.connection.execute(
                "SELECT id FROM employees WHERE userId = ? AND name = ? AND month = ?",
                (user_id, name, month),
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Database error: {e}") from e
        return row["id"] if row else None

    def upsert_employee(self, employee: EmployeeAttendance) -> int:
        with self.transaction() as conn:
            employee_id = self.find_employee(employee.user_id, employee.name, employee.month)

            if employee_id is None:
                cursor = conn.execute(
                    """
                    INSERT INTO employees (userId, name, department, month, attendanceDateRange, tablingDate)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (employee.user_id, employee.name, employee.department, employee.month,
                     employee.attendance_date_range, employee.tabling_date),
                )
                employee_id = cursor.lastrowid
                logger.debug(f"Inserted employee {employee.key} as id {employee_id}")
            else:
                conn.execute(
                    """
                    UPDATE employees
                    SET department = ?, attendanceDateRange = ?, tablingDate = ?
                    WHERE id = ?
                    """,
                    (employee.department, employee.attendance_date_range, employee.tabling_date, employee_id),
                )
                logger.debug(f"Updated employee {employee.key} (id {employee_id})")

        return employee_id

    def replace_day_records(self, employee_id: int, time_card: List[DayRecord]) -> None:
        placeholders = ", ".join("?" for _ in TIME_RECORD_COLUMNS)
        insert_sql = f"INSERT INTO time_records ({', '.join(TIME_RECORD_COLUMNS)}) VALUES ({placeholders})"

        # Days with nothing read from the source are rebuilt on read
        rows = []
        for record in time_card:
            raw = record.raw
            if not raw.has_work_entries and not any(getattr(raw, name) for name in SOURCE_FIELDS):
                continue
            metrics = record.metrics.to_dict()
            rows.append(
                (employee_id, record.day, record.date_weekday)
                + tuple(getattr(raw, name) for name in RAW_TIME_FIELDS)
                + tuple(metrics[name] for name in METRIC_COLUMNS)
                + tuple(getattr(raw, name) for name in SOURCE_FIELDS)
            )

        with self.transaction() as conn:
            conn.execute("DELETE FROM time_records WHERE employee_id = ?", (employee_id,))
            conn.executemany(insert_sql, rows)

        logger.debug(f"Stored {len(rows)} day records for employee id {employee_id}")

    def _row_to_day_record(self, row: sqlite3.Row) -> DayRecord:
        raw = RawDailyRecord(**{name: row[name] or "" for name in RAW_TIME_FIELDS})
        for name in SOURCE_FIELDS:
            setattr(raw, name, row[f"source_{name}"] or "")

        return DayRecord(
            day=row["day"],
            date_weekday=row["dateWeekday"] or "",
            raw=raw,
            metrics=DailyMetrics.from_dict({name: row[name] for name in METRIC_COLUMNS}),
        )

    def _load_time_card(self, employee_row: sqlite3.Row) -> List[DayRecord]:
        year, month = parse_month(employee_row["month"])
        rows = self.connection.execute(
            "SELECT * FROM time_records WHERE employee_id = ? ORDER BY day ASC",
            (employee_row["id"],),
        ).fetchall()
        stored = {row["day"]: self._row_to_day_record(row) for row in rows}

        time_card = build_time_card({}, year, month, self.shift)
        return [stored.get(record.day, record) for record in time_card]

    def query_employees(self, name_filter: Optional[str] = None,
                        month_filter: Optional[str] = None) -> List[EmployeeAttendance]:
        query = "SELECT * FROM employees WHERE 1=1"
        params: List[str] = []

        if name_filter:
            escaped = name_filter.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            query += " AND name LIKE ? ESCAPE '\\'"
            params.append(f"%{escaped}%")

        if month_filter:
            query += " AND month = ?"
            params.append(month_filter)

        query += " ORDER BY name COLLATE NOCASE, month, id"

        try:
            employee_rows = self.connection.execute(query, params).fetchall()
            employees = [
                EmployeeAttendance(
                    user_id=row["userId"],
                    name=row["name"],
                    department=row["department"] or "",
                    month=row["month"],
                    attendance_date_range=row["attendanceDateRange"] or "",
                    tabling_date=row["tablingDate"] or "",
                    time_card=self._load_time_card(row),
                )
                for row in employee_rows
            ]
        except sqlite3.Error as e:
            raise StoreError(f"Database error: {e}") from e

        logger.debug(f"Query name='{name_filter or ''}' month='{month_filter or ''}' matched {len(employees)} employees")
        return employees

    def list_employee_keys(self) -> List[Tuple[str, str, str]]:
        try:
            rows = self.connection.execute(
                "SELECT userId, name, month FROM employees ORDER BY name COLLATE NOCASE, month"
            ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Database error: {e}") from e
        return [(row["userId"], row["name"], row["month"]) for row in rows]
