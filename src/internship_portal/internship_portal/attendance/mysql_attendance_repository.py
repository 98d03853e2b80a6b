from __future__ import annotations

from dataclasses import asdict
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import ReviewStatus
from ..database import mysql_base
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, insert_row, like_any, where_clause
from .model import AttendanceEntry
from .repository import AttendanceRepository

_COLUMNS = (
    "attendance_id, internship_id, applicant_id, company_id, punch_in_at, status, created_at, "
    "punch_out_at, application_id, applicant_name, internship_title, reviewed_at, reviewed_by, "
    "rejection_reason"
)


def _row_to_entry(r: dict) -> AttendanceEntry:
    return AttendanceEntry(
        attendance_id=r["attendance_id"],
        internship_id=r["internship_id"],
        applicant_id=r["applicant_id"],
        company_id=r["company_id"],
        punch_in_at=r["punch_in_at"],
        status=ReviewStatus(r["status"]),
        created_at=r["created_at"],
        punch_out_at=r.get("punch_out_at"),
        application_id=r.get("application_id"),
        applicant_name=r.get("applicant_name") or "",
        internship_title=r.get("internship_title") or "",
        reviewed_at=r.get("reviewed_at"),
        reviewed_by=r.get("reviewed_by"),
        rejection_reason=r.get("rejection_reason"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, attendance_id: str) -> Optional[AttendanceEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_entries WHERE attendance_id=%s", (attendance_id,))
            r = fetchone(cur)
            return _row_to_entry(r) if r else None

    def create(self, entry: AttendanceEntry) -> None:
        insert_row(self._conn_factory, "attendance_entries", asdict(entry))

    def get_active(self, applicant_id: str, internship_id: Optional[str] = None) -> Optional[AttendanceEntry]:
        clauses = ["applicant_id=%s", "status=%s"]
        params: list[object] = [applicant_id, ReviewStatus.IN_PROGRESS.value]
        if internship_id is not None:
            clauses.append("internship_id=%s")
            params.append(internship_id)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_entries
                WHERE {where_clause(clauses)}
                ORDER BY punch_in_at DESC
                LIMIT 1
                """,
                tuple(params),
            )
            r = fetchone(cur)
            return _row_to_entry(r) if r else None

    def list_for_applicant(
        self,
        applicant_id: str,
        *,
        internship_id: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[AttendanceEntry]:
        clauses = ["applicant_id=%s"]
        params: list[object] = [applicant_id]
        if internship_id is not None:
            clauses.append("internship_id=%s")
            params.append(internship_id)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_entries
                WHERE {where_clause(clauses)}
                ORDER BY punch_in_at DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_row_to_entry(r) for r in fetchall(cur)]

    def list_for_company(
        self,
        company_id: str,
        *,
        status: Optional[ReviewStatus] = None,
        search: str = "",
        limit: int = 500,
    ) -> Sequence[AttendanceEntry]:
        clauses = ["company_id=%s"]
        params: list[object] = [company_id]

        if status is not None:
            clauses.append("status=%s")
            params.append(ReviewStatus(status).value)
        if search.strip():
            sql, values = like_any(("applicant_name", "internship_title"), search)
            clauses.append(sql)
            params.extend(values)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_entries
                WHERE {where_clause(clauses)}
                ORDER BY punch_in_at DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_row_to_entry(r) for r in fetchall(cur)]

    def compare_and_set_status(
        self,
        *,
        record_id: str,
        expected: ReviewStatus,
        new: ReviewStatus,
        fields: Mapping[str, Any],
    ) -> bool:
        return mysql_base.compare_and_set_status(
            self._conn_factory,
            "attendance_entries",
            "attendance_id",
            record_id=record_id,
            expected=expected,
            new=new,
            fields=fields,
        )
