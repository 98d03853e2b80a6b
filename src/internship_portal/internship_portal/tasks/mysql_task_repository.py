from __future__ import annotations

from dataclasses import asdict
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import ReviewStatus
from ..database import mysql_base
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, insert_row, like_any, where_clause
from .model import TaskUpdate
from .repository import TaskUpdateRepository

_COLUMNS = (
    "task_update_id, internship_id, applicant_id, company_id, title, work_date, status, created_at, "
    "application_id, applicant_name, internship_title, details, links, hours, notes, reviewed_at, "
    "reviewed_by, rejection_reason"
)


def _row_to_task_update(r: dict) -> TaskUpdate:
    hours = r.get("hours")
    return TaskUpdate(
        task_update_id=r["task_update_id"],
        internship_id=r["internship_id"],
        applicant_id=r["applicant_id"],
        company_id=r["company_id"],
        title=r["title"],
        work_date=r["work_date"],
        status=ReviewStatus(r["status"]),
        created_at=r["created_at"],
        application_id=r.get("application_id"),
        applicant_name=r.get("applicant_name") or "",
        internship_title=r.get("internship_title") or "",
        details=r.get("details") or "",
        links=r.get("links") or "",
        hours=float(hours) if hours is not None else None,
        notes=r.get("notes") or "",
        reviewed_at=r.get("reviewed_at"),
        reviewed_by=r.get("reviewed_by"),
        rejection_reason=r.get("rejection_reason"),
    )


class MySQLTaskUpdateRepository(TaskUpdateRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, task_update_id: str) -> Optional[TaskUpdate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM task_updates WHERE task_update_id=%s", (task_update_id,))
            r = fetchone(cur)
            return _row_to_task_update(r) if r else None

    def create(self, task_update: TaskUpdate) -> None:
        insert_row(self._conn_factory, "task_updates", asdict(task_update))

    def list_for_applicant(self, applicant_id: str, *, limit: int = 200) -> Sequence[TaskUpdate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM task_updates WHERE applicant_id=%s ORDER BY created_at DESC LIMIT %s",
                (applicant_id, int(limit)),
            )
            return [_row_to_task_update(r) for r in fetchall(cur)]

    def list_for_company(
        self,
        company_id: str,
        *,
        status: Optional[ReviewStatus] = None,
        search: str = "",
        limit: int = 500,
    ) -> Sequence[TaskUpdate]:
        clauses = ["company_id=%s"]
        params: list[object] = [company_id]

        if status is not None:
            clauses.append("status=%s")
            params.append(ReviewStatus(status).value)
        if search.strip():
            sql, values = like_any(("title", "applicant_name", "internship_title"), search)
            clauses.append(sql)
            params.extend(values)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM task_updates
                WHERE {where_clause(clauses)}
                ORDER BY created_at DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_row_to_task_update(r) for r in fetchall(cur)]

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
            "task_updates",
            "task_update_id",
            record_id=record_id,
            expected=expected,
            new=new,
            fields=fields,
        )
