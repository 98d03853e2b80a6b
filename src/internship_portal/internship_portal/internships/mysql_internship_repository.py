from __future__ import annotations

from dataclasses import asdict
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import InternshipStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, insert_row, like_any, update_row, where_clause
from .model import Internship
from .repository import InternshipRepository

_COLUMNS = (
    "internship_id, title, company, location, type, duration, start_date, end_date, salary, description, "
    "requirements, responsibilities, benefits, application_deadline, skills_required, department, "
    "contact_email, status, created_by, applications_count, created_at, updated_at"
)


def _row_to_internship(r: dict) -> Internship:
    return Internship(
        internship_id=r["internship_id"],
        title=r["title"],
        company=r["company"],
        status=InternshipStatus(r["status"]),
        created_by=r["created_by"],
        created_at=r["created_at"],
        updated_at=r["updated_at"],
        location=r.get("location") or "",
        type=r.get("type") or "",
        duration=r.get("duration") or "",
        start_date=r.get("start_date"),
        end_date=r.get("end_date"),
        salary=r.get("salary") or "",
        description=r.get("description") or "",
        requirements=r.get("requirements") or "",
        responsibilities=r.get("responsibilities") or "",
        benefits=r.get("benefits") or "",
        application_deadline=r.get("application_deadline"),
        skills_required=r.get("skills_required") or "",
        department=r.get("department") or "",
        contact_email=r.get("contact_email") or "",
        applications_count=int(r.get("applications_count") or 0),
    )


class MySQLInternshipRepository(InternshipRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, internship_id: str) -> Optional[Internship]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM internships WHERE internship_id=%s", (internship_id,))
            r = fetchone(cur)
            return _row_to_internship(r) if r else None

    def create(self, internship: Internship) -> None:
        insert_row(self._conn_factory, "internships", asdict(internship))

    def update(self, internship_id: str, fields: Mapping[str, Any]) -> bool:
        return update_row(self._conn_factory, "internships", "internship_id", internship_id, fields)

    def delete(self, internship_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM internships WHERE internship_id=%s", (internship_id,))
            return cur.rowcount > 0

    def increment_applications(self, internship_id: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE internships SET applications_count = applications_count + 1 WHERE internship_id=%s",
                (internship_id,),
            )

    def list_by_creator(self, created_by: str, *, limit: int = 200) -> Sequence[Internship]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM internships WHERE created_by=%s ORDER BY created_at DESC LIMIT %s",
                (created_by, int(limit)),
            )
            return [_row_to_internship(r) for r in fetchall(cur)]

    def search(
        self,
        *,
        status: InternshipStatus,
        text: str = "",
        location: str = "",
        type: str = "",
        limit: int = 200,
    ) -> Sequence[Internship]:
        clauses = ["status=%s"]
        params: list[object] = [status.value]

        if text.strip():
            sql, values = like_any(("title", "company", "description", "skills_required"), text)
            clauses.append(sql)
            params.extend(values)
        if location.strip():
            sql, values = like_any(("location",), location)
            clauses.append(sql)
            params.extend(values)
        if type.strip():
            clauses.append("LOWER(type)=%s")
            params.append(type.strip().lower())

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM internships
                WHERE {where_clause(clauses)}
                ORDER BY created_at DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_row_to_internship(r) for r in fetchall(cur)]
