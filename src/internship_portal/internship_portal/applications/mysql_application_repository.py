from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Any, Dict, Mapping, Optional, Sequence

from ..core.enums import ReviewStatus
from ..database.connection import DatabaseConnection
from ..database import mysql_base
from ..database.mysql_base import db_cursor, fetchall, fetchone, insert_row, like_any, where_clause
from .model import Application
from .repository import ApplicationRepository

_COLUMNS = (
    "application_id, internship_id, company_id, applicant_id, status, applied_at, internship_title, "
    "company_name, applicant_name, applicant_email, cover_letter, experience, skills, availability, "
    "portfolio, resume_url, status_updated_at, status_updated_by, rejection_reason, start_date, "
    "start_date_confirmed"
)


def _row_to_application(r: dict) -> Application:
    return Application(
        application_id=r["application_id"],
        internship_id=r["internship_id"],
        company_id=r["company_id"],
        applicant_id=r["applicant_id"],
        status=ReviewStatus(r["status"]),
        applied_at=r["applied_at"],
        internship_title=r.get("internship_title") or "",
        company_name=r.get("company_name") or "",
        applicant_name=r.get("applicant_name") or "",
        applicant_email=r.get("applicant_email") or "",
        cover_letter=r.get("cover_letter") or "",
        experience=r.get("experience") or "",
        skills=r.get("skills") or "",
        availability=r.get("availability") or "",
        portfolio=r.get("portfolio") or "",
        resume_url=r.get("resume_url"),
        status_updated_at=r.get("status_updated_at"),
        status_updated_by=r.get("status_updated_by"),
        rejection_reason=r.get("rejection_reason"),
        start_date=r.get("start_date"),
        start_date_confirmed=bool(r.get("start_date_confirmed")),
    )


class MySQLApplicationRepository(ApplicationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, application_id: str) -> Optional[Application]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM applications WHERE application_id=%s", (application_id,))
            r = fetchone(cur)
            return _row_to_application(r) if r else None

    def create(self, application: Application) -> None:
        values = asdict(application)
        values["start_date_confirmed"] = int(application.start_date_confirmed)
        insert_row(self._conn_factory, "applications", values)

    def list_for_applicant(
        self,
        applicant_id: str,
        *,
        statuses: Optional[Sequence[ReviewStatus]] = None,
        internship_id: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[Application]:
        clauses = ["applicant_id=%s"]
        params: list[object] = [applicant_id]

        if statuses:
            clauses.append("status IN (" + ",".join(["%s"] * len(statuses)) + ")")
            params.extend(ReviewStatus(s).value for s in statuses)
        if internship_id is not None:
            clauses.append("internship_id=%s")
            params.append(internship_id)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM applications
                WHERE {where_clause(clauses)}
                ORDER BY applied_at DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_row_to_application(r) for r in fetchall(cur)]

    def list_for_company(
        self,
        company_id: str,
        *,
        status: Optional[ReviewStatus] = None,
        search: str = "",
        limit: int = 500,
    ) -> Sequence[Application]:
        clauses = ["company_id=%s"]
        params: list[object] = [company_id]

        if status is not None:
            clauses.append("status=%s")
            params.append(ReviewStatus(status).value)
        if search.strip():
            sql, values = like_any(("applicant_name", "applicant_email", "internship_title"), search)
            clauses.append(sql)
            params.extend(values)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM applications
                WHERE {where_clause(clauses)}
                ORDER BY applied_at DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_row_to_application(r) for r in fetchall(cur)]

    def count_by_status(self, company_id: str) -> Dict[str, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT status, COUNT(*) AS n FROM applications WHERE company_id=%s GROUP BY status",
                (company_id,),
            )
            return {r["status"]: int(r["n"]) for r in fetchall(cur)}

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
            "applications",
            "application_id",
            record_id=record_id,
            expected=expected,
            new=new,
            fields=fields,
        )

    def confirm_start_date(self, application_id: str, start_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE applications
                SET start_date=%s, start_date_confirmed=1
                WHERE application_id=%s AND status=%s AND start_date_confirmed=0
                """,
                (start_date, application_id, ReviewStatus.APPROVED.value),
            )
            return cur.rowcount > 0
