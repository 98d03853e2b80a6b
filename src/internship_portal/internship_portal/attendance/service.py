from __future__ import annotations

import logging
from dataclasses import asdict, replace
from datetime import datetime
from typing import Optional, Sequence

from ..applications.service import ApplicationService
from ..common.datetime_utils import new_id, now_local
from ..common.validators import optional_review_status, optional_text
from ..core.constants import DEFAULT_ADMIN_LIST_LIMIT, DEFAULT_LIST_LIMIT
from ..core.enums import RecordKind, ReviewStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.lifecycle import Actor, initial_status, transition
from .model import AttendanceEntry
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    """Use cases: punch in/out on an approved internship and review the sessions.

    An entry starts ``in-progress`` at punch-in, becomes ``submitted`` at
    punch-out and is then approved or rejected by the internship's admin.
    """

    def __init__(self, attendance_repo: AttendanceRepository, applications: ApplicationService):
        self._attendance_repo = attendance_repo
        self._applications = applications

    def punch_in(self, actor: Actor, internship_id: str, *, now: Optional[datetime] = None) -> AttendanceEntry:
        if actor.role != Role.STUDENT:
            raise AuthorizationError("Only students can punch in")

        application = self._applications.require_approved(actor, internship_id)

        if self._attendance_repo.get_active(actor.user_id, internship_id):
            raise ValidationError("You are already punched in. Please punch out first.")

        now = now or now_local()
        entry = AttendanceEntry(
            attendance_id=new_id(),
            internship_id=internship_id,
            applicant_id=actor.user_id,
            company_id=application.company_id,
            punch_in_at=now,
            status=initial_status(RecordKind.ATTENDANCE),
            created_at=now,
            application_id=application.application_id,
            applicant_name=application.applicant_name,
            internship_title=application.internship_title,
        )
        self._attendance_repo.create(entry)
        logger.info("attendance %s: %s punched in for %s", entry.attendance_id, actor.user_id, internship_id)
        return entry

    def punch_out(
        self,
        actor: Actor,
        *,
        internship_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceEntry:
        entry = self._attendance_repo.get_active(actor.user_id, internship_id)
        if not entry:
            raise ValidationError("No active session to punch out from.")

        now = now or now_local()
        if now < entry.punch_in_at:
            raise ValidationError("Punch-out time cannot be earlier than punch-in time.")

        applied = transition(
            self._attendance_repo,
            kind=RecordKind.ATTENDANCE,
            record_id=entry.attendance_id,
            current=entry.status,
            target=ReviewStatus.SUBMITTED,
            actor=actor,
            owner_id=entry.applicant_id,
            admin_id=entry.company_id,
            fields={"punch_out_at": now},
            punch_out_at=now,
        )
        return replace(entry, **applied)

    def get(self, attendance_id: str) -> AttendanceEntry:
        entry = self._attendance_repo.get(attendance_id)
        if not entry:
            raise NotFoundError("Attendance entry not found")
        return entry

    def get_active(self, actor: Actor, internship_id: Optional[str] = None) -> Optional[AttendanceEntry]:
        return self._attendance_repo.get_active(actor.user_id, internship_id)

    def _review(self, actor: Actor, attendance_id: str, target: ReviewStatus, reason: str = "") -> AttendanceEntry:
        entry = self.get(attendance_id)
        fields = {"reviewed_at": now_local(), "reviewed_by": actor.user_id}
        reason = optional_text(reason)
        if target == ReviewStatus.REJECTED and reason:
            fields["rejection_reason"] = reason

        applied = transition(
            self._attendance_repo,
            kind=RecordKind.ATTENDANCE,
            record_id=entry.attendance_id,
            current=entry.status,
            target=target,
            actor=actor,
            owner_id=entry.applicant_id,
            admin_id=entry.company_id,
            fields=fields,
        )
        return replace(entry, **applied)

    def approve(self, actor: Actor, attendance_id: str) -> AttendanceEntry:
        return self._review(actor, attendance_id, ReviewStatus.APPROVED)

    def reject(self, actor: Actor, attendance_id: str, *, reason: str = "") -> AttendanceEntry:
        return self._review(actor, attendance_id, ReviewStatus.REJECTED, reason)

    def list_mine(self, actor: Actor, internship_id: Optional[str] = None) -> Sequence[AttendanceEntry]:
        return self._attendance_repo.list_for_applicant(
            actor.user_id,
            internship_id=internship_id or None,
            limit=DEFAULT_LIST_LIMIT,
        )

    def list_for_admin(
        self,
        actor: Actor,
        *,
        status: Optional[ReviewStatus] = None,
        search: str = "",
    ) -> Sequence[AttendanceEntry]:
        if actor.role != Role.ADMIN:
            raise AuthorizationError("Only company admins can review attendance")
        return self._attendance_repo.list_for_company(
            actor.user_id,
            status=optional_review_status(status),
            search=search or "",
            limit=DEFAULT_ADMIN_LIST_LIMIT,
        )


def entry_to_dict(entry: AttendanceEntry) -> dict:
    data = asdict(entry)
    data["status"] = entry.status.value
    for key in ("punch_in_at", "punch_out_at", "created_at", "reviewed_at"):
        value = data.get(key)
        data[key] = value.isoformat() if value else None
    data["duration_hours"] = entry.duration_hours
    return data
