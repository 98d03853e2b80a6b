from __future__ import annotations

import logging
from dataclasses import asdict, replace
from datetime import date
from typing import Optional, Sequence, Union

from ..applications.service import ApplicationService
from ..common.datetime_utils import new_id, now_local, parse_optional_date
from ..common.validators import optional_non_negative_number, optional_review_status, optional_text, require_non_empty
from ..core.constants import DEFAULT_ADMIN_LIST_LIMIT, DEFAULT_LIST_LIMIT
from ..core.enums import RecordKind, ReviewStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError
from ..core.lifecycle import Actor, initial_status, transition
from .model import TaskUpdate
from .repository import TaskUpdateRepository

logger = logging.getLogger(__name__)


class TaskUpdateService:
    """Use cases: students report progress, the internship's admin reviews it."""

    def __init__(self, task_updates: TaskUpdateRepository, applications: ApplicationService):
        self._task_updates = task_updates
        self._applications = applications

    def submit(
        self,
        actor: Actor,
        *,
        internship_id: str,
        title: str,
        details: str,
        links: str = "",
        hours=None,
        work_date: Union[str, date, None] = None,
        notes: str = "",
    ) -> TaskUpdate:
        if actor.role != Role.STUDENT:
            raise AuthorizationError("Only students can submit task updates")

        title = require_non_empty(title, "Title")
        details = require_non_empty(details, "Details")
        hours_value = optional_non_negative_number(hours, "Hours")
        now = now_local()
        day = parse_optional_date(work_date) or now.date()

        application = self._applications.require_approved(actor, internship_id)

        task_update = TaskUpdate(
            task_update_id=new_id(),
            internship_id=internship_id,
            applicant_id=actor.user_id,
            company_id=application.company_id,
            title=title,
            work_date=day,
            status=initial_status(RecordKind.TASK_UPDATE),
            created_at=now,
            application_id=application.application_id,
            applicant_name=application.applicant_name,
            internship_title=application.internship_title,
            details=details,
            links=optional_text(links),
            hours=hours_value,
            notes=optional_text(notes),
        )
        self._task_updates.create(task_update)
        logger.info("task update %s submitted by %s", task_update.task_update_id, actor.user_id)
        return task_update

    def get(self, task_update_id: str) -> TaskUpdate:
        task_update = self._task_updates.get(task_update_id)
        if not task_update:
            raise NotFoundError("Task update not found")
        return task_update

    def _review(self, actor: Actor, task_update_id: str, target: ReviewStatus, reason: str = "") -> TaskUpdate:
        task_update = self.get(task_update_id)
        fields = {"reviewed_at": now_local(), "reviewed_by": actor.user_id}
        reason = optional_text(reason)
        if target == ReviewStatus.REJECTED and reason:
            fields["rejection_reason"] = reason

        applied = transition(
            self._task_updates,
            kind=RecordKind.TASK_UPDATE,
            record_id=task_update.task_update_id,
            current=task_update.status,
            target=target,
            actor=actor,
            owner_id=task_update.applicant_id,
            admin_id=task_update.company_id,
            fields=fields,
        )
        return replace(task_update, **applied)

    def mark_viewed(self, actor: Actor, task_update_id: str) -> TaskUpdate:
        return self._review(actor, task_update_id, ReviewStatus.VIEWED)

    def approve(self, actor: Actor, task_update_id: str) -> TaskUpdate:
        return self._review(actor, task_update_id, ReviewStatus.APPROVED)

    def reject(self, actor: Actor, task_update_id: str, *, reason: str = "") -> TaskUpdate:
        return self._review(actor, task_update_id, ReviewStatus.REJECTED, reason)

    def list_mine(self, actor: Actor) -> Sequence[TaskUpdate]:
        return self._task_updates.list_for_applicant(actor.user_id, limit=DEFAULT_LIST_LIMIT)

    def list_for_admin(
        self,
        actor: Actor,
        *,
        status: Optional[ReviewStatus] = None,
        search: str = "",
    ) -> Sequence[TaskUpdate]:
        if actor.role != Role.ADMIN:
            raise AuthorizationError("Only company admins can review task updates")
        return self._task_updates.list_for_company(
            actor.user_id,
            status=optional_review_status(status),
            search=search or "",
            limit=DEFAULT_ADMIN_LIST_LIMIT,
        )


def task_update_to_dict(task_update: TaskUpdate) -> dict:
    data = asdict(task_update)
    data["status"] = task_update.status.value
    for key in ("work_date", "created_at", "reviewed_at"):
        value = data.get(key)
        data[key] = value.isoformat() if value else None
    return data
