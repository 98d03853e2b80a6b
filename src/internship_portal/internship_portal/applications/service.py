from __future__ import annotations

import logging
from dataclasses import asdict, replace
from datetime import date
from typing import Dict, Mapping, Optional, Sequence, Union

from ..common.datetime_utils import new_id, now_local, parse_optional_date
from ..common.validators import optional_review_status, optional_text, require_non_empty
from ..core.constants import DEFAULT_ADMIN_LIST_LIMIT, DEFAULT_LIST_LIMIT
from ..core.enums import InternshipStatus, RecordKind, ReviewStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.lifecycle import ACTIVE_APPLICATION_STATUSES, Actor, initial_status, transition
from ..internships.repository import InternshipRepository
from ..users.repository import ProfileRepository
from .model import Application
from .repository import ApplicationRepository

logger = logging.getLogger(__name__)

APPLICANT_FIELDS = ("cover_letter", "experience", "skills", "availability", "portfolio", "resume_url")


class ApplicationService:
    """Use cases: apply to an internship and review applications.

    All status changes go through :func:`core.lifecycle.transition`.
    """

    def __init__(
        self,
        applications: ApplicationRepository,
        internships: InternshipRepository,
        profiles: ProfileRepository,
    ):
        self._applications = applications
        self._internships = internships
        self._profiles = profiles

    def apply(self, actor: Actor, internship_id: str, fields: Mapping[str, str]) -> Application:
        if actor.role != Role.STUDENT:
            raise AuthorizationError("Only students can apply to internships")

        unknown = set(fields) - set(APPLICANT_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown application fields: {', '.join(sorted(unknown))}")
        values = {k: optional_text(v) for k, v in fields.items()}
        values["cover_letter"] = require_non_empty(values.get("cover_letter"), "Cover letter")

        internship = self._internships.get(internship_id)
        if not internship or internship.status != InternshipStatus.ACTIVE:
            raise ValidationError("This internship is not open for applications")

        active = self._applications.list_for_applicant(
            actor.user_id,
            statuses=sorted(ACTIVE_APPLICATION_STATUSES, key=lambda s: s.value),
            limit=1,
        )
        if active:
            raise ValidationError(
                "You already have an active application. Please wait for a decision before applying to another internship."
            )
        if self._applications.list_for_applicant(actor.user_id, internship_id=internship_id, limit=1):
            raise ValidationError("You have already applied to this internship")

        profile = self._profiles.get(actor.user_id)
        if not profile:
            raise NotFoundError("Profile not found")

        application = Application(
            application_id=new_id(),
            internship_id=internship.internship_id,
            company_id=internship.created_by,
            applicant_id=actor.user_id,
            status=initial_status(RecordKind.APPLICATION),
            applied_at=now_local(),
            internship_title=internship.title,
            company_name=internship.company,
            applicant_name=profile.full_name,
            applicant_email=profile.email,
            cover_letter=values["cover_letter"],
            experience=values.get("experience", ""),
            skills=values.get("skills", ""),
            availability=values.get("availability", ""),
            portfolio=values.get("portfolio", ""),
            resume_url=values.get("resume_url") or profile.resume_url,
        )
        self._applications.create(application)
        self._internships.increment_applications(internship.internship_id)
        logger.info("application %s submitted by %s for %s", application.application_id, actor.user_id, internship_id)
        return application

    def get(self, application_id: str) -> Application:
        application = self._applications.get(application_id)
        if not application:
            raise NotFoundError("Application not found")
        return application

    def get_for_actor(self, actor: Actor, application_id: str) -> Application:
        application = self.get(application_id)
        if actor.user_id not in (application.applicant_id, application.company_id):
            raise AuthorizationError("You cannot view this application")
        return application

    def _review(
        self,
        actor: Actor,
        application_id: str,
        target: ReviewStatus,
        fields: Optional[Dict[str, object]] = None,
    ) -> Application:
        application = self.get(application_id)
        patch = {"status_updated_at": now_local(), "status_updated_by": actor.user_id}
        patch.update(fields or {})
        applied = transition(
            self._applications,
            kind=RecordKind.APPLICATION,
            record_id=application.application_id,
            current=application.status,
            target=target,
            actor=actor,
            owner_id=application.applicant_id,
            admin_id=application.company_id,
            fields=patch,
        )
        return replace(application, **applied)

    def mark_viewed(self, actor: Actor, application_id: str) -> Application:
        return self._review(actor, application_id, ReviewStatus.VIEWED)

    def approve(
        self,
        actor: Actor,
        application_id: str,
        *,
        start_date: Union[str, date, None] = None,
    ) -> Application:
        fields: Dict[str, object] = {}
        parsed = parse_optional_date(start_date)
        if parsed is not None:
            fields["start_date"] = parsed
        return self._review(actor, application_id, ReviewStatus.APPROVED, fields)

    def reject(self, actor: Actor, application_id: str, *, reason: str = "") -> Application:
        fields: Dict[str, object] = {}
        reason = optional_text(reason)
        if reason:
            fields["rejection_reason"] = reason
        return self._review(actor, application_id, ReviewStatus.REJECTED, fields)

    def confirm_start_date(self, actor: Actor, application_id: str, start_date: Union[str, date]) -> Application:
        application = self.get(application_id)
        if actor.user_id != application.applicant_id:
            raise AuthorizationError("Only the applicant can confirm the start date")
        if application.status != ReviewStatus.APPROVED:
            raise ValidationError("Only approved applications can confirm a start date")
        if application.start_date_confirmed:
            raise ValidationError("The start date has already been confirmed")

        parsed = parse_optional_date(start_date)
        if parsed is None:
            raise ValidationError("Start date is required")

        if not self._applications.confirm_start_date(application_id, parsed):
            raise ValidationError("The start date could not be confirmed. Reload and try again.")
        logger.info("application %s start date confirmed: %s", application_id, parsed.isoformat())
        return replace(application, start_date=parsed, start_date_confirmed=True)

    def list_mine(self, actor: Actor) -> Sequence[Application]:
        return self._applications.list_for_applicant(actor.user_id, limit=DEFAULT_LIST_LIMIT)

    def list_approved(self, actor: Actor) -> Sequence[Application]:
        return self._applications.list_for_applicant(
            actor.user_id,
            statuses=[ReviewStatus.APPROVED],
            limit=DEFAULT_LIST_LIMIT,
        )

    def require_approved(self, actor: Actor, internship_id: str) -> Application:
        """The student's approved application for ``internship_id``; needed before tasks and attendance."""

        found = self._applications.list_for_applicant(
            actor.user_id,
            statuses=[ReviewStatus.APPROVED],
            internship_id=internship_id,
            limit=1,
        )
        if not found:
            raise ValidationError("You need an approved application for this internship first")
        return found[0]

    def list_for_admin(
        self,
        actor: Actor,
        *,
        status: Optional[ReviewStatus] = None,
        search: str = "",
    ) -> Sequence[Application]:
        if actor.role != Role.ADMIN:
            raise AuthorizationError("Only company admins can review applications")
        return self._applications.list_for_company(
            actor.user_id,
            status=optional_review_status(status),
            search=search or "",
            limit=DEFAULT_ADMIN_LIST_LIMIT,
        )

    def stats_for_admin(self, actor: Actor) -> Dict[str, int]:
        if actor.role != Role.ADMIN:
            raise AuthorizationError("Only company admins can review applications")
        counts = self._applications.count_by_status(actor.user_id)
        stats = {"total": sum(counts.values())}
        for status in (ReviewStatus.SUBMITTED, ReviewStatus.VIEWED, ReviewStatus.APPROVED, ReviewStatus.REJECTED):
            stats[status.value] = int(counts.get(status.value, 0))
        return stats


def application_to_dict(application: Application) -> dict:
    data = asdict(application)
    data["status"] = application.status.value
    for key in ("applied_at", "status_updated_at", "start_date"):
        value = data.get(key)
        data[key] = value.isoformat() if value else None
    return data
