from __future__ import annotations

import logging
from dataclasses import asdict, replace
from datetime import date
from typing import Mapping, Optional, Sequence

from ..common.datetime_utils import new_id, now_local, parse_optional_date
from ..common.validators import optional_text
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import InternshipStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.lifecycle import Actor
from .model import Internship
from .repository import InternshipRepository

logger = logging.getLogger(__name__)

TEXT_FIELDS = (
    "title",
    "company",
    "location",
    "type",
    "duration",
    "salary",
    "description",
    "requirements",
    "responsibilities",
    "benefits",
    "skills_required",
    "department",
    "contact_email",
)
DATE_FIELDS = ("start_date", "end_date", "application_deadline")

REQUIRED_TO_PUBLISH = {
    "title": "Title is required",
    "company": "Company is required",
    "location": "Location is required",
    "duration": "Duration is required",
    "description": "Description is required",
    "requirements": "Requirements are required",
}


def _clean_fields(fields: Mapping[str, object]) -> dict:
    unknown = set(fields) - set(TEXT_FIELDS) - set(DATE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown internship fields: {', '.join(sorted(unknown))}")

    values: dict = {}
    for key, value in fields.items():
        if key in DATE_FIELDS:
            values[key] = parse_optional_date(value)
        else:
            values[key] = optional_text(value)
    return values


def validate_for_publish(internship: Internship, *, today: Optional[date] = None) -> None:
    today = today or now_local().date()
    errors = [msg for field, msg in REQUIRED_TO_PUBLISH.items() if not getattr(internship, field).strip()]

    if internship.application_deadline is None:
        errors.append("Application deadline is required")
    elif internship.application_deadline <= today:
        errors.append("Application deadline must be in the future")

    if internship.start_date and internship.end_date and internship.start_date >= internship.end_date:
        errors.append("End date must be after start date")

    if errors:
        raise ValidationError("; ".join(errors))


class InternshipService:
    """Use cases: post, edit and browse internships."""

    def __init__(self, internships: InternshipRepository):
        self._internships = internships

    @staticmethod
    def _require_admin(actor: Actor) -> None:
        if actor.role != Role.ADMIN:
            raise AuthorizationError("Only company admins can manage internships")

    def get(self, internship_id: str) -> Internship:
        internship = self._internships.get(internship_id)
        if not internship:
            raise NotFoundError("Internship not found")
        return internship

    def get_owned(self, actor: Actor, internship_id: str) -> Internship:
        self._require_admin(actor)
        internship = self.get(internship_id)
        if internship.created_by != actor.user_id:
            raise AuthorizationError("You can only manage internships you created")
        return internship

    def create(self, actor: Actor, fields: Mapping[str, object], *, publish: bool = False) -> Internship:
        self._require_admin(actor)
        values = _clean_fields(fields)
        if not values.get("title"):
            raise ValidationError("Title is required")

        now = now_local()
        internship = Internship(
            internship_id=new_id(),
            status=InternshipStatus.ACTIVE if publish else InternshipStatus.DRAFT,
            created_by=actor.user_id,
            created_at=now,
            updated_at=now,
            **{"company": "", **values},
        )
        if publish:
            validate_for_publish(internship, today=now.date())

        self._internships.create(internship)
        logger.info("internship %s created by %s (%s)", internship.internship_id, actor.user_id, internship.status.value)
        return internship

    def update(self, actor: Actor, internship_id: str, fields: Mapping[str, object]) -> Internship:
        current = self.get_owned(actor, internship_id)
        values = _clean_fields(fields)
        if "title" in values and not values["title"]:
            raise ValidationError("Title is required")

        updated = replace(current, updated_at=now_local(), **values)
        if updated.status == InternshipStatus.ACTIVE:
            validate_for_publish(updated)

        values["updated_at"] = updated.updated_at
        self._internships.update(internship_id, values)
        return updated

    def set_status(self, actor: Actor, internship_id: str, status: InternshipStatus) -> Internship:
        try:
            status = InternshipStatus(status)
        except ValueError:
            raise ValidationError(f"Invalid internship status: {status!r}")
        current = self.get_owned(actor, internship_id)
        updated = replace(current, status=status, updated_at=now_local())
        if status == InternshipStatus.ACTIVE:
            validate_for_publish(updated)

        self._internships.update(internship_id, {"status": status, "updated_at": updated.updated_at})
        logger.info("internship %s set to %s", internship_id, status.value)
        return updated

    def delete(self, actor: Actor, internship_id: str) -> None:
        self.get_owned(actor, internship_id)
        if not self._internships.delete(internship_id):
            raise NotFoundError("Internship not found")
        logger.info("internship %s deleted by %s", internship_id, actor.user_id)

    def list_mine(self, actor: Actor) -> Sequence[Internship]:
        self._require_admin(actor)
        return self._internships.list_by_creator(actor.user_id, limit=DEFAULT_LIST_LIMIT)

    def browse(self, *, search: str = "", location: str = "", type: str = "") -> Sequence[Internship]:
        return self._internships.search(
            status=InternshipStatus.ACTIVE,
            text=search or "",
            location=location or "",
            type=type or "",
            limit=DEFAULT_LIST_LIMIT,
        )


def internship_to_dict(internship: Internship) -> dict:
    data = asdict(internship)
    data["status"] = internship.status.value
    for key in ("created_at", "updated_at") + DATE_FIELDS:
        value = data.get(key)
        data[key] = value.isoformat() if value else None
    return data
