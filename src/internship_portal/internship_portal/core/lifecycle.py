"""Review lifecycle shared by applications, task updates and attendance entries.

Every status change in the system goes through :func:`transition`, which
validates the move against the transition table and then writes it with a
compare-and-set on the previously loaded status.

    submitted ──► viewed ──► approved | rejected
        └──────────────────► approved | rejected

    in-progress ──► submitted ──► approved | rejected      (attendance)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Protocol

from .enums import RecordKind, ReviewStatus, Role
from .exceptions import AuthorizationError, InvalidTransitionError, StaleRecordError, ValidationError

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({ReviewStatus.APPROVED, ReviewStatus.REJECTED})
ACTIVE_APPLICATION_STATUSES = frozenset({ReviewStatus.SUBMITTED, ReviewStatus.VIEWED})

_REVIEW_EDGES: Dict[tuple, Role] = {
    (ReviewStatus.SUBMITTED, ReviewStatus.VIEWED): Role.ADMIN,
    (ReviewStatus.SUBMITTED, ReviewStatus.APPROVED): Role.ADMIN,
    (ReviewStatus.VIEWED, ReviewStatus.APPROVED): Role.ADMIN,
    (ReviewStatus.SUBMITTED, ReviewStatus.REJECTED): Role.ADMIN,
    (ReviewStatus.VIEWED, ReviewStatus.REJECTED): Role.ADMIN,
}

_ATTENDANCE_EDGES: Dict[tuple, Role] = {
    (ReviewStatus.IN_PROGRESS, ReviewStatus.SUBMITTED): Role.STUDENT,
    (ReviewStatus.SUBMITTED, ReviewStatus.APPROVED): Role.ADMIN,
    (ReviewStatus.SUBMITTED, ReviewStatus.REJECTED): Role.ADMIN,
}

TRANSITIONS: Dict[RecordKind, Dict[tuple, Role]] = {
    RecordKind.APPLICATION: _REVIEW_EDGES,
    RecordKind.TASK_UPDATE: _REVIEW_EDGES,
    RecordKind.ATTENDANCE: _ATTENDANCE_EDGES,
}


@dataclass(frozen=True)
class Actor:
    """Who is performing an action."""

    user_id: str
    role: Role


class StatusWriter(Protocol):
    def compare_and_set_status(
        self,
        *,
        record_id: str,
        expected: ReviewStatus,
        new: ReviewStatus,
        fields: Mapping[str, Any],
    ) -> bool:
        """Write ``new`` (plus ``fields``) only if the stored status still equals ``expected``."""

        raise NotImplementedError


def initial_status(kind: RecordKind) -> ReviewStatus:
    if kind == RecordKind.ATTENDANCE:
        return ReviewStatus.IN_PROGRESS
    return ReviewStatus.SUBMITTED


def is_terminal(status: ReviewStatus) -> bool:
    return ReviewStatus(status) in TERMINAL_STATUSES


def is_active_application(status: ReviewStatus) -> bool:
    return ReviewStatus(status) in ACTIVE_APPLICATION_STATUSES


def _frozen_message(kind: RecordKind, current: ReviewStatus, target: ReviewStatus) -> str:
    if current == ReviewStatus.APPROVED and target == ReviewStatus.REJECTED:
        return f"This {kind.value} is already approved and cannot be rejected."
    if current == ReviewStatus.REJECTED and target == ReviewStatus.APPROVED:
        return f"This {kind.value} is already rejected and cannot be approved."
    return f"This {kind.value} is already {current.value} and cannot be changed."


def check_transition(
    kind: RecordKind,
    current: ReviewStatus,
    target: ReviewStatus,
    *,
    actor: Actor,
    owner_id: str,
    admin_id: str,
    punch_out_at: Optional[datetime] = None,
) -> ReviewStatus:
    """Validate a status change without touching the store.

    Raises InvalidTransitionError, AuthorizationError or ValidationError.
    """

    current = ReviewStatus(current)
    target = ReviewStatus(target)

    if current in TERMINAL_STATUSES:
        raise InvalidTransitionError(_frozen_message(kind, current, target))

    required_role = TRANSITIONS[kind].get((current, target))
    if required_role is None:
        raise InvalidTransitionError(f"Cannot change {kind.value} from {current.value} to {target.value}.")

    if required_role == Role.ADMIN:
        if actor.role != Role.ADMIN or actor.user_id != admin_id:
            raise AuthorizationError(f"Only the internship's admin can review this {kind.value}.")
    elif actor.role != Role.STUDENT or actor.user_id != owner_id:
        raise AuthorizationError(f"Only the student who owns this {kind.value} can do that.")

    if kind == RecordKind.ATTENDANCE and target == ReviewStatus.SUBMITTED and punch_out_at is None:
        raise ValidationError("A punch-out time is required.")

    return target


def transition(
    writer: StatusWriter,
    *,
    kind: RecordKind,
    record_id: str,
    current: ReviewStatus,
    target: ReviewStatus,
    actor: Actor,
    owner_id: str,
    admin_id: str,
    fields: Optional[Mapping[str, Any]] = None,
    punch_out_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Validate and apply one status change; returns the applied patch.

    ``current`` is the status the caller already loaded. The write only
    succeeds if the store still holds that status, otherwise StaleRecordError
    is raised and nothing changes.
    """

    target = check_transition(
        kind,
        current,
        target,
        actor=actor,
        owner_id=owner_id,
        admin_id=admin_id,
        punch_out_at=punch_out_at,
    )

    patch: Dict[str, Any] = dict(fields or {})
    ok = writer.compare_and_set_status(
        record_id=record_id,
        expected=ReviewStatus(current),
        new=target,
        fields=patch,
    )
    if not ok:
        raise StaleRecordError(f"This {kind.value} was changed by someone else. Reload and try again.")

    logger.info("%s %s: %s -> %s by %s", kind.value, record_id, ReviewStatus(current).value, target.value, actor.user_id)
    patch["status"] = target
    return patch
