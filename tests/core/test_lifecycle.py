from __future__ import annotations

from datetime import datetime

import pytest

from src.internship_portal.internship_portal.core.enums import RecordKind, ReviewStatus, Role
from src.internship_portal.internship_portal.core.exceptions import (
    AuthorizationError,
    InvalidTransitionError,
    StaleRecordError,
    ValidationError,
)
from src.internship_portal.internship_portal.core.lifecycle import (
    Actor,
    check_transition,
    initial_status,
    is_active_application,
    is_terminal,
    transition,
)

ADMIN = Actor(user_id="admin-1", role=Role.ADMIN)
OTHER_ADMIN = Actor(user_id="admin-2", role=Role.ADMIN)
STUDENT = Actor(user_id="student-1", role=Role.STUDENT)


class FakeWriter:
    def __init__(self, status: ReviewStatus):
        self.status = status
        self.calls = []

    def compare_and_set_status(self, *, record_id, expected, new, fields):
        self.calls.append((record_id, expected, new, dict(fields)))
        if self.status != expected:
            return False
        self.status = new
        return True


def _check(kind, current, target, actor=ADMIN, **kwargs):
    return check_transition(kind, current, target, actor=actor, owner_id=STUDENT.user_id, admin_id=ADMIN.user_id, **kwargs)


def test_initial_status_per_kind():
    assert initial_status(RecordKind.APPLICATION) == ReviewStatus.SUBMITTED
    assert initial_status(RecordKind.TASK_UPDATE) == ReviewStatus.SUBMITTED
    assert initial_status(RecordKind.ATTENDANCE) == ReviewStatus.IN_PROGRESS


def test_terminal_and_active_helpers():
    assert is_terminal(ReviewStatus.APPROVED)
    assert is_terminal(ReviewStatus.REJECTED)
    assert not is_terminal(ReviewStatus.VIEWED)
    assert is_active_application(ReviewStatus.SUBMITTED)
    assert is_active_application(ReviewStatus.VIEWED)
    assert not is_active_application(ReviewStatus.APPROVED)


@pytest.mark.parametrize("kind", [RecordKind.APPLICATION, RecordKind.TASK_UPDATE])
@pytest.mark.parametrize(
    "current,target",
    [
        (ReviewStatus.SUBMITTED, ReviewStatus.VIEWED),
        (ReviewStatus.SUBMITTED, ReviewStatus.APPROVED),
        (ReviewStatus.SUBMITTED, ReviewStatus.REJECTED),
        (ReviewStatus.VIEWED, ReviewStatus.APPROVED),
        (ReviewStatus.VIEWED, ReviewStatus.REJECTED),
    ],
)
def test_admin_review_edges_allowed(kind, current, target):
    assert _check(kind, current, target) == target


def test_attendance_has_no_viewed_state():
    with pytest.raises(InvalidTransitionError):
        _check(RecordKind.ATTENDANCE, ReviewStatus.SUBMITTED, ReviewStatus.VIEWED)


def test_viewed_cannot_go_back_to_submitted():
    with pytest.raises(InvalidTransitionError) as exc:
        _check(RecordKind.APPLICATION, ReviewStatus.VIEWED, ReviewStatus.SUBMITTED)
    assert "Cannot change application from viewed to submitted" in str(exc.value)


def test_approved_cannot_be_rejected():
    with pytest.raises(InvalidTransitionError) as exc:
        _check(RecordKind.APPLICATION, ReviewStatus.APPROVED, ReviewStatus.REJECTED)
    assert str(exc.value) == "This application is already approved and cannot be rejected."


def test_rejected_cannot_be_approved():
    with pytest.raises(InvalidTransitionError) as exc:
        _check(RecordKind.TASK_UPDATE, ReviewStatus.REJECTED, ReviewStatus.APPROVED)
    assert str(exc.value) == "This task update is already rejected and cannot be approved."


@pytest.mark.parametrize("terminal", [ReviewStatus.APPROVED, ReviewStatus.REJECTED])
@pytest.mark.parametrize("target", list(ReviewStatus))
def test_terminal_states_are_frozen(terminal, target):
    with pytest.raises(InvalidTransitionError):
        _check(RecordKind.APPLICATION, terminal, target)


def test_terminal_check_runs_before_authorization():
    # even the wrong admin gets the "frozen" answer, not a permission error
    with pytest.raises(InvalidTransitionError):
        _check(RecordKind.APPLICATION, ReviewStatus.APPROVED, ReviewStatus.REJECTED, actor=OTHER_ADMIN)


def test_only_the_internships_admin_may_review():
    with pytest.raises(AuthorizationError):
        _check(RecordKind.APPLICATION, ReviewStatus.SUBMITTED, ReviewStatus.APPROVED, actor=OTHER_ADMIN)


def test_student_cannot_review_own_record():
    with pytest.raises(AuthorizationError):
        _check(RecordKind.TASK_UPDATE, ReviewStatus.SUBMITTED, ReviewStatus.APPROVED, actor=STUDENT)


def test_punch_out_requires_timestamp():
    with pytest.raises(ValidationError) as exc:
        _check(RecordKind.ATTENDANCE, ReviewStatus.IN_PROGRESS, ReviewStatus.SUBMITTED, actor=STUDENT)
    assert "punch-out time is required" in str(exc.value)


def test_punch_out_only_by_owner():
    with pytest.raises(AuthorizationError):
        _check(
            RecordKind.ATTENDANCE,
            ReviewStatus.IN_PROGRESS,
            ReviewStatus.SUBMITTED,
            actor=Actor(user_id="someone-else", role=Role.STUDENT),
            punch_out_at=datetime(2025, 1, 1, 17, 0),
        )


def test_transition_writes_with_expected_status_and_returns_patch():
    writer = FakeWriter(ReviewStatus.SUBMITTED)
    patch = transition(
        writer,
        kind=RecordKind.APPLICATION,
        record_id="app-1",
        current=ReviewStatus.SUBMITTED,
        target=ReviewStatus.APPROVED,
        actor=ADMIN,
        owner_id=STUDENT.user_id,
        admin_id=ADMIN.user_id,
        fields={"status_updated_by": ADMIN.user_id},
    )

    assert writer.status == ReviewStatus.APPROVED
    assert writer.calls == [("app-1", ReviewStatus.SUBMITTED, ReviewStatus.APPROVED, {"status_updated_by": "admin-1"})]
    assert patch == {"status_updated_by": "admin-1", "status": ReviewStatus.APPROVED}


def test_transition_raises_stale_when_store_moved_on():
    # loaded as submitted, but someone already approved it
    writer = FakeWriter(ReviewStatus.APPROVED)
    with pytest.raises(StaleRecordError):
        transition(
            writer,
            kind=RecordKind.APPLICATION,
            record_id="app-1",
            current=ReviewStatus.SUBMITTED,
            target=ReviewStatus.REJECTED,
            actor=ADMIN,
            owner_id=STUDENT.user_id,
            admin_id=ADMIN.user_id,
        )
    assert writer.status == ReviewStatus.APPROVED


def test_invalid_transition_never_reaches_the_store():
    writer = FakeWriter(ReviewStatus.APPROVED)
    with pytest.raises(InvalidTransitionError):
        transition(
            writer,
            kind=RecordKind.APPLICATION,
            record_id="app-1",
            current=ReviewStatus.APPROVED,
            target=ReviewStatus.REJECTED,
            actor=ADMIN,
            owner_id=STUDENT.user_id,
            admin_id=ADMIN.user_id,
        )
    assert writer.calls == []
