from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for authorization."""

    ADMIN = "admin"
    STUDENT = "student"


class RecordKind(str, Enum):
    """Record kinds that share the review lifecycle."""

    APPLICATION = "application"
    TASK_UPDATE = "task update"
    ATTENDANCE = "attendance entry"


class ReviewStatus(str, Enum):
    """Canonical status vocabulary for applications, task updates and attendance."""

    IN_PROGRESS = "in-progress"
    SUBMITTED = "submitted"
    VIEWED = "viewed"
    APPROVED = "approved"
    REJECTED = "rejected"


class InternshipStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    CLOSED = "closed"


class AuthEvent(str, Enum):
    """Auth-state notifications delivered to subscribed sessions."""

    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"
    PROFILE_UPDATED = "profile_updated"
    DELETED = "deleted"


class BlobKind(str, Enum):
    PHOTOS = "photos"
    RESUMES = "resumes"


class LetterKind(str, Enum):
    OFFER = "offer"
    JOINING = "joining"
