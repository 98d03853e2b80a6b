from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class UserProfile:
    """Domain entity: the public profile of a student or company admin.

    Plain data object; no DB access here.
    """

    uid: str
    email: str
    first_name: str
    last_name: str
    role: Role
    created_at: datetime
    updated_at: datetime
    phone_number: Optional[str] = None
    university: Optional[str] = None
    major: Optional[str] = None
    graduation_year: Optional[str] = None
    photo_path: Optional[str] = None
    photo_url: Optional[str] = None
    resume_path: Optional[str] = None
    resume_url: Optional[str] = None
    auth_provider: str = "password"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class Credential:
    """Sign-in record owned by the auth service. ``password_hash`` is None for federated-only accounts."""

    uid: str
    email: str
    password_hash: Optional[str]
    is_active: bool = True
