from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from .model import Credential, UserProfile


class ProfileRepository(Protocol):
    """Repository interface for UserProfile.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get(self, uid: str) -> Optional[UserProfile]:
        raise NotImplementedError

    def create(self, profile: UserProfile) -> None:
        raise NotImplementedError

    def update(self, uid: str, fields: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def delete(self, uid: str) -> bool:
        raise NotImplementedError


class CredentialRepository(Protocol):
    def get_by_email(self, email: str) -> Optional[Credential]:
        raise NotImplementedError

    def get_by_uid(self, uid: str) -> Optional[Credential]:
        raise NotImplementedError

    def create(self, credential: Credential) -> None:
        raise NotImplementedError

    def set_password_hash(self, uid: str, password_hash: str) -> bool:
        raise NotImplementedError

    def delete(self, uid: str) -> bool:
        raise NotImplementedError
