from __future__ import annotations

import logging
from typing import Callable, Optional

from ..core.enums import AuthEvent
from ..core.exceptions import AuthenticationError
from ..core.lifecycle import Actor
from .model import UserProfile
from .repository import ProfileRepository
from .service import AuthService

logger = logging.getLogger(__name__)


class AuthSession:
    """Current user + profile for one explicitly scoped unit of work.

    ``open()`` subscribes to auth-state changes and loads the profile;
    ``close()`` unsubscribes. The Flask app opens one per request and closes
    it on teardown, so there is no module-level current user.
    """

    def __init__(self, auth: AuthService, profiles: ProfileRepository, uid: Optional[str] = None):
        self._auth = auth
        self._profiles = profiles
        self._uid = uid
        self._profile: Optional[UserProfile] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    def open(self) -> "AuthSession":
        if self._unsubscribe is None:
            self._unsubscribe = self._auth.subscribe(self._on_auth_event)
        self._reload()
        return self

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def __enter__(self) -> "AuthSession":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._unsubscribe is not None

    @property
    def uid(self) -> Optional[str]:
        return self._uid

    @property
    def profile(self) -> Optional[UserProfile]:
        return self._profile

    @property
    def is_authenticated(self) -> bool:
        return self._profile is not None

    def bind(self, uid: Optional[str]) -> None:
        """Switch the session to another user (after sign-in) or to nobody."""

        self._uid = uid
        self._reload()

    def require_profile(self) -> UserProfile:
        if self._profile is None:
            raise AuthenticationError("Please sign in to continue")
        return self._profile

    def actor(self) -> Actor:
        profile = self.require_profile()
        return Actor(user_id=profile.uid, role=profile.role)

    def _reload(self) -> None:
        self._profile = self._profiles.get(self._uid) if self._uid else None
        if self._uid and self._profile is None:
            logger.warning("session for %s has no profile", self._uid)

    def _on_auth_event(self, event: AuthEvent, uid: str) -> None:
        if uid != self._uid:
            return
        if event in (AuthEvent.SIGNED_OUT, AuthEvent.DELETED):
            self._uid = None
            self._profile = None
        else:
            self._reload()
