from __future__ import annotations

import logging
import threading
from typing import Callable, List, Mapping, Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import new_id, now_local
from ..common.validators import optional_text, require_email, require_min_length, require_non_empty
from ..core.constants import DEFAULT_FEDERATED_MAX_AGE, DEFAULT_RESET_TOKEN_MAX_AGE, MIN_PASSWORD_LENGTH
from ..core.enums import AuthEvent, BlobKind, Role
from ..core.exceptions import AuthenticationError, NotFoundError, StorageError, ValidationError
from ..storage.blob_store import BlobStore, build_blob_path, validate_blob
from .model import Credential, UserProfile
from .repository import CredentialRepository, ProfileRepository

logger = logging.getLogger(__name__)

AuthListener = Callable[[AuthEvent, str], None]

EDITABLE_PROFILE_FIELDS = ("first_name", "last_name", "phone_number", "university", "major", "graduation_year")

FEDERATED_SALT = "federated-identity"


def sign_federated_assertion(
    secret: str,
    *,
    provider: str,
    email: str,
    display_name: str = "",
    photo_url: str = "",
) -> str:
    """Sign identity claims the way the provider bridge hands them to us."""

    claims = {"provider": provider, "email": email, "display_name": display_name, "photo_url": photo_url}
    return URLSafeTimedSerializer(secret, salt=FEDERATED_SALT).dumps(claims)


class AuthService:
    """Use cases: sign-up, sign-in, password management and account deletion.

    Sessions subscribe to auth-state changes through :meth:`subscribe`; every
    event carries the uid it concerns.
    """

    def __init__(
        self,
        credentials: CredentialRepository,
        profiles: ProfileRepository,
        blobs: Optional[BlobStore] = None,
        *,
        secret_key: str,
        reset_token_max_age: int = DEFAULT_RESET_TOKEN_MAX_AGE,
        federated_secret: Optional[str] = None,
        federated_max_age: int = DEFAULT_FEDERATED_MAX_AGE,
    ):
        self._credentials = credentials
        self._profiles = profiles
        self._blobs = blobs
        self._reset_serializer = URLSafeTimedSerializer(secret_key, salt="password-reset")
        self._reset_max_age = int(reset_token_max_age)
        self._federated_serializer = URLSafeTimedSerializer(federated_secret or secret_key, salt=FEDERATED_SALT)
        self._federated_max_age = int(federated_max_age)
        self._listeners: List[AuthListener] = []
        self._lock = threading.Lock()

    # ---- auth-state notifications ----
    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def notify(self, event: AuthEvent, uid: str) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(event, uid)

    # ---- accounts ----
    def sign_up(
        self,
        *,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        phone_number: str = "",
        university: str = "",
        major: str = "",
        graduation_year: str = "",
    ) -> UserProfile:
        email = require_email(email)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        first_name = require_non_empty(first_name, "First name")
        last_name = require_non_empty(last_name, "Last name")

        if self._credentials.get_by_email(email):
            raise ValidationError("An account with this email already exists")

        uid = new_id()
        now = now_local()
        self._credentials.create(Credential(uid=uid, email=email, password_hash=generate_password_hash(password)))
        profile = UserProfile(
            uid=uid,
            email=email,
            first_name=first_name,
            last_name=last_name,
            role=Role.STUDENT,
            created_at=now,
            updated_at=now,
            phone_number=optional_text(phone_number) or None,
            university=optional_text(university) or None,
            major=optional_text(major) or None,
            graduation_year=optional_text(graduation_year) or None,
        )
        self._create_profile(profile)
        logger.info("signed up %s (%s)", email, uid)
        self.notify(AuthEvent.SIGNED_IN, uid)
        return profile

    def sign_in(self, email: str, password: str) -> UserProfile:
        cred = self._credentials.get_by_email(optional_text(email).lower())
        if not cred or not cred.is_active or not cred.password_hash:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = isinstance(password, str) and check_password_hash(cred.password_hash, password)
        except ValueError:
            # unknown hash method in a corrupted row
            ok = False
        if not ok:
            raise AuthenticationError("Invalid email or password")

        profile = self._profiles.get(cred.uid)
        if not profile:
            raise AuthenticationError("No profile found for this account")

        self.notify(AuthEvent.SIGNED_IN, cred.uid)
        return profile

    def _create_profile(self, profile: UserProfile) -> None:
        # a credential without a profile would block the email for good
        try:
            self._profiles.create(profile)
        except Exception:
            self._credentials.delete(profile.uid)
            raise

    def sign_in_federated(self, assertion: str) -> UserProfile:
        """Sign in with an assertion signed by the identity-provider bridge.

        The assertion is an itsdangerous token over the provider's claims
        (see :func:`sign_federated_assertion`). First sign-in creates a student
        profile; later sign-ins only reach accounts created by the same
        provider, never password accounts.
        """

        if not isinstance(assertion, str) or not assertion:
            raise AuthenticationError("Could not verify the sign-in with the identity provider")
        try:
            claims = self._federated_serializer.loads(assertion, max_age=self._federated_max_age)
        except SignatureExpired:
            raise AuthenticationError("This sign-in has expired, please try again")
        except BadSignature:
            raise AuthenticationError("Could not verify the sign-in with the identity provider")
        if not isinstance(claims, dict):
            raise AuthenticationError("Could not verify the sign-in with the identity provider")

        provider = require_non_empty(claims.get("provider"), "Provider").lower()
        email = require_email(claims.get("email"))
        display_name = optional_text(claims.get("display_name"))
        photo_url = optional_text(claims.get("photo_url"))

        cred = self._credentials.get_by_email(email)
        if cred:
            if not cred.is_active:
                raise AuthenticationError("This account is disabled")
            if cred.password_hash:
                raise AuthenticationError("This account signs in with a password")
            profile = self._profiles.get(cred.uid)
            if not profile:
                raise AuthenticationError("No profile found for this account")
            if profile.auth_provider != provider:
                raise AuthenticationError("This account signs in with a different provider")
            self.notify(AuthEvent.SIGNED_IN, cred.uid)
            return profile

        parts = display_name.split()
        uid = new_id()
        now = now_local()
        self._credentials.create(Credential(uid=uid, email=email, password_hash=None))
        profile = UserProfile(
            uid=uid,
            email=email,
            first_name=parts[0] if parts else "",
            last_name=" ".join(parts[1:]),
            role=Role.STUDENT,
            created_at=now,
            updated_at=now,
            photo_url=photo_url or None,
            auth_provider=provider,
        )
        self._create_profile(profile)
        logger.info("created %s account for %s (%s)", provider, email, uid)
        self.notify(AuthEvent.SIGNED_IN, uid)
        return profile

    def sign_out(self, uid: str) -> None:
        self.notify(AuthEvent.SIGNED_OUT, uid)

    def _require_password_credential(self, uid: str, password: str) -> Credential:
        cred = self._credentials.get_by_uid(uid)
        if not cred:
            raise NotFoundError("Account not found")
        if not cred.password_hash:
            raise ValidationError("This account signs in with an external provider and has no password")
        if not isinstance(password, str) or not check_password_hash(cred.password_hash, password):
            raise AuthenticationError("Current password is incorrect")
        return cred

    def change_password(self, uid: str, *, current_password: str, new_password: str) -> None:
        self._require_password_credential(uid, current_password)
        require_min_length(new_password, "New password", MIN_PASSWORD_LENGTH)
        if current_password == new_password:
            raise ValidationError("New password must be different from the current password")
        self._credentials.set_password_hash(uid, generate_password_hash(new_password))
        logger.info("password changed for %s", uid)

    def request_password_reset(self, email: str) -> Optional[str]:
        """Return a signed reset token, or None when no password account matches.

        Delivering the token (e-mail) is left to the caller.
        """

        cred = self._credentials.get_by_email(optional_text(email).lower())
        if not cred or not cred.password_hash or not cred.is_active:
            return None
        # Binding the token to the current hash makes it single-use.
        return self._reset_serializer.dumps({"uid": cred.uid, "h": cred.password_hash[-12:]})

    def reset_password(self, token: str, new_password: str) -> None:
        try:
            data = self._reset_serializer.loads(token, max_age=self._reset_max_age)
        except SignatureExpired:
            raise ValidationError("This reset link has expired")
        except BadSignature:
            raise ValidationError("This reset link is not valid")

        cred = self._credentials.get_by_uid(str(data.get("uid", "")))
        if not cred or not cred.password_hash or cred.password_hash[-12:] != data.get("h"):
            raise ValidationError("This reset link is not valid")

        require_min_length(new_password, "New password", MIN_PASSWORD_LENGTH)
        self._credentials.set_password_hash(cred.uid, generate_password_hash(new_password))
        logger.info("password reset for %s", cred.uid)

    def delete_account(self, uid: str, *, password: Optional[str] = None) -> None:
        cred = self._credentials.get_by_uid(uid)
        if not cred:
            raise NotFoundError("Account not found")
        if cred.password_hash:
            self._require_password_credential(uid, password or "")

        profile = self._profiles.get(uid)
        blob_paths = [p for p in (profile.photo_path, profile.resume_path) if p] if profile else []

        self._profiles.delete(uid)
        self._credentials.delete(uid)
        logger.info("deleted account %s", uid)
        self.notify(AuthEvent.DELETED, uid)

        if not self._blobs:
            return
        for path in blob_paths:
            try:
                self._blobs.delete(path)
            except StorageError as e:
                logger.warning("left blob %s of deleted account %s: %s", path, uid, e)

    def promote_to_admin(self, email: str) -> UserProfile:
        cred = self._credentials.get_by_email(optional_text(email).lower())
        if not cred:
            raise NotFoundError("Account not found")
        self._profiles.update(cred.uid, {"role": Role.ADMIN, "updated_at": now_local()})
        profile = self._profiles.get(cred.uid)
        self.notify(AuthEvent.PROFILE_UPDATED, cred.uid)
        return profile


class ProfileService:
    """Use cases: edit profile fields, manage profile photo and resume."""

    def __init__(self, profiles: ProfileRepository, blobs: BlobStore, auth: AuthService):
        self._profiles = profiles
        self._blobs = blobs
        self._auth = auth

    def get(self, uid: str) -> UserProfile:
        profile = self._profiles.get(uid)
        if not profile:
            raise NotFoundError("Profile not found")
        return profile

    def _save(self, uid: str, fields: Mapping[str, object]) -> UserProfile:
        values = dict(fields)
        values["updated_at"] = now_local()
        self._profiles.update(uid, values)
        self._auth.notify(AuthEvent.PROFILE_UPDATED, uid)
        return self.get(uid)

    def update_profile(self, uid: str, fields: Mapping[str, str]) -> UserProfile:
        unknown = set(fields) - set(EDITABLE_PROFILE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot edit: {', '.join(sorted(unknown))}")

        values = {k: optional_text(v) for k, v in fields.items()}
        for required in ("first_name", "last_name"):
            if required in values and not values[required]:
                raise ValidationError(f"{required.replace('_', ' ').capitalize()} is required")
        self.get(uid)
        return self._save(uid, values)

    def _replace_blob(
        self,
        uid: str,
        kind: BlobKind,
        *,
        filename: str,
        data: bytes,
        content_type: str,
        path_field: str,
        url_field: str,
    ) -> UserProfile:
        profile = self.get(uid)
        validate_blob(kind, data=data, content_type=content_type)

        stored = self._blobs.upload(path=build_blob_path(kind, uid, filename), data=data, content_type=content_type)
        old_path = getattr(profile, path_field)
        updated = self._save(uid, {path_field: stored.path, url_field: stored.url})
        if old_path:
            self._blobs.delete(old_path)
        return updated

    def upload_photo(self, uid: str, *, filename: str, data: bytes, content_type: str) -> UserProfile:
        return self._replace_blob(
            uid,
            BlobKind.PHOTOS,
            filename=filename,
            data=data,
            content_type=content_type,
            path_field="photo_path",
            url_field="photo_url",
        )

    def upload_resume(self, uid: str, *, filename: str, data: bytes, content_type: str) -> UserProfile:
        return self._replace_blob(
            uid,
            BlobKind.RESUMES,
            filename=filename,
            data=data,
            content_type=content_type,
            path_field="resume_path",
            url_field="resume_url",
        )

    def _remove_blob(self, uid: str, path_field: str, url_field: str) -> UserProfile:
        profile = self.get(uid)
        path = getattr(profile, path_field)
        if not path:
            raise ValidationError("Nothing to delete")
        self._blobs.delete(path)
        return self._save(uid, {path_field: None, url_field: None})

    def delete_photo(self, uid: str) -> UserProfile:
        return self._remove_blob(uid, "photo_path", "photo_url")

    def delete_resume(self, uid: str) -> UserProfile:
        return self._remove_blob(uid, "resume_path", "resume_url")

    def download_resume(self, uid: str) -> bytes:
        profile = self.get(uid)
        if not profile.resume_path:
            raise NotFoundError("No resume uploaded")
        return self._blobs.download(profile.resume_path)


def profile_to_dict(profile: UserProfile) -> dict:
    return {
        "uid": profile.uid,
        "email": profile.email,
        "first_name": profile.first_name,
        "last_name": profile.last_name,
        "full_name": profile.full_name,
        "role": profile.role.value,
        "phone_number": profile.phone_number,
        "university": profile.university,
        "major": profile.major,
        "graduation_year": profile.graduation_year,
        "photo_url": profile.photo_url,
        "resume_url": profile.resume_url,
        "auth_provider": profile.auth_provider,
        "created_at": profile.created_at.isoformat(),
        "updated_at": profile.updated_at.isoformat(),
    }
