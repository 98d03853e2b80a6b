from __future__ import annotations

import pytest

from src.internship_portal.internship_portal.core.enums import AuthEvent, Role
from src.internship_portal.internship_portal.core.exceptions import (
    AuthenticationError,
    NotFoundError,
    StorageError,
    StoreError,
    ValidationError,
)
from src.internship_portal.internship_portal.users.service import AuthService, sign_federated_assertion

FEDERATED_SECRET = "test-federated-secret"


def _assertion(secret=FEDERATED_SECRET, **claims):
    return sign_federated_assertion(secret, **claims)


def test_sign_up_creates_student_and_hashes_password(container):
    profile = container.auth_service.sign_up(
        email="New@Example.com", password="secret123", first_name="Ana", last_name="Lee"
    )

    assert profile.role == Role.STUDENT
    assert profile.email == "new@example.com"
    cred = container.credentials_repo.get_by_uid(profile.uid)
    assert cred.password_hash and cred.password_hash != "secret123"


def test_sign_up_rejects_duplicate_email_and_short_password(container, student):
    with pytest.raises(ValidationError):
        container.auth_service.sign_up(
            email="student@example.com", password="secret123", first_name="A", last_name="B"
        )
    with pytest.raises(ValidationError):
        container.auth_service.sign_up(email="x@example.com", password="123", first_name="A", last_name="B")


def test_sign_in_success_and_failure(container, student):
    profile = container.auth_service.sign_in("student@example.com", "secret123")
    assert profile.uid == student.user_id

    with pytest.raises(AuthenticationError) as exc:
        container.auth_service.sign_in("student@example.com", "wrong-password")
    assert str(exc.value) == "Invalid email or password"

    with pytest.raises(AuthenticationError):
        container.auth_service.sign_in("nobody@example.com", "secret123")


def test_federated_sign_in_creates_profile_once(container):
    first = container.auth_service.sign_in_federated(
        _assertion(provider="Google", email="fed@example.com", display_name="Grace Brewster Hopper")
    )
    again = container.auth_service.sign_in_federated(_assertion(provider="google", email="fed@example.com"))

    assert first.uid == again.uid
    assert first.first_name == "Grace"
    assert first.last_name == "Brewster Hopper"
    assert first.auth_provider == "google"
    assert container.credentials_repo.get_by_uid(first.uid).password_hash is None

    # no password to sign in with
    with pytest.raises(AuthenticationError):
        container.auth_service.sign_in("fed@example.com", "")


def test_federated_sign_in_rejects_unsigned_or_forged_assertions(container, student):
    forged = _assertion("attacker-secret", provider="google", email="new@example.com")

    for assertion in ("", "not-a-token", forged, forged + "x", 12345):
        with pytest.raises(AuthenticationError):
            container.auth_service.sign_in_federated(assertion)

    assert container.credentials_repo.get_by_email("new@example.com") is None


def test_federated_sign_in_rejects_expired_assertion(container):
    auth = AuthService(
        container.credentials_repo,
        container.profiles_repo,
        secret_key="test-secret",
        federated_secret=FEDERATED_SECRET,
        federated_max_age=-1,
    )

    with pytest.raises(AuthenticationError) as exc:
        auth.sign_in_federated(_assertion(provider="google", email="late@example.com"))
    assert "expired" in str(exc.value)


def test_federated_sign_in_cannot_take_over_password_account(container, admin):
    events = []
    container.auth_service.subscribe(lambda event, uid: events.append((event, uid)))

    with pytest.raises(AuthenticationError):
        container.auth_service.sign_in_federated(_assertion(provider="google", email="admin@example.com"))

    assert events == []
    assert container.credentials_repo.get_by_uid(admin.user_id).password_hash


def test_federated_sign_in_requires_the_same_provider(container):
    profile = container.auth_service.sign_in_federated(_assertion(provider="github", email="dev@example.com"))

    with pytest.raises(AuthenticationError):
        container.auth_service.sign_in_federated(_assertion(provider="google", email="dev@example.com"))

    again = container.auth_service.sign_in_federated(_assertion(provider="GitHub", email="dev@example.com"))
    assert again.uid == profile.uid


def test_failed_profile_write_does_not_leave_credential_behind(container, monkeypatch):
    def broken_create(profile):
        raise StoreError("profiles table unavailable")

    monkeypatch.setattr(container.profiles_repo, "create", broken_create)
    with pytest.raises(StoreError):
        container.auth_service.sign_up(email="retry@example.com", password="secret123", first_name="A", last_name="B")
    with pytest.raises(StoreError):
        container.auth_service.sign_in_federated(_assertion(provider="google", email="fed-retry@example.com"))

    assert container.credentials_repo.items == {}

    monkeypatch.undo()
    profile = container.auth_service.sign_up(
        email="retry@example.com", password="secret123", first_name="A", last_name="B"
    )
    assert container.profiles_repo.get(profile.uid) is not None
    assert container.auth_service.sign_in_federated(
        _assertion(provider="google", email="fed-retry@example.com")
    ).auth_provider == "google"


def test_sign_in_with_non_text_password_is_refused(container, student):
    with pytest.raises(AuthenticationError):
        container.auth_service.sign_in("student@example.com", 123456)
    with pytest.raises(ValidationError):
        container.auth_service.sign_up(email="n@example.com", password=12345678, first_name="A", last_name="B")
    with pytest.raises(AuthenticationError):
        container.auth_service.delete_account(student.user_id, password=123456)
    assert container.profiles_repo.get(student.user_id) is not None


def test_change_password(container, student):
    with pytest.raises(AuthenticationError):
        container.auth_service.change_password(student.user_id, current_password="nope", new_password="another1")

    container.auth_service.change_password(student.user_id, current_password="secret123", new_password="another1")
    assert container.auth_service.sign_in("student@example.com", "another1").uid == student.user_id


def test_password_reset_token_is_single_use(container, student):
    token = container.auth_service.request_password_reset("student@example.com")
    assert token

    container.auth_service.reset_password(token, "brand-new-1")
    assert container.auth_service.sign_in("student@example.com", "brand-new-1").uid == student.user_id

    with pytest.raises(ValidationError):
        container.auth_service.reset_password(token, "brand-new-2")


def test_password_reset_for_unknown_email_returns_none(container):
    assert container.auth_service.request_password_reset("ghost@example.com") is None


def test_tampered_reset_token_is_rejected(container, student):
    token = container.auth_service.request_password_reset("student@example.com")
    with pytest.raises(ValidationError):
        container.auth_service.reset_password(token + "x", "brand-new-1")


def test_subscribe_and_unsubscribe(container, student):
    events = []
    unsubscribe = container.auth_service.subscribe(lambda event, uid: events.append((event, uid)))

    container.auth_service.sign_out(student.user_id)
    unsubscribe()
    container.auth_service.sign_out(student.user_id)

    assert events == [(AuthEvent.SIGNED_OUT, student.user_id)]
    assert container.auth_service.listener_count() == 0


def test_delete_account_removes_profile_credential_and_blobs(container, student):
    container.profile_service.upload_resume(
        student.user_id, filename="cv.pdf", data=b"%PDF-1.4", content_type="application/pdf"
    )
    assert len(container.blob_store.items) == 1

    with pytest.raises(AuthenticationError):
        container.auth_service.delete_account(student.user_id, password="wrong")

    container.auth_service.delete_account(student.user_id, password="secret123")

    assert container.profiles_repo.get(student.user_id) is None
    assert container.credentials_repo.get_by_uid(student.user_id) is None
    assert container.blob_store.items == {}


def test_delete_account_survives_blob_store_failure(container, student, monkeypatch, caplog):
    container.profile_service.upload_resume(
        student.user_id, filename="cv.pdf", data=b"%PDF-1.4", content_type="application/pdf"
    )

    def broken_delete(path):
        raise StorageError("bucket unavailable")

    monkeypatch.setattr(container.blob_store, "delete", broken_delete)
    container.auth_service.delete_account(student.user_id, password="secret123")

    assert container.profiles_repo.get(student.user_id) is None
    assert container.credentials_repo.get_by_uid(student.user_id) is None
    assert len(container.blob_store.items) == 1
    assert "bucket unavailable" in caplog.text


def test_promote_to_admin(container, student):
    profile = container.auth_service.promote_to_admin("student@example.com")
    assert profile.role == Role.ADMIN

    with pytest.raises(NotFoundError):
        container.auth_service.promote_to_admin("ghost@example.com")
