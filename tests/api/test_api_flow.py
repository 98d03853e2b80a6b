from __future__ import annotations

import io

import pytest

from src.internship_portal.internship_portal.users.service import sign_federated_assertion


def _signup(client, email, first_name="Asha", last_name="Rao", password="secret123"):
    return client.post(
        "/api/auth/signup",
        json={"email": email, "password": password, "first_name": first_name, "last_name": last_name},
    )


@pytest.fixture
def admin_client(app, container):
    client = app.test_client()
    _signup(client, "admin@example.com", first_name="Company", last_name="Admin")
    container.auth_service.promote_to_admin("admin@example.com")
    return client


@pytest.fixture
def student_client(app):
    client = app.test_client()
    _signup(client, "student@example.com")
    return client


@pytest.fixture
def posted(admin_client, internship_fields_factory):
    fields = internship_fields_factory()
    fields["publish"] = True
    res = admin_client.post("/api/admin/internships", json=fields)
    assert res.status_code == 201
    return res.get_json()["internship"]


def test_signup_signin_signout(client):
    res = _signup(client, "new@example.com")
    assert res.status_code == 201
    assert res.get_json()["profile"]["role"] == "student"

    assert client.get("/api/auth/me").status_code == 200

    assert client.post("/api/auth/signout").status_code == 200
    res = client.get("/api/auth/me")
    assert res.status_code == 401
    assert res.get_json() == {"success": False, "message": "Please sign in to continue"}

    res = client.post("/api/auth/signin", json={"email": "new@example.com", "password": "secret123"})
    assert res.status_code == 200
    assert client.get("/api/auth/me").get_json()["profile"]["email"] == "new@example.com"


def test_bad_credentials_are_401(client):
    res = client.post("/api/auth/signin", json={"email": "x@example.com", "password": "nope"})
    assert res.status_code == 401
    assert res.get_json()["message"] == "Invalid email or password"


def test_validation_errors_are_400(client):
    res = _signup(client, "not-an-email")
    assert res.status_code == 400
    assert res.get_json()["success"] is False


def test_each_request_closes_its_auth_session(student_client, container):
    student_client.get("/api/auth/me")
    student_client.get("/api/internships")
    assert container.auth_service.listener_count() == 0


def test_password_reset_flow(client, student_client):
    res = client.post("/api/auth/password/reset-request", json={"email": "student@example.com"})
    token = res.get_json()["reset_token"]

    res = client.post("/api/auth/password/reset", json={"token": token, "new_password": "changed123"})
    assert res.status_code == 200
    res = client.post("/api/auth/signin", json={"email": "student@example.com", "password": "changed123"})
    assert res.status_code == 200


def test_reset_request_for_unknown_email_looks_the_same(client):
    res = client.post("/api/auth/password/reset-request", json={"email": "ghost@example.com"})
    assert res.status_code == 200
    assert "reset_token" not in res.get_json()


def test_students_cannot_use_admin_routes(student_client):
    res = student_client.get("/api/admin/applications")
    assert res.status_code == 403


def test_browse_is_public(client, posted):
    res = client.get("/api/internships?search=backend")
    assert res.status_code == 200
    assert [i["internship_id"] for i in res.get_json()["internships"]] == [posted["internship_id"]]


def test_full_review_flow(admin_client, student_client, posted):
    internship_id = posted["internship_id"]

    res = student_client.post(f"/api/internships/{internship_id}/apply", json={"cover_letter": "Hire me"})
    assert res.status_code == 201
    application_id = res.get_json()["application"]["application_id"]

    res = admin_client.get("/api/admin/applications?status=submitted")
    assert res.get_json()["stats"]["submitted"] == 1

    res = admin_client.post(f"/api/admin/applications/{application_id}/approve", json={"start_date": "2025-10-01"})
    assert res.status_code == 200
    assert res.get_json()["application"]["start_date"] == "2025-10-01"

    res = admin_client.post(f"/api/admin/applications/{application_id}/reject", json={})
    assert res.status_code == 400
    assert res.get_json()["message"] == "This application is already approved and cannot be rejected."

    res = student_client.get(f"/api/applications/{application_id}/letters/offer")
    assert res.status_code == 200
    assert b"INTERNSHIP OFFER LETTER" in res.data
    assert "attachment" in res.headers["Content-Disposition"]

    res = student_client.post(
        "/api/task-updates",
        json={"internship_id": internship_id, "title": "Week 1", "details": "Onboarding", "hours": 6},
    )
    assert res.status_code == 201
    task_update_id = res.get_json()["task_update"]["task_update_id"]

    res = admin_client.post(f"/api/admin/task-updates/{task_update_id}/reject", json={"reason": "insufficient detail"})
    assert res.get_json()["task_update"]["rejection_reason"] == "insufficient detail"
    res = admin_client.post(f"/api/admin/task-updates/{task_update_id}/approve")
    assert res.status_code == 400

    assert student_client.post("/api/attendance/punch-in", json={"internship_id": internship_id}).status_code == 201
    res = student_client.post("/api/attendance/punch-in", json={"internship_id": internship_id})
    assert res.status_code == 400
    res = student_client.post("/api/attendance/punch-out", json={})
    assert res.status_code == 200
    entry = res.get_json()["entry"]
    assert entry["status"] == "submitted"
    assert entry["duration_hours"] is not None

    res = admin_client.post(f"/api/admin/attendance/{entry['attendance_id']}/approve")
    assert res.get_json()["entry"]["status"] == "approved"


def test_unknown_letter_kind(student_client):
    assert student_client.get("/api/applications/whatever/letters/reference").status_code == 404


def test_unknown_application_is_404(student_client):
    res = student_client.get("/api/applications/missing")
    assert res.status_code == 404
    assert res.get_json()["message"] == "Application not found"


def test_unknown_status_filter_is_400(admin_client):
    assert admin_client.get("/api/admin/task-updates?status=pending").status_code == 400


def test_resume_upload_and_download(student_client):
    res = student_client.post(
        "/api/profile/resume",
        data={"file": (io.BytesIO(b"%PDF-1.4 resume"), "cv.pdf", "application/pdf")},
        content_type="multipart/form-data",
    )
    assert res.status_code == 200
    assert res.get_json()["profile"]["resume_url"].startswith("https://blobs.test/resumes/")

    res = student_client.get("/api/profile/resume")
    assert res.status_code == 200
    assert res.data == b"%PDF-1.4 resume"


def test_upload_without_file(student_client):
    res = student_client.post("/api/profile/photo", data={}, content_type="multipart/form-data")
    assert res.status_code == 400


def test_unexpected_errors_answer_generic_500(student_client, container, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("db exploded")

    monkeypatch.setattr(container.application_service, "list_mine", boom)
    res = student_client.get("/api/applications")
    assert res.status_code == 500
    assert res.get_json() == {"success": False, "message": "Failed to load applications"}


def test_delete_account_signs_out(student_client, container):
    res = student_client.delete("/api/account", json={"password": "secret123"})
    assert res.status_code == 200
    assert student_client.get("/api/auth/me").status_code == 401
    assert container.profiles_repo.items == {}


def test_federated_sign_in_needs_a_signed_assertion(admin_client, app):
    attacker = app.test_client()

    res = attacker.post("/api/auth/federated", json={"provider": "x", "email": "admin@example.com"})
    assert res.status_code == 401
    assert attacker.get("/api/auth/me").status_code == 401

    forged = sign_federated_assertion("guessed-secret", provider="x", email="admin@example.com")
    res = attacker.post("/api/auth/federated", json={"assertion": forged})
    assert res.status_code == 401
    assert attacker.get("/api/auth/me").status_code == 401


def test_federated_sign_in_cannot_reach_password_accounts(admin_client, app):
    attacker = app.test_client()
    assertion = sign_federated_assertion("test-federated-secret", provider="google", email="admin@example.com")

    res = attacker.post("/api/auth/federated", json={"assertion": assertion})
    assert res.status_code == 401
    assert attacker.get("/api/auth/me").status_code == 401
    assert attacker.get("/api/admin/internships").status_code == 401


def test_federated_sign_in_opens_a_student_session(client):
    assertion = sign_federated_assertion(
        "test-federated-secret", provider="google", email="fed@example.com", display_name="Grace Hopper"
    )

    res = client.post("/api/auth/federated", json={"assertion": assertion})
    assert res.status_code == 200
    profile = client.get("/api/auth/me").get_json()["profile"]
    assert profile["email"] == "fed@example.com"
    assert profile["role"] == "student"


def test_non_text_input_is_400_not_500(admin_client, student_client, posted):
    internship_id = posted["internship_id"]
    res = student_client.post(f"/api/internships/{internship_id}/apply", json={"cover_letter": "Hire me"})
    application_id = res.get_json()["application"]["application_id"]

    res = admin_client.post(f"/api/admin/applications/{application_id}/approve", json={"start_date": 20251001})
    assert res.status_code == 400
    assert res.get_json()["message"] == "Invalid date: 20251001 (expected YYYY-MM-DD)"

    res = admin_client.post(f"/api/admin/applications/{application_id}/approve", json={"start_date": "2025-10-01"})
    assert res.status_code == 200

    res = student_client.post(
        "/api/task-updates",
        json={"internship_id": internship_id, "title": 123, "details": "Onboarding"},
    )
    assert res.status_code == 400
    assert res.get_json()["message"] == "Title is required"

    res = student_client.post(
        "/api/task-updates",
        json={"internship_id": internship_id, "title": "Week 1", "details": "Onboarding", "hours": "nan"},
    )
    assert res.status_code == 400

    res = admin_client.post("/api/auth/signin", json={"email": 42, "password": ["secret123"]})
    assert res.status_code == 401
