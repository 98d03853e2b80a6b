from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta

import pytest

from src.internship_portal.internship_portal.container import wire_services
from src.internship_portal.internship_portal.core.enums import InternshipStatus, ReviewStatus, Role
from src.internship_portal.internship_portal.core.lifecycle import Actor
from src.internship_portal.internship_portal.storage.blob_store import StoredBlob


def _matches(term: str, *values: str) -> bool:
    term = (term or "").strip().lower()
    return not term or any(term in (v or "").lower() for v in values)


class InMemoryProfiles:
    def __init__(self):
        self.items = {}

    def get(self, uid):
        return self.items.get(uid) if uid else None

    def create(self, profile):
        self.items[profile.uid] = profile

    def update(self, uid, fields):
        if uid not in self.items:
            return False
        self.items[uid] = replace(self.items[uid], **dict(fields))
        return True

    def delete(self, uid):
        return self.items.pop(uid, None) is not None


class InMemoryCredentials:
    def __init__(self):
        self.items = {}

    def get_by_email(self, email):
        return next((c for c in self.items.values() if c.email == email), None)

    def get_by_uid(self, uid):
        return self.items.get(uid)

    def create(self, credential):
        self.items[credential.uid] = credential

    def set_password_hash(self, uid, password_hash):
        if uid not in self.items:
            return False
        self.items[uid] = replace(self.items[uid], password_hash=password_hash)
        return True

    def delete(self, uid):
        return self.items.pop(uid, None) is not None


class InMemoryInternships:
    def __init__(self):
        self.items = {}

    def get(self, internship_id):
        return self.items.get(internship_id)

    def create(self, internship):
        self.items[internship.internship_id] = internship

    def update(self, internship_id, fields):
        if internship_id not in self.items:
            return False
        self.items[internship_id] = replace(self.items[internship_id], **dict(fields))
        return True

    def delete(self, internship_id):
        return self.items.pop(internship_id, None) is not None

    def increment_applications(self, internship_id):
        current = self.items[internship_id]
        self.items[internship_id] = replace(current, applications_count=current.applications_count + 1)

    def list_by_creator(self, created_by, *, limit=200):
        return [i for i in self.items.values() if i.created_by == created_by][:limit]

    def search(self, *, status, text="", location="", type="", limit=200):
        found = [
            i
            for i in self.items.values()
            if i.status == status
            and _matches(text, i.title, i.company, i.description, i.skills_required)
            and _matches(location, i.location)
            and (not type or i.type == type)
        ]
        return found[:limit]


class _StatusStore:
    """Shared compare-and-set behaviour of the reviewed records."""

    def __init__(self):
        self.items = {}

    def get(self, record_id):
        return self.items.get(record_id)

    def compare_and_set_status(self, *, record_id, expected, new, fields):
        current = self.items.get(record_id)
        if current is None or current.status != expected:
            return False
        self.items[record_id] = replace(current, status=new, **dict(fields))
        return True


class InMemoryApplications(_StatusStore):
    def create(self, application):
        self.items[application.application_id] = application

    def list_for_applicant(self, applicant_id, *, statuses=None, internship_id=None, limit=200):
        found = [
            a
            for a in self.items.values()
            if a.applicant_id == applicant_id
            and (statuses is None or a.status in statuses)
            and (internship_id is None or a.internship_id == internship_id)
        ]
        return found[:limit]

    def list_for_company(self, company_id, *, status=None, search="", limit=500):
        found = [
            a
            for a in self.items.values()
            if a.company_id == company_id
            and (status is None or a.status == status)
            and _matches(search, a.applicant_name, a.applicant_email, a.internship_title)
        ]
        return found[:limit]

    def count_by_status(self, company_id):
        counts = {}
        for a in self.items.values():
            if a.company_id == company_id:
                counts[a.status.value] = counts.get(a.status.value, 0) + 1
        return counts

    def confirm_start_date(self, application_id, start_date):
        current = self.items.get(application_id)
        if current is None or current.status != ReviewStatus.APPROVED or current.start_date_confirmed:
            return False
        self.items[application_id] = replace(current, start_date=start_date, start_date_confirmed=True)
        return True


class InMemoryTaskUpdates(_StatusStore):
    def create(self, task_update):
        self.items[task_update.task_update_id] = task_update

    def list_for_applicant(self, applicant_id, *, limit=200):
        return [t for t in self.items.values() if t.applicant_id == applicant_id][:limit]

    def list_for_company(self, company_id, *, status=None, search="", limit=500):
        found = [
            t
            for t in self.items.values()
            if t.company_id == company_id
            and (status is None or t.status == status)
            and _matches(search, t.applicant_name, t.title, t.internship_title)
        ]
        return found[:limit]


class InMemoryAttendance(_StatusStore):
    def create(self, entry):
        self.items[entry.attendance_id] = entry

    def get_active(self, applicant_id, internship_id=None):
        found = [
            e
            for e in self.items.values()
            if e.applicant_id == applicant_id
            and e.status == ReviewStatus.IN_PROGRESS
            and (internship_id is None or e.internship_id == internship_id)
        ]
        found.sort(key=lambda e: e.punch_in_at, reverse=True)
        return found[0] if found else None

    def list_for_applicant(self, applicant_id, *, internship_id=None, limit=200):
        found = [
            e
            for e in self.items.values()
            if e.applicant_id == applicant_id and (internship_id is None or e.internship_id == internship_id)
        ]
        return found[:limit]

    def list_for_company(self, company_id, *, status=None, search="", limit=500):
        found = [
            e
            for e in self.items.values()
            if e.company_id == company_id
            and (status is None or e.status == status)
            and _matches(search, e.applicant_name, e.internship_title)
        ]
        return found[:limit]


class InMemoryBlobs:
    def __init__(self):
        self.items = {}

    def upload(self, *, path, data, content_type):
        self.items[path] = (data, content_type)
        return StoredBlob(path=path, url=f"https://blobs.test/{path}")

    def download(self, path):
        return self.items[path][0]

    def delete(self, path):
        self.items.pop(path, None)


@pytest.fixture
def container():
    return wire_services(
        credentials_repo=InMemoryCredentials(),
        profiles_repo=InMemoryProfiles(),
        internships_repo=InMemoryInternships(),
        applications_repo=InMemoryApplications(),
        task_updates_repo=InMemoryTaskUpdates(),
        attendance_repo=InMemoryAttendance(),
        blob_store=InMemoryBlobs(),
        secret_key="test-secret",
        federated_secret="test-federated-secret",
    )


@pytest.fixture
def make_student(container):
    def _make(email: str = "student@example.com", first_name: str = "Asha", last_name: str = "Rao") -> Actor:
        profile = container.auth_service.sign_up(
            email=email,
            password="secret123",
            first_name=first_name,
            last_name=last_name,
        )
        return Actor(user_id=profile.uid, role=profile.role)

    return _make


@pytest.fixture
def make_admin(container):
    def _make(email: str = "admin@example.com") -> Actor:
        container.auth_service.sign_up(email=email, password="secret123", first_name="Company", last_name="Admin")
        profile = container.auth_service.promote_to_admin(email)
        return Actor(user_id=profile.uid, role=Role.ADMIN)

    return _make


@pytest.fixture
def student(make_student) -> Actor:
    return make_student()


@pytest.fixture
def admin(make_admin) -> Actor:
    return make_admin()


def internship_fields(**overrides) -> dict:
    fields = {
        "title": "Backend Intern",
        "company": "Acme Corp",
        "location": "Remote",
        "type": "Full-time",
        "duration": "3 months",
        "description": "Build APIs",
        "requirements": "Python",
        "skills_required": "python, sql",
        "application_deadline": (date.today() + timedelta(days=30)).isoformat(),
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def publish_internship(container):
    def _publish(actor: Actor, **overrides):
        return container.internship_service.create(actor, internship_fields(**overrides), publish=True)

    return _publish


@pytest.fixture
def internship(publish_internship, admin):
    internship = publish_internship(admin)
    assert internship.status == InternshipStatus.ACTIVE
    return internship


@pytest.fixture
def approved_application(container, admin, student, internship):
    application = container.application_service.apply(student, internship.internship_id, {"cover_letter": "Hire me"})
    return container.application_service.approve(admin, application.application_id)


@pytest.fixture
def app(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    from src.internship_portal.internship_portal.main import create_app

    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def internship_fields_factory():
    return internship_fields

