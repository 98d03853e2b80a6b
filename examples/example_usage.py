"""Example: drive the service layer directly, without Flask.

Controllers are thin; the workflow lives in the services.
"""

import importlib

from config import get_settings_module

from src.internship_portal.internship_portal.container import build_container
from src.internship_portal.internship_portal.core.enums import ReviewStatus
from src.internship_portal.internship_portal.core.lifecycle import Actor


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(
        db_config=settings.DB_CONFIG,
        minio_config=settings.MINIO_CONFIG,
        secret_key=settings.SECRET_KEY,
    )

    admin = container.auth_service.sign_in("admin@example.com", "admin123")
    actor = Actor(user_id=admin.uid, role=admin.role)
    pending = container.application_service.list_for_admin(actor, status=ReviewStatus.SUBMITTED)
    for application in pending[:5]:
        print(application.applicant_name, "->", application.internship_title)


if __name__ == "__main__":
    main()
