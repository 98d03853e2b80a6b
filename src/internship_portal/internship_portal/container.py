from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .applications.mysql_application_repository import MySQLApplicationRepository
from .applications.repository import ApplicationRepository
from .applications.service import ApplicationService
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_FEDERATED_MAX_AGE, DEFAULT_PRESIGNED_URL_SECONDS, DEFAULT_RESET_TOKEN_MAX_AGE
from .database.connection import DBConfig, DatabaseConnection
from .internships.mysql_internship_repository import MySQLInternshipRepository
from .internships.repository import InternshipRepository
from .internships.service import InternshipService
from .storage.blob_store import BlobStore
from .storage.minio_blob_store import MinioBlobStore, get_minio_client
from .tasks.mysql_task_repository import MySQLTaskUpdateRepository
from .tasks.repository import TaskUpdateRepository
from .tasks.service import TaskUpdateService
from .users.mysql_user_repository import MySQLCredentialRepository, MySQLProfileRepository
from .users.repository import CredentialRepository, ProfileRepository
from .users.service import AuthService, ProfileService


@dataclass(frozen=True)
class Container:
    credentials_repo: CredentialRepository
    profiles_repo: ProfileRepository
    internships_repo: InternshipRepository
    applications_repo: ApplicationRepository
    task_updates_repo: TaskUpdateRepository
    attendance_repo: AttendanceRepository
    blob_store: BlobStore

    auth_service: AuthService
    profile_service: ProfileService
    internship_service: InternshipService
    application_service: ApplicationService
    task_update_service: TaskUpdateService
    attendance_service: AttendanceService

    conn: Optional[DatabaseConnection] = None


def wire_services(
    *,
    credentials_repo: CredentialRepository,
    profiles_repo: ProfileRepository,
    internships_repo: InternshipRepository,
    applications_repo: ApplicationRepository,
    task_updates_repo: TaskUpdateRepository,
    attendance_repo: AttendanceRepository,
    blob_store: BlobStore,
    secret_key: str,
    reset_token_max_age: int = DEFAULT_RESET_TOKEN_MAX_AGE,
    federated_secret: Optional[str] = None,
    federated_max_age: int = DEFAULT_FEDERATED_MAX_AGE,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Build every service on top of the given repositories and blob store."""

    auth_service = AuthService(
        credentials_repo,
        profiles_repo,
        blob_store,
        secret_key=secret_key,
        reset_token_max_age=reset_token_max_age,
        federated_secret=federated_secret,
        federated_max_age=federated_max_age,
    )
    profile_service = ProfileService(profiles_repo, blob_store, auth_service)
    internship_service = InternshipService(internships_repo)
    application_service = ApplicationService(applications_repo, internships_repo, profiles_repo)
    task_update_service = TaskUpdateService(task_updates_repo, application_service)
    attendance_service = AttendanceService(attendance_repo, application_service)

    return Container(
        credentials_repo=credentials_repo,
        profiles_repo=profiles_repo,
        internships_repo=internships_repo,
        applications_repo=applications_repo,
        task_updates_repo=task_updates_repo,
        attendance_repo=attendance_repo,
        blob_store=blob_store,
        auth_service=auth_service,
        profile_service=profile_service,
        internship_service=internship_service,
        application_service=application_service,
        task_update_service=task_update_service,
        attendance_service=attendance_service,
        conn=conn,
    )


def build_container(
    *,
    db_config: dict,
    minio_config: dict,
    secret_key: str,
    reset_token_max_age: int = DEFAULT_RESET_TOKEN_MAX_AGE,
    federated_secret: Optional[str] = None,
    federated_max_age: int = DEFAULT_FEDERATED_MAX_AGE,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    blob_store = MinioBlobStore(
        get_minio_client(minio_config),
        str(minio_config.get("bucket", "internship-portal")),
        url_expires_seconds=int(minio_config.get("url_expires_seconds", DEFAULT_PRESIGNED_URL_SECONDS)),
    )

    return wire_services(
        credentials_repo=MySQLCredentialRepository(conn),
        profiles_repo=MySQLProfileRepository(conn),
        internships_repo=MySQLInternshipRepository(conn),
        applications_repo=MySQLApplicationRepository(conn),
        task_updates_repo=MySQLTaskUpdateRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        blob_store=blob_store,
        secret_key=secret_key,
        reset_token_max_age=reset_token_max_age,
        federated_secret=federated_secret,
        federated_max_age=federated_max_age,
        conn=conn,
    )
