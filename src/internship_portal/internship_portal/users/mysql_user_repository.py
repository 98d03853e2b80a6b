from __future__ import annotations

from typing import Any, Mapping, Optional

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, insert_row, update_row
from .model import Credential, UserProfile
from .repository import CredentialRepository, ProfileRepository

_PROFILE_COLUMNS = (
    "uid, email, first_name, last_name, role, phone_number, university, major, graduation_year, "
    "photo_path, photo_url, resume_path, resume_url, auth_provider, created_at, updated_at"
)


def _row_to_profile(r: dict) -> UserProfile:
    return UserProfile(
        uid=r["uid"],
        email=r["email"],
        first_name=r["first_name"],
        last_name=r["last_name"],
        role=Role(r["role"]),
        created_at=r["created_at"],
        updated_at=r["updated_at"],
        phone_number=r.get("phone_number"),
        university=r.get("university"),
        major=r.get("major"),
        graduation_year=r.get("graduation_year"),
        photo_path=r.get("photo_path"),
        photo_url=r.get("photo_url"),
        resume_path=r.get("resume_path"),
        resume_url=r.get("resume_url"),
        auth_provider=r.get("auth_provider") or "password",
    )


class MySQLProfileRepository(ProfileRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, uid: str) -> Optional[UserProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_PROFILE_COLUMNS} FROM user_profiles WHERE uid=%s", (uid,))
            r = fetchone(cur)
            return _row_to_profile(r) if r else None

    def create(self, profile: UserProfile) -> None:
        insert_row(
            self._conn_factory,
            "user_profiles",
            {
                "uid": profile.uid,
                "email": profile.email,
                "first_name": profile.first_name,
                "last_name": profile.last_name,
                "role": profile.role,
                "phone_number": profile.phone_number,
                "university": profile.university,
                "major": profile.major,
                "graduation_year": profile.graduation_year,
                "photo_path": profile.photo_path,
                "photo_url": profile.photo_url,
                "resume_path": profile.resume_path,
                "resume_url": profile.resume_url,
                "auth_provider": profile.auth_provider,
                "created_at": profile.created_at,
                "updated_at": profile.updated_at,
            },
        )

    def update(self, uid: str, fields: Mapping[str, Any]) -> bool:
        return update_row(self._conn_factory, "user_profiles", "uid", uid, fields)

    def delete(self, uid: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM user_profiles WHERE uid=%s", (uid,))
            return cur.rowcount > 0


class MySQLCredentialRepository(CredentialRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_where(self, column: str, value: str) -> Optional[Credential]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT uid, email, password_hash, is_active FROM credentials WHERE {column}=%s",
                (value,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Credential(
                uid=r["uid"],
                email=r["email"],
                password_hash=r.get("password_hash"),
                is_active=bool(r.get("is_active", True)),
            )

    def get_by_email(self, email: str) -> Optional[Credential]:
        return self._get_where("email", email)

    def get_by_uid(self, uid: str) -> Optional[Credential]:
        return self._get_where("uid", uid)

    def create(self, credential: Credential) -> None:
        insert_row(
            self._conn_factory,
            "credentials",
            {
                "uid": credential.uid,
                "email": credential.email,
                "password_hash": credential.password_hash,
                "is_active": int(credential.is_active),
            },
        )

    def set_password_hash(self, uid: str, password_hash: str) -> bool:
        return update_row(self._conn_factory, "credentials", "uid", uid, {"password_hash": password_hash})

    def delete(self, uid: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM credentials WHERE uid=%s", (uid,))
            return cur.rowcount > 0
