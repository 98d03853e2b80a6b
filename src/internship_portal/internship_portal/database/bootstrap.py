from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable

import mysql.connector
from werkzeug.security import generate_password_hash

from ..common.datetime_utils import new_id, now_local
from .connection import DBConfig


def _connect(target: DBConfig, *, with_database: bool = True):
    kwargs = dict(host=target.host, port=target.port, user=target.user, password=target.password, use_pure=True)
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql independent of the configured DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal splitter: ';' ends a statement unless inside quotes.
    buf: list[str] = []
    quote = ""
    escape = False

    for ch in sql:
        buf.append(ch)
        if escape:
            escape = False
        elif ch == "\\":
            escape = True
        elif ch in ("'", '"'):
            if not quote:
                quote = ch
            elif quote == ch:
                quote = ""
        elif ch == ";" and not quote:
            stmt = "".join(buf[:-1]).strip()
            buf.clear()
            if stmt:
                yield stmt

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    sql = _strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8"))

    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


def ensure_demo_users(db_config: dict) -> None:
    """Create one demo admin and one demo student if their e-mails are unused."""

    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor(dictionary=True)

        def upsert(email: str, password: str, first_name: str, last_name: str, role: str) -> None:
            cur.execute("SELECT uid FROM credentials WHERE email=%s", (email,))
            if cur.fetchone():
                return
            uid = new_id()
            now = now_local()
            cur.execute(
                "INSERT INTO credentials(uid, email, password_hash, is_active) VALUES(%s,%s,%s,1)",
                (uid, email, generate_password_hash(password)),
            )
            cur.execute(
                """
                INSERT INTO user_profiles(uid, email, first_name, last_name, role, auth_provider, created_at, updated_at)
                VALUES(%s,%s,%s,%s,%s,'password',%s,%s)
                """,
                (uid, email, first_name, last_name, role, now, now),
            )

        upsert("admin@example.com", "admin123", "Demo", "Admin", "admin")
        upsert("student@example.com", "student123", "Demo", "Student", "student")
        conn.commit()
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
