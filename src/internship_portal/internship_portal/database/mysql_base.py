from __future__ import annotations

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import mysql.connector

from ..core.exceptions import StoreError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        logger.error("database connection failed: %s", e)
        raise StoreError("Database is unavailable") from e

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as e:
        conn.rollback()
        logger.error("database statement failed: %s", e)
        raise StoreError("Database operation failed") from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def to_db(value: Any) -> Any:
    """Convert enums to their stored string value."""

    if isinstance(value, Enum):
        return value.value
    return value


def insert_row(conn_factory: DatabaseConnection, table: str, values: Mapping[str, Any]) -> None:
    columns = ", ".join(values.keys())
    placeholders = ",".join(["%s"] * len(values))
    with db_cursor(conn_factory) as (_, cur):
        cur.execute(
            f"INSERT INTO {table}({columns}) VALUES({placeholders})",
            tuple(to_db(v) for v in values.values()),
        )


def update_row(
    conn_factory: DatabaseConnection,
    table: str,
    id_column: str,
    record_id: str,
    values: Mapping[str, Any],
) -> bool:
    if not values:
        return False
    assignments = ", ".join(f"{col}=%s" for col in values)
    with db_cursor(conn_factory) as (_, cur):
        cur.execute(
            f"UPDATE {table} SET {assignments} WHERE {id_column}=%s",
            tuple(to_db(v) for v in values.values()) + (record_id,),
        )
        return cur.rowcount > 0


def compare_and_set_status(
    conn_factory: DatabaseConnection,
    table: str,
    id_column: str,
    *,
    record_id: str,
    expected: Any,
    new: Any,
    fields: Mapping[str, Any],
) -> bool:
    """Single conditional UPDATE: applies only while status still equals ``expected``."""

    values = dict(fields)
    values["status"] = new
    assignments = ", ".join(f"{col}=%s" for col in values)
    with db_cursor(conn_factory) as (_, cur):
        cur.execute(
            f"UPDATE {table} SET {assignments} WHERE {id_column}=%s AND status=%s",
            tuple(to_db(v) for v in values.values()) + (record_id, to_db(expected)),
        )
        return cur.rowcount > 0


def where_clause(clauses: Sequence[str]) -> str:
    return " AND ".join(clauses) if clauses else "1=1"


def like_any(columns: Sequence[str], term: str) -> Tuple[str, List[object]]:
    """``(col1 LIKE %s OR col2 LIKE %s ...)`` for a case-insensitive search term."""

    pattern = f"%{term.strip().lower()}%"
    sql = "(" + " OR ".join(f"LOWER({c}) LIKE %s" for c in columns) + ")"
    return sql, [pattern] * len(columns)
