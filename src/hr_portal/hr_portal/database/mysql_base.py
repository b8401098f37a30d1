from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

import mysql.connector

from ..core.exceptions import StoreError
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield ``(conn, cursor)``; commit on success, rollback and raise ``StoreError`` on driver errors."""
    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        raise StoreError(f"database unavailable: {e}") from e

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as e:
        conn.rollback()
        raise StoreError(str(e)) from e
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


def require_columns(columns: Iterable[str], allowed: frozenset[str], table: str) -> list[str]:
    """Column names are interpolated into SQL, so only whitelisted ones pass."""
    columns = list(columns)
    unknown = [c for c in columns if c not in allowed]
    if unknown:
        raise StoreError(f"unknown {table} column(s): {', '.join(sorted(unknown))}")
    return columns


def to_db_value(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=_json_default)
    return value


def load_json(value: Any) -> Dict[str, Any]:
    """Normalize MySQL JSON columns (str/bytes depending on connector) to a dict."""
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    return json.loads(value) if value else {}


def dump_json(value: Any) -> str:
    return json.dumps(value, default=_json_default)


def _json_default(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Unsupported JSON value type: {type(value)!r}")
