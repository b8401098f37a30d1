from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..core.constants import LEGACY_PROCEDURE_STRATEGY, PROFILE_KEY_STRATEGIES
from ..core.exceptions import StoreError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json, require_columns, to_db_value
from .repository import ProfileRepository

PROFILE_COLUMNS = frozenset(
    {
        "id",
        "user_id",
        "email",
        "name",
        "designation",
        "role_id",
        "department_id",
        "mobile_no",
        "secondary_mobile_no",
        "personal_email",
        "official_email",
        "date_of_birth",
        "nationality",
        "nid_no",
        "passport_no",
        "current_address",
        "photo_url",
        "is_first_login",
        "created_at",
        "updated_at",
    }
)

_SELECT = "SELECT " + ", ".join(sorted(PROFILE_COLUMNS)) + " FROM users"


def _profile(row: dict[str, Any]) -> dict[str, Any]:
    out = dict(row)
    if "is_first_login" in out and out["is_first_login"] is not None:
        out["is_first_login"] = bool(out["is_first_login"])
    return out


class MySQLProfileRepository(ProfileRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, profile_id: str) -> Optional[dict[str, Any]]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE id=%s", (profile_id,))
            row = fetchone(cur)
            return _profile(row) if row else None

    def count_in_department(self, department_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM users WHERE department_id=%s", (department_id,))
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def insert_profile(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        columns = require_columns(fields.keys(), PROFILE_COLUMNS, "users")
        placeholders = ",".join(["%s"] * len(columns))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO users({','.join(columns)}) VALUES({placeholders})",
                tuple(to_db_value(fields[c]) for c in columns),
            )
            cur.execute(_SELECT + " WHERE id=%s", (fields["id"],))
            row = fetchone(cur)
            if not row:
                raise StoreError(f"inserted profile {fields['id']} could not be read back")
            return _profile(row)

    def update_by_key(self, key_name: str, key_value: Any, fields: Mapping[str, Any]) -> list[dict[str, Any]]:
        if key_name not in PROFILE_KEY_STRATEGIES:
            raise StoreError(f"unsupported profile key: {key_name}")
        columns = require_columns(fields.keys(), PROFILE_COLUMNS, "users")
        if not columns:
            return []

        assignments = ", ".join(f"{c}=%s" for c in columns)
        params = tuple(to_db_value(fields[c]) for c in columns) + (key_value,)
        # The key itself may be part of the update (admin changing email/user_id).
        lookup_value = fields.get(key_name, key_value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM users WHERE {key_name}=%s", (key_value,))
            matched = fetchone(cur)
            if not matched or not int(matched["n"]):
                return []
            cur.execute(f"UPDATE users SET {assignments} WHERE {key_name}=%s", params)
            cur.execute(_SELECT + f" WHERE {key_name}=%s", (lookup_value,))
            return [_profile(r) for r in fetchall(cur)]

    def update_via_procedure(self, email: str, fields: Mapping[str, Any]) -> Optional[dict[str, Any]]:
        """Legacy ``update_user_profile(email, json)`` stored procedure; returns the row it reports."""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.callproc(LEGACY_PROCEDURE_STRATEGY, (email, dump_json(dict(fields))))
            for result in cur.stored_results():
                row = result.fetchone()
                if row:
                    payload = load_json(row[0] if isinstance(row, tuple) else next(iter(row.values())))
                    if not payload.get("success"):
                        raise StoreError(f"SQL function failed: {payload.get('error')}")
                    return payload.get("data") or {"email": email}
        return None

    def list_role_assignments(self) -> Sequence[dict[str, Any]]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id, email, role_id FROM users ORDER BY created_at")
            return fetchall(cur)
