from __future__ import annotations

import uuid
from typing import Any, Callable, Mapping, Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_utc
from ..core.exceptions import StoreError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json
from .model import Identity
from .repository import IdentityProvider

_SELECT = "SELECT id, email, password_hash, user_metadata, created_at, last_sign_in_at FROM auth_identities"


def _identity(row) -> Identity:
    return Identity(
        id=row["id"],
        email=row["email"],
        metadata=load_json(row.get("user_metadata")),
        created_at=row.get("created_at"),
        last_sign_in_at=row.get("last_sign_in_at"),
    )


class MySQLIdentityProvider(IdentityProvider):
    """Identity accounts kept in ``auth_identities`` with werkzeug password hashes."""

    def __init__(self, conn_factory: DatabaseConnection, *, id_factory: Callable[[], str] = lambda: str(uuid.uuid4())):
        self._conn_factory = conn_factory
        self._id_factory = id_factory

    def create_identity(self, *, email: str, password: str, metadata: Mapping[str, Any]) -> Identity:
        identity_id = self._id_factory()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id FROM auth_identities WHERE email=%s", (email,))
            if fetchone(cur):
                raise StoreError("User already registered")
            cur.execute(
                """
                INSERT INTO auth_identities(id, email, password_hash, user_metadata, created_at)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (identity_id, email, generate_password_hash(password), dump_json(dict(metadata)), now_utc()),
            )
            cur.execute(_SELECT + " WHERE id=%s", (identity_id,))
            return _identity(fetchone(cur))

    def verify_credentials(self, email: str, password: str) -> Optional[Identity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE email=%s", (email,))
            row = fetchone(cur)
            if not row:
                return None

            try:
                ok = check_password_hash(row["password_hash"], password)
            except ValueError:
                # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
                ok = False
            if not ok:
                return None

            cur.execute("UPDATE auth_identities SET last_sign_in_at=%s WHERE id=%s", (now_utc(), row["id"]))
            return _identity(row)

    def get_identity(self, identity_id: str) -> Optional[Identity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE id=%s", (identity_id,))
            row = fetchone(cur)
            return _identity(row) if row else None

    def update_metadata(self, identity_id: str, metadata: Mapping[str, Any]) -> Identity:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE id=%s FOR UPDATE", (identity_id,))
            row = fetchone(cur)
            if not row:
                raise StoreError(f"User not found: {identity_id}")

            merged = {**load_json(row.get("user_metadata")), **dict(metadata)}
            cur.execute("UPDATE auth_identities SET user_metadata=%s WHERE id=%s", (dump_json(merged), identity_id))
            return _identity({**row, "user_metadata": merged})

    def list_identities(self, *, page: int, per_page: int) -> Sequence[Identity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " ORDER BY created_at LIMIT %s OFFSET %s", (per_page, (page - 1) * per_page))
            return [_identity(r) for r in fetchall(cur)]
