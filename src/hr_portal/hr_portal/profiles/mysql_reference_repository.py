from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Department, Role
from .repository import ReferenceRepository

_DEPARTMENT_SELECT = """
    SELECT d.id, d.name, d.description, dc.code
    FROM departments d
    LEFT JOIN department_codes dc ON dc.department_id = d.id AND dc.is_active = 1
"""


def _role(row) -> Role:
    return Role(
        id=int(row["id"]),
        role_name=row["role_name"],
        display_name=row["display_name"],
        is_active=bool(row.get("is_active", True)),
    )


def _department(row) -> Department:
    return Department(
        id=int(row["id"]),
        name=row["name"],
        description=row.get("description"),
        code=row.get("code"),
    )


class MySQLReferenceRepository(ReferenceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_role_by_name(self, role_name: str) -> Optional[Role]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id, role_name, display_name, is_active FROM user_roles WHERE role_name=%s",
                (role_name,),
            )
            row = fetchone(cur)
            return _role(row) if row else None

    def get_role_by_id(self, role_id: int, *, active_only: bool = False) -> Optional[Role]:
        sql = "SELECT id, role_name, display_name, is_active FROM user_roles WHERE id=%s"
        if active_only:
            sql += " AND is_active=1"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (role_id,))
            row = fetchone(cur)
            return _role(row) if row else None

    def get_department(self, department_id: int) -> Optional[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_DEPARTMENT_SELECT + " WHERE d.id=%s ORDER BY dc.id DESC LIMIT 1", (department_id,))
            row = fetchone(cur)
            return _department(row) if row else None

    def list_roles(self) -> Sequence[Role]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id, role_name, display_name, is_active FROM user_roles WHERE is_active=1 ORDER BY id")
            return [_role(r) for r in fetchall(cur)]

    def list_departments(self) -> Sequence[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_DEPARTMENT_SELECT + " ORDER BY d.name")
            return [_department(r) for r in fetchall(cur)]
