from __future__ import annotations

import json
import logging
import re
import uuid
from pathlib import Path
from typing import Iterator

from werkzeug.security import generate_password_hash

from ..common.datetime_utils import now_utc
from ..provisioning.service import compose_user_id
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

_SQL_TOKEN = re.compile(
    r"""
    '(?:\\.|''|[^'\\])*'      # single-quoted literal
    | "(?:\\.|""|[^"\\])*"    # double-quoted literal
    | --[^\n]*                # line comment
    | ;
    | [^'";-]+
    | .
    """,
    re.VERBOSE | re.DOTALL,
)


def _strip_create_db_and_use(sql: str) -> str:
    # schema.sql may name its own database; the configured one wins.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def iter_sql_statements(sql: str) -> Iterator[str]:
    """Split a .sql file on ``;`` outside quoted literals, dropping ``--`` comments."""
    buf: list[str] = []
    for match in _SQL_TOKEN.finditer(sql):
        token = match.group(0)
        if token.startswith("--"):
            continue
        if token == ";":
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue
        buf.append(token)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    db = DatabaseConnection.for_dict(db_config)
    with db.opened(with_database=False) as conn:
        cur = conn.cursor()
        cur.execute(f"CREATE DATABASE IF NOT EXISTS `{db.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci")
        conn.commit()


def _apply_sql_file(db_config: dict, path: str | Path) -> int:
    sql = _strip_create_db_and_use(Path(path).read_text(encoding="utf-8"))
    count = 0
    with DatabaseConnection.for_dict(db_config).opened() as conn:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
            count += 1
        conn.commit()
    return count


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    count = _apply_sql_file(db_config, schema_path)
    logger.info("Applied schema %s (%d statements)", schema_path, count)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    count = _apply_sql_file(db_config, seed_path)
    logger.info("Applied seed %s (%d statements)", seed_path, count)


def ensure_demo_admin(db_config: dict, *, email: str = "admin@econest.com", password: str = "admin123") -> None:
    """Create a demo admin identity + profile pair if the email is not registered yet."""
    with DatabaseConnection.for_dict(db_config).opened() as conn:
        cur = conn.cursor(dictionary=True)
        cur.execute("SELECT id FROM auth_identities WHERE email=%s", (email,))
        if cur.fetchone():
            return

        cur.execute("SELECT id, display_name FROM user_roles WHERE role_name='admin'")
        role = cur.fetchone()
        cur.execute(
            """
            SELECT d.id, d.name, dc.code FROM departments d
            JOIN department_codes dc ON dc.department_id = d.id AND dc.is_active = 1
            ORDER BY d.id LIMIT 1
            """
        )
        dept = cur.fetchone()
        if not role or not dept:
            raise RuntimeError("Seed roles/departments first (database/seed.sql)")

        now = now_utc()
        identity_id = str(uuid.uuid4())
        cur.execute("SELECT COUNT(*) AS n FROM users WHERE department_id=%s", (dept["id"],))
        prior = cur.fetchone()
        user_id = compose_user_id(now.year, dept["code"], int(prior["n"] if prior else 0) + 1)
        metadata = {"role": "admin", "role_display_name": role["display_name"], "name": "Admin Demo", "source": "seed"}
        cur.execute(
            "INSERT INTO auth_identities(id, email, password_hash, user_metadata, created_at) VALUES(%s,%s,%s,%s,%s)",
            (identity_id, email, generate_password_hash(password), json.dumps(metadata), now),
        )
        cur.execute(
            """
            INSERT INTO users(id, user_id, email, name, role_id, department_id, is_first_login, created_at, updated_at)
            VALUES(%s,%s,%s,%s,%s,%s,0,%s,%s)
            """,
            (identity_id, user_id, email, "Admin Demo", role["id"], dept["id"], now, now),
        )
        conn.commit()
        logger.info("Created demo admin %s (user_id=%s)", email, user_id)


def list_tables(db_config: dict) -> list[str]:
    with DatabaseConnection.for_dict(db_config).opened() as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
