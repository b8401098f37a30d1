from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime

from hr_portal.database import bootstrap
from hr_portal.database.bootstrap import _strip_create_db_and_use, ensure_demo_admin, iter_sql_statements


def test_splits_on_semicolons_outside_quotes():
    sql = """
    -- roles
    INSERT INTO user_roles(role_name, display_name) VALUES ('hr', 'Human; Resources');
    INSERT INTO departments(name) VALUES ("R;D");
    SELECT 1
    """

    stmts = list(iter_sql_statements(sql))

    assert len(stmts) == 3
    assert stmts[0].startswith("INSERT INTO user_roles")
    assert "'Human; Resources'" in stmts[0]
    assert '"R;D"' in stmts[1]
    assert stmts[2] == "SELECT 1"


def test_comments_and_blank_statements_are_dropped():
    sql = "-- only a comment;\n;\n  ;SELECT 2; -- trailing"
    assert list(iter_sql_statements(sql)) == ["SELECT 2"]


def test_create_database_and_use_lines_are_removed():
    sql = "CREATE DATABASE hr;\nUSE hr;\nCREATE TABLE t (id INT);"
    assert list(iter_sql_statements(_strip_create_db_and_use(sql))) == ["CREATE TABLE t (id INT)"]


class ScriptedCursor:
    """Answers each SELECT with the next scripted row and records every statement."""

    def __init__(self, rows):
        self._rows = list(rows)
        self.executed = []

    def execute(self, sql, params=None):
        self.executed.append((" ".join(sql.split()), params))

    def fetchone(self):
        return self._rows.pop(0)


class ScriptedConnection:
    def __init__(self, cursor):
        self._cursor = cursor
        self.committed = False

    def cursor(self, dictionary=False):
        return self._cursor

    def commit(self):
        self.committed = True


def _fake_db(monkeypatch, cursor):
    conn = ScriptedConnection(cursor)

    class FakeDatabase:
        @contextmanager
        def opened(self, *, with_database=True):
            yield conn

    monkeypatch.setattr(bootstrap.DatabaseConnection, "for_dict", classmethod(lambda cls, cfg: FakeDatabase()))
    monkeypatch.setattr(bootstrap, "now_utc", lambda: datetime(2026, 1, 5, 8, 0, 0))
    return conn


def test_demo_admin_takes_the_next_sequence_in_its_department(monkeypatch):
    cursor = ScriptedCursor(
        [
            None,  # admin email not registered
            {"id": 1, "display_name": "Administrator"},
            {"id": 1, "name": "Administration", "code": "1"},
            {"n": 1},  # one hire already in the department
        ]
    )
    conn = _fake_db(monkeypatch, cursor)

    ensure_demo_admin({"database": "hr_portal"})

    sql, params = cursor.executed[-1]
    assert sql.startswith("INSERT INTO users")
    assert params[1] == "2026010002"
    assert conn.committed


def test_demo_admin_is_not_recreated(monkeypatch):
    cursor = ScriptedCursor([{"id": "existing"}])
    conn = _fake_db(monkeypatch, cursor)

    ensure_demo_admin({"database": "hr_portal"})

    assert len(cursor.executed) == 1
    assert not conn.committed
