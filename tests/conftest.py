from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Optional

import pytest

from hr_portal.core.exceptions import StoreError
from hr_portal.identity.model import Identity
from hr_portal.mail.model import EmployeeType, InboxItem, ReadStatus, SentMail
from hr_portal.profiles.model import Department, Role


class InMemoryReferences:
    def __init__(self, roles=(), departments=()):
        self.roles: dict[int, Role] = {r.id: r for r in roles}
        self.departments: dict[int, Department] = {d.id: d for d in departments}
        self.fail_role_lookups = False
        self.fail_department_lookups = False

    def get_role_by_name(self, role_name: str) -> Optional[Role]:
        if self.fail_role_lookups:
            raise StoreError("user_roles unavailable")
        return next((r for r in self.roles.values() if r.role_name == role_name), None)

    def get_role_by_id(self, role_id: int, *, active_only: bool = False) -> Optional[Role]:
        if self.fail_role_lookups:
            raise StoreError("user_roles unavailable")
        role = self.roles.get(role_id)
        if role and active_only and not role.is_active:
            return None
        return role

    def get_department(self, department_id: int) -> Optional[Department]:
        if self.fail_department_lookups:
            raise StoreError("departments unavailable")
        return self.departments.get(department_id)

    def list_roles(self):
        return [r for r in self.roles.values() if r.is_active]

    def list_departments(self):
        return list(self.departments.values())


class InMemoryProfiles:
    def __init__(self, rows=()):
        self.rows: dict[str, dict[str, Any]] = {r["id"]: dict(r) for r in rows}
        self.failing_keys: set[str] = set()
        self.insert_error: Optional[Exception] = None
        self.procedure_result: Optional[dict[str, Any]] = None
        self.attempts: list[str] = []
        self.writes: list[tuple[str, Any, dict[str, Any]]] = []
        self.procedure_calls: list[str] = []

    def get_by_id(self, profile_id: str):
        row = self.rows.get(profile_id)
        return dict(row) if row else None

    def count_in_department(self, department_id: int) -> int:
        return sum(1 for r in self.rows.values() if r.get("department_id") == department_id)

    def insert_profile(self, fields):
        if self.insert_error:
            raise self.insert_error
        self.rows[fields["id"]] = dict(fields)
        return dict(fields)

    def update_by_key(self, key_name, key_value, fields):
        self.attempts.append(key_name)
        if key_name in self.failing_keys:
            raise StoreError(f"column {key_name} rejected")
        matched = [r for r in self.rows.values() if r.get(key_name) == key_value]
        for row in matched:
            row.update(fields)
        if matched:
            self.writes.append((key_name, key_value, dict(fields)))
        return [dict(r) for r in matched]

    def update_via_procedure(self, email, fields):
        self.procedure_calls.append(email)
        if self.procedure_result is not None:
            self.writes.append(("procedure", email, dict(fields)))
        return self.procedure_result

    def list_role_assignments(self):
        return [{"id": r["id"], "email": r.get("email"), "role_id": r.get("role_id")} for r in self.rows.values()]


class InMemoryIdentities:
    def __init__(self):
        self.identities: dict[str, Identity] = {}
        self.passwords: dict[str, str] = {}
        self.create_error: Optional[Exception] = None
        self.failing_updates: set[str] = set()
        self._next_id = 1

    def add(self, identity: Identity, password: str) -> Identity:
        self.identities[identity.id] = identity
        self.passwords[identity.email] = password
        return identity

    def create_identity(self, *, email, password, metadata):
        if self.create_error:
            raise self.create_error
        if email in self.passwords:
            raise StoreError("User already registered")
        identity = Identity(id=f"uid-{self._next_id}", email=email, metadata=dict(metadata))
        self._next_id += 1
        return self.add(identity, password)

    def verify_credentials(self, email, password):
        if self.passwords.get(email) != password:
            return None
        return next(i for i in self.identities.values() if i.email == email)

    def get_identity(self, identity_id):
        return self.identities.get(identity_id)

    def update_metadata(self, identity_id, metadata):
        if identity_id in self.failing_updates or identity_id not in self.identities:
            raise StoreError(f"User not found: {identity_id}")
        current = self.identities[identity_id]
        updated = replace(current, metadata={**current.metadata, **metadata})
        self.identities[identity_id] = updated
        return updated

    def list_identities(self, *, page, per_page):
        items = list(self.identities.values())
        start = (page - 1) * per_page
        return items[start : start + per_page]


ROLES = (
    Role(id=1, role_name="admin", display_name="Administrator"),
    Role(id=2, role_name="hr", display_name="Human Resources"),
    Role(id=3, role_name="manager", display_name="Manager"),
    Role(id=4, role_name="employee", display_name="Employee"),
    Role(id=9, role_name="contractor", display_name="Contractor", is_active=False),
)

DEPARTMENTS = (
    Department(id=10, name="Engineering", description="Product engineering", code="03"),
    Department(id=11, name="Finance", description="Accounts", code="4"),
    Department(id=12, name="Legal", description="No code yet", code=None),
)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 3, 14, 9, 30, 0)


@pytest.fixture
def references() -> InMemoryReferences:
    return InMemoryReferences(ROLES, DEPARTMENTS)


@pytest.fixture
def alice() -> dict[str, Any]:
    return {
        "id": "uid-alice",
        "user_id": "2024030001",
        "email": "alice@econest.com",
        "name": "Alice Rahman",
        "designation": "Engineer",
        "role_id": 4,
        "department_id": 10,
        "mobile_no": "+880 1711-000000",
        "personal_email": None,
        "official_email": None,
        "current_address": "Dhaka",
        "is_first_login": False,
    }


@pytest.fixture
def profiles(alice) -> InMemoryProfiles:
    return InMemoryProfiles([alice])


@pytest.fixture
def identities() -> InMemoryIdentities:
    return InMemoryIdentities()


class InMemoryMail:
    """Mail store over the profile fake, so recipients follow ``department_id``."""

    def __init__(self, profiles: InMemoryProfiles):
        self.profiles = profiles
        self.employee_types: dict[str, EmployeeType] = {}
        self.mails: dict[int, Any] = {}
        self.recipients: dict[tuple[int, str], dict[str, Any]] = {}
        self.fail_type_lookups = False

    def make_head(self, user_id: str) -> None:
        self.employee_types[user_id] = EmployeeType("department_head", "Department Head")

    def get_employee_type(self, user_id):
        if self.fail_type_lookups:
            raise StoreError("employee_types unavailable")
        return self.employee_types.get(user_id)

    def create_mail(self, mail):
        mail_id = len(self.mails) + 1
        self.mails[mail_id] = mail
        members = [
            r["id"]
            for r in self.profiles.rows.values()
            if r.get("department_id") == mail.recipient_department_id and r["id"] != mail.sender_user_id
        ]
        for user_id in members:
            self.recipients[(mail_id, user_id)] = {"is_read": False, "read_at": None}
        return SentMail(mail_id=mail_id, recipient_count=len(members))

    def inbox(self, user_id):
        items = []
        for (mail_id, rcpt), state in self.recipients.items():
            if rcpt != user_id:
                continue
            mail = self.mails[mail_id]
            sender = self.profiles.rows.get(mail.sender_user_id, {})
            items.append(
                InboxItem(
                    mail_id=mail_id,
                    subject=mail.subject,
                    body=mail.body,
                    sender_user_name=sender.get("name"),
                    sender_department_name=None,
                    is_urgent=mail.is_urgent,
                    created_at=mail.created_at,
                    is_read=state["is_read"],
                    read_at=state["read_at"],
                )
            )
        return sorted(items, key=lambda i: i.mail_id, reverse=True)

    def mark_read(self, mail_id, user_id, read_at):
        state = self.recipients.get((mail_id, user_id))
        if state is None:
            return False
        state["is_read"] = True
        state["read_at"] = state["read_at"] or read_at
        return True

    def read_status(self, mail_id, department_id):
        out = []
        for (m_id, user_id), state in self.recipients.items():
            row = self.profiles.rows[user_id]
            if m_id == mail_id and row.get("department_id") == department_id:
                out.append(ReadStatus(user_id, row["name"], row["email"], state["is_read"], state["read_at"]))
        return sorted(out, key=lambda s: s.name)


@pytest.fixture
def mail(profiles) -> InMemoryMail:
    return InMemoryMail(profiles)
