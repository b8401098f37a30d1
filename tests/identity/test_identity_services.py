from __future__ import annotations

import pytest

from hr_portal.core.enums import RoleName
from hr_portal.core.exceptions import AuthenticationError, ValidationError
from hr_portal.identity.model import Identity
from hr_portal.identity.service import AuthService, MetadataService


@pytest.fixture
def auth(identities, profiles, references, fixed_now):
    return AuthService(identities, profiles, references, clock=lambda: fixed_now)


@pytest.fixture
def metadata_service(identities, profiles, references, fixed_now):
    return MetadataService(identities, profiles, references, clock=lambda: fixed_now)


def test_wrong_password_raises(auth, identities):
    identities.add(Identity(id="uid-alice", email="alice@econest.com", metadata={"role": "employee"}), "right")

    with pytest.raises(AuthenticationError):
        auth.authenticate("alice@econest.com", "wrong")


def test_role_from_metadata(auth, identities):
    identities.add(Identity(id="uid-x", email="x@econest.com", metadata={"role": "hr", "name": "X"}), "pw1234")

    user = auth.authenticate("x@econest.com", "pw1234")

    assert user.role == RoleName.HR
    assert user.name == "X"


def test_role_falls_back_to_profile_and_is_copied_into_metadata(auth, identities):
    identities.add(Identity(id="uid-alice", email="alice@econest.com"), "pw1234")

    user = auth.authenticate("alice@econest.com", "pw1234")

    assert user.role == RoleName.EMPLOYEE
    meta = identities.get_identity("uid-alice").metadata
    assert meta["role"] == "employee"
    assert meta["source"] == "database"
    assert meta["migrated_from_database"] is True
    assert meta["migrated_at"] == "2025-03-14T09:30:00"


def test_no_profile_means_no_role(auth, identities):
    identities.add(Identity(id="uid-orphan", email="orphan@econest.com"), "pw1234")

    assert auth.authenticate("orphan@econest.com", "pw1234").role is None


def test_update_user_role_rejects_unknown_roles(metadata_service, identities):
    identities.add(Identity(id="uid-alice", email="alice@econest.com"), "pw")

    updated = metadata_service.update_user_role("uid-alice", "manager", updated_by="hr@econest.com")
    assert updated.metadata["role"] == "manager"
    assert updated.metadata["updated_by"] == "hr@econest.com"

    with pytest.raises(ValidationError):
        metadata_service.update_user_role("uid-alice", "overlord")


def test_list_users_defaults_missing_role(metadata_service, identities):
    identities.add(Identity(id="a", email="a@econest.com", metadata={"role": "admin"}), "pw")
    identities.add(Identity(id="b", email="b@econest.com"), "pw")

    listing = metadata_service.list_users_with_metadata(page=1, per_page=10)

    assert [u["role"] for u in listing["users"]] == ["admin", "no_role"]
    assert listing["users"][1]["has_metadata"] is False
    assert listing["pagination"] == {"page": 1, "per_page": 10, "total": 2}


def test_get_user_with_metadata(metadata_service, identities):
    identities.add(Identity(id="a", email="a@econest.com", metadata={"role": "admin"}), "pw")

    assert metadata_service.get_user_with_metadata("a")["has_role"] is True
    with pytest.raises(ValidationError):
        metadata_service.get_user_with_metadata("missing")


def test_migrate_all_continues_past_failures(metadata_service, identities, profiles):
    identities.add(Identity(id="uid-alice", email="alice@econest.com"), "pw")
    identities.add(Identity(id="uid-bob", email="bob@econest.com"), "pw")
    profiles.rows["uid-bob"] = {"id": "uid-bob", "email": "bob@econest.com", "role_id": 77}
    profiles.rows["uid-gone"] = {"id": "uid-gone", "email": "gone@econest.com", "role_id": 2}

    report = metadata_service.migrate_all()

    assert report.total == 3
    assert report.successful == 2
    assert report.failed == 1
    by_email = {r.email: r for r in report.results}
    assert by_email["alice@econest.com"].role == "employee"
    assert by_email["bob@econest.com"].role == "employee"  # unknown role_id defaults to employee
    assert by_email["gone@econest.com"].success is False
    assert identities.get_identity("uid-bob").metadata["role_display_name"] == "Employee"


def test_update_user_metadata_merges_extra_fields(metadata_service, identities):
    identities.add(Identity(id="a", email="a@econest.com", metadata={"name": "A"}), "pw")

    updated = metadata_service.update_user_metadata("a", "hr", department_name="Finance")

    assert updated.metadata == {
        "name": "A",
        "role": "hr",
        "department_name": "Finance",
        "updated_at": "2025-03-14T09:30:00",
    }
