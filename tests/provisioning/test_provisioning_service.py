from __future__ import annotations

import pytest

from hr_portal.core.enums import ProvisioningStage
from hr_portal.core.exceptions import (
    DepartmentCodeMissingError,
    DepartmentNotFoundError,
    IdentityCreationError,
    PartialProvisioningError,
    RoleNotFoundError,
    StoreError,
    ValidationError,
)
from hr_portal.provisioning.model import HireRequest
from hr_portal.provisioning.service import ProvisioningService, compose_user_id


def _request(**overrides) -> HireRequest:
    data = dict(
        email="new.hire@econest.com",
        password="s3cret!",
        name="  Nadia Islam ",
        role_name="employee",
        department_id=10,
        designation="Engineer",
        mobile_no="+880 1711-222333",
        personal_email="nadia@gmail.com",
        hired_by="hr@econest.com",
    )
    data.update(overrides)
    return HireRequest(**data)


@pytest.fixture
def engineering_profiles(profiles):
    # alice is already in department 10; add six more for seven in total
    for n in range(2, 8):
        profiles.rows[f"uid-{n}"] = {"id": f"uid-{n}", "email": f"e{n}@econest.com", "department_id": 10}
    return profiles


@pytest.fixture
def service(identities, engineering_profiles, references, fixed_now):
    return ProvisioningService(identities, engineering_profiles, references, clock=lambda: fixed_now)


def test_compose_user_id_pads_code_and_sequence():
    assert compose_user_id(2025, "03", 8) == "2025030008"
    assert compose_user_id(2025, "4", 1) == "2025040001"
    assert compose_user_id(2026, "12", 1234) == "2026121234"


def test_hire_generates_next_user_id_and_persists_both_records(service, identities, engineering_profiles):
    user = service.hire(_request())

    assert user.user_id == "2025030008"
    assert user.name == "Nadia Islam"
    assert user.department_name == "Engineering"
    assert user.department_code == "03"
    assert user.role_display_name == "Employee"

    identity = identities.get_identity(user.id)
    assert identity.metadata["generated_user_id"] == "2025030008"
    assert identity.metadata["source"] == "hr_hiring"
    assert identity.metadata["is_first_login"] is True
    assert identity.metadata["hired_at"] == "2025-03-14T09:30:00"
    assert identity.metadata["role_id"] == 4

    row = engineering_profiles.rows[user.id]
    assert row["user_id"] == "2025030008"
    assert row["role_id"] == 4
    assert row["department_id"] == 10
    assert row["is_first_login"] is True
    assert "password" not in row


def test_short_department_code_is_zero_padded(service):
    user = service.hire(_request(department_id=11))
    assert user.user_id == "2025040001"


def test_invalid_input_stops_before_lookups(service, identities):
    with pytest.raises(ValidationError) as exc:
        service.hire(_request(name="", email="nope", password="123"))

    assert "Name is required" in exc.value.errors
    assert "Please enter a valid email address" in exc.value.errors
    assert "Password must be at least 6 characters" in exc.value.errors
    assert exc.value.stage == ProvisioningStage.VALIDATING
    assert identities.identities == {}


def test_unknown_role(service, identities):
    with pytest.raises(RoleNotFoundError):
        service.hire(_request(role_name="ceo"))
    assert identities.identities == {}


def test_unknown_department(service, identities):
    with pytest.raises(DepartmentNotFoundError):
        service.hire(_request(department_id=999))
    assert identities.identities == {}


def test_department_without_code_names_the_department(service, identities):
    with pytest.raises(DepartmentCodeMissingError) as exc:
        service.hire(_request(department_id=12))

    assert "Legal" in str(exc.value)
    assert identities.identities == {}


def test_lookup_store_error_maps_to_not_found(service, references):
    references.fail_role_lookups = True
    with pytest.raises(RoleNotFoundError, match="Failed to fetch role"):
        service.hire(_request())


def test_identity_failure_leaves_no_profile(service, identities, engineering_profiles):
    identities.create_error = StoreError("User already registered")
    before = dict(engineering_profiles.rows)

    with pytest.raises(IdentityCreationError) as exc:
        service.hire(_request())

    assert exc.value.stage == ProvisioningStage.REFERENCES_RESOLVED
    assert engineering_profiles.rows == before


def test_profile_insert_failure_is_partial_provisioning(service, identities, engineering_profiles):
    engineering_profiles.insert_error = StoreError("duplicate entry '2025030008' for key 'users.user_id'")

    with pytest.raises(PartialProvisioningError) as exc:
        service.hire(_request())

    err = exc.value
    assert err.stage == ProvisioningStage.IDENTITY_CREATED
    assert err.identity_id == "uid-1"
    assert err.user_id == "2025030008"
    assert err.email == "new.hire@econest.com"
    assert "uid-1" in str(err) and "new.hire@econest.com" in str(err)
    # no compensation: the identity account is still there
    assert identities.get_identity("uid-1") is not None
