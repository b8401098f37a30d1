"""Role-based field access for profile edits.

The allowed field set is derived from ``(role, is_own_profile)`` on every
call and never stored.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import now_utc
from ..common.validators import is_blank, is_valid_email, is_valid_mobile
from ..core.enums import RoleName
from .model import ValidationResult

COMMON_FIELDS = frozenset(
    {
        # basic information
        "name",
        "mobile_no",
        "secondary_mobile_no",
        "personal_email",
        "official_email",
        # personal information
        "date_of_birth",
        "nationality",
        "nid_no",
        "passport_no",
        "current_address",
        "photo_url",
    }
)

ADMIN_ONLY_FIELDS = frozenset({"designation", "department_id", "role_id", "user_id", "email", "is_first_login"})

# HR may move people between departments but not change roles or the system email.
HR_FIELDS = frozenset({"designation", "department_id"})

MANAGER_TEAM_FIELDS = frozenset({"name", "mobile_no", "secondary_mobile_no", "current_address"})

FIELD_DISPLAY_NAMES = {
    "name": "Full Name",
    "designation": "Designation",
    "department_id": "Department",
    "mobile_no": "Mobile Number",
    "secondary_mobile_no": "Secondary Mobile",
    "personal_email": "Personal Email",
    "official_email": "Official Email",
    "date_of_birth": "Date of Birth",
    "nationality": "Nationality",
    "nid_no": "NID Number",
    "passport_no": "Passport Number",
    "current_address": "Current Address",
    "photo_url": "Profile Picture",
    "role_id": "Role",
    "user_id": "User ID",
    "email": "System Email",
    "is_first_login": "First Login Status",
}

_INSTRUCTIONS = {
    RoleName.ADMIN: (
        "As an admin, you can edit all fields of your profile.",
        "As an admin, you can edit all fields including designation, department, and role.",
    ),
    RoleName.HR: (
        "As HR, you can edit all your personal information.",
        "As HR, you can edit employee information except for roles and system email.",
    ),
    RoleName.MANAGER: (
        "As a manager, you can edit all your personal information.",
        "As a manager, you can edit basic information of your team members.",
    ),
    RoleName.EMPLOYEE: (
        "You can edit your personal information, but not your role or designation.",
        "You can only edit your own profile.",
    ),
}


class AccessPolicy:
    """Pure rules: which profile fields a role may change, and what values are acceptable."""

    def get_allowed_fields(self, role: Optional[str], is_own_profile: bool = False) -> frozenset[str]:
        role = RoleName.parse(role)

        if role == RoleName.ADMIN:
            return COMMON_FIELDS | ADMIN_ONLY_FIELDS
        if is_own_profile:
            return COMMON_FIELDS
        if role == RoleName.HR:
            return COMMON_FIELDS | HR_FIELDS
        if role == RoleName.MANAGER:
            return MANAGER_TEAM_FIELDS
        return frozenset()

    def can_edit_field(self, field: str, role: Optional[str], is_own_profile: bool = False) -> bool:
        return field in self.get_allowed_fields(role, is_own_profile)

    def filter_change_set(
        self,
        proposed: Mapping[str, Any],
        role: Optional[str],
        is_own_profile: bool = False,
        *,
        now: Optional[datetime] = None,
    ) -> dict[str, Any]:
        """Keep only editable keys; trim strings (blank -> None); stamp ``updated_at``."""
        allowed = self.get_allowed_fields(role, is_own_profile)
        update: dict[str, Any] = {}
        for key, value in proposed.items():
            if key not in allowed:
                continue
            if isinstance(value, str):
                value = value.strip() or None
            update[key] = value

        update["updated_at"] = now or now_utc()
        return update

    def validate(self, proposed: Mapping[str, Any], role: Optional[str]) -> ValidationResult:
        errors: list[str] = []

        name = proposed.get("name")
        if not isinstance(name, str) or not name.strip():
            errors.append("Name is required")

        if self.can_edit_field("email", role):
            if not self._email_ok(proposed.get("email")):
                errors.append("Please enter a valid email address")

        if not self._email_ok(proposed.get("personal_email")):
            errors.append("Please enter a valid personal email address")

        if not self._email_ok(proposed.get("official_email")):
            errors.append("Please enter a valid official email address")

        mobile = proposed.get("mobile_no")
        if not is_blank(mobile) and not (isinstance(mobile, str) and is_valid_mobile(mobile)):
            errors.append("Please enter a valid mobile number (minimum 7 digits)")

        return ValidationResult(valid=not errors, errors=errors)

    @staticmethod
    def _email_ok(value: Any) -> bool:
        if is_blank(value):
            return True
        return isinstance(value, str) and is_valid_email(value.strip())

    def field_display_names(self) -> dict[str, str]:
        return dict(FIELD_DISPLAY_NAMES)

    def editing_instructions(self, role: Optional[str], is_own_profile: bool = False) -> str:
        own, other = _INSTRUCTIONS[RoleName.parse(role)]
        return own if is_own_profile else other
