from __future__ import annotations

from enum import Enum
from typing import Optional


class RoleName(str, Enum):
    """Stable role keys stored in ``user_roles.role_name``."""

    ADMIN = "admin"
    HR = "hr"
    MANAGER = "manager"
    EMPLOYEE = "employee"

    @classmethod
    def parse(cls, value: "Optional[str | RoleName]") -> "RoleName":
        """Map any input onto the closed enumeration; unknown roles act as employee."""
        if isinstance(value, RoleName):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.EMPLOYEE


class ProvisioningStage(str, Enum):
    """How far a hire got before it finished or failed."""

    VALIDATING = "VALIDATING"
    REFERENCES_RESOLVED = "REFERENCES_RESOLVED"
    IDENTITY_CREATED = "IDENTITY_CREATED"
    PROFILE_PERSISTED = "PROFILE_PERSISTED"
