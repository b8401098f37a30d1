from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from ..core.constants import DEFAULT_HIRED_BY


@dataclass(frozen=True)
class HireRequest:
    email: str
    password: str
    name: str
    role_name: str
    department_id: int
    designation: Optional[str] = None
    mobile_no: Optional[str] = None
    personal_email: Optional[str] = None
    hired_by: str = DEFAULT_HIRED_BY


@dataclass(frozen=True)
class ProvisionedUser:
    """Confirmation shown to HR after a successful hire."""

    id: str
    user_id: str
    email: str
    name: str
    role_name: str
    role_display_name: str
    department_name: str
    department_code: str
    metadata: dict[str, Any] = field(default_factory=dict)
    profile: dict[str, Any] = field(default_factory=dict)
