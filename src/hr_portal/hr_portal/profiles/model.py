from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

# Profiles themselves travel as plain dict rows (column -> value), the same
# shape the store returns. Reference data is typed.


@dataclass(frozen=True)
class Role:
    id: int
    role_name: str
    display_name: str
    is_active: bool = True


@dataclass(frozen=True)
class Department:
    """Department joined with its active DepartmentCode (``code`` is None when it has none)."""

    id: int
    name: str
    description: Optional[str] = None
    code: Optional[str] = None


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ProfileUpdateResult:
    profile: dict[str, Any]
    updated_fields: list[str]
    strategy: str
