from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..core.enums import RoleName


@dataclass(frozen=True)
class Identity:
    """Login account held by the identity provider (not the business profile).

    Note: ``metadata`` mirrors the provider's user metadata (role, hiring info...).
    """

    id: str
    email: str
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    last_sign_in_at: Optional[datetime] = None


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    id: str
    email: str
    role: Optional[RoleName]
    name: Optional[str] = None


@dataclass(frozen=True)
class MigrationOutcome:
    email: str
    success: bool
    role: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class MigrationReport:
    results: list[MigrationOutcome]

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return self.total - self.successful
