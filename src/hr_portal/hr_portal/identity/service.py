from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Optional

from ..common.datetime_utils import isoformat, now_utc
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_PAGE_SIZE, NO_ROLE
from ..core.enums import RoleName
from ..core.exceptions import AuthenticationError, StoreError, ValidationError
from ..profiles.repository import ProfileRepository, ReferenceRepository
from .model import Identity, MigrationOutcome, MigrationReport, SessionUser
from .repository import IdentityProvider

logger = logging.getLogger(__name__)


class AuthService:
    """Use case: authenticate (login) and work out which role the account acts as."""

    def __init__(
        self,
        identities: IdentityProvider,
        profiles: ProfileRepository,
        references: ReferenceRepository,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._identities = identities
        self._profiles = profiles
        self._references = references
        self._clock = clock

    def authenticate(self, email: str, password: str) -> SessionUser:
        email = require_non_empty(email, "Email")
        identity = self._identities.verify_credentials(email, password or "")
        if not identity:
            raise AuthenticationError("Invalid email or password")

        return SessionUser(
            id=identity.id,
            email=identity.email,
            role=self.resolve_role(identity),
            name=identity.metadata.get("name"),
        )

    def resolve_role(self, identity: Identity) -> Optional[RoleName]:
        """Role from identity metadata, else from the profile row.

        A role found only in the profile is copied into the metadata so the next
        login takes the fast path. ``None`` means the account has no role yet.
        """
        meta_role = identity.metadata.get("role")
        if meta_role:
            return RoleName.parse(meta_role)

        try:
            profile = self._profiles.get_by_id(identity.id)
            if not profile or not profile.get("role_id"):
                logger.info("No profile role for identity %s", identity.id)
                return None
            role = self._references.get_role_by_id(profile["role_id"])
        except StoreError as e:
            logger.warning("Role lookup for identity %s failed: %s", identity.id, e)
            return None
        if not role:
            return None

        try:
            self._identities.update_metadata(
                identity.id,
                {
                    "role": role.role_name,
                    "role_display_name": role.display_name,
                    "migrated_at": isoformat(self._clock()),
                    "migrated_from_database": True,
                    "source": "database",
                },
            )
        except StoreError as e:
            logger.warning("Could not copy role into metadata for %s: %s", identity.id, e)

        return RoleName.parse(role.role_name)


class MetadataService:
    """Admin use cases over identity metadata (role sync, listing, bulk migration)."""

    def __init__(
        self,
        identities: IdentityProvider,
        profiles: ProfileRepository,
        references: ReferenceRepository,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._identities = identities
        self._profiles = profiles
        self._references = references
        self._clock = clock

    def update_user_role(self, identity_id: str, new_role: str, *, updated_by: str = "hr") -> Identity:
        try:
            role = RoleName(new_role)
        except ValueError:
            raise ValidationError(f"Unknown role: {new_role}")
        return self._identities.update_metadata(
            identity_id,
            {"role": role.value, "updated_by": updated_by, "updated_at": isoformat(self._clock())},
        )

    def update_user_metadata(self, identity_id: str, role: str, **extra: Any) -> Identity:
        return self._identities.update_metadata(
            identity_id,
            {"role": role, "updated_at": isoformat(self._clock()), **extra},
        )

    def get_user_with_metadata(self, identity_id: str) -> dict[str, Any]:
        identity = self._identities.get_identity(identity_id)
        if not identity:
            raise ValidationError("User not found")
        return {
            "id": identity.id,
            "email": identity.email,
            "metadata": dict(identity.metadata),
            "has_role": bool(identity.metadata.get("role")),
        }

    def list_users_with_metadata(self, page: int = 1, per_page: int = DEFAULT_PAGE_SIZE) -> dict[str, Any]:
        page = max(int(page), 1)
        per_page = max(int(per_page), 1)
        identities = self._identities.list_identities(page=page, per_page=per_page)
        users = [
            {
                "id": i.id,
                "email": i.email,
                "role": i.metadata.get("role") or NO_ROLE,
                "name": i.metadata.get("name"),
                "department": i.metadata.get("department_name"),
                "created_at": i.created_at,
                "last_sign_in_at": i.last_sign_in_at,
                "has_metadata": bool(i.metadata.get("role")),
            }
            for i in identities
        ]
        return {"users": users, "pagination": {"page": page, "per_page": per_page, "total": len(users)}}

    def migrate_all(self) -> MigrationReport:
        """Copy every profile's role into its identity metadata.

        Profiles whose role cannot be resolved are migrated as employee. One
        failing account does not stop the run.
        """
        assignments = self._profiles.list_role_assignments()
        logger.info("Starting metadata migration for %d users", len(assignments))

        results: list[MigrationOutcome] = []
        for row in assignments:
            email = row.get("email") or "-"
            try:
                role = self._references.get_role_by_id(row["role_id"]) if row.get("role_id") else None
                role_name = role.role_name if role else RoleName.EMPLOYEE.value
                display_name = role.display_name if role else "Employee"
                if not role:
                    logger.info("No role found for %s, defaulting to employee", email)

                self._identities.update_metadata(
                    row["id"],
                    {
                        "role": role_name,
                        "role_display_name": display_name,
                        "migrated_at": isoformat(self._clock()),
                        "migrated_from_database": True,
                    },
                )
            except StoreError as e:
                logger.error("Metadata migration failed for %s: %s", email, e)
                results.append(MigrationOutcome(email=email, success=False, error=str(e)))
                continue

            results.append(MigrationOutcome(email=email, success=True, role=role_name))

        report = MigrationReport(results=results)
        logger.info("Migration completed: %d successful, %d failed", report.successful, report.failed)
        return report
