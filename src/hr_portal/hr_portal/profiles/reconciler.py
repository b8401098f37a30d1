from __future__ import annotations

import logging
from datetime import date
from typing import Any, Mapping, Optional

from ..core.constants import LEGACY_PROCEDURE_STRATEGY, PROFILE_KEY_STRATEGIES
from ..core.exceptions import InvalidReferenceError, PersistenceError, StoreError, ValidationError
from .access_policy import AccessPolicy
from .model import ProfileUpdateResult
from .repository import ProfileRepository, ReferenceRepository

logger = logging.getLogger(__name__)


def _comparable(value: Any) -> Any:
    # DATE/DATETIME columns come back from the editor as ISO strings.
    if isinstance(value, date):
        return value.isoformat()
    return value


class ProfileReconciler:
    """Use case: save a profile edit under the caller's access grant.

    Exactly one write reaches the store per successful call. Key strategies are
    tried in order (``id``, ``email``, ``user_id``) because legacy rows do not
    all carry every key; the first one that updates a row wins.
    """

    def __init__(
        self,
        profiles: ProfileRepository,
        references: ReferenceRepository,
        *,
        policy: Optional[AccessPolicy] = None,
        key_strategies: tuple[str, ...] = PROFILE_KEY_STRATEGIES,
        procedure_fallback: bool = False,
    ):
        self._profiles = profiles
        self._references = references
        self._policy = policy or AccessPolicy()
        self._key_strategies = key_strategies
        self._procedure_fallback = procedure_fallback

    def save(
        self,
        original: Mapping[str, Any],
        proposed: Mapping[str, Any],
        role: Optional[str],
        is_own_profile: bool = False,
    ) -> ProfileUpdateResult:
        validation = self._policy.validate(proposed, role)
        if not validation.valid:
            raise ValidationError(", ".join(validation.errors), validation.errors)

        update = self._policy.filter_change_set(proposed, role, is_own_profile)
        logger.debug("Profile %s: filtered update keys=%s role=%s own=%s", original.get("id"), sorted(update), role, is_own_profile)

        self._check_references(update)

        strategy = self._write(original, update)

        profile = {**original, **update}
        self._enrich(profile, update)

        updated_fields = [
            k for k in update if k != "updated_at" and _comparable(original.get(k)) != _comparable(update[k])
        ]
        logger.info("Profile %s updated via %s: %s", original.get("id"), strategy, updated_fields)
        return ProfileUpdateResult(profile=profile, updated_fields=updated_fields, strategy=strategy)

    def _check_references(self, update: Mapping[str, Any]) -> None:
        """A lookup that fails is treated the same as a reference that does not exist."""
        role_id = update.get("role_id")
        if role_id is not None:
            error = InvalidReferenceError("role", role_id, "Selected role is not valid or has been deactivated")
            try:
                role = self._references.get_role_by_id(role_id, active_only=True)
            except StoreError as e:
                logger.warning("Role lookup for role_id=%s failed: %s", role_id, e)
                raise error from e
            if not role:
                logger.warning("Rejected profile update: invalid role_id=%s", role_id)
                raise error

        department_id = update.get("department_id")
        if department_id is not None:
            error = InvalidReferenceError(
                "department", department_id, "Selected department is not valid or has been removed"
            )
            try:
                department = self._references.get_department(department_id)
            except StoreError as e:
                logger.warning("Department lookup for department_id=%s failed: %s", department_id, e)
                raise error from e
            if not department:
                logger.warning("Rejected profile update: invalid department_id=%s", department_id)
                raise error

    def _write(self, original: Mapping[str, Any], update: Mapping[str, Any]) -> str:
        attempted: list[str] = []
        last_error: Optional[BaseException] = None

        for key_name in self._key_strategies:
            key_value = original.get(key_name)
            if key_value in (None, ""):
                continue

            attempted.append(key_name)
            try:
                rows = self._profiles.update_by_key(key_name, key_value, update)
            except StoreError as e:
                logger.warning("Profile update by %s=%s failed: %s", key_name, key_value, e)
                last_error = e
                continue

            if rows:
                return key_name
            logger.warning("Profile update by %s=%s matched no rows", key_name, key_value)
            last_error = StoreError(f"no profile matched {key_name}={key_value}")

        if self._procedure_fallback and original.get("email"):
            attempted.append(LEGACY_PROCEDURE_STRATEGY)
            try:
                row = self._profiles.update_via_procedure(original["email"], update)
            except StoreError as e:
                logger.error("Legacy profile procedure failed for %s: %s", original["email"], e)
            else:
                if row:
                    return LEGACY_PROCEDURE_STRATEGY

        if last_error is None:
            last_error = StoreError("profile has no usable key (id, email or user_id)")

        logger.error("All profile update strategies failed (%s): %s", ", ".join(attempted) or "-", last_error)
        raise PersistenceError(f"Failed to update profile: {last_error}", attempted=attempted, last_error=last_error)

    def _enrich(self, profile: dict[str, Any], update: Mapping[str, Any]) -> None:
        """Attach display names for changed references. Best-effort: lookups may fail."""
        if update.get("role_id") is not None:
            try:
                role = self._references.get_role_by_id(update["role_id"])
            except StoreError as e:
                logger.warning("Could not fetch role name for updated profile: %s", e)
            else:
                if role:
                    profile["role_name"] = role.role_name
                    profile["role_display_name"] = role.display_name

        if update.get("department_id") is not None:
            try:
                department = self._references.get_department(update["department_id"])
            except StoreError as e:
                logger.warning("Could not fetch department name for updated profile: %s", e)
            else:
                if department:
                    profile["department_name"] = department.name
                    profile["department_description"] = department.description
