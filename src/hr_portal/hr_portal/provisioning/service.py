from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Optional

from ..common.datetime_utils import isoformat, now_utc
from ..common.validators import is_blank, is_valid_email
from ..core.constants import DEPARTMENT_CODE_WIDTH, MIN_PASSWORD_LENGTH, PROVISIONING_SOURCE, USER_SEQUENCE_WIDTH
from ..core.enums import ProvisioningStage
from ..core.exceptions import (
    DepartmentCodeMissingError,
    DepartmentNotFoundError,
    IdentityCreationError,
    PartialProvisioningError,
    ProvisioningError,
    RoleNotFoundError,
    StoreError,
    ValidationError,
)
from ..identity.repository import IdentityProvider
from ..profiles.access_policy import AccessPolicy
from ..profiles.model import Department, Role
from ..profiles.repository import ProfileRepository, ReferenceRepository
from .model import HireRequest, ProvisionedUser

logger = logging.getLogger(__name__)


def compose_user_id(year: int, department_code: str, sequence: int) -> str:
    """``<year><2-digit department code><4-digit sequence>``, e.g. 2025 / "3" / 8 -> ``2025030008``."""
    return f"{year}{str(department_code).zfill(DEPARTMENT_CODE_WIDTH)}{str(sequence).zfill(USER_SEQUENCE_WIDTH)}"


class ProvisioningService:
    """Use case: hire a new employee (identity account + profile row).

    The two writes span two systems with no shared transaction:

        VALIDATING -> REFERENCES_RESOLVED -> IDENTITY_CREATED -> PROFILE_PERSISTED

    A failure after IDENTITY_CREATED leaves an account without a profile and is
    reported as ``PartialProvisioningError``; it is not compensated here because
    this layer has no right to delete identity accounts.

    Known limitation: the sequence number is ``count(profiles in department) + 1``
    with no lock or unique-retry loop, so two concurrent hires into the same
    department can compute the same ``user_id``. The ``users.user_id`` unique
    index turns the loser into a ``PartialProvisioningError``.
    """

    def __init__(
        self,
        identities: IdentityProvider,
        profiles: ProfileRepository,
        references: ReferenceRepository,
        *,
        policy: Optional[AccessPolicy] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._identities = identities
        self._profiles = profiles
        self._references = references
        self._policy = policy or AccessPolicy()
        self._clock = clock

    def hire(self, request: HireRequest) -> ProvisionedUser:
        self._validate(request)

        role, department = self._resolve_references(request)
        stage = ProvisioningStage.REFERENCES_RESOLVED

        now = self._clock()
        try:
            prior_count = self._profiles.count_in_department(department.id)
        except StoreError as e:
            raise self._at(ProvisioningError(f"Failed to count existing users: {e}"), stage) from e
        user_id = compose_user_id(now.year, department.code, prior_count + 1)

        metadata = self._build_metadata(request, role, department, user_id, now)
        try:
            identity = self._identities.create_identity(
                email=request.email.strip(), password=request.password, metadata=metadata
            )
        except StoreError as e:
            logger.error("Identity creation failed for %s: %s", request.email, e)
            raise self._at(IdentityCreationError(f"Auth creation failed: {e}"), stage) from e
        stage = ProvisioningStage.IDENTITY_CREATED
        logger.info("Created identity %s for %s (user_id=%s)", identity.id, identity.email, user_id)

        try:
            profile = self._profiles.insert_profile(
                {
                    "id": identity.id,
                    "user_id": user_id,
                    "email": identity.email,
                    "name": request.name.strip(),
                    "role_id": role.id,
                    "department_id": department.id,
                    "designation": self._clean(request.designation),
                    "mobile_no": self._clean(request.mobile_no),
                    "personal_email": self._clean(request.personal_email),
                    "is_first_login": True,
                    "created_at": now,
                    "updated_at": now,
                }
            )
        except StoreError as e:
            logger.error(
                "Partial provisioning: identity %s (%s) has no profile row, user_id=%s: %s",
                identity.id,
                identity.email,
                user_id,
                e,
            )
            raise self._at(
                PartialProvisioningError(email=identity.email, identity_id=identity.id, user_id=user_id, cause=e),
                stage,
            ) from e

        logger.info("Hired %s into %s as %s (user_id=%s)", identity.email, department.name, role.role_name, user_id)
        return ProvisionedUser(
            id=identity.id,
            user_id=user_id,
            email=identity.email,
            name=request.name.strip(),
            role_name=role.role_name,
            role_display_name=role.display_name,
            department_name=department.name,
            department_code=department.code,
            metadata=metadata,
            profile=profile,
        )

    def _validate(self, request: HireRequest) -> None:
        result = self._policy.validate(
            {"name": request.name, "personal_email": request.personal_email, "mobile_no": request.mobile_no},
            request.role_name,
        )
        errors = list(result.errors)
        if is_blank(request.email) or not is_valid_email(request.email.strip()):
            errors.append("Please enter a valid email address")
        if not request.password or len(request.password) < MIN_PASSWORD_LENGTH:
            errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if is_blank(request.role_name):
            errors.append("Role is required")
        if request.department_id in (None, ""):
            errors.append("Department is required")

        if errors:
            raise self._at(ValidationError(", ".join(errors), errors), ProvisioningStage.VALIDATING)

    def _resolve_references(self, request: HireRequest) -> tuple[Role, Department]:
        """Look up role and department together; both must resolve before any write."""
        with ThreadPoolExecutor(max_workers=2) as pool:
            role_future = pool.submit(self._references.get_role_by_name, request.role_name.strip())
            department_future = pool.submit(self._references.get_department, request.department_id)

        stage = ProvisioningStage.VALIDATING
        try:
            role = role_future.result()
        except StoreError as e:
            raise self._at(RoleNotFoundError(f"Failed to fetch role: {e}"), stage) from e
        if not role:
            raise self._at(RoleNotFoundError(f"Role not found: {request.role_name}"), stage)

        try:
            department = department_future.result()
        except StoreError as e:
            raise self._at(DepartmentNotFoundError(f"Failed to fetch department: {e}"), stage) from e
        if not department:
            raise self._at(DepartmentNotFoundError(f"Department not found: {request.department_id}"), stage)
        if not department.code:
            logger.error("No active department code for department %s (%s)", department.id, department.name)
            raise self._at(DepartmentCodeMissingError(department.name), stage)

        return role, department

    @staticmethod
    def _build_metadata(
        request: HireRequest, role: Role, department: Department, user_id: str, now: datetime
    ) -> dict[str, Any]:
        return {
            "role": role.role_name,
            "role_display_name": role.display_name,
            "role_id": role.id,
            "department_id": department.id,
            "department_name": department.name,
            "department_code": department.code,
            "name": request.name.strip(),
            "designation": ProvisioningService._clean(request.designation),
            "mobile_no": ProvisioningService._clean(request.mobile_no),
            "personal_email": ProvisioningService._clean(request.personal_email),
            "hired_by": request.hired_by,
            "hired_at": isoformat(now),
            "is_first_login": True,
            "source": PROVISIONING_SOURCE,
            "has_metadata": True,
            "generated_user_id": user_id,
        }

    @staticmethod
    def _clean(value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None

    @staticmethod
    def _at(error: ProvisioningError | ValidationError, stage: ProvisioningStage):
        error.stage = stage
        return error
