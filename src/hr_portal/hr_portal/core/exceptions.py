from __future__ import annotations

from typing import Optional, Sequence


class DomainError(Exception):
    """Base exception for business rule violations."""


class StoreError(Exception):
    """Raised by a store or identity-provider adapter when the backend rejects a call."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    def __init__(self, message: str, errors: Sequence[str] = ()):
        super().__init__(message)
        self.errors = list(errors) or [message]


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class InvalidReferenceError(DomainError):
    """A role or department id in a profile update does not resolve."""

    def __init__(self, reference: str, value, message: str):
        super().__init__(message)
        self.reference = reference
        self.value = value


class PersistenceError(DomainError):
    """Every profile update strategy failed; the profile is unchanged."""

    def __init__(self, message: str, *, attempted: Sequence[str] = (), last_error: Optional[BaseException] = None):
        super().__init__(message)
        self.attempted = list(attempted)
        self.last_error = last_error


class ProvisioningError(DomainError):
    """Base class for hire failures. ``stage`` is the last stage reached."""

    stage = None


class RoleNotFoundError(ProvisioningError):
    pass


class DepartmentNotFoundError(ProvisioningError):
    pass


class DepartmentCodeMissingError(ProvisioningError):
    def __init__(self, department_name: str):
        super().__init__(
            f"Department code not found for department: {department_name}. "
            "Please ensure this department has an active code assigned in the department_codes table."
        )
        self.department_name = department_name


class IdentityCreationError(ProvisioningError):
    """The identity provider refused the account; nothing was written."""


class PartialProvisioningError(ProvisioningError):
    """Identity account exists but its profile row could not be inserted.

    Not recoverable locally: an operator has to either insert the profile or
    delete the identity account by hand.
    """

    def __init__(self, *, email: str, identity_id: str, user_id: Optional[str], cause: BaseException):
        super().__init__(
            f"Account {email} was created in the identity provider (id={identity_id}) "
            f"but its profile (user_id={user_id or '-'}) could not be saved: {cause}. "
            "Manual reconciliation is required."
        )
        self.email = email
        self.identity_id = identity_id
        self.user_id = user_id
        self.cause = cause
