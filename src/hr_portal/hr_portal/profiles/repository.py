from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import Department, Role


class ReferenceRepository(Protocol):
    """Read-only access to roles and departments.

    Note (DIP): services depend on this interface, never on a concrete backend.
    """

    def get_role_by_name(self, role_name: str) -> Optional[Role]:
        raise NotImplementedError

    def get_role_by_id(self, role_id: int, *, active_only: bool = False) -> Optional[Role]:
        raise NotImplementedError

    def get_department(self, department_id: int) -> Optional[Department]:
        raise NotImplementedError

    def list_roles(self) -> Sequence[Role]:
        raise NotImplementedError

    def list_departments(self) -> Sequence[Department]:
        raise NotImplementedError


class ProfileRepository(Protocol):
    """Profile rows in the relational store.

    Write methods raise ``StoreError`` when the backend rejects the call.
    """

    def get_by_id(self, profile_id: str) -> Optional[dict[str, Any]]:
        raise NotImplementedError

    def count_in_department(self, department_id: int) -> int:
        raise NotImplementedError

    def insert_profile(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        raise NotImplementedError

    def update_by_key(self, key_name: str, key_value: Any, fields: Mapping[str, Any]) -> list[dict[str, Any]]:
        """Conditional update of rows where ``key_name = key_value``; returns the updated rows."""
        raise NotImplementedError

    def update_via_procedure(self, email: str, fields: Mapping[str, Any]) -> Optional[dict[str, Any]]:
        raise NotImplementedError

    def list_role_assignments(self) -> Sequence[dict[str, Any]]:
        """``id``, ``email`` and ``role_id`` of every profile."""
        raise NotImplementedError
