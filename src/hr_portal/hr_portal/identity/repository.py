from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import Identity


class IdentityProvider(Protocol):
    """Interface to the system that issues login accounts.

    Note (DIP): services never import a backend client directly; the provider
    is injected. Failures are raised as ``StoreError``.
    """

    def create_identity(self, *, email: str, password: str, metadata: Mapping[str, Any]) -> Identity:
        raise NotImplementedError

    def verify_credentials(self, email: str, password: str) -> Optional[Identity]:
        raise NotImplementedError

    def get_identity(self, identity_id: str) -> Optional[Identity]:
        raise NotImplementedError

    def update_metadata(self, identity_id: str, metadata: Mapping[str, Any]) -> Identity:
        """Merge ``metadata`` into the stored metadata and return the updated identity."""
        raise NotImplementedError

    def list_identities(self, *, page: int, per_page: int) -> Sequence[Identity]:
        raise NotImplementedError
