"""
Contracts for the external substrate consumed by the core.

The services only depend on these protocols; the Supabase-backed
implementations live in app.core.identity and app.core.storage_utils,
and tests plug in in-memory fakes.

Relational rows are not abstracted here: they go through the SQLModel
repositories in app.repositories, which raise ReadError / WriteError.
"""

from typing import Protocol

from app.schemas.auth import AuthResult, Principal


class IdentityProvider(Protocol):
    """
    Identity operations. Every method raises AuthError on failure.
    """

    def create_identity(self, email: str, password: str) -> Principal: ...

    def authenticate(self, email: str, password: str) -> AuthResult: ...

    def invalidate_session(self, access_token: str) -> None: ...

    def refresh_session(self, refresh_token: str) -> AuthResult: ...


class ObjectStore(Protocol):
    """
    Blob operations. Every method raises StorageError on failure.
    """

    def put_object(self, path: str, data: bytes) -> None: ...

    def remove_object(self, path: str) -> None: ...

    def resolve_locator(self, path: str) -> str: ...

    def path_from_locator(self, locator: str) -> str | None: ...
