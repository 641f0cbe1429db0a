"""
Error taxonomy for the notes portal.

Every failure that leaves the core is a PortalError subclass carrying:
  - code:    stable machine-readable tag (e.g. "file_too_large")
  - message: single human-readable string shown to the user
  - status_code: HTTP status used by the API exception handler

Local checks (password length, role immutability, faculty subjects,
file size) raise these before any external call. Store failures are
wrapped once at the gateway/repository boundary and surfaced as-is.
"""

from typing import Literal

AuthErrorCode = Literal[
    "invalid_credentials",
    "email_already_registered",
    "network_error",
    "unverified_email",
    "weak_password",
    "rate_limited",
    "provider_error",
]

ProfileErrorCode = Literal[
    "not_found",
    "faculty_requires_subject",
    "role_immutable",
    "email_immutable",
]

UploadErrorCode = Literal[
    "not_permitted",
    "subject_not_taught",
    "file_too_large",
    "storage_write_failed",
    "locator_unavailable",
    "metadata_write_failed",
]


class PortalError(Exception):
    """Base class for all domain errors."""

    status_code: int = 400

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class AuthError(PortalError):
    """Credential / network failures at the identity provider boundary."""

    _STATUS: dict[str, int] = {
        "invalid_credentials": 401,
        "email_already_registered": 409,
        "network_error": 503,
        "unverified_email": 403,
        "weak_password": 422,
        "rate_limited": 429,
        "provider_error": 502,
    }

    def __init__(self, code: AuthErrorCode, message: str, status_code: int | None = None):
        super().__init__(code, message)
        self.status_code = status_code or self._STATUS.get(code, 400)


class ProfileError(PortalError):
    """Profile load / update / invariant failures."""

    def __init__(self, code: ProfileErrorCode, message: str):
        super().__init__(code, message)
        self.status_code = 404 if code == "not_found" else 422


class UploadError(PortalError):
    """
    Upload pipeline failure.

    blob_committed tells the caller whether the file already reached
    storage before the failure (it is then orphaned, never rolled back).
    """

    _STATUS: dict[str, int] = {
        "not_permitted": 403,
        "subject_not_taught": 422,
        "file_too_large": 413,
        "storage_write_failed": 502,
        "locator_unavailable": 502,
        "metadata_write_failed": 502,
    }

    def __init__(
        self,
        code: UploadErrorCode,
        message: str,
        blob_committed: bool = False,
        blob_path: str | None = None,
    ):
        super().__init__(code, message)
        self.status_code = self._STATUS.get(code, 400)
        self.blob_committed = blob_committed
        self.blob_path = blob_path


class NoteError(PortalError):
    def __init__(self, code: Literal["not_found"], message: str):
        super().__init__(code, message)
        self.status_code = 404


class StorageError(PortalError):
    """Blob store failure (put / remove / locator)."""

    status_code = 502

    def __init__(self, message: str):
        super().__init__("storage_error", message)


class ReadError(PortalError):
    """Relational store read failure."""

    status_code = 503

    def __init__(self, message: str):
        super().__init__("read_error", message)


class WriteError(PortalError):
    """Relational store write failure."""

    status_code = 503

    def __init__(self, message: str):
        super().__init__("write_error", message)


class AccessDenied(PortalError):
    """
    A guard check failed.

    Carries the route the client should fall back to instead of
    rendering an error page.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 403,
        redirect_to: str | None = "/",
    ):
        super().__init__("access_denied", message)
        self.status_code = status_code
        self.redirect_to = redirect_to
