import uuid
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

import httpx
from supabase import Client
from supabase_auth.errors import AuthInvalidCredentialsError, AuthRetryableError

from app.core.errors import AuthError
from app.core.supabase_client import supabase_admin, supabase_public
from app.schemas.auth import AuthResult, Principal


# Provider codes that mean the presented credential or token is wrong.
_CREDENTIAL_CODES = {
    "invalid_credentials",
    "refresh_token_not_found",
    "refresh_token_already_used",
    "session_not_found",
    "bad_jwt",
    "user_not_found",
}


def _to_auth_error(exc: Exception) -> AuthError:
    """
    Map a Supabase Auth / transport exception onto our AuthError codes.

    Supabase raises AuthApiError with a `code` attribute on recent
    versions; older ones only carry the message, so both are checked.
    Outages (transport errors, retryable errors, 5xx) become
    network_error. Anything unrecognised keeps the provider's message
    instead of being reported as a bad password.
    """
    if isinstance(exc, (httpx.HTTPError, AuthRetryableError)):
        return AuthError("network_error", "Could not reach the authentication service")

    status = getattr(exc, "status", None)
    code = (getattr(exc, "code", None) or "").lower()
    message = getattr(exc, "message", None) or str(exc)
    lowered = message.lower()

    if isinstance(status, int) and status >= 500:
        return AuthError("network_error", "The authentication service is unavailable")
    if code == "email_not_confirmed" or "not confirmed" in lowered:
        return AuthError("unverified_email", "Please verify your email before signing in")
    if code in {"user_already_exists", "email_exists"} or "already registered" in lowered:
        return AuthError("email_already_registered", "This email is already registered")
    if code == "weak_password" or "password should be" in lowered:
        return AuthError("weak_password", message)
    if status == 429 or code.startswith("over_"):
        return AuthError("rate_limited", message)
    if (
        code in _CREDENTIAL_CODES
        or isinstance(exc, AuthInvalidCredentialsError)
        or "invalid login credentials" in lowered
    ):
        return AuthError("invalid_credentials", "Invalid email or password")

    if isinstance(status, int) and 400 <= status < 500:
        return AuthError("provider_error", message, status_code=status)
    return AuthError("provider_error", message)


def _principal_from_user(user: Any) -> Principal:
    return Principal(
        id=uuid.UUID(str(user.id)),
        email=user.email or "",
        email_verified=getattr(user, "email_confirmed_at", None) is not None,
    )


def _result_from_response(response: Any) -> AuthResult:
    session = response.session
    if response.user is None:
        raise AuthError("invalid_credentials", "Invalid email or password")

    expires_at = None
    if session is not None and session.expires_at:
        expires_at = datetime.fromtimestamp(session.expires_at, tz=timezone.utc)

    return AuthResult(
        principal=_principal_from_user(response.user),
        access_token=session.access_token if session else None,
        refresh_token=session.refresh_token if session else None,
        expires_at=expires_at,
    )


class SupabaseIdentityProvider:
    """
    IdentityProvider backed by Supabase Auth.

    - sign-up/sign-in/refresh go through the anon client
    - server-side sign-out needs the service role (admin API)

    The verification email after sign-up is sent by Supabase itself.
    """

    def __init__(self, public: Client, admin: Client | None = None):
        self.public = public
        self.admin = admin

    def create_identity(self, email: str, password: str) -> Principal:
        try:
            response = self.public.auth.sign_up({"email": email, "password": password})
        except Exception as exc:
            raise _to_auth_error(exc) from exc

        user = response.user
        if user is None:
            raise AuthError("invalid_credentials", "Sign-up was rejected")

        # With email enumeration protection Supabase returns a fake user
        # with no identities instead of an error for known emails.
        if getattr(user, "identities", None) == []:
            raise AuthError("email_already_registered", "This email is already registered")

        return _principal_from_user(user)

    def authenticate(self, email: str, password: str) -> AuthResult:
        try:
            response = self.public.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as exc:
            raise _to_auth_error(exc) from exc
        return _result_from_response(response)

    def invalidate_session(self, access_token: str) -> None:
        client = self.admin or self.public
        try:
            client.auth.admin.sign_out(access_token)
        except Exception as exc:
            raise _to_auth_error(exc) from exc

    def refresh_session(self, refresh_token: str) -> AuthResult:
        try:
            response = self.public.auth.refresh_session(refresh_token)
        except Exception as exc:
            raise _to_auth_error(exc) from exc
        return _result_from_response(response)


@lru_cache
def get_identity_provider() -> SupabaseIdentityProvider:
    """FastAPI dependency: shared Supabase-backed identity provider."""
    try:
        admin = supabase_admin()
    except RuntimeError:
        admin = None
    return SupabaseIdentityProvider(supabase_public(), admin)
