import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import httpx
import pytest
from supabase_auth.errors import AuthApiError, AuthInvalidCredentialsError, AuthRetryableError

from app.core.errors import AuthError
from app.core.identity import SupabaseIdentityProvider, _principal_from_user, _to_auth_error


class StubAuth:
    """Stands in for `client.auth`; returns or raises what the test sets."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []
        self.admin = SimpleNamespace(sign_out=self._record("admin.sign_out"))

    def _record(self, name):
        def call(*args):
            self.calls.append((name, args))
            if self.error is not None:
                raise self.error
            return self.result

        return call

    def __getattr__(self, name):
        return self._record(name)


def _client(result=None, error=None):
    return SimpleNamespace(auth=StubAuth(result, error))


def _user(identities=None, confirmed_at=None, email="asha@example.edu"):
    return SimpleNamespace(
        id=str(uuid.uuid4()),
        email=email,
        identities=[{"provider": "email"}] if identities is None else identities,
        email_confirmed_at=confirmed_at,
    )


# -------- Error mapping --------


@pytest.mark.parametrize(
    "exc",
    [
        AuthRetryableError("Service Unavailable", 503),
        AuthApiError("Internal error", 500, "unexpected_failure"),
        httpx.ConnectError("connection refused"),
    ],
)
def test_outages_become_network_error(exc):
    err = _to_auth_error(exc)
    assert err.code == "network_error"
    assert err.status_code == 503


def test_rate_limit_is_not_a_bad_password():
    err = _to_auth_error(AuthApiError("Too many requests", 429, "over_request_rate_limit"))

    assert err.code == "rate_limited"
    assert err.status_code == 429
    assert err.message == "Too many requests"


@pytest.mark.parametrize(
    "exc,code,status",
    [
        (AuthApiError("Invalid login credentials", 400, "invalid_credentials"), "invalid_credentials", 401),
        (AuthApiError("Invalid login credentials", 400, None), "invalid_credentials", 401),
        (AuthInvalidCredentialsError("You must provide either an email or phone number"), "invalid_credentials", 401),
        (AuthApiError("Email not confirmed", 400, "email_not_confirmed"), "unverified_email", 403),
        (AuthApiError("User already registered", 422, "user_already_exists"), "email_already_registered", 409),
        (AuthApiError("Password should be at least 6 characters", 422, "weak_password"), "weak_password", 422),
        (AuthApiError("Invalid Refresh Token: Not Found", 400, "refresh_token_not_found"), "invalid_credentials", 401),
    ],
)
def test_known_provider_errors(exc, code, status):
    err = _to_auth_error(exc)
    assert err.code == code
    assert err.status_code == status


def test_unrecognised_provider_error_keeps_message():
    err = _to_auth_error(AuthApiError("Unable to validate email address", 400, "validation_failed"))

    assert err.code == "provider_error"
    assert err.status_code == 400
    assert err.message == "Unable to validate email address"


def test_principal_from_user_tracks_confirmation():
    user = _user()
    assert _principal_from_user(user).email_verified is False
    assert _principal_from_user(_user(confirmed_at="2024-05-01T09:30:00Z")).email_verified is True
    assert _principal_from_user(user).id == uuid.UUID(user.id)


# -------- Provider --------


def test_create_identity_returns_unverified_principal():
    user = _user()
    client = _client(result=SimpleNamespace(user=user, session=None))

    principal = SupabaseIdentityProvider(client).create_identity("asha@example.edu", "secret1")

    assert principal.id == uuid.UUID(user.id)
    assert principal.email_verified is False
    assert client.auth.calls == [("sign_up", ({"email": "asha@example.edu", "password": "secret1"},))]


def test_create_identity_with_no_identities_means_already_registered():
    client = _client(result=SimpleNamespace(user=_user(identities=[]), session=None))

    with pytest.raises(AuthError) as exc_info:
        SupabaseIdentityProvider(client).create_identity("asha@example.edu", "secret1")

    assert exc_info.value.code == "email_already_registered"


def test_create_identity_during_outage():
    client = _client(error=AuthRetryableError("Bad Gateway", 502))

    with pytest.raises(AuthError) as exc_info:
        SupabaseIdentityProvider(client).create_identity("asha@example.edu", "secret1")

    assert exc_info.value.code == "network_error"


def test_authenticate_builds_auth_result():
    session = SimpleNamespace(access_token="access", refresh_token="refresh", expires_at=1714555800)
    user = _user(confirmed_at="2024-05-01T09:00:00Z")
    client = _client(result=SimpleNamespace(user=user, session=session))

    result = SupabaseIdentityProvider(client).authenticate("asha@example.edu", "secret1")

    assert result.principal.email_verified is True
    assert result.access_token == "access"
    assert result.refresh_token == "refresh"
    assert result.expires_at == datetime.fromtimestamp(1714555800, tz=timezone.utc)


def test_sign_out_goes_through_admin_client():
    public, admin = _client(), _client()

    SupabaseIdentityProvider(public, admin).invalidate_session("access")

    assert admin.auth.calls == [("admin.sign_out", ("access",))]
    assert public.auth.calls == []
