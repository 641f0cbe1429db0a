import pytest
from pydantic import ValidationError
from sqlmodel import select

from app.core.errors import AuthError
from app.models.profile import Profile
from app.repositories.profile_repo import ProfileRepository
from app.schemas.auth import ProfileSeed, SignUpRequest
from app.services.auth_service import AuthService
from app.services.profile_service import ProfileService


@pytest.fixture
def service(identity) -> AuthService:
    return AuthService(identity, ProfileService(ProfileRepository()))


def _seed(**overrides) -> ProfileSeed:
    data = {"full_name": "Ravi Kumar", "department": "CS", "role": "student", "subjects": ["DB"]}
    data.update(overrides)
    return ProfileSeed(**data)


def test_sign_up_creates_identity_and_profile(db_session, service, identity):
    principal = service.sign_up(db_session, "ravi@example.edu", "secret1", _seed())

    profile = db_session.exec(select(Profile).where(Profile.user_id == principal.id)).one()
    assert profile.email == "ravi@example.edu"
    assert profile.role == "student"
    assert profile.subjects == ["DB"]
    assert identity.create_calls == 1


def test_short_password_rejected_before_provider_call(db_session, service, identity):
    with pytest.raises(AuthError) as exc_info:
        service.sign_up(db_session, "ravi@example.edu", "12345", _seed())

    assert exc_info.value.code == "weak_password"
    assert identity.create_calls == 0
    assert db_session.exec(select(Profile)).all() == []


def test_duplicate_email(db_session, service):
    service.sign_up(db_session, "ravi@example.edu", "secret1", _seed())

    with pytest.raises(AuthError) as exc_info:
        service.sign_up(db_session, "ravi@example.edu", "secret2", _seed())

    assert exc_info.value.code == "email_already_registered"
    assert len(db_session.exec(select(Profile)).all()) == 1


def test_network_error_creates_no_profile(db_session, service, identity):
    identity.offline = True

    with pytest.raises(AuthError) as exc_info:
        service.sign_up(db_session, "ravi@example.edu", "secret1", _seed())

    assert exc_info.value.code == "network_error"
    assert db_session.exec(select(Profile)).all() == []


def test_sign_in_sign_out_refresh(db_session, service, identity):
    principal = service.sign_up(db_session, "ravi@example.edu", "secret1", _seed())

    result = service.sign_in("ravi@example.edu", "secret1")
    assert result.principal.id == principal.id
    assert result.access_token

    refreshed = service.refresh(result.refresh_token)
    assert refreshed.principal.id == principal.id

    service.sign_out(refreshed.access_token)
    assert identity.invalidated == [refreshed.access_token]


def test_sign_in_wrong_password(db_session, service):
    service.sign_up(db_session, "ravi@example.edu", "secret1", _seed())

    with pytest.raises(AuthError) as exc_info:
        service.sign_in("ravi@example.edu", "nope")
    assert exc_info.value.code == "invalid_credentials"


def test_sign_up_request_checks_confirmation():
    with pytest.raises(ValidationError):
        SignUpRequest(
            email="ravi@example.edu",
            password="secret1",
            confirm_password="secret2",
            full_name="Ravi",
        )


def test_sign_up_request_cannot_self_grant_admin():
    with pytest.raises(ValidationError):
        SignUpRequest(
            email="ravi@example.edu",
            password="secret1",
            confirm_password="secret1",
            full_name="Ravi",
            role="admin",
        )
