"""
Notes portal - test configuration and fixtures
"""
import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import Generator

import pytest

# Set testing environment before the app reads its settings
os.environ["SUPABASE_URL"] = "https://test-project.supabase.co"
os.environ["SUPABASE_KEY"] = "test-anon-key"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret-for-testing-only"

from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.core.errors import AuthError, StorageError
from app.core.identity import get_identity_provider
from app.core.storage_utils import extract_path_from_public_url, get_object_store
from app.database import get_session
from app.main import app
from app.models.profile import Profile
from app.schemas.auth import AuthResult, Principal

JWT_SECRET = os.environ["SUPABASE_JWT_SECRET"]
BUCKET = "notes-files"
PUBLIC_PREFIX = f"https://test-project.supabase.co/storage/v1/object/public/{BUCKET}/"


def make_token(user_id: uuid.UUID, email: str) -> str:
    """Mint an access token shaped like a Supabase one."""
    claims = {
        "sub": str(user_id),
        "email": email,
        "aud": "authenticated",
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
        "user_metadata": {"email_verified": True},
    }
    return jwt.encode(claims, JWT_SECRET, algorithm="HS256")


# ----- Fake collaborators -----


class FakeObjectStore:
    """In-memory bucket with call counters and switchable failures."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.put_calls = 0
        self.remove_calls = 0
        self.fail_put = False
        self.fail_locator = False
        self.fail_remove = False

    def put_object(self, path: str, data: bytes) -> None:
        self.put_calls += 1
        if self.fail_put:
            raise StorageError("bucket unavailable")
        self.objects[path] = data

    def remove_object(self, path: str) -> None:
        self.remove_calls += 1
        if self.fail_remove:
            raise StorageError("remove failed")
        self.objects.pop(path, None)

    def resolve_locator(self, path: str) -> str:
        if self.fail_locator:
            raise StorageError("no public url")
        return PUBLIC_PREFIX + path

    def path_from_locator(self, locator: str) -> str | None:
        return extract_path_from_public_url(locator, BUCKET)


class FakeIdentityProvider:
    """In-memory identity provider issuing real HS256 tokens."""

    def __init__(self):
        self.accounts: dict[str, tuple[str, Principal]] = {}
        self.refresh_tokens: dict[str, Principal] = {}
        self.create_calls = 0
        self.invalidated: list[str] = []
        self.offline = False

    def create_identity(self, email: str, password: str) -> Principal:
        self.create_calls += 1
        if self.offline:
            raise AuthError("network_error", "Could not reach the authentication service")
        if email in self.accounts:
            raise AuthError("email_already_registered", "This email is already registered")
        principal = Principal(id=uuid.uuid4(), email=email, email_verified=False)
        self.accounts[email] = (password, principal)
        return principal

    def authenticate(self, email: str, password: str) -> AuthResult:
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise AuthError("invalid_credentials", "Invalid email or password")
        return self._issue(account[1])

    def invalidate_session(self, access_token: str) -> None:
        self.invalidated.append(access_token)

    def refresh_session(self, refresh_token: str) -> AuthResult:
        principal = self.refresh_tokens.pop(refresh_token, None)
        if principal is None:
            raise AuthError("invalid_credentials", "Invalid refresh token")
        return self._issue(principal)

    def _issue(self, principal: Principal) -> AuthResult:
        refresh_token = uuid.uuid4().hex
        self.refresh_tokens[refresh_token] = principal
        return AuthResult(
            principal=principal,
            access_token=make_token(principal.id, principal.email),
            refresh_token=refresh_token,
        )


# ----- Database -----


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def db_session(engine) -> Generator[Session, None, None]:
    """Create a fresh database session for each test"""
    with Session(engine) as session:
        yield session


@pytest.fixture
def store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def identity() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def client(db_session, store, identity) -> Generator[TestClient, None, None]:
    """Create test client with database and Supabase overrides"""

    def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_object_store] = lambda: store
    app.dependency_overrides[get_identity_provider] = lambda: identity

    yield TestClient(app)

    app.dependency_overrides.clear()


# ----- Profiles -----


@pytest.fixture
def make_profile(db_session):
    """Factory inserting a profile row directly."""

    def _make(
        role: str = "student",
        subjects: list[str] | None = None,
        department: str = "Computer Science",
        full_name: str | None = None,
    ) -> Profile:
        user_id = uuid.uuid4()
        profile = Profile(
            user_id=user_id,
            email=f"{role}-{user_id.hex[:8]}@example.edu",
            full_name=full_name or f"Test {role.title()}",
            department=department,
            role=role,
            subjects=list(subjects or []),
        )
        db_session.add(profile)
        db_session.commit()
        db_session.refresh(profile)
        return profile

    return _make


@pytest.fixture
def auth_headers():
    def _headers(profile: Profile) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(profile.user_id, profile.email)}"}

    return _headers
