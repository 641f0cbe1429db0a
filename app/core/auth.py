import uuid
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlmodel import Session

from app.core.config import get_settings
from app.core.errors import AccessDenied, ProfileError
from app.core.guard import Decision, can_access_admin, can_access_protected, can_upload
from app.database import get_session
from app.models.profile import Profile
from app.repositories.profile_repo import ProfileRepository
from app.schemas.auth import Principal
from app.services.profile_service import ProfileService
from app.services.session_context import SessionState

settings = get_settings()

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so public routes and guard decisions can handle anonymous callers.
bearer_scheme = HTTPBearer(auto_error=False)

profile_service = ProfileService(ProfileRepository())


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a Supabase access token (JWT).

    Verification:
      - signature (HS256 using SUPABASE_JWT_SECRET)
      - expiration time (exp)
      - audience is NOT verified (Supabase 'aud' may vary)

    Args:
        token: raw JWT from the Authorization header.

    Returns:
        Decoded JWT claims.

    Raises:
        HTTPException(401): if token is invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def get_access_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Raw bearer token, required (used by sign-out)."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return credentials.credentials


def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal | None:
    """
    Resolve the Principal from a Supabase JWT.

    Flow:
      1. If no Authorization header => anonymous => return None.
      2. Decode JWT => extract 'sub' (auth user id) and 'email'.
      3. Convert 'sub' to UUID to match Profile.user_id type.

    Raises:
        HTTPException(401): if token is malformed or missing required claims.
    """
    if credentials is None:
        return None

    payload = decode_access_token(credentials.credentials)
    sub = payload.get("sub")
    email = payload.get("email")

    if not sub or not email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing sub/email",
        )

    # Supabase provides sub as a string; enforce UUID
    try:
        sub_uuid = uuid.UUID(sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid sub in token",
        )

    metadata = payload.get("user_metadata") or {}
    return Principal(
        id=sub_uuid,
        email=email,
        email_verified=bool(metadata.get("email_verified", False)),
    )


def get_session_state(
    principal: Principal | None = Depends(get_current_principal),
    session: Session = Depends(get_session),
) -> SessionState:
    """
    Resolve the profile for the current principal.

    Resolution finishes before any guard runs, so `loading` is always
    False here. A principal whose profile cannot be found is treated as
    unauthenticated (fail-closed). Unlike a missing row, store failures
    propagate.
    """
    if principal is None:
        return SessionState()

    try:
        profile = profile_service.load_profile(session, principal.id)
    except ProfileError as exc:
        return SessionState(principal=principal, error=exc)

    return SessionState(principal=principal, profile=profile)


def require_auth(state: SessionState = Depends(get_session_state)) -> Profile:
    """
    Enforce an authenticated user with a profile.

    Raises:
        AccessDenied(401): no token, or no profile for this principal.
    """
    if can_access_protected(state.profile, state.loading) is not Decision.ALLOWED:
        raise AccessDenied(
            "Authentication required",
            status_code=status.HTTP_401_UNAUTHORIZED,
            redirect_to="/login",
        )
    return state.profile


def require_admin(state: SessionState = Depends(get_session_state)) -> Profile:
    """
    Enforce admin role. Everyone else is sent back to the home route.

    Raises:
        AccessDenied(403): if role is not admin.
    """
    if can_access_admin(state.profile, state.loading) is not Decision.ALLOWED:
        raise AccessDenied("Admin access required")
    return state.profile


def require_uploader(profile: Profile = Depends(require_auth)) -> Profile:
    """
    Enforce faculty with at least one subject.

    Raises:
        AccessDenied(403): other roles, or faculty without subjects.
    """
    if not can_upload(profile):
        raise AccessDenied(
            "You must be a faculty member with at least one subject to upload notes.",
            redirect_to="/profile",
        )
    return profile
