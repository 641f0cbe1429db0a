from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.core.auth import get_access_token
from app.core.gateways import IdentityProvider
from app.core.identity import get_identity_provider
from app.database import get_session
from app.repositories.profile_repo import ProfileRepository
from app.schemas.auth import (
    AuthResult,
    Principal,
    RefreshRequest,
    SignInRequest,
    SignUpRequest,
)
from app.services.auth_service import AuthService
from app.services.profile_service import ProfileService

router = APIRouter(prefix="/auth", tags=["Auth"])

profile_service = ProfileService(ProfileRepository())


def get_auth_service(
    identity: IdentityProvider = Depends(get_identity_provider),
) -> AuthService:
    return AuthService(identity, profile_service)


@router.post("/signup", response_model=Principal, status_code=status.HTTP_201_CREATED)
def sign_up(
    payload: SignUpRequest,
    session: Session = Depends(get_session),
    service: AuthService = Depends(get_auth_service),
):
    """
    Register a new student or faculty account.

    - Passwords must match (schema) and be at least 6 characters.
    - The profile is created from the submitted fields.
    - Supabase sends the verification email.
    """
    return service.sign_up(session, payload.email, payload.password, payload.seed())


@router.post("/signin", response_model=AuthResult)
def sign_in(
    payload: SignInRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Exchange email/password for Supabase access and refresh tokens."""
    return service.sign_in(payload.email, payload.password)


@router.post("/refresh", response_model=AuthResult)
def refresh(
    payload: RefreshRequest,
    service: AuthService = Depends(get_auth_service),
):
    return service.refresh(payload.refresh_token)


@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
def sign_out(
    access_token: str = Depends(get_access_token),
    service: AuthService = Depends(get_auth_service),
):
    """Invalidate the caller's session at the identity provider."""
    service.sign_out(access_token)
    return None
