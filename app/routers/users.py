import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.core.auth import require_auth, require_admin
from app.database import get_session
from app.models.profile import Profile
from app.repositories.profile_repo import ProfileRepository
from app.schemas.profile import (
    PermissionsRead,
    ProfileRead,
    ProfileRoleUpdate,
    ProfileUpdate,
)
from app.services.profile_service import ProfileService
from app.services.visibility import available_actions

router = APIRouter(prefix="/users", tags=["Users"])

repo = ProfileRepository()
service = ProfileService(repo)


# -------- Self profile --------


@router.get("/me", response_model=ProfileRead)
def read_me(current_user: Profile = Depends(require_auth)):
    """
    Return the authenticated user's profile.

    Auth:
      - Requires valid Supabase JWT and an existing profile.
    """
    return current_user


@router.patch("/me", response_model=ProfileRead)
def update_me(
    payload: ProfileUpdate,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(require_auth),
):
    """
    Update the authenticated user's profile (partial update).

    - name, phone, department and subjects are editable
    - email never changes; role only through an admin
    - faculty must keep at least one subject
    """
    return service.update_profile(session, current_user, payload)


@router.get("/me/permissions", response_model=PermissionsRead)
def read_my_permissions(current_user: Profile = Depends(require_auth)):
    """Actions available to the current user, for showing/hiding controls."""
    actions = sorted(action.value for action in available_actions(current_user))
    return PermissionsRead(role=current_user.role, actions=actions)


# -------- Admin endpoints --------


@router.get(
    "",
    response_model=list[ProfileRead],
    dependencies=[Depends(require_admin)],
)
def list_users(
    session: Session = Depends(get_session),
    skip: int = 0,
    limit: int = 50,
):
    """
    List all profiles (admin only), newest first.

    Pagination via skip/limit.
    """
    return service.list_profiles(session, skip, limit)


@router.get(
    "/{profile_id}",
    response_model=ProfileRead,
    dependencies=[Depends(require_admin)],
)
def get_user(
    profile_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    return service.get_profile(session, profile_id)


@router.patch(
    "/{profile_id}/role",
    response_model=ProfileRead,
    dependencies=[Depends(require_admin)],
)
def change_role(
    profile_id: uuid.UUID,
    payload: ProfileRoleUpdate,
    session: Session = Depends(get_session),
):
    """
    Update a user's role (admin only).

    Allowed roles: student, faculty, admin.
    """
    return service.set_role(session, profile_id, payload.role)


@router.delete(
    "/{profile_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_user(
    profile_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Delete a user's profile (admin only).

    The Supabase auth account itself is not removed.
    """
    service.delete_profile(session, profile_id)
    return None
