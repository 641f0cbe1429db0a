import uuid
from datetime import datetime, timezone

from sqlmodel import Session

from app.core.errors import ProfileError
from app.core.guard import is_admin
from app.models.profile import Profile
from app.repositories.profile_repo import ProfileRepository
from app.schemas.auth import Principal, ProfileSeed
from app.schemas.profile import ProfileUpdate


class ProfileService:
    """
    Business logic for Profile.

    Responsibilities:
      - resolve the profile of an authenticated principal
      - enforce profile rules (email immutable, role admin-only,
        faculty must keep at least one subject)
      - orchestrate repository operations

    Admin gating for set_role / delete_profile happens in the router
    (require_admin), not here.
    """

    def __init__(self, repo: ProfileRepository):
        self.repo = repo

    # ----- Resolution -----

    def load_profile(self, session: Session, principal_id: uuid.UUID) -> Profile:
        """
        Load the profile owned by `principal_id`.

        Raises:
            ProfileError(not_found): no profile row for this principal.
        """
        profile = self.repo.get_by_user_id(session, principal_id)
        if profile is None:
            raise ProfileError("not_found", "Profile not found")
        return profile

    def create_from_seed(
        self,
        session: Session,
        principal: Principal,
        seed: ProfileSeed,
    ) -> Profile:
        """
        Create the profile that goes with a fresh sign-up.

        Faculty may sign up without subjects; they simply cannot upload
        until they add one.
        """
        profile = Profile(
            user_id=principal.id,
            email=principal.email,
            full_name=seed.full_name,
            phone=seed.phone,
            department=seed.department,
            role=seed.role,
            subjects=list(seed.subjects),
        )
        return self.repo.create(session, profile)

    # ----- Self profile -----

    def update_profile(
        self,
        session: Session,
        profile: Profile,
        patch: ProfileUpdate,
        actor: Profile | None = None,
    ) -> Profile:
        """
        Partial update for profile edits.

        All checks run before anything is written; a rejected patch
        leaves the stored profile untouched.

        Args:
            actor: profile performing the edit; defaults to the owner.

        Raises:
            ProfileError(email_immutable): patch tries to change the email.
            ProfileError(role_immutable): non-admin tries to change the role.
            ProfileError(faculty_requires_subject): the result would be a
                faculty profile without subjects.
        """
        actor = actor or profile

        if patch.email is not None and patch.email.lower() != profile.email.lower():
            raise ProfileError("email_immutable", "Email cannot be changed")

        role = profile.role
        if patch.role is not None and patch.role != profile.role:
            if not is_admin(actor):
                raise ProfileError("role_immutable", "Only an admin can change roles")
            role = patch.role

        subjects = patch.subjects if patch.subjects is not None else list(profile.subjects or [])
        if role == "faculty" and not subjects:
            raise ProfileError(
                "faculty_requires_subject",
                "Faculty members must have at least one subject.",
            )

        if patch.full_name is not None:
            profile.full_name = patch.full_name
        if patch.phone is not None:
            profile.phone = patch.phone or None
        if patch.department is not None:
            profile.department = patch.department
        if patch.subjects is not None:
            profile.subjects = list(patch.subjects)
        profile.role = role
        profile.updated_at = datetime.now(timezone.utc)

        return self.repo.update(session, profile)

    # ----- Admin operations -----

    def list_profiles(self, session: Session, skip: int, limit: int) -> list[Profile]:
        """List profiles with pagination (admin only)."""
        return self.repo.list_profiles(session, skip=skip, limit=limit)

    def list_faculty(self, session: Session) -> list[Profile]:
        return self.repo.list_by_role(session, "faculty")

    def get_profile(self, session: Session, profile_id: uuid.UUID) -> Profile:
        """
        Get a profile by id (admin only).

        Raises:
            ProfileError(not_found): if not found.
        """
        profile = self.repo.get_by_id(session, profile_id)
        if profile is None:
            raise ProfileError("not_found", "Profile not found")
        return profile

    def set_role(self, session: Session, profile_id: uuid.UUID, role: str) -> Profile:
        """
        Change a profile's role (admin only).

        Role validation is enforced by the schema (Literal). Subjects are
        not checked: a faculty profile without subjects may exist, it just
        cannot upload.
        """
        profile = self.get_profile(session, profile_id)
        profile.role = role
        profile.updated_at = datetime.now(timezone.utc)
        return self.repo.update(session, profile)

    def delete_profile(self, session: Session, profile_id: uuid.UUID) -> None:
        """
        Delete a profile row (admin only).

        The Supabase auth identity is left in place; removing it needs the
        provider's admin API and is outside this service.
        """
        profile = self.get_profile(session, profile_id)
        self.repo.delete(session, profile)
