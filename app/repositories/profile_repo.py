import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.core.errors import ReadError, WriteError
from app.models.profile import Profile


class ProfileRepository:
    """
    Data access layer for Profile.

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - No FastAPI, no HTTP, no business logic
      - SQLAlchemy failures surface as ReadError / WriteError
    """

    # ----- Queries -----

    def get_by_id(self, session: Session, profile_id: uuid.UUID) -> Profile | None:
        """Return a Profile by primary key, or None if not found."""
        try:
            return session.get(Profile, profile_id)
        except SQLAlchemyError as exc:
            raise ReadError(f"Failed to load profile: {exc}") from exc

    def get_by_user_id(self, session: Session, user_id: uuid.UUID) -> Profile | None:
        """Return the Profile owned by an auth principal, or None."""
        stmt = select(Profile).where(Profile.user_id == user_id)
        try:
            return session.exec(stmt).first()
        except SQLAlchemyError as exc:
            raise ReadError(f"Failed to load profile: {exc}") from exc

    def list_profiles(self, session: Session, skip: int = 0, limit: int = 50) -> list[Profile]:
        """
        Paginated profile listing, newest first.
        """
        stmt = (
            select(Profile)
            .order_by(Profile.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        try:
            return list(session.exec(stmt).all())
        except SQLAlchemyError as exc:
            raise ReadError(f"Failed to list profiles: {exc}") from exc

    def list_by_role(self, session: Session, role: str) -> list[Profile]:
        stmt = select(Profile).where(Profile.role == role)
        try:
            return list(session.exec(stmt).all())
        except SQLAlchemyError as exc:
            raise ReadError(f"Failed to list profiles: {exc}") from exc

    # ----- Writes -----

    def create(self, session: Session, profile: Profile) -> Profile:
        """Insert a new Profile and return the persisted row."""
        return self._save(session, profile)

    def update(self, session: Session, profile: Profile) -> Profile:
        """Persist changes to an existing Profile."""
        return self._save(session, profile)

    def delete(self, session: Session, profile: Profile) -> None:
        try:
            session.delete(profile)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise WriteError(f"Failed to delete profile: {exc}") from exc

    def _save(self, session: Session, profile: Profile) -> Profile:
        try:
            session.add(profile)
            session.commit()
            session.refresh(profile)
        except SQLAlchemyError as exc:
            session.rollback()
            raise WriteError(f"Failed to save profile: {exc}") from exc
        return profile
