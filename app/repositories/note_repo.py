import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.core.errors import ReadError, WriteError
from app.models.note import Note
from app.models.profile import Profile


class NoteRepository:
    """
    Data access layer for Note.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    def get_by_id(self, session: Session, note_id: uuid.UUID) -> Note | None:
        try:
            return session.get(Note, note_id)
        except SQLAlchemyError as exc:
            raise ReadError(f"Failed to load note: {exc}") from exc

    def list_with_uploader(
        self,
        session: Session,
        subjects: list[str] | None = None,
    ) -> list[tuple[Note, str | None]]:
        """
        Catalogue query: notes joined with their uploader's full name,
        newest first.

        Args:
            subjects: optional server-side narrowing (`subject IN (...)`);
                      None means the whole catalogue.
        """
        stmt = (
            select(Note, Profile.full_name)
            .join(Profile, Profile.id == Note.uploaded_by, isouter=True)
            .order_by(Note.created_at.desc(), Note.id)
        )
        if subjects is not None:
            stmt = stmt.where(Note.subject.in_(subjects))
        try:
            return [(note, name) for note, name in session.exec(stmt).all()]
        except SQLAlchemyError as exc:
            raise ReadError(f"Failed to list notes: {exc}") from exc

    def create(self, session: Session, note: Note) -> Note:
        try:
            session.add(note)
            session.commit()
            session.refresh(note)
        except SQLAlchemyError as exc:
            session.rollback()
            raise WriteError(f"Failed to save note: {exc}") from exc
        return note

    def delete(self, session: Session, note: Note) -> None:
        try:
            session.delete(note)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise WriteError(f"Failed to delete note: {exc}") from exc
