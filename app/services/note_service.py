import logging
import uuid
from datetime import datetime, timezone

from sqlmodel import Session

from app.core.config import get_settings
from app.core.errors import NoteError, StorageError, UploadError, WriteError
from app.core.gateways import ObjectStore
from app.core.guard import can_upload
from app.models.note import Note
from app.models.profile import Profile
from app.repositories.note_repo import NoteRepository
from app.schemas.note import NoteDraft, NoteRead
from app.services.visibility import apply_filters, visible_notes

logger = logging.getLogger(__name__)

settings = get_settings()


def build_object_path(user_id: uuid.UUID, now: datetime, file_name: str) -> str:
    """
    Storage path for an upload.

    Path pattern:
        <auth user id>/<epoch millis>-<original file name>

    Prefixing with the uploader's id keeps users apart; the millisecond
    timestamp keeps one user's uploads apart.
    """
    millis = int(now.timestamp() * 1000)
    safe_name = file_name.replace("/", "_").strip() or "file"
    return f"{user_id}/{millis}-{safe_name}"


class NoteService:
    """
    Business logic for notes.

    Responsibilities:
      - upload pipeline: validate -> store blob -> resolve URL -> insert row
      - catalogue reads run through the visibility engine
      - admin deletion with best-effort storage cleanup

    A blob stored before a later step fails is left in the bucket
    (UploadError.blob_committed tells the caller); there is no rollback.
    """

    def __init__(
        self,
        repo: NoteRepository,
        store: ObjectStore,
        max_bytes: int | None = None,
    ):
        self.repo = repo
        self.store = store
        self.max_bytes = max_bytes or settings.MAX_NOTE_BYTES

    # ----- Reads -----

    def list_catalogue(self, session: Session) -> list[NoteRead]:
        """Full catalogue, newest first, with uploader names."""
        return self._to_read(self.repo.list_with_uploader(session))

    def list_visible(
        self,
        session: Session,
        profile: Profile,
        term: str | None = None,
        subject: str | None = None,
        department: str | None = None,
    ) -> list[NoteRead]:
        """
        Notes this profile may see, then narrowed by the search box and
        the subject/department dropdowns.
        """
        if profile.role == "student":
            if not profile.subjects:
                return []
            rows = self.repo.list_with_uploader(session, subjects=list(profile.subjects))
            catalogue = self._to_read(rows)
        else:
            catalogue = self.list_catalogue(session)

        return apply_filters(
            visible_notes(profile, catalogue),
            term=term,
            subject=subject,
            department=department,
        )

    @staticmethod
    def _to_read(rows: list[tuple[Note, str | None]]) -> list[NoteRead]:
        return [
            NoteRead(**note.model_dump(), uploader_name=uploader_name)
            for note, uploader_name in rows
        ]

    # ----- Upload -----

    def upload(
        self,
        session: Session,
        profile: Profile,
        draft: NoteDraft,
        file_name: str,
        file_bytes: bytes,
        now: datetime | None = None,
    ) -> Note:
        """
        Upload a note file and record its metadata.

        Raises:
            UploadError(not_permitted): profile is not faculty with subjects.
            UploadError(subject_not_taught): draft subject not in profile.
            UploadError(file_too_large): over the size ceiling; no I/O done.
            UploadError(storage_write_failed): nothing was written.
            UploadError(locator_unavailable | metadata_write_failed):
                blob_committed=True, the stored file is orphaned.
        """
        if not can_upload(profile):
            raise UploadError(
                "not_permitted",
                "You must be a faculty member with at least one subject to upload notes.",
            )

        if draft.subject not in (profile.subjects or []):
            raise UploadError(
                "subject_not_taught",
                f"'{draft.subject}' is not one of your subjects.",
            )

        if len(file_bytes) > self.max_bytes:
            raise UploadError(
                "file_too_large",
                f"File size cannot exceed {self.max_bytes // (1024 * 1024)}MB.",
            )

        now = now or datetime.now(timezone.utc)
        path = build_object_path(profile.user_id, now, file_name)

        try:
            self.store.put_object(path, file_bytes)
        except StorageError as exc:
            raise UploadError("storage_write_failed", exc.message) from exc

        try:
            file_url = self.store.resolve_locator(path)
        except StorageError as exc:
            logger.warning("Orphaned blob %s: locator unavailable", path)
            raise UploadError(
                "locator_unavailable",
                "Could not get public URL for the file.",
                blob_committed=True,
                blob_path=path,
            ) from exc

        note = Note(
            title=draft.title,
            description=draft.description,
            subject=draft.subject,
            department=profile.department,
            file_url=file_url,
            file_name=file_name,
            file_size=len(file_bytes),
            uploaded_by=profile.id,
            created_at=now,
            updated_at=now,
        )
        try:
            created = self.repo.create(session, note)
        except WriteError as exc:
            logger.warning("Orphaned blob %s: metadata insert failed", path)
            raise UploadError(
                "metadata_write_failed",
                exc.message,
                blob_committed=True,
                blob_path=path,
            ) from exc

        logger.info("Note %s uploaded by %s (%s)", created.id, profile.id, created.subject)
        return created

    # ----- Admin -----

    def get_note(self, session: Session, note_id: uuid.UUID) -> Note:
        note = self.repo.get_by_id(session, note_id)
        if note is None:
            raise NoteError("not_found", "Note not found")
        return note

    def delete_note(self, session: Session, note_id: uuid.UUID) -> None:
        """
        Delete a note (admin only).

        Storage is cleaned first, best effort: a failed removal is logged
        and the row is deleted anyway.
        """
        note = self.get_note(session, note_id)

        path = self.store.path_from_locator(note.file_url)
        if path:
            try:
                self.store.remove_object(path)
            except StorageError as exc:
                logger.warning(
                    "Could not delete file %s from storage, deleting note %s anyway: %s",
                    path,
                    note.id,
                    exc.message,
                )

        self.repo.delete(session, note)
