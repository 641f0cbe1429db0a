import uuid

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    UploadFile,
    status,
)
from pydantic import ValidationError
from sqlmodel import Session

from app.core.auth import require_admin, require_auth, require_uploader
from app.core.gateways import ObjectStore
from app.core.storage_utils import get_object_store
from app.database import get_session
from app.models.profile import Profile
from app.repositories.note_repo import NoteRepository
from app.repositories.profile_repo import ProfileRepository
from app.schemas.note import FilterFacets, NoteDraft, NoteRead
from app.services.note_service import NoteService
from app.services.profile_service import ProfileService
from app.services.visibility import available_filter_facets

router = APIRouter(prefix="/notes", tags=["Notes"])

repo = NoteRepository()
profile_service = ProfileService(ProfileRepository())


def get_note_service(store: ObjectStore = Depends(get_object_store)) -> NoteService:
    return NoteService(repo, store)


# -------- Authenticated endpoints --------


@router.get("", response_model=list[NoteRead])
def list_notes(
    q: str | None = None,
    subject: str | None = None,
    department: str | None = None,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(require_auth),
    service: NoteService = Depends(get_note_service),
):
    """
    List the notes visible to the current user, newest first.

    - students: only notes of their enrolled subjects
    - faculty/admin: everything
    - `q` searches title, description and uploader name;
      `subject` / `department` narrow further.
    """
    return service.list_visible(
        session, current_user, term=q, subject=subject, department=department
    )


@router.get(
    "/facets",
    response_model=FilterFacets,
    dependencies=[Depends(require_auth)],
)
def list_facets(session: Session = Depends(get_session)):
    """Departments and subjects taught by faculty, for the filter dropdowns."""
    return available_filter_facets(profile_service.list_faculty(session))


@router.post(
    "",
    response_model=NoteRead,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a note file (faculty only)",
)
def upload_note(
    title: str = Form(...),
    subject: str = Form(...),
    description: str | None = Form(None),
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
    current_user: Profile = Depends(require_uploader),
    service: NoteService = Depends(get_note_service),
):
    """
    Upload a note for one of the caller's subjects.

    - Max 5MB per file.
    - Clients should re-fetch GET /notes afterwards.
    """
    try:
        draft = NoteDraft(title=title, subject=subject, description=description)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Title and subject are required",
        ) from exc

    if not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing file name for uploaded file",
        )

    file_bytes = file.file.read()
    note = service.upload(
        session=session,
        profile=current_user,
        draft=draft,
        file_name=file.filename,
        file_bytes=file_bytes,
    )
    return NoteRead(**note.model_dump(), uploader_name=current_user.full_name)


# -------- Admin endpoints --------


@router.get(
    "/all",
    response_model=list[NoteRead],
    dependencies=[Depends(require_admin)],
)
def list_all_notes(
    session: Session = Depends(get_session),
    service: NoteService = Depends(get_note_service),
):
    """Whole catalogue for note management (admin only)."""
    return service.list_catalogue(session)


@router.delete(
    "/{note_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_note(
    note_id: uuid.UUID,
    session: Session = Depends(get_session),
    service: NoteService = Depends(get_note_service),
):
    """
    Delete a note (admin only).

    - Also deletes the underlying file from Storage (best-effort).
    """
    service.delete_note(session, note_id)
    return None
