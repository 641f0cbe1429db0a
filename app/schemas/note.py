import uuid
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class NoteDraft(SQLModel):
    """
    User-supplied note metadata for an upload.

    Department is not part of the draft: it is copied from the
    uploader's profile.
    """

    model_config = ConfigDict(extra="forbid")

    title: str = Field(max_length=200)
    description: str | None = None
    subject: str = Field(max_length=100)

    @field_validator("title", "subject")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("description")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class NoteRead(SQLModel):
    """
    Note representation for clients.

    uploader_name is joined from the uploader's profile at read time.
    """

    id: uuid.UUID
    title: str
    description: str | None = None
    subject: str
    department: str
    file_url: str
    file_name: str
    file_size: int | None = None
    uploaded_by: uuid.UUID
    uploader_name: str | None = None
    created_at: datetime
    updated_at: datetime


class FilterFacets(SQLModel):
    """Options for the department / subject filter controls."""

    departments: list[str]
    subjects: list[str]
