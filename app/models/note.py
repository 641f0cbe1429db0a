import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Note(SQLModel, table=True):
    """
    Shared note uploaded by a faculty member.

    The file itself lives in the Supabase Storage bucket; this row only
    keeps its public URL and metadata. Rows are never edited after
    creation, only deleted by admins.
    """

    __tablename__ = "notes"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    title: str = Field(max_length=200)

    description: str | None = Field(default=None)

    subject: str = Field(
        max_length=100,
        index=True,
        description="One of the uploader's taught subjects at upload time",
    )

    department: str = Field(default="", max_length=100, index=True)

    file_url: str = Field(description="Public URL stored in Supabase Storage")

    file_name: str = Field(max_length=255)

    file_size: int | None = Field(default=None, ge=0)

    uploaded_by: uuid.UUID = Field(
        foreign_key="profiles.id",
        index=True,
        description="FK to profiles.id",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Last update timestamp (UTC)",
    )
