import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class Profile(SQLModel, table=True):
    """
    Durable application profile for a portal user.

    Identity:
      - user_id: MUST match Supabase auth.users.id (UUID from JWT "sub")
      - id: profile id, referenced by notes.uploaded_by

    Role:
      - "student" | "faculty" | "admin"
      - set at sign-up (student/faculty only), changed by admins only

    Subjects:
      - faculty: subjects taught (needed before uploading)
      - student: enrolled subjects (drives note visibility)
      - admin: unused
    """

    __tablename__ = "profiles"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        unique=True,
        index=True,
        description="Matches Supabase auth.users.id",
    )

    full_name: str = Field(max_length=200)

    email: str = Field(
        index=True,
        description="Email from Supabase auth.users; never changes",
    )

    phone: str | None = Field(default=None, max_length=30)

    department: str = Field(default="", max_length=100, index=True)

    role: str = Field(
        default="student",
        index=True,
        description="Application role: student | faculty | admin",
    )

    subjects: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Last update timestamp (UTC)",
    )
