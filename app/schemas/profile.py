import uuid
from datetime import datetime
from typing import Literal

from pydantic import EmailStr, ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from app.schemas.auth import normalize_subjects

# App-level roles. Anonymous visitors have no profile row.
Role = Literal["student", "faculty", "admin"]


class ProfileRead(SQLModel):
    """Response schema returned to clients."""

    id: uuid.UUID
    user_id: uuid.UUID
    full_name: str
    email: str
    phone: str | None = None
    department: str
    role: Role
    subjects: list[str]
    created_at: datetime
    updated_at: datetime


class ProfileUpdate(SQLModel):
    """
    Partial profile update.

    Owners may edit name, phone, department and subjects. `email` is only
    accepted for cross-check (must match) and `role` only takes effect
    when the caller is an admin; both are rejected by ProfileService
    otherwise.
    """

    model_config = ConfigDict(extra="forbid")

    full_name: str | None = Field(default=None, max_length=200)
    phone: str | None = Field(default=None, max_length=30)
    department: str | None = Field(default=None, max_length=100)
    subjects: list[str] | None = None
    role: Role | None = None
    email: EmailStr | None = None

    @field_validator("full_name")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("full_name cannot be empty")
        return v

    @field_validator("department")
    @classmethod
    def strip_department(cls, v: str | None) -> str | None:
        return v.strip() if v is not None else v

    @field_validator("subjects")
    @classmethod
    def clean_subjects(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        return normalize_subjects(v)


class ProfileRoleUpdate(SQLModel):
    """
    Admin-only role update schema.
    """

    model_config = ConfigDict(extra="forbid")
    role: Role


class PermissionsRead(SQLModel):
    """Actions the current user may perform, for UI gating."""

    role: Role
    actions: list[str]
