import uuid
from datetime import datetime
from typing import Literal

from pydantic import EmailStr, ConfigDict, field_validator, model_validator
from sqlmodel import SQLModel, Field

# Roles a user may pick at sign-up. "admin" is only granted by another admin.
SignUpRole = Literal["student", "faculty"]


def normalize_subjects(values: list[str] | None) -> list[str]:
    """
    Trim, drop empties and de-duplicate a subject list.

    Subjects are a set semantically; first occurrence wins so the stored
    list stays stable for display.
    """
    if not values:
        return []
    seen: set[str] = set()
    result: list[str] = []
    for raw in values:
        value = raw.strip()
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


class Principal(SQLModel):
    """
    Authenticated identity issued by Supabase Auth.

    The backend only keeps the id plus a few cached claims; the
    password and verification state live in the identity provider.
    """

    id: uuid.UUID
    email: str
    email_verified: bool = False


class AuthResult(SQLModel):
    """
    Principal plus provider tokens.

    Tokens are None right after sign-up when the provider requires the
    email to be confirmed before the first session is issued.
    """

    principal: Principal
    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: datetime | None = None


class ProfileSeed(SQLModel):
    """Profile fields submitted together with sign-up."""

    model_config = ConfigDict(extra="forbid")

    full_name: str = Field(max_length=200)
    phone: str | None = Field(default=None, max_length=30)
    department: str = Field(default="", max_length=100)
    role: SignUpRole = "student"
    subjects: list[str] = Field(default_factory=list)

    @field_validator("full_name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("full_name cannot be empty")
        return v

    @field_validator("department")
    @classmethod
    def strip_department(cls, v: str) -> str:
        return v.strip()

    @field_validator("subjects")
    @classmethod
    def clean_subjects(cls, v: list[str]) -> list[str]:
        return normalize_subjects(v)


class SignUpRequest(ProfileSeed):
    """
    Sign-up payload.

    Password confirmation is checked here, before the identity provider
    is ever called. Minimum length is enforced by AuthService.
    """

    email: EmailStr
    password: str
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self) -> "SignUpRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self

    def seed(self) -> ProfileSeed:
        return ProfileSeed(
            full_name=self.full_name,
            phone=self.phone,
            department=self.department,
            role=self.role,
            subjects=list(self.subjects),
        )


class SignInRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str


class RefreshRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    refresh_token: str
