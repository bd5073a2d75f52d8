"""Pydantic schemas for join requests and the member roster."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from memberpages.db.models import MemberStatus, UserStatus


class ApplicationCreate(BaseModel):
    """Join request submitted by a visitor.

    Attributes:
        name: Display name.
        email: Email address on the allowed domain.
        password: Password used to log in once approved.
    """

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Names are stored trimmed and must not be blank."""
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class ApplicationResponse(BaseModel):
    """Join request as seen by admins."""

    id: str
    name: str
    email: str
    status: UserStatus
    created_at: datetime | None = None
    approved_at: datetime | None = None
    rejected_at: datetime | None = None
    rejected_by: str | None = None


class MemberPayload(BaseModel):
    """Roster entry sent by an admin."""

    email: str
    name: str = ""
    status: MemberStatus = MemberStatus.APPROVED


class MemberAction(BaseModel):
    """Upsert or delete one roster entry."""

    action: Literal["upsert", "delete"]
    member: MemberPayload


class MemberResponse(BaseModel):
    """Roster entry response."""

    email: str
    name: str
    status: MemberStatus
    approved_at: datetime | None = None
    approved_by: str | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class MemberImportRequest(BaseModel):
    """CSV text with name and email columns."""

    csv_text: str = Field(..., min_length=1)


class MemberImportResult(BaseModel):
    """Outcome of a roster CSV import."""

    ok: bool = True
    count: int = 0
