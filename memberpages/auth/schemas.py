"""Pydantic schemas for authentication."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr


class UserLogin(BaseModel):
    """Schema for user login.

    Attributes:
        email: User's email address.
        password: User's password.
    """

    email: EmailStr
    password: str


class Token(BaseModel):
    """Schema for JWT token response.

    Attributes:
        access_token: JWT access token.
        token_type: Token type (always "bearer").
    """

    access_token: str
    token_type: str = "bearer"


class LoginResponse(BaseModel):
    """Response for the login endpoint."""

    message: str
    token: Token
    is_admin: bool = False


class UserResponse(BaseModel):
    """Schema for user response.

    Attributes:
        id: User's UUID.
        email: User's email.
        full_name: User's full name.
        role: User's role.
        status: Approval status.
        approved_at: When the user was approved.
    """

    id: str
    email: str
    full_name: str
    role: str
    status: str
    approved_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class Principal(BaseModel):
    """The verified caller of a request.

    Passed explicitly into services that need to know who is acting.

    Attributes:
        user_id: User's UUID.
        email: User's email.
        is_admin: Whether the user has the admin role.
        is_approved: Whether the user's membership is approved.
    """

    user_id: str
    email: str
    is_admin: bool = False
    is_approved: bool = False

    model_config = ConfigDict(frozen=True)


class LoginEventResponse(BaseModel):
    """Schema for a login audit record."""

    id: str
    user_id: str
    email: str
    ip: str
    user_agent: str
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)

