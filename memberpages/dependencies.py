"""Dependency injection for FastAPI."""

from collections.abc import Generator
from typing import Annotated

from fastapi import Cookie, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from memberpages.auth.schemas import Principal
from memberpages.auth.utils import decode_access_token, require_admin
from memberpages.db.database import SessionLocal
from memberpages.db.models import User, UserRole, UserStatus
from memberpages.exceptions import AdminRequiredError

security = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    """Get database session.

    Yields:
        Session: SQLAlchemy session.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


async def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
    access_token: str | None = Cookie(None),
) -> User:
    """Get the current authenticated user from JWT token or cookie.

    Supports both Bearer token (for API clients) and cookie-based auth.

    Args:
        request: FastAPI request object.
        credentials: HTTP Bearer token credentials.
        db: Database session.
        access_token: Access token from cookie.

    Returns:
        User: The authenticated user.

    Raises:
        HTTPException: If authentication fails or the account is not approved.
    """
    token = None
    if credentials is not None:
        token = credentials.credentials
    elif access_token is not None:
        token = access_token

    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token_data = decode_access_token(token)
    if token_data is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.query(User).filter(User.id == token_data.user_id).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    if user.status != UserStatus.APPROVED:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not approved",
        )

    return user


def principal_from_user(user: User) -> Principal:
    """Build the request principal for a user.

    Args:
        user: The authenticated user.

    Returns:
        Principal: Verified caller identity.
    """
    return Principal(
        user_id=user.id,
        email=user.email,
        is_admin=user.role == UserRole.ADMIN,
        is_approved=user.status == UserStatus.APPROVED,
    )


async def get_current_principal(
    current_user: Annotated[User, Depends(get_current_user)],
) -> Principal:
    """Get the verified principal for the current user."""
    return principal_from_user(current_user)


async def get_current_admin(
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> Principal:
    """Get the current principal and verify they are an admin.

    Args:
        principal: The authenticated caller.

    Returns:
        Principal: The admin principal.

    Raises:
        HTTPException: If the caller is not an admin.
    """
    try:
        return require_admin(principal)
    except AdminRequiredError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(e),
        )


# Type aliases for cleaner dependency injection
DbSession = Annotated[Session, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
CurrentAdmin = Annotated[Principal, Depends(get_current_admin)]
