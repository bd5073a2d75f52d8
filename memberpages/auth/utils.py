"""Authentication utilities for JWT, password handling and admin checks."""

from datetime import UTC, datetime, timedelta

import bcrypt
from jose import JWTError, jwt
from pydantic import BaseModel

from memberpages.auth.schemas import Principal
from memberpages.config import get_settings
from memberpages.exceptions import AdminRequiredError

settings = get_settings()


class TokenData(BaseModel):
    """Token payload data.

    Attributes:
        user_id: User's UUID.
        email: User's email.
    """

    user_id: str
    email: str


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash.

    Args:
        plain_password: Plain text password.
        hashed_password: Hashed password to compare against.

    Returns:
        bool: True if password matches, False otherwise.
    """
    password_bytes = plain_password.encode("utf-8")
    hash_bytes = hashed_password.encode("utf-8")
    return bcrypt.checkpw(password_bytes, hash_bytes)


def get_password_hash(password: str) -> str:
    """Hash a password.

    Args:
        password: Plain text password.

    Returns:
        str: Hashed password.
    """
    password_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode("utf-8")


def create_access_token(
    user_id: str,
    email: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token.

    Args:
        user_id: User's UUID.
        email: User's email.
        expires_delta: Optional custom expiration time.

    Returns:
        str: Encoded JWT token.
    """
    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode = {
        "sub": user_id,
        "email": email,
        "exp": expire,
        "type": "access",
    }

    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> TokenData | None:
    """Decode and validate a JWT access token.

    Args:
        token: JWT token string.

    Returns:
        TokenData | None: Token data if valid, None otherwise.
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )

        user_id: str = payload.get("sub")
        email: str = payload.get("email") or ""
        token_type: str = payload.get("type")

        if user_id is None or token_type != "access":
            return None

        return TokenData(user_id=user_id, email=email)

    except JWTError:
        return None


def require_admin(principal: Principal) -> Principal:
    """Check that the caller is an approved admin.

    Args:
        principal: Verified caller.

    Returns:
        Principal: The same principal, for chaining.

    Raises:
        AdminRequiredError: If the principal is not an approved admin.
    """
    if not (principal.is_admin and principal.is_approved):
        raise AdminRequiredError()
    return principal
