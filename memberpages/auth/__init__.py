"""Authentication module."""

from memberpages.auth.schemas import Principal
from memberpages.auth.service import AuthService, get_auth_service
from memberpages.auth.utils import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    require_admin,
    verify_password,
)

__all__ = [
    "Principal",
    "AuthService",
    "get_auth_service",
    "create_access_token",
    "decode_access_token",
    "get_password_hash",
    "verify_password",
    "require_admin",
]
