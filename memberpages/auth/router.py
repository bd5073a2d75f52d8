"""Authentication API routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status

from memberpages.auth.schemas import LoginEventResponse, LoginResponse, UserLogin, UserResponse
from memberpages.auth.service import AuthService, get_auth_service
from memberpages.config import get_settings
from memberpages.dependencies import CurrentAdmin, CurrentUser, DbSession

router = APIRouter()
admin_router = APIRouter()


def get_service(db: DbSession) -> AuthService:
    """Get auth service dependency."""
    return get_auth_service(db)


def client_ip(request: Request) -> str:
    """Best-effort client IP: first X-Forwarded-For hop, then X-Real-IP.

    Args:
        request: FastAPI request object.

    Returns:
        str: Client IP address or "unknown".
    """
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


@router.post("/login", response_model=LoginResponse)
async def login(
    data: UserLogin,
    request: Request,
    response: Response,
    service: Annotated[AuthService, Depends(get_service)],
):
    """Login with email and password.

    Args:
        data: Login credentials.
        request: FastAPI request object.
        response: FastAPI response object.
        service: Auth service.

    Returns:
        LoginResponse: Login result with token and message.

    Raises:
        HTTPException: If credentials are invalid or the account is not approved.
    """
    user, token, message = service.login(
        data,
        ip=client_ip(request),
        user_agent=request.headers.get("user-agent", "unknown"),
    )

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    if token is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)

    response.set_cookie(
        key="access_token",
        value=token.access_token,
        httponly=True,
        secure=get_settings().environment == "production",
        samesite="lax",
        max_age=get_settings().access_token_expire_minutes * 60,
        path="/",
    )

    return LoginResponse(message=message, token=token, is_admin=user.role.value == "admin")


@router.post("/logout")
async def logout(response: Response):
    """Logout user by clearing the token cookie."""
    response.delete_cookie("access_token", path="/")
    return {"message": "Logged out."}


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: CurrentUser,
    service: Annotated[AuthService, Depends(get_service)],
):
    """Get current user information."""
    return service.get_user_response(current_user)


@admin_router.get("/login-events", response_model=list[LoginEventResponse])
async def list_login_events(
    admin: CurrentAdmin,
    service: Annotated[AuthService, Depends(get_service)],
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
):
    """List recent logins, newest first."""
    return service.list_login_events(limit=limit)
