"""Join request and roster API routes.

``router`` takes join requests from visitors; ``admin_router`` lets admins
review them and manage the approved-email roster.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from memberpages.db.models import UserStatus
from memberpages.dependencies import CurrentAdmin, DbSession
from memberpages.members.schemas import (
    ApplicationCreate,
    ApplicationResponse,
    MemberAction,
    MemberImportRequest,
    MemberImportResult,
    MemberResponse,
)
from memberpages.members.service import MemberService, application_response, get_member_service

router = APIRouter()
admin_router = APIRouter()


def get_service(db: DbSession) -> MemberService:
    """Get member service dependency."""
    return get_member_service(db)


@router.post("/apply", status_code=status.HTTP_201_CREATED)
async def apply(
    data: ApplicationCreate,
    service: Annotated[MemberService, Depends(get_service)],
):
    """Submit a join request.

    Raises:
        HTTPException: If the address is not accepted.
    """
    try:
        service.apply(data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return {"ok": True}


@admin_router.get("/applications", response_model=list[ApplicationResponse])
async def list_applications(
    admin: CurrentAdmin,
    service: Annotated[MemberService, Depends(get_service)],
    status_filter: Annotated[UserStatus | None, Query(alias="status")] = None,
):
    """List join requests, optionally by status."""
    return [application_response(u) for u in service.list_applications(status_filter)]


@admin_router.post("/applications/{user_id}/approve", response_model=ApplicationResponse)
async def approve_application(
    user_id: str,
    admin: CurrentAdmin,
    service: Annotated[MemberService, Depends(get_service)],
):
    """Approve a join request and add the address to the roster."""
    user = service.approve_application(user_id, admin)
    if not user:
        raise HTTPException(status_code=404, detail="Application not found")
    return application_response(user)


@admin_router.post("/applications/{user_id}/reject", response_model=ApplicationResponse)
async def reject_application(
    user_id: str,
    admin: CurrentAdmin,
    service: Annotated[MemberService, Depends(get_service)],
):
    """Reject a join request."""
    user = service.reject_application(user_id, admin)
    if not user:
        raise HTTPException(status_code=404, detail="Application not found")
    return application_response(user)


@admin_router.get("/members", response_model=list[MemberResponse])
async def list_members(
    admin: CurrentAdmin,
    service: Annotated[MemberService, Depends(get_service)],
):
    """List the approved-email roster."""
    return service.list_members()


@admin_router.post("/members")
async def change_member(
    data: MemberAction,
    admin: CurrentAdmin,
    service: Annotated[MemberService, Depends(get_service)],
):
    """Upsert or delete one roster entry."""
    if data.action == "delete":
        if not service.delete_member(data.member.email):
            raise HTTPException(status_code=404, detail="Member not found")
        return {"ok": True}

    try:
        member = service.upsert_member(data.member, admin)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return {"ok": True, "member": MemberResponse.model_validate(member)}


@admin_router.post("/import-members", response_model=MemberImportResult)
async def import_members(
    data: MemberImportRequest,
    admin: CurrentAdmin,
    service: Annotated[MemberService, Depends(get_service)],
):
    """Approve every address in a roster CSV."""
    try:
        count = service.import_members(data.csv_text, admin)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return MemberImportResult(ok=True, count=count)
