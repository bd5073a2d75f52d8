"""Media upload API routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from memberpages.dependencies import CurrentAdmin
from memberpages.media.schemas import MediaUpload
from memberpages.media.service import MediaService, get_media_service

router = APIRouter()


@router.post("/media", response_model=MediaUpload)
async def upload_media(
    admin: CurrentAdmin,
    file: Annotated[UploadFile, File(description="Video or audio file")],
    page_slug: Annotated[str, Form(description="Page the file belongs to")],
    service: Annotated[MediaService, Depends(get_media_service)],
):
    """Upload a media file for a page."""
    content = await file.read()
    try:
        return service.save(page_slug, file.filename or "", content)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
