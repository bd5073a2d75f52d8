"""Page API routes.

``admin_router`` manages all pages; ``router`` serves published pages to
approved members.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from memberpages.dependencies import CurrentAdmin, CurrentPrincipal, DbSession
from memberpages.pages.schemas import DeleteResult, PageDocument, PageMove, PublishedUpdate
from memberpages.pages.service import PageService, get_page_service

router = APIRouter()
admin_router = APIRouter()


def get_service(db: DbSession) -> PageService:
    """Get page service dependency."""
    return get_page_service(db)


@router.get("", response_model=list[PageDocument], response_model_exclude_none=True)
async def list_published_pages(
    principal: CurrentPrincipal,
    service: Annotated[PageService, Depends(get_service)],
):
    """List published pages for members."""
    return service.list_published()


@router.get("/{slug}", response_model=PageDocument, response_model_exclude_none=True)
async def get_published_page(
    slug: str,
    principal: CurrentPrincipal,
    service: Annotated[PageService, Depends(get_service)],
):
    """Get one published page."""
    page = service.get_published_page(slug)
    if not page:
        raise HTTPException(status_code=404, detail="Page not found")
    return page


@admin_router.get("", response_model=list[PageDocument], response_model_exclude_none=True)
async def list_pages(
    admin: CurrentAdmin,
    service: Annotated[PageService, Depends(get_service)],
    q: str | None = None,
    include_details: bool = False,
):
    """List pages in display order, optionally filtered by text."""
    return service.list_pages(query=q, include_details=include_details)


@admin_router.get("/{slug}", response_model=PageDocument, response_model_exclude_none=True)
async def get_page(
    slug: str,
    admin: CurrentAdmin,
    service: Annotated[PageService, Depends(get_service)],
):
    """Get any page, published or not."""
    page = service.get_page(slug)
    if not page:
        raise HTTPException(status_code=404, detail="Page not found")
    return page


@admin_router.put("", response_model=PageDocument, response_model_exclude_none=True)
async def save_page(
    data: PageDocument,
    admin: CurrentAdmin,
    service: Annotated[PageService, Depends(get_service)],
):
    """Save a page together with the detail pages it carries."""
    return service.save_page(data)


@admin_router.patch(
    "/{slug}/published", response_model=PageDocument, response_model_exclude_none=True
)
async def update_published(
    slug: str,
    data: PublishedUpdate,
    admin: CurrentAdmin,
    service: Annotated[PageService, Depends(get_service)],
):
    """Publish or unpublish a page and its detail pages."""
    page = service.set_published(slug, data.published)
    if not page:
        raise HTTPException(status_code=404, detail="Page not found")
    return page


@admin_router.post("/{slug}/move")
async def move_page(
    slug: str,
    data: PageMove,
    admin: CurrentAdmin,
    service: Annotated[PageService, Depends(get_service)],
):
    """Move a page one place up or down."""
    return {"moved": service.move_page(slug, data.direction)}


@admin_router.delete("/{slug}", response_model=DeleteResult)
async def delete_page(
    slug: str,
    admin: CurrentAdmin,
    service: Annotated[PageService, Depends(get_service)],
):
    """Delete a page and its detail pages."""
    deleted = service.delete_page(slug)
    if deleted is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Page not found")
    return DeleteResult(deleted=deleted)
