"""Spreadsheet import and re-sync API routes."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from memberpages.dependencies import CurrentPrincipal, DbSession
from memberpages.exceptions import AdminRequiredError
from memberpages.pages.schemas import PageResponse
from memberpages.sheets.parsers import parse_csv_file, parse_excel_file
from memberpages.sheets.schemas import ParsedTable, SheetImportRequest, SyncReport
from memberpages.sheets.service import (
    SheetImportService,
    SheetSyncService,
    get_sheet_import_service,
    get_sheet_sync_service,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_sync_service(db: DbSession) -> SheetSyncService:
    """Get sheet sync service dependency."""
    return get_sheet_sync_service(db)


def _parse_upload(file: UploadFile) -> ParsedTable:
    """Parse an uploaded CSV or Excel file.

    Raises:
        HTTPException: If the file format is not supported.
    """
    filename = (file.filename or "").lower()
    if filename.endswith(".csv"):
        return parse_csv_file(file.file)
    elif filename.endswith((".xlsx", ".xls")):
        return parse_excel_file(file.file)
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Unsupported file format. Use CSV or Excel (.xlsx)",
    )


@router.post("/import-sheet", response_model=PageResponse, response_model_exclude_none=True)
async def import_sheet(
    data: SheetImportRequest,
    principal: CurrentPrincipal,
    service: Annotated[SheetImportService, Depends(get_sheet_import_service)],
):
    """Build a page from a spreadsheet URL or CSV text. Nothing is saved.

    Raises:
        HTTPException: 403 for non-admins, 400 for an unusable source.
    """
    try:
        page = await service.import_sheet(
            principal, sheet_url=data.sheet_url, csv_text=data.csv_text
        )
    except AdminRequiredError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return PageResponse(page=page)


@router.post(
    "/import-sheet/upload", response_model=PageResponse, response_model_exclude_none=True
)
async def import_sheet_upload(
    file: Annotated[UploadFile, File(description="CSV or Excel file")],
    principal: CurrentPrincipal,
    service: Annotated[SheetImportService, Depends(get_sheet_import_service)],
):
    """Build a page from an uploaded CSV or Excel file. Nothing is saved."""
    try:
        page = service.import_table(principal, _parse_upload(file))
    except AdminRequiredError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
    except (ValueError, UnicodeDecodeError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return PageResponse(page=page)


@router.post("/refresh-sheets", response_model=SyncReport)
async def refresh_sheets(
    principal: CurrentPrincipal,
    service: Annotated[SheetSyncService, Depends(get_sync_service)],
):
    """Append newly added spreadsheet rows to every imported page."""
    try:
        report = await service.refresh_all(principal)
    except AdminRequiredError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
    logger.info(f"Re-sync by {principal.email}: {report.message}")
    return report
