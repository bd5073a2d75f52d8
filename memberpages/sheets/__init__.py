"""Sheets module: spreadsheet and CSV import with incremental re-sync."""

from memberpages.sheets.builder import TableBuilder, format_detail_text, narrative_columns
from memberpages.sheets.fetcher import SheetFetcher, get_sheet_fetcher
from memberpages.sheets.parsers import extract_sheet_info, parse_csv_text
from memberpages.sheets.router import router
from memberpages.sheets.schemas import ParsedTable, SheetImportRequest, SyncReport
from memberpages.sheets.service import SheetImportService, SheetSyncService

__all__ = [
    "router",
    "TableBuilder",
    "format_detail_text",
    "narrative_columns",
    "SheetFetcher",
    "get_sheet_fetcher",
    "extract_sheet_info",
    "parse_csv_text",
    "ParsedTable",
    "SheetImportRequest",
    "SyncReport",
    "SheetImportService",
    "SheetSyncService",
]
