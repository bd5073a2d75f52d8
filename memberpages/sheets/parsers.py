"""CSV and Excel parsing utilities for spreadsheet import."""

import csv
import io
import re
from typing import BinaryIO

import pandas as pd

from memberpages.config import get_settings
from memberpages.sheets.schemas import ParsedTable

SHEET_ID_PATTERN = re.compile(r"/spreadsheets/d/([a-zA-Z0-9-_]+)")
SHEET_GID_PATTERN = re.compile(r"gid=(\d+)")
URL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)

DEFAULT_GID = "0"


def is_url(value: str) -> bool:
    """Whether a cell value looks like an HTTP(S) URL."""
    return bool(URL_PATTERN.match(value))


def extract_sheet_info(url: str) -> tuple[str, str]:
    """Extract spreadsheet id and tab id from a spreadsheet URL.

    Args:
        url: Spreadsheet URL, e.g. https://docs.google.com/spreadsheets/d/<id>/edit#gid=<tab>.

    Returns:
        tuple: (sheet_id, gid). sheet_id is "" when the URL has none;
        gid defaults to "0".
    """
    id_match = SHEET_ID_PATTERN.search(url)
    gid_match = SHEET_GID_PATTERN.search(url)
    return (
        id_match.group(1) if id_match else "",
        gid_match.group(1) if gid_match else DEFAULT_GID,
    )


def build_source_key(sheet_id: str, gid: str) -> str:
    """Source key stored on imported pages."""
    return f"{sheet_id}:{gid}"


def parse_source_key(source_key: str | None) -> tuple[str, str] | None:
    """Split a source key back into (sheet_id, gid).

    Returns:
        tuple | None: The pair, or None if either part is missing.
    """
    if not source_key:
        return None
    sheet_id, _, gid = source_key.partition(":")
    if not sheet_id or not gid:
        return None
    return sheet_id, gid


def export_url(sheet_id: str, gid: str) -> str:
    """CSV export URL for one spreadsheet tab."""
    return get_settings().sheet_export_url_template.format(sheet_id=sheet_id, gid=gid)


def _is_blank(row: list[str]) -> bool:
    return not any(str(cell).strip() for cell in row)


def normalize_table(raw_rows: list[list]) -> ParsedTable:
    """Turn raw rows into a header row plus header-width data rows.

    Blank rows are dropped. Every data row is padded (or cut) to the header
    width; missing cells become "". All text is trimmed.

    Args:
        raw_rows: Rows as read from the source, header first.

    Returns:
        ParsedTable: Normalized table; empty when there are no rows.
    """
    rows = [row for row in raw_rows if not _is_blank(row)]
    if not rows:
        return ParsedTable()

    headers = [str(cell or "").strip() for cell in rows[0]]
    body = [
        [str(row[idx] or "").strip() if idx < len(row) else "" for idx in range(len(headers))]
        for row in rows[1:]
    ]
    return ParsedTable(headers=headers, rows=body)


def parse_csv_text(text: str) -> ParsedTable:
    """Parse CSV text with a header row.

    Args:
        text: CSV content; a leading BOM is ignored.

    Returns:
        ParsedTable: Normalized table.
    """
    content = text.lstrip("\ufeff").strip()
    if not content:
        return ParsedTable()
    reader = csv.reader(io.StringIO(content))
    return normalize_table(list(reader))


def parse_csv_file(file: BinaryIO) -> ParsedTable:
    """Parse an uploaded CSV file.

    Args:
        file: File-like object containing CSV data.

    Returns:
        ParsedTable: Normalized table.
    """
    return parse_csv_text(file.read().decode("utf-8-sig"))


def parse_excel_file(file: BinaryIO) -> ParsedTable:
    """Parse the first sheet of an uploaded Excel workbook.

    Args:
        file: File-like object containing Excel data.

    Returns:
        ParsedTable: Normalized table.
    """
    df = pd.read_excel(file, engine="openpyxl", header=None, dtype=str)
    raw_rows = []
    for _, row in df.iterrows():
        raw_rows.append(["" if pd.isna(value) else str(value) for value in row.tolist()])
    return normalize_table(raw_rows)
