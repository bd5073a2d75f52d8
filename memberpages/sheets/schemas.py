"""Pydantic schemas for spreadsheet import and re-sync."""

from pydantic import BaseModel, Field, model_validator


class ParsedTable(BaseModel):
    """Header row plus trimmed, header-width data rows."""

    headers: list[str] = Field(default_factory=list)
    rows: list[list[str]] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to import."""
        return not self.headers or not self.rows


class SheetImportRequest(BaseModel):
    """Import a spreadsheet tab by URL, or raw CSV text.

    Attributes:
        sheet_url: Spreadsheet URL containing /spreadsheets/d/<id>.
        csv_text: CSV text with a header row.
    """

    sheet_url: str | None = None
    csv_text: str | None = None

    @model_validator(mode="after")
    def one_source(self) -> "SheetImportRequest":
        """Exactly one of sheet_url and csv_text is given."""
        has_url = bool(self.sheet_url and self.sheet_url.strip())
        has_csv = bool(self.csv_text and self.csv_text.strip())
        if has_url == has_csv:
            raise ValueError("Provide either sheet_url or csv_text")
        return self


class SyncReport(BaseModel):
    """Outcome of a re-sync sweep.

    Attributes:
        message: Human-readable summary.
        updated_page_count: Pages that received new rows.
        details: One line per processed page.
    """

    message: str
    updated_page_count: int = 0
    details: list[str] = Field(default_factory=list)
