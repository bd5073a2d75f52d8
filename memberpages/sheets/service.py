"""Spreadsheet import and incremental re-sync services."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from memberpages.auth.schemas import Principal
from memberpages.auth.utils import require_admin
from memberpages.db.models import Page
from memberpages.exceptions import MalformedPageError, SheetSourceError
from memberpages.pages.schemas import PageDocument, Section, Table, TableItem, TableRow
from memberpages.pages.service import PageService, dump_sections, now_ms, page_to_document
from memberpages.pages.slugs import slugify
from memberpages.sheets.builder import TableBuilder, display_headers
from memberpages.sheets.fetcher import SheetFetcher, get_sheet_fetcher
from memberpages.sheets.parsers import (
    build_source_key,
    extract_sheet_info,
    parse_csv_text,
    parse_source_key,
)
from memberpages.sheets.schemas import ParsedTable, SyncReport

logger = logging.getLogger(__name__)

IMPORT_TITLE = "スプレッドシート取り込み"
IMPORT_DESCRIPTION = "スプレッドシートの内容を一覧にしました。"
TABLE_SECTION_ID = "sheet-table"
TABLE_SECTION_TITLE = "一覧"
TABLE_ITEM_ID = "sheet-table-item"


def sheet_slug(sheet_id: str, gid: str) -> str:
    """Slug of a page imported from a spreadsheet tab."""
    return slugify(f"sheet-{sheet_id[:6]}-{gid}")


def build_import_page(
    table: ParsedTable,
    slug: str,
    source_key: str | None = None,
    order: int | None = None,
) -> PageDocument:
    """Assemble an unpublished page holding one table and its detail pages.

    Args:
        table: Parsed table with at least one header and one row.
        slug: Page slug.
        source_key: "<sheet_id>:<gid>" for URL imports.
        order: Sort rank (defaults to now in milliseconds).

    Returns:
        PageDocument: Page with detail_pages filled, not persisted.
    """
    headers = display_headers(table.headers)
    builder = TableBuilder(headers, page_slug=slug, source_key=source_key, published=False)
    rows = builder.build_rows(table.rows)
    return PageDocument(
        slug=slug,
        title=IMPORT_TITLE,
        description=IMPORT_DESCRIPTION,
        published=False,
        sections=[
            Section(
                id=TABLE_SECTION_ID,
                title=TABLE_SECTION_TITLE,
                items=[TableItem(id=TABLE_ITEM_ID, table=Table(headers=headers, rows=rows))],
            )
        ],
        order=order if order is not None else now_ms(),
        source_key=source_key,
        detail_pages=builder.detail_pages,
    )


def align_rows(table: ParsedTable, headers: list[str]) -> list[list[str]]:
    """Reorder live rows to match stored headers by name.

    Columns missing from the live table become empty cells; extra live
    columns are dropped. Repeated header names are matched in order.

    Args:
        table: Live table.
        headers: Headers stored on the page.

    Returns:
        list[list[str]]: Rows with one cell per stored header.
    """
    positions: dict[str, list[int]] = {}
    for idx, header in enumerate(display_headers(table.headers)):
        positions.setdefault(header, []).append(idx)

    column_map: list[int | None] = []
    used: dict[str, int] = {}
    for header in headers:
        candidates = positions.get(header, [])
        nth = used.get(header, 0)
        column_map.append(candidates[nth] if nth < len(candidates) else None)
        used[header] = nth + 1

    return [
        [row[idx] if idx is not None and idx < len(row) else "" for idx in column_map]
        for row in table.rows
    ]


def identity_keys(rows: list[TableRow]) -> set[str]:
    """First-column keys of the stored rows.

    A text cell contributes its value, a link cell its label and URL so
    rows keyed by a URL are recognised after the import turned it into a
    link.
    """
    keys: set[str] = set()
    for row in rows:
        if not row.cells:
            continue
        cell = row.cells[0]
        values = [cell.value] if cell.type == "text" else [cell.label, cell.url]
        for value in values:
            if value and value.strip():
                keys.add(value.strip())
    return keys


def rows_added_text(count: int) -> str:
    """Report wording for a number of appended rows."""
    return "1 row added" if count == 1 else f"{count} rows added"


def select_new_rows(rows: list[list[str]], keys: set[str]) -> list[list[str]]:
    """Rows whose first column is non-empty and not yet seen."""
    seen = set(keys)
    selected = []
    for row in rows:
        first = row[0].strip() if row else ""
        if not first or first in seen:
            continue
        seen.add(first)
        selected.append(row)
    return selected


class SheetImportService:
    """Builds pages from spreadsheet URLs or CSV text."""

    def __init__(self, fetcher: SheetFetcher | None = None):
        """Initialize import service.

        Args:
            fetcher: Sheet fetcher (defaults to the shared instance).
        """
        self.fetcher = fetcher or get_sheet_fetcher()

    async def import_sheet(
        self,
        principal: Principal,
        sheet_url: str | None = None,
        csv_text: str | None = None,
    ) -> PageDocument:
        """Import from whichever source is given, URL first.

        Raises:
            AdminRequiredError: If the principal is not an approved admin.
            SheetSourceError: If neither source is usable.
        """
        require_admin(principal)
        if sheet_url and sheet_url.strip():
            return await self.import_from_url(principal, sheet_url.strip())
        if csv_text and csv_text.strip():
            return self.import_from_csv(principal, csv_text)
        raise SheetSourceError("Provide either sheet_url or csv_text")

    async def import_from_url(self, principal: Principal, url: str) -> PageDocument:
        """Import one spreadsheet tab.

        Args:
            principal: Caller, must be an approved admin.
            url: Spreadsheet URL containing /spreadsheets/d/<id>.

        Returns:
            PageDocument: Unsaved page with source_key set.

        Raises:
            AdminRequiredError: If the principal is not an approved admin.
            SheetSourceError: On a bad URL, a fetch failure or an empty tab.
        """
        require_admin(principal)
        sheet_id, gid = extract_sheet_info(url)
        if not sheet_id:
            raise SheetSourceError("Invalid spreadsheet URL")

        table = await self.fetcher.fetch_table(sheet_id, gid)
        if table.is_empty:
            raise SheetSourceError("Sheet has no data rows")

        document = build_import_page(
            table, slug=sheet_slug(sheet_id, gid), source_key=build_source_key(sheet_id, gid)
        )
        logger.info(
            f"Imported sheet {sheet_id}:{gid} by {principal.email}: "
            f"{len(table.rows)} rows, {len(document.detail_pages)} detail pages"
        )
        return document

    def import_from_csv(self, principal: Principal, csv_text: str) -> PageDocument:
        """Import pasted CSV text.

        Raises:
            AdminRequiredError: If the principal is not an approved admin.
            SheetSourceError: If the CSV has no header or no rows.
        """
        require_admin(principal)
        return self.import_table(principal, parse_csv_text(csv_text))

    def import_table(self, principal: Principal, table: ParsedTable) -> PageDocument:
        """Import an already parsed table (CSV text or uploaded file).

        Args:
            principal: Caller, must be an approved admin.
            table: Parsed table.

        Returns:
            PageDocument: Unsaved page without a source key.

        Raises:
            AdminRequiredError: If the principal is not an approved admin.
            SheetSourceError: If the table has no header or no rows.
        """
        require_admin(principal)
        if table.is_empty:
            raise SheetSourceError("CSV has no data rows")
        order = now_ms()
        document = build_import_page(table, slug=f"csv-{order}", order=order)
        logger.info(
            f"Imported CSV by {principal.email}: "
            f"{len(table.rows)} rows, {len(document.detail_pages)} detail pages"
        )
        return document


class SheetSyncService:
    """Appends newly added spreadsheet rows to imported pages."""

    def __init__(self, db: Session, fetcher: SheetFetcher | None = None):
        """Initialize sync service.

        Args:
            db: Database session.
            fetcher: Sheet fetcher (defaults to the shared instance).
        """
        self.db = db
        self.fetcher = fetcher or get_sheet_fetcher()
        self.pages = PageService(db)

    def _imported_pages(self) -> list[Page]:
        pages = (
            self.db.query(Page)
            .filter(
                Page.source_key.isnot(None),
                Page.source_key != "",
                Page.parent_slug.is_(None),
            )
            .order_by(Page.order.is_(None), Page.order, Page.slug)
            .all()
        )
        unique: list[Page] = []
        keys: set[str] = set()
        for page in pages:
            if page.source_key in keys:
                continue
            keys.add(page.source_key)
            unique.append(page)
        return unique

    def _detail_slugs(self, page: Page, document: PageDocument) -> set[str]:
        children = self.db.query(Page.slug).filter(Page.parent_slug == page.slug).all()
        return {slug for (slug,) in children} | set(document.detail_slugs())

    async def refresh_page(self, page: Page) -> int:
        """Append new live rows to one page's table.

        Args:
            page: Stored top-level page with a source key.

        Returns:
            int: Number of rows added.

        Raises:
            MalformedPageError: If the source key or the stored table is unusable.
            SheetSourceError: If the tab cannot be fetched or is empty.
        """
        source = parse_source_key(page.source_key)
        if source is None:
            raise MalformedPageError(f"Malformed source key '{page.source_key}'")

        try:
            document = page_to_document(page)
        except ValueError as e:
            raise MalformedPageError(f"Stored page is malformed: {e}") from e
        item = document.table_item()
        if item is None:
            raise MalformedPageError("Page has no table")

        live = await self.fetcher.fetch_table(*source)
        if live.is_empty:
            raise SheetSourceError("Sheet has no data rows")

        headers = item.table.headers
        existing = item.table.rows
        new_rows = select_new_rows(align_rows(live, headers), identity_keys(existing))
        if not new_rows:
            return 0

        builder = TableBuilder(
            headers,
            page_slug=page.slug,
            source_key=page.source_key,
            published=bool(page.published),
            taken_slugs=self._detail_slugs(page, document),
        )
        built = builder.build_rows(new_rows, start_index=len(existing))
        item.table = Table(headers=headers, rows=[*existing, *built])

        page.sections = dump_sections(document)
        for detail in builder.detail_pages:
            self.pages.upsert(detail.model_copy(update={"order": page.order}))
        self.db.commit()
        return len(built)

    async def refresh_all(self, principal: Principal) -> SyncReport:
        """Re-sync every imported top-level page, one at a time.

        A page that fails is rolled back and only logged; the sweep
        continues with the next page.

        Args:
            principal: Caller, must be an approved admin.

        Returns:
            SyncReport: Summary with one detail line per synced page.

        Raises:
            AdminRequiredError: If the principal is not an approved admin.
        """
        require_admin(principal)
        pages = self._imported_pages()
        if not pages:
            return SyncReport(message="No imported pages to refresh.")

        details: list[str] = []
        updated = 0
        for page in pages:
            title = page.title or page.slug
            try:
                added = await self.refresh_page(page)
            except (ValueError, SQLAlchemyError) as e:
                self.db.rollback()
                logger.warning(f"Skipping re-sync of {page.slug}: {e}")
                continue

            if added:
                updated += 1
                details.append(f"{title}: {rows_added_text(added)}")
                logger.info(f"Re-sync added {added} rows to {page.slug}")
            else:
                details.append(f"{title}: no change")

        message = f"Updated {updated} page(s)." if updated else "No new data."
        return SyncReport(message=message, updated_page_count=updated, details=details)


def get_sheet_import_service() -> SheetImportService:
    """Get sheet import service instance."""
    return SheetImportService()


def get_sheet_sync_service(db: Session) -> SheetSyncService:
    """Get sheet sync service instance.

    Args:
        db: Database session.

    Returns:
        SheetSyncService: Sync service instance.
    """
    return SheetSyncService(db)
