"""Tests for incremental spreadsheet re-sync."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.orm import Session

from memberpages.auth.schemas import Principal
from memberpages.db.models import Page
from memberpages.exceptions import AdminRequiredError, SheetSourceError
from memberpages.pages.schemas import LinkCell, PageDocument, Section, TableRow, TextCell, TextItem
from memberpages.pages.service import PageService
from memberpages.sheets.parsers import parse_csv_text
from memberpages.sheets.service import (
    SheetImportService,
    SheetSyncService,
    identity_keys,
    rows_added_text,
)

SHEET_URL = "https://docs.google.com/spreadsheets/d/abcdef123/edit#gid=0"
INITIAL_CSV = "名前,説明,リンク\nAlpha,Alpha explained,https://example.com/a\n"


def _fetcher(csv_text: str) -> MagicMock:
    fetcher = MagicMock()
    fetcher.fetch_table = AsyncMock(return_value=parse_csv_text(csv_text))
    return fetcher


async def _import_and_save(
    db: Session, principal: Principal, csv_text: str = INITIAL_CSV, url: str = SHEET_URL
) -> PageDocument:
    document = await SheetImportService(_fetcher(csv_text)).import_sheet(principal, sheet_url=url)
    return PageService(db).save_page(document)


def _rows(db: Session, slug: str):
    return PageService(db).get_page(slug).table_item().table.rows


class TestRefreshAll:
    """Tests for the re-sync sweep."""

    @pytest.mark.asyncio
    async def test_non_admin_rejected(self, db: Session, member_principal: Principal):
        """Test the sweep is admin-only."""
        with pytest.raises(AdminRequiredError):
            await SheetSyncService(db, _fetcher(INITIAL_CSV)).refresh_all(member_principal)

    @pytest.mark.asyncio
    async def test_no_imported_pages(self, db: Session, admin_principal: Principal):
        """Test the sweep reports when nothing was imported."""
        fetcher = _fetcher(INITIAL_CSV)
        report = await SheetSyncService(db, fetcher).refresh_all(admin_principal)

        assert report.message == "No imported pages to refresh."
        assert report.updated_page_count == 0
        assert report.details == []
        fetcher.fetch_table.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_idempotent_when_unchanged(self, db: Session, admin_principal: Principal):
        """Test re-syncing an unchanged sheet leaves the page untouched."""
        page = await _import_and_save(db, admin_principal)
        before = db.get(Page, page.slug).sections
        pages_before = db.query(Page).count()

        report = await SheetSyncService(db, _fetcher(INITIAL_CSV)).refresh_all(admin_principal)

        assert report.message == "No new data."
        assert report.updated_page_count == 0
        assert report.details == ["スプレッドシート取り込み: no change"]
        assert db.get(Page, page.slug).sections == before
        assert db.query(Page).count() == pages_before

    @pytest.mark.asyncio
    async def test_new_rows_appended(self, db: Session, admin_principal: Principal):
        """Test only rows with unseen first-column values are appended."""
        page = await _import_and_save(db, admin_principal)
        original_rows = _rows(db, page.slug)

        live = INITIAL_CSV + "Beta,Beta explained,\n"
        report = await SheetSyncService(db, _fetcher(live)).refresh_all(admin_principal)

        assert report.message == "Updated 1 page(s)."
        assert report.updated_page_count == 1
        assert report.details == ["スプレッドシート取り込み: 1 row added"]

        rows = _rows(db, page.slug)
        assert len(rows) == 2
        assert rows[0] == original_rows[0]
        assert rows[1].cells[0].value == "Beta"
        assert rows[1].cells[1].label == "説明を読む"

    @pytest.mark.asyncio
    async def test_new_detail_page_stored(self, db: Session, admin_principal: Principal):
        """Test detail pages for appended rows are stored under the parent."""
        page = await _import_and_save(db, admin_principal)
        live = INITIAL_CSV + "Beta,Beta explained,\n"
        await SheetSyncService(db, _fetcher(live)).refresh_all(admin_principal)

        rows = _rows(db, page.slug)
        detail_slug = rows[1].detail_url.rsplit("/", 1)[-1]
        detail = db.get(Page, detail_slug)
        assert detail is not None
        assert detail.parent_slug == page.slug
        assert detail.source_key == page.source_key
        assert detail.title == "Beta"

        children = db.query(Page).filter(Page.parent_slug == page.slug).count()
        assert children == 2

    @pytest.mark.asyncio
    async def test_second_sync_is_noop(self, db: Session, admin_principal: Principal):
        """Test syncing twice adds the new rows only once."""
        page = await _import_and_save(db, admin_principal)
        live = INITIAL_CSV + "Beta,Beta explained,\n"
        await SheetSyncService(db, _fetcher(live)).refresh_all(admin_principal)
        report = await SheetSyncService(db, _fetcher(live)).refresh_all(admin_principal)

        assert report.updated_page_count == 0
        assert len(_rows(db, page.slug)) == 2

    @pytest.mark.asyncio
    async def test_alpha_beta_detection(self, db: Session, admin_principal: Principal):
        """Test a stored Alpha row and a live Alpha, Beta sheet add only Beta."""
        page = await _import_and_save(db, admin_principal, csv_text="名前,メモ\nAlpha,x\n")
        live = "名前,メモ\nAlpha,changed\nBeta,y\n"
        report = await SheetSyncService(db, _fetcher(live)).refresh_all(admin_principal)

        assert report.updated_page_count == 1
        rows = _rows(db, page.slug)
        assert [r.cells[0].value for r in rows] == ["Alpha", "Beta"]
        assert rows[0].cells[1].value == "x"

    @pytest.mark.asyncio
    async def test_value_from_other_column_is_not_a_key(
        self, db: Session, admin_principal: Principal
    ):
        """Test a new first-column value that appears elsewhere in a stored row is added."""
        page = await _import_and_save(db, admin_principal, csv_text="名前,次\nAlpha,Beta\n")
        live = "名前,次\nAlpha,Beta\nBeta,x\n"
        report = await SheetSyncService(db, _fetcher(live)).refresh_all(admin_principal)

        assert report.updated_page_count == 1
        assert report.details == ["スプレッドシート取り込み: 1 row added"]
        assert [r.cells[0].value for r in _rows(db, page.slug)] == ["Alpha", "Beta"]

    @pytest.mark.asyncio
    async def test_several_rows_pluralised(self, db: Session, admin_principal: Principal):
        """Test the report counts several appended rows."""
        await _import_and_save(db, admin_principal, csv_text="名前\nAlpha\n")
        live = "名前\nAlpha\nBeta\nGamma\n"
        report = await SheetSyncService(db, _fetcher(live)).refresh_all(admin_principal)
        assert report.details == ["スプレッドシート取り込み: 2 rows added"]

    @pytest.mark.asyncio
    async def test_duplicates_in_snapshot_added_once(
        self, db: Session, admin_principal: Principal
    ):
        """Test a new value repeated in the live sheet is appended once."""
        page = await _import_and_save(db, admin_principal, csv_text="名前\nAlpha\n")
        live = "名前\nAlpha\nBeta\nBeta\n\n"
        await SheetSyncService(db, _fetcher(live)).refresh_all(admin_principal)
        assert [r.cells[0].value for r in _rows(db, page.slug)] == ["Alpha", "Beta"]

    @pytest.mark.asyncio
    async def test_url_first_column_idempotent(self, db: Session, admin_principal: Principal):
        """Test rows keyed by a URL are recognised by the stored link."""
        page = await _import_and_save(
            db, admin_principal, csv_text="URL,メモ\nhttps://example.com/a,x\n"
        )
        live = "URL,メモ\nhttps://example.com/a,x\n"
        report = await SheetSyncService(db, _fetcher(live)).refresh_all(admin_principal)
        assert report.updated_page_count == 0
        assert len(_rows(db, page.slug)) == 1

    @pytest.mark.asyncio
    async def test_columns_aligned_by_header(self, db: Session, admin_principal: Principal):
        """Test reordered or added live columns keep the stored column count."""
        page = await _import_and_save(db, admin_principal, csv_text="名前,メモ\nAlpha,x\n")
        live = "メモ,新しい列,名前\nx,extra,Alpha\ny,extra,Beta\n"
        await SheetSyncService(db, _fetcher(live)).refresh_all(admin_principal)

        table = PageService(db).get_page(page.slug).table_item().table
        assert table.headers == ["名前", "メモ"]
        assert all(len(row.cells) == 2 for row in table.rows)
        assert table.rows[1].cells[0].value == "Beta"
        assert table.rows[1].cells[1].value == "y"

    @pytest.mark.asyncio
    async def test_failure_does_not_abort_sweep(self, db: Session, admin_principal: Principal):
        """Test a failing page is reported and the next page still syncs."""
        first = await _import_and_save(
            db,
            admin_principal,
            csv_text="名前\nAlpha\n",
            url="https://docs.google.com/spreadsheets/d/aaaaaa111/edit#gid=0",
        )
        second = await _import_and_save(
            db,
            admin_principal,
            csv_text="名前\nAlpha\n",
            url="https://docs.google.com/spreadsheets/d/bbbbbb222/edit#gid=0",
        )

        async def fetch_table(sheet_id: str, gid: str):
            if sheet_id == "aaaaaa111":
                raise SheetSourceError("Failed to fetch sheet (HTTP 500)")
            return parse_csv_text("名前\nAlpha\nBeta\n")

        fetcher = MagicMock()
        fetcher.fetch_table = AsyncMock(side_effect=fetch_table)
        report = await SheetSyncService(db, fetcher).refresh_all(admin_principal)

        assert report.updated_page_count == 1
        assert report.details == ["スプレッドシート取り込み: 1 row added"]
        assert len(_rows(db, first.slug)) == 1
        assert len(_rows(db, second.slug)) == 2

    @pytest.mark.asyncio
    async def test_page_without_table_skipped(self, db: Session, admin_principal: Principal):
        """Test an imported page whose table was removed is skipped."""
        document = PageDocument(
            slug="sheet-broken-0",
            title="Broken",
            source_key="broken:0",
            sections=[Section(id="s", items=[TextItem(id="t", text="no table")])],
        )
        PageService(db).save_page(document)
        fetcher = _fetcher("名前\nAlpha\n")

        report = await SheetSyncService(db, fetcher).refresh_all(admin_principal)

        assert report.updated_page_count == 0
        assert report.details == []
        fetcher.fetch_table.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_malformed_source_key_skipped(self, db: Session, admin_principal: Principal):
        """Test a page with an unusable source key is skipped."""
        db.add(Page(slug="odd", title="Odd", source_key="no-separator", sections=[]))
        db.commit()

        report = await SheetSyncService(db, _fetcher("名前\nAlpha\n")).refresh_all(admin_principal)
        assert report.message == "No new data."
        assert report.details == []

    @pytest.mark.asyncio
    async def test_detail_pages_not_swept(self, db: Session, admin_principal: Principal):
        """Test detail pages sharing the source key are not fetched separately."""
        await _import_and_save(db, admin_principal)
        fetcher = _fetcher(INITIAL_CSV)
        await SheetSyncService(db, fetcher).refresh_all(admin_principal)
        assert fetcher.fetch_table.await_count == 1


class TestRowIdentity:
    """Tests for the row identity helpers."""

    def test_only_first_cell_counts(self):
        """Test later cells do not contribute keys."""
        rows = [TableRow(cells=[TextCell(value=" Alpha "), TextCell(value="Beta")])]
        assert identity_keys(rows) == {"Alpha"}

    def test_link_first_cell(self):
        """Test a link first cell contributes its label and URL."""
        rows = [
            TableRow(cells=[LinkCell(label="Site", url="https://example.com/a")]),
            TableRow(cells=[]),
        ]
        assert identity_keys(rows) == {"Site", "https://example.com/a"}

    def test_rows_added_wording(self):
        """Test the row count is pluralised."""
        assert rows_added_text(1) == "1 row added"
        assert rows_added_text(3) == "3 rows added"
