"""Cell classification and detail page synthesis for imported tables.

Columns whose header names narrative content (解説 / 説明 / 詳細) are not
shown inline: each non-empty cell becomes its own detail page and the table
cell becomes a link to it.
"""

import re

from memberpages.config import get_settings
from memberpages.pages.schemas import (
    LinkCell,
    PageDocument,
    Section,
    TableCell,
    TableRow,
    TextCell,
    TextItem,
)
from memberpages.pages.slugs import short_digest, slugify
from memberpages.sheets.parsers import is_url

NARRATIVE_HEADER_PATTERN = re.compile(r"解説|説明|詳細|explanation|description|detail", re.IGNORECASE)

OPEN_LINK_LABEL = "リンクを開く"
READ_MORE_SUFFIX = "を読む"
FALLBACK_TITLE = "解説 {number}"
FALLBACK_HEADER = "列{number}"

SENTENCE_END = "。"
PARAGRAPH_BREAK_LENGTH = 60

# Room left after the parent prefix for "-<digest>-<row number>"
DETAIL_PREFIX_LENGTH = 40


def narrative_columns(headers: list[str]) -> set[int]:
    """Indexes of columns whose values become detail pages.

    Args:
        headers: Table headers.

    Returns:
        set[int]: Column indexes.
    """
    return {idx for idx, header in enumerate(headers) if NARRATIVE_HEADER_PATTERN.search(header)}


def display_headers(headers: list[str]) -> list[str]:
    """Headers as shown in the table; a blank header becomes 列N."""
    return [
        header.strip() or FALLBACK_HEADER.format(number=idx + 1)
        for idx, header in enumerate(headers)
    ]


def format_detail_text(value: str) -> str:
    """Reflow narrative text into sentences for a detail page.

    The text is split on 。; each sentence is trimmed and gets its 。 back.
    A sentence of PARAGRAPH_BREAK_LENGTH characters or more is followed by
    a blank line.

    Args:
        value: Raw cell text.

    Returns:
        str: Reformatted text.
    """
    sentences = [s.strip() for s in value.split(SENTENCE_END)]
    sentences = [f"{s}{SENTENCE_END}" for s in sentences if s]
    if not sentences:
        return ""

    lines: list[str] = []
    for sentence in sentences:
        lines.append(sentence)
        if len(sentence) >= PARAGRAPH_BREAK_LENGTH:
            lines.append("")
    return re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip()


def detail_url(slug: str) -> str:
    """Member-area URL of a page."""
    return f"{get_settings().member_area_path.rstrip('/')}/pages/{slug}"


def synthesize_detail_page(
    text: str,
    title: str,
    header: str,
    slug: str,
    parent_slug: str,
    source_key: str | None = None,
    published: bool = False,
) -> PageDocument:
    """Build a detail page for one narrative cell.

    Args:
        text: Narrative cell text.
        title: Row title, used as page and item title.
        header: Column header, used as description and section title.
        slug: Slug of the detail page.
        parent_slug: Slug of the page holding the table.
        source_key: Source key of the parent page.
        published: Visibility, inherited from the parent.

    Returns:
        PageDocument: Detail page with one section and one text item.
    """
    return PageDocument(
        slug=slug,
        title=title,
        description=header,
        published=published,
        parent_slug=parent_slug,
        source_key=source_key,
        sections=[
            Section(
                id=f"{slug}-section",
                title=header,
                items=[TextItem(id=f"{slug}-text", title=title, text=format_detail_text(text))],
            )
        ],
    )


class TableBuilder:
    """Builds typed table rows from parsed rows, collecting detail pages.

    Narrative columns are classified once from the headers. Rows are built
    left to right, top to bottom; row numbers continue from ``start_index``
    so rows appended later get the numbers they would have had in a full
    import.

    Attributes:
        headers: Table headers.
        page_slug: Slug of the page that will hold the table.
        source_key: Source key of that page.
        published: Visibility given to detail pages.
        detail_pages: Detail pages synthesized so far.
    """

    def __init__(
        self,
        headers: list[str],
        page_slug: str,
        source_key: str | None = None,
        published: bool = False,
        taken_slugs: set[str] | None = None,
    ):
        """Initialize the builder.

        Args:
            headers: Table headers.
            page_slug: Slug of the page that will hold the table.
            source_key: Source key of that page.
            published: Visibility given to detail pages.
            taken_slugs: Detail slugs already in use for this page.
        """
        self.headers = headers
        self.page_slug = page_slug
        self.source_key = source_key
        self.published = published
        self.detail_pages: list[PageDocument] = []
        self._narrative = narrative_columns(headers)
        self._taken = set(taken_slugs or ())
        self._prefix = slugify(page_slug)[:DETAIL_PREFIX_LENGTH].rstrip("-") or "detail"

    def _header(self, col: int) -> str:
        header = self.headers[col] if col < len(self.headers) else ""
        return header or FALLBACK_HEADER.format(number=col + 1)

    def _detail_slug(self, title: str, header: str, row_number: int) -> str:
        slug = slugify(f"{self._prefix}-{short_digest(title, header)}")
        if slug in self._taken:
            slug = slugify(f"{slug}-{row_number}")
        self._taken.add(slug)
        return slug

    def build_cell(self, value: str, col: int, row: list[str], row_index: int) -> TableCell:
        """Classify one cell.

        Args:
            value: Cell text.
            col: Column index.
            row: The whole row, for the row title.
            row_index: 0-based row position in the full table.

        Returns:
            TableCell: Text or link cell.
        """
        trimmed = value.strip()
        if not trimmed:
            return TextCell(value="")
        if is_url(trimmed):
            return LinkCell(label=OPEN_LINK_LABEL, url=trimmed)
        if col in self._narrative:
            header = self._header(col)
            row_number = row_index + 1
            title = (row[0].strip() if row else "") or FALLBACK_TITLE.format(number=row_number)
            slug = self._detail_slug(title, header, row_number)
            self.detail_pages.append(
                synthesize_detail_page(
                    trimmed,
                    title=title,
                    header=header,
                    slug=slug,
                    parent_slug=self.page_slug,
                    source_key=self.source_key,
                    published=self.published,
                )
            )
            return LinkCell(label=f"{header}{READ_MORE_SUFFIX}", url=detail_url(slug))
        return TextCell(value=trimmed)

    def build_row(self, row: list[str], row_index: int) -> TableRow:
        """Build one row; its detail URL is the first detail link in it."""
        first_detail = len(self.detail_pages)
        cells = [self.build_cell(value, col, row, row_index) for col, value in enumerate(row)]
        row_detail_url = None
        if len(self.detail_pages) > first_detail:
            row_detail_url = detail_url(self.detail_pages[first_detail].slug)
        return TableRow(cells=cells, detail_url=row_detail_url)

    def build_rows(self, rows: list[list[str]], start_index: int = 0) -> list[TableRow]:
        """Build rows in order.

        Args:
            rows: Header-width rows of trimmed text.
            start_index: Position of the first row in the full table.

        Returns:
            list[TableRow]: Typed rows.
        """
        return [self.build_row(row, start_index + offset) for offset, row in enumerate(rows)]
