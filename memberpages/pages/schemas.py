"""Pydantic schemas for page documents.

A page document is the unit stored for every page: a list of sections,
each holding typed content items. Table cells and content items are
discriminated unions keyed on ``type``. Optional fields are None when
absent and are omitted on serialization (``exclude_none=True``).
"""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from memberpages.config import get_settings

# --- Table cells ---


class TextCell(BaseModel):
    """Plain text table cell."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    value: str = ""


class LinkCell(BaseModel):
    """Hyperlink table cell."""

    model_config = ConfigDict(frozen=True)

    type: Literal["link"] = "link"
    label: str = ""
    url: str = ""


TableCell = Annotated[TextCell | LinkCell, Field(discriminator="type")]


class TableRow(BaseModel):
    """One table row.

    Attributes:
        cells: Cells in header order.
        detail_url: Link to the detail page synthesized from this row, if any.
    """

    cells: list[TableCell] = Field(default_factory=list)
    detail_url: str | None = None


class Table(BaseModel):
    """Table content with a fixed column count."""

    headers: list[str] = Field(default_factory=list)
    rows: list[TableRow] = Field(default_factory=list)

    @model_validator(mode="after")
    def rows_match_headers(self) -> "Table":
        """Every row has exactly one cell per header."""
        width = len(self.headers)
        for index, row in enumerate(self.rows, start=1):
            if len(row.cells) != width:
                raise ValueError(
                    f"Row {index} has {len(row.cells)} cells, expected {width}"
                )
        return self


# --- Content items ---


class _ContentItemBase(BaseModel):
    id: str = Field(..., min_length=1)
    title: str | None = None
    created_at: datetime | None = None


class TextItem(_ContentItemBase):
    """Free text with inline markup."""

    type: Literal["text"] = "text"
    text: str = ""


class VideoItem(_ContentItemBase):
    """Playable video, by URL or uploaded file."""

    type: Literal["video"] = "video"
    url: str | None = None
    storage_path: str | None = None


class AudioItem(_ContentItemBase):
    """Playable audio, by URL or uploaded file."""

    type: Literal["audio"] = "audio"
    url: str | None = None
    storage_path: str | None = None


class UrlItem(_ContentItemBase):
    """A single link."""

    type: Literal["url"] = "url"
    url: str = ""


class TableItem(_ContentItemBase):
    """Tabular content."""

    type: Literal["table"] = "table"
    table: Table


ContentItem = Annotated[
    TextItem | VideoItem | AudioItem | UrlItem | TableItem,
    Field(discriminator="type"),
]


class Section(BaseModel):
    """A titled group of content items."""

    id: str = Field(..., min_length=1)
    title: str = ""
    items: list[ContentItem] = Field(default_factory=list)

    @model_validator(mode="after")
    def unique_item_ids(self) -> "Section":
        """Item ids are unique within a section."""
        ids = [item.id for item in self.items]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate item id in section '{self.id}'")
        return self


def detail_slug_from_url(url: str) -> str:
    """Last path segment of a detail URL."""
    return url.rstrip("/").split("/")[-1]


def is_detail_url(url: str) -> bool:
    """Whether a link points at a page in the member area."""
    prefix = f"{get_settings().member_area_path.rstrip('/')}/pages/"
    return url.startswith(prefix) and bool(detail_slug_from_url(url[len(prefix) :]))


class PageDocument(BaseModel):
    """A page and its content.

    Attributes:
        slug: Unique identifier and URL segment.
        title: Page title.
        description: Optional description.
        published: Visible to approved members.
        sections: Ordered sections.
        order: Sort rank, lower first.
        parent_slug: Parent page of a synthesized detail page.
        source_key: "<spreadsheetId>:<tabId>" for imported pages.
        detail_pages: Detail pages produced by an import, saved with the page.
        created_at: Creation time.
        updated_at: Last update time.
    """

    slug: str = Field("", max_length=64)
    title: str = ""
    description: str | None = None
    published: bool = False
    sections: list[Section] = Field(default_factory=list)
    order: int | None = None
    parent_slug: str | None = None
    source_key: str | None = None
    detail_pages: list["PageDocument"] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @model_validator(mode="after")
    def unique_section_ids(self) -> "PageDocument":
        """Section ids are unique within a page."""
        ids = [section.id for section in self.sections]
        if len(ids) != len(set(ids)):
            raise ValueError("Duplicate section id")
        return self

    def table_item(self) -> TableItem | None:
        """First table item on the page, if any."""
        for section in self.sections:
            for item in section.items:
                if isinstance(item, TableItem):
                    return item
        return None

    def detail_slugs(self) -> list[str]:
        """Slugs of detail pages linked from this page's table rows, in order.

        Both a row's detail_url and every link cell pointing into the member
        area count, so rows with several narrative columns keep all of them.
        """
        slugs: list[str] = []
        for section in self.sections:
            for item in section.items:
                if not isinstance(item, TableItem):
                    continue
                for row in item.table.rows:
                    urls = [row.detail_url] if row.detail_url else []
                    urls.extend(
                        cell.url
                        for cell in row.cells
                        if isinstance(cell, LinkCell) and is_detail_url(cell.url)
                    )
                    for url in urls:
                        slug = detail_slug_from_url(url)
                        if slug and slug not in slugs:
                            slugs.append(slug)
        return slugs


class PublishedUpdate(BaseModel):
    """Body for toggling a page's visibility."""

    published: bool


class PageMove(BaseModel):
    """Body for moving a page up or down in the list."""

    direction: Literal["up", "down"]


class PageResponse(BaseModel):
    """Envelope returned by import and generation endpoints."""

    page: PageDocument


class DeleteResult(BaseModel):
    """Slugs removed by a cascade delete."""

    deleted: list[str]
