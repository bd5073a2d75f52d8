"""Pages module: page documents, storage and member views."""

from memberpages.pages.router import admin_router, router
from memberpages.pages.schemas import (
    ContentItem,
    LinkCell,
    PageDocument,
    Section,
    Table,
    TableCell,
    TableItem,
    TableRow,
    TextCell,
    TextItem,
)
from memberpages.pages.service import PageService, get_page_service
from memberpages.pages.slugs import slugify

__all__ = [
    "router",
    "admin_router",
    "ContentItem",
    "LinkCell",
    "PageDocument",
    "Section",
    "Table",
    "TableCell",
    "TableItem",
    "TableRow",
    "TextCell",
    "TextItem",
    "PageService",
    "get_page_service",
    "slugify",
]
