"""Page service layer."""

import logging
import time
from typing import Literal

from sqlalchemy import or_
from sqlalchemy.orm import Session

from memberpages.db.models import Page
from memberpages.pages.schemas import PageDocument, TableItem
from memberpages.pages.slugs import slugify

logger = logging.getLogger(__name__)

DETAIL_DESCRIPTION = "解説ページ"
DETAIL_SECTION_TITLE = "解説"


def now_ms() -> int:
    """Current time in milliseconds, used as a default sort rank."""
    return int(time.time() * 1000)


def is_detail_page(document: PageDocument) -> bool:
    """Whether a page is a synthesized detail page.

    Pages saved before parent slugs were tracked are recognised by their
    description or by a single section titled 解説.
    """
    if document.parent_slug:
        return True
    if document.description == DETAIL_DESCRIPTION:
        return True
    return len(document.sections) == 1 and document.sections[0].title == DETAIL_SECTION_TITLE


def is_main_page(document: PageDocument) -> bool:
    """Whether a page belongs in the top-level page list."""
    has_table = any(
        isinstance(item, TableItem) for section in document.sections for item in section.items
    )
    return has_table or not is_detail_page(document)


def page_to_document(page: Page) -> PageDocument:
    """Convert a stored page to a document.

    Args:
        page: Page model.

    Returns:
        PageDocument: Validated document.

    Raises:
        pydantic.ValidationError: If the stored sections are malformed.
    """
    return PageDocument.model_validate(
        {
            "slug": page.slug,
            "title": page.title,
            "description": page.description,
            "published": bool(page.published),
            "sections": page.sections or [],
            "order": page.order,
            "parent_slug": page.parent_slug,
            "source_key": page.source_key,
            "created_at": page.created_at,
            "updated_at": page.updated_at,
        }
    )


def dump_sections(document: PageDocument) -> list[dict]:
    """Serialize sections for storage, omitting absent fields."""
    return [section.model_dump(mode="json", exclude_none=True) for section in document.sections]


class PageService:
    """Service class for page storage operations."""

    def __init__(self, db: Session):
        """Initialize page service.

        Args:
            db: Database session.
        """
        self.db = db

    def _sorted_query(self):
        # Pages without a rank sort last, ties broken by last update
        return self.db.query(Page).order_by(
            Page.order.is_(None), Page.order, Page.updated_at, Page.slug
        )

    def _documents(self, pages: list[Page]) -> list[PageDocument]:
        documents = []
        for page in pages:
            try:
                documents.append(page_to_document(page))
            except ValueError as e:
                logger.warning(f"Skipping malformed page {page.slug}: {e}")
        return documents

    def upsert(self, document: PageDocument, slug: str | None = None) -> Page:
        """Insert or update one stored page without committing.

        Args:
            document: Page content.
            slug: Slug to store under; defaults to the document slug.

        Returns:
            Page: The pending model.
        """
        slug = slug or document.slug
        page = self.db.get(Page, slug)
        if page is None:
            page = Page(slug=slug)
            self.db.add(page)
        page.title = document.title
        page.description = document.description
        page.published = document.published
        page.sections = dump_sections(document)
        page.order = document.order
        page.parent_slug = document.parent_slug
        page.source_key = document.source_key
        return page

    def list_pages(
        self,
        query: str | None = None,
        include_details: bool = False,
    ) -> list[PageDocument]:
        """List pages in display order.

        Args:
            query: Case-insensitive filter on title and description.
            include_details: Include synthesized detail pages.

        Returns:
            list[PageDocument]: Matching pages.
        """
        documents = self._documents(self._sorted_query().all())
        if not include_details:
            documents = [d for d in documents if is_main_page(d)]
        if query and query.strip():
            needle = query.strip().lower()
            documents = [
                d
                for d in documents
                if needle in d.title.lower() or needle in (d.description or "").lower()
            ]
        return documents

    def list_published(self) -> list[PageDocument]:
        """List published top-level pages for members."""
        pages = (
            self._sorted_query()
            .filter(Page.published, Page.parent_slug.is_(None))
            .all()
        )
        return self._documents(pages)

    def get_page(self, slug: str) -> PageDocument | None:
        """Get a page by slug."""
        page = self.db.get(Page, slug)
        return page_to_document(page) if page else None

    def get_published_page(self, slug: str) -> PageDocument | None:
        """Get a page by slug if it is published."""
        page = self.db.get(Page, slug)
        if page is None or not page.published:
            return None
        return page_to_document(page)

    def save_page(self, document: PageDocument) -> PageDocument:
        """Save a page and flush its detail pages.

        Detail pages inherit the parent's visibility, source key and rank.
        Other pages imported from the same source that are neither this page
        nor one of its detail pages are removed.

        Args:
            document: Page to save.

        Returns:
            PageDocument: The stored page.
        """
        slug = document.slug or slugify(document.title) or f"page-{now_ms()}"
        order = document.order if document.order is not None else now_ms()

        detail_slugs = set(document.detail_slugs())
        for detail in document.detail_pages:
            if detail.slug:
                detail_slugs.add(detail.slug)

        if document.source_key:
            stale = (
                self.db.query(Page)
                .filter(Page.source_key == document.source_key, Page.slug != slug)
                .all()
            )
            for page in stale:
                if page.slug not in detail_slugs:
                    logger.info(f"Removing stale imported page {page.slug}")
                    self.db.delete(page)

        main = document.model_copy(update={"slug": slug, "order": order, "detail_pages": []})
        self.upsert(main, slug)

        flushed: set[str] = set()
        for detail in document.detail_pages:
            detail_slug = detail.slug or slugify(detail.title) or f"detail-{now_ms()}"
            stored = detail.model_copy(
                update={
                    "slug": detail_slug,
                    "published": document.published,
                    "parent_slug": slug,
                    "source_key": document.source_key,
                    "order": detail.order if detail.order is not None else order,
                    "detail_pages": [],
                }
            )
            self.upsert(stored, detail_slug)
            flushed.add(detail_slug)

        for detail_slug in detail_slugs - flushed:
            page = self.db.get(Page, detail_slug)
            if page is not None:
                page.parent_slug = slug
                page.published = document.published

        self.db.commit()
        logger.info(f"Saved page {slug} with {len(flushed)} detail pages")
        return self.get_page(slug)

    def _children(self, document: PageDocument) -> list[Page]:
        slugs = document.detail_slugs()
        conditions = [Page.parent_slug == document.slug]
        if slugs:
            conditions.append(Page.slug.in_(slugs))
        return (
            self.db.query(Page)
            .filter(or_(*conditions), Page.slug != document.slug)
            .all()
        )

    def set_published(self, slug: str, published: bool) -> PageDocument | None:
        """Publish or unpublish a page and its detail pages.

        Args:
            slug: Page slug.
            published: New visibility.

        Returns:
            PageDocument | None: Updated page, or None if not found.
        """
        page = self.db.get(Page, slug)
        if page is None:
            return None
        page.published = published
        for child in self._children(page_to_document(page)):
            child.published = published
            child.parent_slug = slug
        self.db.commit()
        return self.get_page(slug)

    def move_page(self, slug: str, direction: Literal["up", "down"]) -> bool:
        """Swap a page's rank with its neighbour in the top-level list.

        Args:
            slug: Page slug.
            direction: "up" or "down".

        Returns:
            bool: True if the page moved.
        """
        documents = self.list_pages()
        index = next((i for i, d in enumerate(documents) if d.slug == slug), None)
        if index is None:
            return False
        target_index = index - 1 if direction == "up" else index + 1
        if target_index < 0 or target_index >= len(documents):
            return False

        current, target = documents[index], documents[target_index]
        current_order = current.order if current.order is not None else index
        target_order = target.order if target.order is not None else target_index

        self.db.get(Page, current.slug).order = target_order
        self.db.get(Page, target.slug).order = current_order
        self.db.commit()
        return True

    def delete_page(self, slug: str) -> list[str] | None:
        """Delete a page and every detail page that belongs to it.

        Detail pages are found by parent slug and by the detail URLs of the
        page's table rows.

        Args:
            slug: Page slug.

        Returns:
            list[str] | None: Deleted slugs (page first), or None if not found.
        """
        page = self.db.get(Page, slug)
        if page is None:
            return None

        try:
            children = self._children(page_to_document(page))
        except ValueError:
            logger.warning(f"Page {slug} has malformed sections, deleting by parent slug only")
            children = self.db.query(Page).filter(Page.parent_slug == slug).all()

        deleted = [slug]
        for child in children:
            deleted.append(child.slug)
            self.db.delete(child)
        self.db.delete(page)
        self.db.commit()
        logger.info(f"Deleted page {slug} and {len(deleted) - 1} detail pages")
        return deleted


def get_page_service(db: Session) -> PageService:
    """Get page service instance.

    Args:
        db: Database session.

    Returns:
        PageService: Page service instance.
    """
    return PageService(db)
