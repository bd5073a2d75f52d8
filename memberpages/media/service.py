"""Storage for uploaded media files."""

import logging
import re
from pathlib import Path

from memberpages.config import get_settings
from memberpages.media.schemas import MediaUpload
from memberpages.pages.slugs import slugify

logger = logging.getLogger(__name__)

UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(filename: str) -> str:
    """Strip directories and unusual characters from an uploaded filename.

    Args:
        filename: Client-supplied filename.

    Returns:
        str: Safe filename.

    Raises:
        ValueError: If nothing usable is left.
    """
    name = UNSAFE_FILENAME_CHARS.sub("-", Path(filename.replace("\\", "/")).name).strip(".-")
    if not name:
        raise ValueError("Invalid filename")
    return name


class MediaService:
    """Writes uploads to MEDIA_DIR/<page-slug>/<filename>.

    Attributes:
        media_dir: Root directory for uploads.
        url_path: URL prefix the directory is served from.
    """

    def __init__(self, media_dir: str | Path | None = None, url_path: str | None = None):
        """Initialize media service.

        Args:
            media_dir: Upload root (defaults to settings.media_dir).
            url_path: Public prefix (defaults to settings.media_url_path).
        """
        settings = get_settings()
        self.media_dir = Path(media_dir or settings.media_dir)
        self.url_path = (url_path or settings.media_url_path).rstrip("/")

    def save(self, page_slug: str, filename: str, content: bytes) -> MediaUpload:
        """Store one file for a page, replacing a file of the same name.

        Args:
            page_slug: Page the file belongs to.
            filename: Client-supplied filename.
            content: File bytes.

        Returns:
            MediaUpload: Public URL and storage path.

        Raises:
            ValueError: If the page slug or filename is unusable or the file is empty.
        """
        slug = slugify(page_slug)
        if not slug:
            raise ValueError("Invalid page slug")
        if not content:
            raise ValueError("Empty file")
        name = safe_filename(filename)

        target_dir = self.media_dir / slug
        target_dir.mkdir(parents=True, exist_ok=True)
        (target_dir / name).write_bytes(content)

        storage_path = f"{slug}/{name}"
        logger.info(f"Stored media {storage_path} ({len(content)} bytes)")
        return MediaUpload(url=f"{self.url_path}/{storage_path}", storage_path=storage_path)


def get_media_service() -> MediaService:
    """Get media service instance."""
    return MediaService()
