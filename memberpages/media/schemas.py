"""Pydantic schemas for media uploads."""

from pydantic import BaseModel


class MediaUpload(BaseModel):
    """Where an uploaded file was stored.

    Attributes:
        url: Public URL under MEDIA_URL_PATH.
        storage_path: Path relative to MEDIA_DIR, stored on video/audio items.
    """

    url: str
    storage_path: str
