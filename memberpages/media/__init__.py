"""Media module: uploaded video and audio files."""

from memberpages.media.router import router
from memberpages.media.service import MediaService, get_media_service

__all__ = ["router", "MediaService", "get_media_service"]
