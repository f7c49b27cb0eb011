"""
Resolver Service - Single Responsibility: describe local media files.

MIME type comes from the file extension. When the extension does not name
an image or video type, libmagic reads the file header instead.
"""
import asyncio
import logging
import mimetypes
from pathlib import Path
from typing import Optional

import magic

from ..errors import UnsupportedMediaType
from ..models import MediaDescriptor
from ..protocols import IDurationProbe
from .probe import FFprobeDurationProbe

logger = logging.getLogger(__name__)

# libmagic needs a couple of KB to tell ISO-BMFF brands apart.
SNIFF_BYTES = 2048

# Answers that carry no information about the content.
_UNKNOWN_TYPES = frozenset({"application/octet-stream", "application/x-empty", "inode/x-empty"})


def _is_media_type(mime: Optional[str]) -> bool:
    return bool(mime) and mime.startswith(("image/", "video/"))


def sniff_mime_type(head: bytes) -> Optional[str]:
    """Guess a MIME type from the first bytes of a file with libmagic."""
    if not head:
        return None
    try:
        mime = magic.from_buffer(head, mime=True)
    except magic.MagicException as e:
        logger.warning("libmagic could not identify content: %s", e)
        return None
    if not mime or mime in _UNKNOWN_TYPES:
        return None
    return mime


def guess_mime_type(path: Path) -> Optional[str]:
    """Extension lookup first; content sniffing unless it names a media type."""
    mime, _ = mimetypes.guess_type(path.name)
    if _is_media_type(mime):
        return mime
    with open(path, "rb") as f:
        sniffed = sniff_mime_type(f.read(SNIFF_BYTES))
    return sniffed or mime


class MediaResolver:
    """
    Service for turning a local path into a MediaDescriptor.

    Fails fast with UnsupportedMediaType so no upload session is opened
    for a file the endpoint cannot accept.
    """

    def __init__(self, probe: Optional[IDurationProbe] = None):
        self._probe = probe or FFprobeDurationProbe()

    def resolve_sync(self, path: Path) -> MediaDescriptor:
        """
        Resolve media file synchronously.

        Args:
            path: Path to media file

        Returns:
            MediaDescriptor for the file as it is right now
        """
        path = Path(path)
        if not path.is_file():
            raise UnsupportedMediaType(f"Not a file: {path}", details={"path": str(path)})

        mime_type = guess_mime_type(path)
        if not mime_type:
            raise UnsupportedMediaType(
                f"Unexpected media type of provided file: {path.name}",
                details={"path": str(path)},
            )
        if not _is_media_type(mime_type):
            raise UnsupportedMediaType(
                f"Unsupported media type {mime_type} for {path.name}",
                details={"path": str(path), "mime_type": mime_type},
            )

        byte_size = path.stat().st_size

        duration_ms = None
        if mime_type.startswith("video/"):
            seconds = self._probe.duration_seconds(path)
            duration_ms = int(round(seconds * 1000))

        descriptor = MediaDescriptor(
            path=path,
            mime_type=mime_type,
            byte_size=byte_size,
            duration_ms=duration_ms,
        )
        logger.debug("Resolved %s", descriptor)
        return descriptor

    async def resolve(self, path: Path) -> MediaDescriptor:
        """Resolve media file without blocking the event loop."""
        return await asyncio.to_thread(self.resolve_sync, path)
