"""
Protocols (Interfaces) for Dependency Inversion.

Small, focused interfaces the pipeline depends on; concrete adapters live
in ``dm_uploader.services``.
"""
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from .models import ApiResult


@runtime_checkable
class ITransport(Protocol):
    """Interface for authenticated HTTP requests.

    Returns an ``ApiResult`` for every answered request, success or not.
    Only transport-level faults (connection, timeout) are raised.
    """

    async def send(
        self,
        url: str,
        method: str = "GET",
        *,
        params: Optional[Mapping[str, str]] = None,
        content: Optional[bytes] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> ApiResult:
        ...


@runtime_checkable
class IDurationProbe(Protocol):
    """Interface for reading a video's playback duration."""

    def duration_seconds(self, path: Path) -> float:
        """Return duration in seconds; raise MediaProbeError on failure."""
        ...


@runtime_checkable
class IMediaUploader(Protocol):
    """Interface consumed by message composition."""

    async def upload_media(
        self,
        path: Path,
        media_category: Optional[str] = None,
        cancel_event: Any = None,
    ) -> str:
        ...
