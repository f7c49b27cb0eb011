"""Core orchestrator - wires the transport, the upload pipeline and messaging."""
import asyncio
from pathlib import Path
from typing import Any, Dict, Optional

from ..models import Credentials, UploadConfig, UploadSession
from ..protocols import ITransport
from ..services.resolver import MediaResolver
from ..services.transport import AuthenticatedTransport
from ..use_cases.messages import SendMessageUseCase
from ..utils.events import UploadEvents
from .pipeline import MediaUploadPipeline


class UploadOrchestrator:
    """
    Uploads media for direct messages using injected services.

    Usage:
        async with UploadOrchestrator(credentials) as uploader:
            media_id = await uploader.upload_media(video_path)
            await uploader.send_message(conversation_id, "hi", media_path=photo_path)
    """

    def __init__(
        self,
        credentials: Optional[Credentials] = None,
        config: Optional[UploadConfig] = None,
        transport: Optional[ITransport] = None,
        resolver: Optional[MediaResolver] = None,
    ):
        """
        Initialize orchestrator with dependencies.

        Args:
            credentials: Session credentials (ignored when transport is given)
            config: Upload configuration
            transport: Pre-built transport, e.g. for tests or proxies
            resolver: Media resolver (defaults to ffprobe-backed)
        """
        if credentials is None and transport is None:
            raise ValueError("Either credentials or transport must be provided")

        self._config = config or UploadConfig()
        self._credentials = credentials
        self._external_transport = transport
        self._resolver = resolver
        self.events = UploadEvents()

        # Initialized in __aenter__
        self._transport: Optional[Any] = None
        self._pipeline: Optional[MediaUploadPipeline] = None
        self._messages: Optional[SendMessageUseCase] = None

    async def __aenter__(self):
        if self._external_transport is not None:
            self._transport = self._external_transport
        else:
            self._transport = AuthenticatedTransport(
                self._credentials, timeout=self._config.request_timeout
            )
            await self._transport.__aenter__()

        self._pipeline = MediaUploadPipeline(
            self._transport,
            self._config,
            resolver=self._resolver,
            events=self.events,
        )
        self._messages = SendMessageUseCase(self._transport, self._pipeline, self._config)
        return self

    async def __aexit__(self, *args):
        if self._transport is not None and self._external_transport is None:
            await self._transport.__aexit__(*args)
        self._transport = None

    async def upload(
        self,
        path: Path,
        media_category: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> UploadSession:
        """Upload media and return its finished session."""
        assert self._pipeline is not None
        return await self._pipeline.upload(path, media_category, cancel_event)

    async def upload_media(
        self,
        path: Path,
        media_category: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        """Upload media and return its media id once usable."""
        assert self._pipeline is not None
        return await self._pipeline.upload_media(path, media_category, cancel_event)

    async def send_message(
        self,
        conversation_id: str,
        text: str = "",
        media_path: Optional[Path] = None,
        media_category: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Send a direct message, uploading the media first when given."""
        assert self._messages is not None
        return await self._messages.execute(conversation_id, text, media_path, media_category)
