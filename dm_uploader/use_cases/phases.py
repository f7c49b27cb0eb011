"""Use cases for the four media upload commands (INIT/APPEND/FINALIZE/STATUS)."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from dm_uploader.errors import UploadTransportError
from dm_uploader.models import (
    ApiResult,
    FinalizeResponse,
    InitResponse,
    MediaDescriptor,
    MediaProcessing,
    MediaReady,
    ProcessingInfo,
    StatusResponse,
    UploadConfig,
)
from dm_uploader.protocols import ITransport

logger = logging.getLogger(__name__)

SEGMENT_INDEX = "0"


def _describe_exception(exc: Exception) -> str:
    message = str(exc).strip()
    if message:
        return message
    return f"{type(exc).__name__}: {repr(exc)}"


class _UploadCommand:
    """Shared plumbing: headers, transport call, failure mapping."""

    phase = ""

    def __init__(self, transport: ITransport, config: Optional[UploadConfig] = None):
        self._transport = transport
        self._config = config or UploadConfig()

    def _headers(self, **extra: str) -> Dict[str, str]:
        headers = {
            "Origin": self._config.origin,
            "Referer": self._config.origin,
            "Sec-Fetch-Site": "same-site",
        }
        headers.update(extra)
        return headers

    async def _send(
        self,
        method: str,
        params: Mapping[str, str],
        content: Optional[bytes] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> ApiResult:
        try:
            result = await self._transport.send(
                self._config.upload_url,
                method,
                params=params,
                content=content,
                headers=headers or self._headers(**{"Content-Length": "0"}),
            )
        except httpx.HTTPError as exc:
            raise UploadTransportError(self.phase, _describe_exception(exc)) from exc

        if not result.success:
            raise UploadTransportError(self.phase, result.error, status_code=result.status_code)
        return result

    def _media_id(self, data: Any, fallback: str = "") -> str:
        if isinstance(data, dict):
            media_id = data.get("media_id_string") or data.get("media_id")
            if media_id is not None:
                return str(media_id)
        if fallback:
            return fallback
        raise UploadTransportError(self.phase, f"response carries no media id: {data!r}")


class InitUploadUseCase(_UploadCommand):
    """Open an upload session declaring size, type and (video) duration."""

    phase = "init"

    @staticmethod
    def build_params(descriptor: MediaDescriptor, media_category: Optional[str] = None) -> Dict[str, str]:
        params = {
            "command": "INIT",
            "total_bytes": str(descriptor.byte_size),
            "media_type": descriptor.mime_type,
        }
        if media_category:
            params["media_category"] = media_category
        if descriptor.duration_ms is not None:
            params["video_duration_ms"] = str(descriptor.duration_ms)
        return params

    async def execute(
        self, descriptor: MediaDescriptor, media_category: Optional[str] = None
    ) -> InitResponse:
        result = await self._send("POST", self.build_params(descriptor, media_category))
        data = result.data if isinstance(result.data, dict) else {}
        response = InitResponse(
            media_id=self._media_id(result.data),
            media_key=data.get("media_key"),
            expires_after_secs=data.get("expires_after_secs"),
        )
        logger.info(
            "INIT %s (%s, %d bytes) -> media %s",
            descriptor.filename,
            descriptor.mime_type,
            descriptor.byte_size,
            response.media_id,
        )
        return response


class AppendUploadUseCase(_UploadCommand):
    """Send the whole file as segment 0 of a multipart body."""

    phase = "append"

    def encode(self, descriptor: MediaDescriptor, payload: bytes) -> httpx.Request:
        """Multipart-encode the payload; the request carries the exact length."""
        return httpx.Request(
            "POST",
            self._config.upload_url,
            files={"media": (descriptor.filename, payload, "application/octet-stream")},
        )

    async def execute(self, media_id: str, descriptor: MediaDescriptor) -> None:
        payload = await asyncio.to_thread(descriptor.path.read_bytes)
        request = self.encode(descriptor, payload)
        body = request.read()

        headers = self._headers(**{
            "Content-Disposition": "form-data",
            "Content-Type": request.headers["Content-Type"],
            "Content-Length": str(len(body)),
        })
        params = {"command": "APPEND", "media_id": media_id, "segment_index": SEGMENT_INDEX}

        await self._send("POST", params, content=body, headers=headers)
        logger.info("APPEND media %s: %d bytes (%d encoded)", media_id, len(payload), len(body))


class FinalizeUploadUseCase(_UploadCommand):
    """Close the transfer; the server answers ready or processing."""

    phase = "finalize"

    async def execute(self, media_id: str) -> FinalizeResponse:
        params = {"command": "FINALIZE", "media_id": media_id, "allow_async": "true"}
        result = await self._send("POST", params)
        data = result.data if isinstance(result.data, dict) else {}
        media_id = self._media_id(data, fallback=media_id)

        info = ProcessingInfo.from_payload(data.get("processing_info"))
        if info is None or info.succeeded:
            logger.info("FINALIZE media %s: ready", media_id)
            return MediaReady(media_id=media_id)

        logger.info(
            "FINALIZE media %s: %s, check after %ss", media_id, info.state, info.check_after_secs
        )
        return MediaProcessing(media_id=media_id, info=info)


class StatusUploadUseCase(_UploadCommand):
    """Query server-side processing state."""

    phase = "status"

    async def execute(self, media_id: str) -> StatusResponse:
        params = {"command": "STATUS", "media_id": media_id}
        result = await self._send("GET", params)
        data = result.data if isinstance(result.data, dict) else {}

        info = ProcessingInfo.from_payload(data.get("processing_info"))
        if info is None:
            info = ProcessingInfo(state="succeeded")
        logger.debug(
            "STATUS media %s: %s (%s%%)", media_id, info.state, info.progress_percent
        )
        return StatusResponse(media_id=self._media_id(data, fallback=media_id), info=info)
