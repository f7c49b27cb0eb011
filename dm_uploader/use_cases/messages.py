"""Use case for sending a direct message, optionally with attached media."""
from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

from dm_uploader.errors import MessageError, UploadTransportError
from dm_uploader.models import UploadConfig
from dm_uploader.protocols import IMediaUploader, ITransport

logger = logging.getLogger(__name__)

SEND_MESSAGE_QUERY = {
    "ext": "mediaColor,altText,mediaStats,highlightedLabel,voiceInfo,birdwatchPivot,"
           "superFollowMetadata,unmentionInfo,editControl,article",
    "include_ext_alt_text": "true",
    "include_ext_limited_action_results": "true",
    "include_reply_count": "1",
    "tweet_mode": "extended",
    "include_ext_views": "true",
    "include_groups": "true",
    "include_inbox_timelines": "true",
    "include_ext_media_color": "true",
    "supports_reactions": "true",
}


class SendMessageUseCase:
    """Compose a DM; media is uploaded first and referenced by its id."""

    def __init__(
        self,
        transport: ITransport,
        uploader: IMediaUploader,
        config: Optional[UploadConfig] = None,
    ):
        self._transport = transport
        self._uploader = uploader
        self._config = config or UploadConfig()

    @staticmethod
    def build_body(conversation_id: str, text: str, media_id: Optional[str] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "conversation_id": conversation_id,
            "recipient_ids": False,
            "request_id": str(uuid.uuid1()),
            "text": text,
            "cards_platform": "Web-12",
            "include_cards": 1,
            "include_quote_count": True,
            "dm_users": False,
        }
        if media_id:
            body["media_id"] = media_id
        return body

    async def execute(
        self,
        conversation_id: str,
        text: str = "",
        media_path: Optional[Path] = None,
        media_category: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not text and not media_path:
            raise MessageError("provide text or media for the message to be sent")

        media_id = None
        if media_path:
            media_id = await self._uploader.upload_media(Path(media_path), media_category)

        body = self.build_body(conversation_id, text, media_id)
        try:
            result = await self._transport.send(
                f"{self._config.api_url}/dm/new2.json",
                "POST",
                params=SEND_MESSAGE_QUERY,
                content=json.dumps(body).encode("utf-8"),
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as exc:
            raise UploadTransportError("message", str(exc) or type(exc).__name__) from exc

        if not result.success:
            raise UploadTransportError("message", result.error, status_code=result.status_code)

        logger.info(
            "Sent message to %s%s",
            conversation_id,
            f" with media {media_id}" if media_id else "",
        )
        return result.data or {}
