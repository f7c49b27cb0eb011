"""
dm_uploader - media uploads for direct messages.

Walks the upload endpoint's INIT / APPEND / FINALIZE / STATUS protocol and
returns a media id the message endpoint accepts.

Usage:
    from dm_uploader import UploadOrchestrator, Credentials

    creds = Credentials(bearer_token, cookies={"auth_token": "...", "ct0": "..."})

    async with UploadOrchestrator(creds) as uploader:
        # Upload only
        media_id = await uploader.upload_media(video_path)

        # Upload and send in one go
        await uploader.send_message(conversation_id, "look", media_path=photo_path)
"""
from .errors import (
    InvalidPhaseTransition,
    MediaProbeError,
    MessageError,
    ProcessingFailed,
    ProcessingStalled,
    UnsupportedMediaType,
    UploadCancelled,
    UploaderError,
    UploadTransportError,
)
from .models import (
    ApiResult,
    Credentials,
    MediaDescriptor,
    MediaKind,
    ProcessingInfo,
    UploadConfig,
    UploadPhase,
    UploadSession,
)
from .orchestrator import MediaUploadPipeline, UploadOrchestrator
from .services import AuthenticatedTransport, FFprobeDurationProbe, MediaResolver

__version__ = "0.1.0"
__all__ = [
    # Main
    "UploadOrchestrator",
    "MediaUploadPipeline",
    # Models
    "ApiResult",
    "Credentials",
    "MediaDescriptor",
    "MediaKind",
    "ProcessingInfo",
    "UploadConfig",
    "UploadPhase",
    "UploadSession",
    # Services
    "AuthenticatedTransport",
    "FFprobeDurationProbe",
    "MediaResolver",
    # Errors
    "UploaderError",
    "UnsupportedMediaType",
    "MediaProbeError",
    "UploadTransportError",
    "ProcessingFailed",
    "ProcessingStalled",
    "UploadCancelled",
    "InvalidPhaseTransition",
    "MessageError",
]
