"""
Models for dm_uploader.

Immutable dataclasses for everything derived from the wire, plus the one
mutable object the pipeline owns: the UploadSession state machine.
"""
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from .errors import InvalidPhaseTransition

DEFAULT_UPLOAD_URL = "https://upload.twitter.com/i/media/upload.json"
DEFAULT_API_URL = "https://twitter.com/i/api/1.1"
DEFAULT_ORIGIN = "https://twitter.com"


class MediaKind(Enum):
    """Media families accepted by the upload endpoint."""
    IMAGE = "image"
    GIF = "gif"
    VIDEO = "video"


@dataclass(frozen=True)
class MediaDescriptor:
    """Immutable description of a local media file at resolution time."""
    path: Path
    mime_type: str
    byte_size: int
    duration_ms: Optional[int] = None  # video only

    @property
    def kind(self) -> MediaKind:
        if self.mime_type.startswith("video/"):
            return MediaKind.VIDEO
        if self.mime_type == "image/gif":
            return MediaKind.GIF
        return MediaKind.IMAGE

    @property
    def is_video(self) -> bool:
        return self.kind is MediaKind.VIDEO

    @property
    def filename(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class ProcessingInfo:
    """Server-side processing snapshot from FINALIZE or STATUS."""
    state: str
    check_after_secs: Optional[float] = None
    progress_percent: Optional[int] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state == "succeeded"

    @property
    def failed(self) -> bool:
        return self.state == "failed"

    @classmethod
    def from_payload(cls, payload: Optional[Dict[str, Any]]) -> Optional["ProcessingInfo"]:
        """Parse a ``processing_info`` object; ``None`` when absent."""
        if not payload:
            return None
        error = payload.get("error")
        if isinstance(error, dict):
            error = error.get("message") or error.get("name")
        return cls(
            state=str(payload.get("state", "pending")),
            check_after_secs=payload.get("check_after_secs"),
            progress_percent=payload.get("progress_percent"),
            error=error,
        )


@dataclass(frozen=True)
class InitResponse:
    """INIT response: the new session's identifiers."""
    media_id: str
    media_key: Optional[str] = None
    expires_after_secs: Optional[int] = None


@dataclass(frozen=True)
class MediaReady:
    """FINALIZE outcome: media usable right away."""
    media_id: str


@dataclass(frozen=True)
class MediaProcessing:
    """FINALIZE outcome: server-side processing still running."""
    media_id: str
    info: ProcessingInfo


FinalizeResponse = Union[MediaReady, MediaProcessing]


@dataclass(frozen=True)
class StatusResponse:
    """STATUS response."""
    media_id: str
    info: ProcessingInfo


class UploadPhase(Enum):
    """Lifecycle of a server-side upload session."""
    INITIATED = "initiated"
    APPENDED = "appended"
    FINALIZED = "finalized"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_TRANSITIONS = {
    UploadPhase.INITIATED: {UploadPhase.APPENDED, UploadPhase.FAILED},
    UploadPhase.APPENDED: {UploadPhase.FINALIZED, UploadPhase.FAILED},
    UploadPhase.FINALIZED: {UploadPhase.PROCESSING, UploadPhase.SUCCEEDED, UploadPhase.FAILED},
    UploadPhase.PROCESSING: {UploadPhase.SUCCEEDED, UploadPhase.FAILED},
    UploadPhase.SUCCEEDED: set(),
    UploadPhase.FAILED: set(),
}


@dataclass
class UploadSession:
    """
    Server-side upload session tracked by one pipeline invocation.

    Transition methods reject calls made out of order, so the phase is
    always the last step that actually completed.
    """
    media_id: str
    descriptor: MediaDescriptor
    media_key: Optional[str] = None
    expires_after_secs: Optional[int] = None
    phase: UploadPhase = UploadPhase.INITIATED
    history: List[ProcessingInfo] = field(default_factory=list)
    status_checks: int = 0
    failure: Optional[str] = None

    @classmethod
    def start(cls, init: InitResponse, descriptor: MediaDescriptor) -> "UploadSession":
        return cls(
            media_id=init.media_id,
            descriptor=descriptor,
            media_key=init.media_key,
            expires_after_secs=init.expires_after_secs,
        )

    @property
    def done(self) -> bool:
        return self.phase in (UploadPhase.SUCCEEDED, UploadPhase.FAILED)

    @property
    def latest(self) -> Optional[ProcessingInfo]:
        return self.history[-1] if self.history else None

    def _move(self, target: UploadPhase) -> None:
        if target not in _TRANSITIONS[self.phase]:
            raise InvalidPhaseTransition(self.phase, target)
        self.phase = target

    def mark_appended(self) -> None:
        self._move(UploadPhase.APPENDED)

    def mark_finalized(self) -> None:
        self._move(UploadPhase.FINALIZED)

    def mark_processing(self, info: ProcessingInfo) -> None:
        self._move(UploadPhase.PROCESSING)
        self.history.append(info)

    def record_status(self, info: ProcessingInfo) -> None:
        """Record one STATUS snapshot; only valid while processing."""
        if self.phase is not UploadPhase.PROCESSING:
            raise InvalidPhaseTransition(self.phase, UploadPhase.PROCESSING)
        self.history.append(info)
        self.status_checks += 1

    def mark_succeeded(self) -> None:
        self._move(UploadPhase.SUCCEEDED)

    def mark_failed(self, reason: str) -> None:
        self._move(UploadPhase.FAILED)
        self.failure = reason


@dataclass(frozen=True)
class ApiResult:
    """Tagged outcome of one authenticated request."""
    success: bool
    status_code: int
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, status_code: int, data: Any = None):
        return cls(success=True, status_code=status_code, data=data)

    @classmethod
    def fail(cls, status_code: int, error: str):
        return cls(success=False, status_code=status_code, error=error)


@dataclass(frozen=True)
class Credentials:
    """Session credentials attached to every request."""
    bearer_token: str
    cookies: Mapping[str, str] = field(default_factory=dict)

    @property
    def csrf_token(self) -> Optional[str]:
        return self.cookies.get("ct0")

    @property
    def is_logged_in(self) -> bool:
        return "auth_token" in self.cookies


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return float(value)


@dataclass(frozen=True)
class UploadConfig:
    """Immutable configuration for upload operations."""
    upload_url: str = DEFAULT_UPLOAD_URL
    api_url: str = DEFAULT_API_URL
    origin: str = DEFAULT_ORIGIN
    image_category: Optional[str] = "dm_image"
    gif_category: Optional[str] = "dm_gif"
    video_category: Optional[str] = "dm_video"
    max_status_checks: int = 60
    processing_timeout: Optional[float] = None  # seconds, None = only check budget
    default_check_after_secs: float = 1.0
    request_timeout: float = 60.0

    def category_for(self, kind: MediaKind) -> Optional[str]:
        """Default media_category for a media kind."""
        if kind is MediaKind.VIDEO:
            return self.video_category
        if kind is MediaKind.GIF:
            return self.gif_category
        return self.image_category

    @classmethod
    def from_env(cls, **overrides) -> "UploadConfig":
        """Build config from DM_UPLOADER_* variables; explicit overrides win."""
        defaults = cls()
        values = {
            "upload_url": os.getenv("DM_UPLOADER_UPLOAD_URL", defaults.upload_url),
            "api_url": os.getenv("DM_UPLOADER_API_URL", defaults.api_url),
            "origin": os.getenv("DM_UPLOADER_ORIGIN", defaults.origin),
            "max_status_checks": int(
                os.getenv("DM_UPLOADER_MAX_STATUS_CHECKS", defaults.max_status_checks)
            ),
            "processing_timeout": _env_float(
                "DM_UPLOADER_PROCESSING_TIMEOUT", defaults.processing_timeout
            ),
            "request_timeout": _env_float("DM_UPLOADER_REQUEST_TIMEOUT", defaults.request_timeout),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
