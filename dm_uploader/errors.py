"""Error hierarchy for the media upload pipeline."""
from typing import Any, Dict, Optional


class UploaderError(Exception):
    """Base error for all dm_uploader failures."""

    def __init__(self, message: str, phase: str = "", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.phase = phase
        self.details = details or {}


class UnsupportedMediaType(UploaderError):
    """No usable MIME type could be determined for a local file."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, phase="resolve", details=details)


class MediaProbeError(UploaderError):
    """Video container could not be probed for its duration."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, phase="resolve", details=details)


class UploadTransportError(UploaderError):
    """A phase's HTTP call failed or returned a non-success envelope."""

    def __init__(
        self,
        phase: str,
        cause: Any = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        if status_code is not None:
            message = f"{phase} failed with HTTP {status_code}: {cause}"
        else:
            message = f"{phase} failed: {cause}"
        super().__init__(message, phase=phase, details=details)
        self.cause = cause
        self.status_code = status_code


class ProcessingFailed(UploaderError):
    """Server reported that processing of the uploaded media failed."""

    def __init__(self, media_id: str, reason: Optional[str] = None):
        message = f"processing of media {media_id} failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, phase="status", details={"media_id": media_id})
        self.media_id = media_id
        self.reason = reason


class ProcessingStalled(UploaderError):
    """Processing did not reach 'succeeded' within the polling budget."""

    def __init__(self, media_id: str, checks: int, last_state: Optional[str] = None):
        super().__init__(
            f"media {media_id} still '{last_state}' after {checks} status checks",
            phase="status",
            details={"media_id": media_id, "checks": checks, "last_state": last_state},
        )
        self.media_id = media_id
        self.checks = checks
        self.last_state = last_state


class UploadCancelled(UploaderError):
    """The caller cancelled an in-flight upload."""

    def __init__(self, phase: str):
        super().__init__(f"upload cancelled at {phase}", phase=phase)


class InvalidPhaseTransition(UploaderError):
    """An upload session was driven out of order."""

    def __init__(self, current: Any, target: Any):
        super().__init__(
            f"cannot move upload session from {current.value} to {target.value}",
            details={"current": current.value, "target": target.value},
        )
        self.current = current
        self.target = target


class MessageError(UploaderError):
    """A direct message could not be composed."""

    def __init__(self, message: str):
        super().__init__(message, phase="message")
