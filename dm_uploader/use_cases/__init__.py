"""Application use cases for dm_uploader workflows."""

from .messages import SendMessageUseCase
from .phases import (
    AppendUploadUseCase,
    FinalizeUploadUseCase,
    InitUploadUseCase,
    StatusUploadUseCase,
)
from .processing import PollProcessingUseCase, wait_interval

__all__ = [
    "AppendUploadUseCase",
    "FinalizeUploadUseCase",
    "InitUploadUseCase",
    "PollProcessingUseCase",
    "SendMessageUseCase",
    "StatusUploadUseCase",
    "wait_interval",
]
