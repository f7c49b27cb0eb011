"""Utilities for dm_uploader."""
from .cancellation import until_cancelled
from .events import UploadEvents

__all__ = ["UploadEvents", "until_cancelled"]
