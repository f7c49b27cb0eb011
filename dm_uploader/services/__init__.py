"""Services for dm_uploader."""
from .probe import FFprobeDurationProbe
from .resolver import MediaResolver, guess_mime_type, sniff_mime_type
from .transport import AuthenticatedTransport

__all__ = [
    "AuthenticatedTransport",
    "FFprobeDurationProbe",
    "MediaResolver",
    "guess_mime_type",
    "sniff_mime_type",
]
