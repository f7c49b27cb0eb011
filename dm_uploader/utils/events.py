"""Upload event hooks: "phase" after each session transition, "processing" per STATUS snapshot."""
import inspect
import logging
from typing import Any, Callable, Dict, List, Tuple

from ..models import ProcessingInfo, UploadSession

logger = logging.getLogger(__name__)

PHASE = "phase"
PROCESSING = "processing"

Listener = Callable[..., Any]


class UploadEvents:
    """
    Listener registry shared by every upload of one pipeline.

    Listeners may be plain or async callables and run in registration
    order inside the task of the upload that emitted, so concurrent
    uploads never wait on each other. A failing listener is logged and
    the upload carries on.
    """

    names: Tuple[str, ...] = (PHASE, PROCESSING)

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = {name: [] for name in self.names}

    def _bucket(self, event_name: str) -> List[Listener]:
        try:
            return self._listeners[event_name]
        except KeyError:
            raise ValueError(
                f"Unknown upload event {event_name!r}, expected one of {', '.join(self.names)}"
            ) from None

    def on(self, event_name: str, callback: Listener) -> None:
        bucket = self._bucket(event_name)
        if callback not in bucket:
            bucket.append(callback)

    def off(self, event_name: str, callback: Listener) -> None:
        bucket = self._bucket(event_name)
        if callback in bucket:
            bucket.remove(callback)

    async def _emit(self, event_name: str, *args: Any) -> None:
        for callback in list(self._listeners[event_name]):
            try:
                result = callback(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("%s listener %r failed", event_name, callback)

    async def phase(self, session: UploadSession) -> None:
        await self._emit(PHASE, session)

    async def processing(self, session: UploadSession, info: ProcessingInfo) -> None:
        await self._emit(PROCESSING, session, info)
