"""Upload pipeline - sequences resolve, INIT, APPEND, FINALIZE and polling."""
import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional

from ..models import MediaProcessing, UploadConfig, UploadSession
from ..protocols import ITransport
from ..services.resolver import MediaResolver
from ..use_cases.phases import (
    AppendUploadUseCase,
    FinalizeUploadUseCase,
    InitUploadUseCase,
    StatusUploadUseCase,
)
from ..use_cases.processing import PollProcessingUseCase, SleepFn
from ..utils.cancellation import until_cancelled
from ..utils.events import UploadEvents

logger = logging.getLogger(__name__)


class MediaUploadPipeline:
    """
    Uploads one local media file and returns its media id.

    Each call owns its own UploadSession; calls share no mutable state
    besides the injected collaborators. The session is handed to "phase"
    listeners and returned by ``upload``. Any failure aborts immediately
    and propagates unchanged. The half-open remote session is left to
    expire.
    """

    def __init__(
        self,
        transport: ITransport,
        config: Optional[UploadConfig] = None,
        resolver: Optional[MediaResolver] = None,
        sleep: Optional[SleepFn] = None,
        clock: Optional[Callable[[], float]] = None,
        events: Optional[UploadEvents] = None,
    ):
        self._config = config or UploadConfig()
        self._resolver = resolver or MediaResolver()
        self.events = events or UploadEvents()

        self._init = InitUploadUseCase(transport, self._config)
        self._append = AppendUploadUseCase(transport, self._config)
        self._finalize = FinalizeUploadUseCase(transport, self._config)
        status = StatusUploadUseCase(transport, self._config)
        poll_kwargs = {"clock": clock} if clock else {}
        self._poll = PollProcessingUseCase(
            status, self._config, sleep=sleep, events=self.events, **poll_kwargs
        )

    async def _emit_phase(self, session: UploadSession) -> None:
        logger.debug("Media %s -> %s", session.media_id, session.phase.value)
        await self.events.phase(session)

    async def upload(
        self,
        path: Path,
        media_category: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> UploadSession:
        """
        Upload media and wait until the server can use it.

        Args:
            path: Local image, GIF or video file
            media_category: Category hint (defaults per media kind from config)
            cancel_event: Set it to abort the request or wait in flight

        Returns:
            The SUCCEEDED session of this upload
        """
        # Resolution failures happen before any network call.
        descriptor = await self._resolver.resolve(Path(path))
        category = media_category or self._config.category_for(descriptor.kind)

        init = await until_cancelled(
            self._init.execute(descriptor, category), cancel_event, "init"
        )
        session = UploadSession.start(init, descriptor)
        await self._emit_phase(session)

        try:
            await until_cancelled(
                self._append.execute(session.media_id, descriptor), cancel_event, "append"
            )
            session.mark_appended()
            await self._emit_phase(session)

            outcome = await until_cancelled(
                self._finalize.execute(session.media_id), cancel_event, "finalize"
            )
            session.mark_finalized()
            await self._emit_phase(session)
            if isinstance(outcome, MediaProcessing):
                session.mark_processing(outcome.info)
                await self._emit_phase(session)
                await self._poll.execute(session, outcome.info, cancel_event)
            else:
                session.mark_succeeded()
        except BaseException as exc:
            if not session.done:
                session.mark_failed(str(exc) or type(exc).__name__)
            await self._emit_phase(session)
            raise

        await self._emit_phase(session)
        logger.info(
            "Media %s ready (%s, %d status checks)",
            session.media_id,
            descriptor.filename,
            session.status_checks,
        )
        return session

    async def upload_media(
        self,
        path: Path,
        media_category: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        """Upload media and return the media id to reference in a message."""
        session = await self.upload(path, media_category, cancel_event)
        return session.media_id
