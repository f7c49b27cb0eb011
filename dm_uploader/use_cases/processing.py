"""Use case for waiting out server-side media processing."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from dm_uploader.errors import ProcessingFailed, ProcessingStalled
from dm_uploader.models import ProcessingInfo, UploadConfig, UploadSession
from dm_uploader.use_cases.phases import StatusUploadUseCase
from dm_uploader.utils.cancellation import until_cancelled
from dm_uploader.utils.events import UploadEvents

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


async def wait_interval(
    delay: float,
    cancel_event: Optional[asyncio.Event] = None,
    sleep: Optional[SleepFn] = None,
) -> None:
    """
    Suspend for ``delay`` seconds.

    Raises UploadCancelled if ``cancel_event`` is set before or during the
    wait, whether the timer is asyncio's or an injected ``sleep``.
    """
    await until_cancelled((sleep or asyncio.sleep)(delay), cancel_event, "status")


class PollProcessingUseCase:
    """
    Poll STATUS until the server reports the media ready.

    Every STATUS call is preceded by the wait the latest snapshot asked
    for. Polling stops on 'succeeded', raises ProcessingFailed on 'failed'
    and ProcessingStalled once the check budget or timeout runs out.
    """

    def __init__(
        self,
        status: StatusUploadUseCase,
        config: Optional[UploadConfig] = None,
        sleep: Optional[SleepFn] = None,
        clock: Callable[[], float] = time.monotonic,
        events: Optional[UploadEvents] = None,
    ):
        self._status = status
        self._config = config or UploadConfig()
        self._sleep = sleep
        self._clock = clock
        self._events = events

    def _interval(self, info: ProcessingInfo, previous: Optional[float]) -> float:
        if info.check_after_secs is not None:
            return max(float(info.check_after_secs), 0.0)
        if previous is not None:
            return previous
        return self._config.default_check_after_secs

    async def execute(
        self,
        session: UploadSession,
        initial_info: ProcessingInfo,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ProcessingInfo:
        info = initial_info
        interval = self._interval(info, None)
        started = self._clock()
        budget = self._config.max_status_checks
        timeout = self._config.processing_timeout

        while not info.succeeded:
            if info.failed:
                session.mark_failed(info.error or "processing failed")
                raise ProcessingFailed(session.media_id, info.error)

            if session.status_checks >= budget:
                session.mark_failed("status check budget exhausted")
                raise ProcessingStalled(session.media_id, session.status_checks, info.state)

            if timeout is not None and (self._clock() - started) + interval > timeout:
                session.mark_failed("processing timeout")
                raise ProcessingStalled(session.media_id, session.status_checks, info.state)

            logger.debug("Waiting %.1fs before STATUS of media %s", interval, session.media_id)
            await wait_interval(interval, cancel_event, self._sleep)

            response = await until_cancelled(
                self._status.execute(session.media_id), cancel_event, "status"
            )
            info = response.info
            session.record_status(info)
            if self._events:
                await self._events.processing(session, info)

            if info.failed:
                logger.warning("Media %s processing failed: %s", session.media_id, info.error)
            else:
                logger.info(
                    "Media %s: %s %s%%", session.media_id, info.state, info.progress_percent or 0
                )
            interval = self._interval(info, interval)

        session.mark_succeeded()
        return info
