"""Racing an upload step against a caller-owned cancel event."""
import asyncio
import inspect
from typing import Awaitable, Optional, TypeVar

from ..errors import UploadCancelled

T = TypeVar("T")


async def until_cancelled(
    step: Awaitable[T],
    cancel_event: Optional[asyncio.Event],
    phase: str,
) -> T:
    """
    Await ``step`` unless ``cancel_event`` fires first.

    When the event wins, the step is cancelled and awaited, then
    UploadCancelled(phase) is raised. A step that finished first keeps its
    result or exception.
    """
    if cancel_event is None:
        return await step

    if cancel_event.is_set():
        if inspect.iscoroutine(step):
            step.close()
        raise UploadCancelled(phase)

    step_task = asyncio.ensure_future(step)
    cancel_task = asyncio.create_task(cancel_event.wait())
    try:
        done, _ = await asyncio.wait(
            {step_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
        )
    except BaseException:
        step_task.cancel()
        raise
    finally:
        cancel_task.cancel()

    if step_task in done:
        return step_task.result()

    step_task.cancel()
    await asyncio.gather(step_task, return_exceptions=True)
    raise UploadCancelled(phase)
