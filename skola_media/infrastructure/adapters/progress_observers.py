from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Callable, Optional

from skola_media.application.interfaces.progress import IProgressObserver
from skola_media.application.models import UploadProgress


logger = logging.getLogger(__name__)


class LoggingProgressObserver(IProgressObserver):
    def __init__(self, logger_obj: logging.Logger | None = None, level: int = logging.INFO):
        self._log = logger_obj or logger
        self._level = level

    def on_progress(self, event: UploadProgress) -> None:
        self._log.log(
            self._level,
            "Upload %s: %d%% (%d/%d chunks)",
            event.object_key,
            event.percent,
            event.completed_chunks,
            event.total_chunks,
        )


class CallbackProgressObserver(IProgressObserver):
    """Adapts a plain ``fn(percent)`` callback."""

    def __init__(self, fn: Callable[[int], None]):
        self._fn = fn

    def on_progress(self, event: UploadProgress) -> None:
        self._fn(event.percent)


class QueueProgressChannel(IProgressObserver):
    """Publishes progress events on an asyncio queue for a UI consumer.

    ``close()`` puts a sentinel so ``async for`` consumers stop.
    """

    def __init__(self, maxsize: int = 0):
        self.queue: asyncio.Queue[Optional[UploadProgress]] = asyncio.Queue(maxsize)

    def on_progress(self, event: UploadProgress) -> None:
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            # A slow consumer only loses intermediate values
            logger.debug("Progress queue full; dropping %s%%", event.percent)

    def close(self) -> None:
        try:
            self.queue.put_nowait(None)
        except asyncio.QueueFull:
            logger.debug("Progress queue full; consumer will not see close")

    async def __aiter__(self) -> AsyncIterator[UploadProgress]:
        while True:
            item = await self.queue.get()
            if item is None:
                return
            yield item
