"""
Scratch file management for the upload pipeline
"""

import logging
import os
import threading
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

import aiofiles.os

from skola_media.core.config import settings

logger = logging.getLogger(__name__)


async def remove_quietly(path: Optional[str]) -> bool:
    """Best-effort delete. Missing files count as removed; errors are logged.

    Returns True when the path no longer exists afterwards.
    """
    if not path:
        return True
    try:
        await aiofiles.os.remove(path)
        logger.debug("Removed scratch file: %s", path)
        return True
    except FileNotFoundError:
        return True
    except OSError as e:
        logger.warning("Failed to remove scratch file %s: %s", path, str(e))
        return False


class ScratchTracker:
    """Tracks scratch files created during one upload call and removes them"""

    def __init__(self) -> None:
        self.tracked_files: List[str] = []

    def track(self, path: Optional[str]) -> Optional[str]:
        if path and path not in self.tracked_files:
            self.tracked_files.append(path)
        return path

    async def release(self, path: Optional[str]) -> None:
        """Remove one tracked file now."""
        if not path:
            return
        if not await remove_quietly(path):
            self._schedule_delayed_cleanup(path)
        if path in self.tracked_files:
            self.tracked_files.remove(path)

    async def cleanup(self) -> None:
        """Remove every tracked file; failures never propagate"""
        for file_path in list(self.tracked_files):
            await self.release(file_path)
        self.tracked_files.clear()

    def _schedule_delayed_cleanup(
        self, path: str, delay_seconds: Optional[float] = None
    ) -> None:
        """Retry a failed delete later on a daemon thread"""
        if delay_seconds is None:
            delay_seconds = settings.scratch_delayed_cleanup_delay

        def delayed_cleanup():
            try:
                time.sleep(delay_seconds)
                if os.path.isfile(path):
                    os.remove(path)
                    logger.info("Delayed cleanup: removed file %s", path)
            except OSError as e:
                logger.warning("Delayed cleanup failed for %s: %s", path, str(e))

        cleanup_thread = threading.Thread(target=delayed_cleanup, daemon=True)
        cleanup_thread.start()
        logger.info("Scheduled delayed cleanup for %s in %ss", path, delay_seconds)


@asynccontextmanager
async def managed_scratch() -> AsyncIterator[ScratchTracker]:
    """Async context manager that removes tracked scratch files on exit"""
    tracker = ScratchTracker()
    try:
        yield tracker
    finally:
        await tracker.cleanup()
