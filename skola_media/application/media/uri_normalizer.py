from __future__ import annotations

import datetime as _dt
import logging
import os
from typing import Callable, Optional

from skola_media.application.interfaces.file_accessor import ILocalFileAccessor
from skola_media.application.interfaces.utils import IClock
from skola_media.core.config import settings
from skola_media.core.exceptions import FileAccessError
from media_utils.file_utils import guess_extension, hashed_scratch_name
from media_utils.resource_manager import remove_quietly


logger = logging.getLogger(__name__)


class UriNormalizer:
    """Turns a platform file reference into a byte-readable local path.

    Direct paths are returned untouched. Content handles are copied into the
    scratch directory under a name hashed from the object id and the
    current time, so concurrent uploads never collide.
    """

    def __init__(
        self,
        accessor_factory: Callable[[str], ILocalFileAccessor],
        *,
        scratch_dir: Optional[str] = None,
        clock: Optional[IClock] = None,
    ) -> None:
        self._accessor_factory = accessor_factory
        self.scratch_dir = scratch_dir or settings.scratch_dir
        self._clock = clock

    def accessor_for(self, uri: str) -> ILocalFileAccessor:
        return self._accessor_factory(uri)

    def _timestamp(self) -> str:
        now = self._clock.now() if self._clock else _dt.datetime.now(_dt.timezone.utc)
        return str(int(now.timestamp() * 1000))

    def scratch_path(
        self,
        uri: str,
        *,
        object_id: str = "",
        scratch_dir_hint: Optional[str] = None,
        default_ext: str = ".bin",
    ) -> str:
        directory = scratch_dir_hint or self.scratch_dir
        os.makedirs(directory, exist_ok=True)
        name = hashed_scratch_name(
            object_id + self._timestamp(), guess_extension(uri, default_ext)
        )
        return os.path.join(directory, name)

    async def normalize(
        self,
        uri: str,
        scratch_dir_hint: Optional[str] = None,
        *,
        object_id: str = "",
    ) -> str:
        if not uri:
            raise FileAccessError("No file URI provided")

        accessor = self.accessor_for(uri)
        if not accessor.requires_copy:
            return uri

        target = self.scratch_path(
            uri, object_id=object_id, scratch_dir_hint=scratch_dir_hint
        )
        logger.debug("Copying content handle %s to scratch %s", uri, target)
        try:
            local_path = await accessor.to_local_path(uri, target)
        except FileAccessError:
            await remove_quietly(target)
            raise
        except OSError as e:
            await remove_quietly(target)
            raise FileAccessError(f"Failed to copy {uri}: {e}", path=target) from e

        size = await accessor.size(local_path)
        if size < 0:
            raise FileAccessError("Copied file does not exist", path=local_path)
        if size == 0:
            await remove_quietly(local_path)
            raise FileAccessError("Copy resulted in an empty file", path=local_path)

        logger.debug("Content handle copied (%d bytes): %s", size, local_path)
        return local_path

    async def cleanup(self, path: Optional[str]) -> None:
        """Best-effort delete of a scratch file; never raises."""
        await remove_quietly(path)
