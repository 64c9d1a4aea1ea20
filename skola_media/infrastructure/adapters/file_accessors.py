from __future__ import annotations

import logging

import aiofiles
import aiofiles.os

from skola_media.application.interfaces.content_resolver import IContentResolver
from skola_media.application.interfaces.file_accessor import ILocalFileAccessor
from skola_media.core.exceptions import FileAccessError
from media_utils.file_utils import encode_base64, is_plain_path, uri_to_path
from media_utils.resource_manager import remove_quietly


logger = logging.getLogger(__name__)

_COPY_BUFFER = 1024 * 1024


class _LocalFileOps:
    """Filesystem primitives shared by both accessors."""

    async def read_base64(self, path: str) -> str:
        local = uri_to_path(path)
        try:
            async with aiofiles.open(local, "rb") as f:
                data = await f.read()
        except FileNotFoundError as e:
            raise FileAccessError(f"File not found: {local}", path=local) from e
        except OSError as e:
            raise FileAccessError(f"Could not read {local}: {e}", path=local) from e
        return encode_base64(data)

    async def copy(self, src: str, dest: str) -> str:
        src_path = uri_to_path(src)
        try:
            async with aiofiles.open(src_path, "rb") as fin, aiofiles.open(dest, "wb") as fout:
                while True:
                    block = await fin.read(_COPY_BUFFER)
                    if not block:
                        break
                    await fout.write(block)
        except OSError as e:
            raise FileAccessError(f"Could not copy {src} to {dest}: {e}", path=dest) from e
        return dest

    async def delete(self, path: str) -> None:
        await remove_quietly(uri_to_path(path))

    async def size(self, path: str) -> int:
        try:
            st = await aiofiles.os.stat(uri_to_path(path))
        except FileNotFoundError:
            return -1
        return int(st.st_size)


class DirectFileAccessor(_LocalFileOps, ILocalFileAccessor):
    """Plain paths and file:// URIs are readable in place."""

    requires_copy = False

    async def to_local_path(self, uri: str, scratch_path: str) -> str:
        return uri


class ContentHandleAccessor(_LocalFileOps, ILocalFileAccessor):
    """Opaque handles must be copied to scratch before random access."""

    requires_copy = True

    def __init__(self, resolver: IContentResolver) -> None:
        self.resolver = resolver

    async def to_local_path(self, uri: str, scratch_path: str) -> str:
        return await self.copy(uri, scratch_path)

    async def copy(self, src: str, dest: str) -> str:
        if is_plain_path(src):
            return await super().copy(src, dest)
        logger.debug("Copying content handle %s -> %s", src, dest)
        return await self.resolver.copy_to(src, dest)


def select_accessor(uri: str, resolver: IContentResolver) -> ILocalFileAccessor:
    """Pick the accessor matching how ``uri`` exposes its bytes."""
    if is_plain_path(uri):
        return DirectFileAccessor()
    return ContentHandleAccessor(resolver)
