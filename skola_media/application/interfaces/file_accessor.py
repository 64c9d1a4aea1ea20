from __future__ import annotations
from typing import Protocol


class ILocalFileAccessor(Protocol):
    """Byte access to a picked file, hiding how the platform exposes it."""

    requires_copy: bool

    async def to_local_path(self, uri: str, scratch_path: str) -> str:
        """Return a readable local path; copy into ``scratch_path`` if needed."""
        ...

    async def read_base64(self, path: str) -> str:
        ...

    async def copy(self, src: str, dest: str) -> str:
        ...

    async def delete(self, path: str) -> None:
        """Delete ``path``; a missing file is not an error."""
        ...

    async def size(self, path: str) -> int:
        """Size in bytes, or -1 when the file does not exist."""
        ...
