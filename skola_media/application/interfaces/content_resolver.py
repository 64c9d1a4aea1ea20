from __future__ import annotations
from typing import Protocol


class IContentResolver(Protocol):
    """Resolves an opaque content handle into bytes on local disk."""

    def supports(self, uri: str) -> bool:
        ...

    async def copy_to(self, uri: str, dest_path: str) -> str:
        """Copy the bytes behind ``uri`` into ``dest_path`` and return it."""
        ...
