from __future__ import annotations

from typing import Optional, Protocol


class IImageManipulator(Protocol):
    async def manipulate(
        self,
        uri: str,
        *,
        width: Optional[int] = None,
        fmt: str = "jpeg",
        quality: Optional[float] = None,
    ) -> str:
        """Re-encode (and optionally resize to ``width``) the image at ``uri``.

        Returns the URI of the newly written file. Height follows the aspect
        ratio. Quality is a 0..1 factor.
        """
        ...
