from __future__ import annotations

import asyncio
import uuid
from pathlib import Path
from typing import Optional

from PIL import UnidentifiedImageError

from skola_media.application.interfaces.image_manipulator import IImageManipulator
from skola_media.core.exceptions import FileAccessError
from media_utils.file_utils import is_plain_path, uri_to_path
from media_utils.image_utils import reencode_image, resolve_format


class PillowImageManipulator(IImageManipulator):
    """Resize/re-encode images with Pillow; results land in ``output_dir``.

    Only direct file references can be opened. Content handles raise
    ``FileAccessError`` so callers fall back to a scratch copy.
    """

    def __init__(self, output_dir: str):
        self.output_dir = output_dir

    async def manipulate(
        self,
        uri: str,
        *,
        width: Optional[int] = None,
        fmt: str = "jpeg",
        quality: Optional[float] = None,
    ) -> str:
        if not is_plain_path(uri):
            raise FileAccessError(f"Cannot open content handle directly: {uri}", path=uri)

        _, ext = resolve_format(fmt)
        src = uri_to_path(uri)

        def _run() -> str:
            out_dir = Path(self.output_dir)
            out_dir.mkdir(parents=True, exist_ok=True)
            dest = out_dir / f"{uuid.uuid4().hex}{ext}"
            try:
                return reencode_image(src, str(dest), width=width, fmt=fmt, quality=quality)
            except FileNotFoundError as e:
                raise FileAccessError(f"Image not found: {src}", path=src) from e
            except UnidentifiedImageError as e:
                raise ValueError(f"Unsupported or corrupt image: {src}") from e

        return await asyncio.to_thread(_run)
