from __future__ import annotations

import logging
from typing import Optional, Tuple

from skola_media.application.interfaces.image_manipulator import IImageManipulator
from skola_media.application.media.uri_normalizer import UriNormalizer
from skola_media.application.models import JPEG_CONTENT_TYPE, is_heic
from skola_media.core.config import settings
from skola_media.core.exceptions import FileAccessError, FormatConversionError


logger = logging.getLogger(__name__)


class FormatConverter:
    """Transcodes HEIC/HEIF images to JPEG ahead of any upload."""

    def __init__(
        self,
        manipulator: IImageManipulator,
        *,
        normalizer: Optional[UriNormalizer] = None,
        quality: Optional[float] = None,
    ) -> None:
        self.manipulator = manipulator
        self.normalizer = normalizer
        self.quality = quality if quality is not None else settings.heic_jpeg_quality

    async def convert_if_heic(
        self, uri: str, mime_type: str, *, object_id: str = ""
    ) -> Tuple[str, str]:
        if not is_heic(mime_type):
            return uri, mime_type

        logger.info("Converting %s (%s) to JPEG", uri, mime_type)
        try:
            new_uri = await self._transcode(uri, object_id)
        except (FileAccessError, FormatConversionError):
            raise
        except Exception as e:  # noqa: BLE001
            raise FormatConversionError(f"HEIC conversion failed: {e}", uri=uri) from e
        return new_uri, JPEG_CONTENT_TYPE

    async def _transcode(self, uri: str, object_id: str) -> str:
        try:
            return await self.manipulator.manipulate(
                uri, fmt="jpeg", quality=self.quality
            )
        except FileAccessError:
            # Content handles cannot be decoded in place; retry from a copy
            if self.normalizer is None or not self.normalizer.accessor_for(uri).requires_copy:
                raise
        local = await self.normalizer.normalize(uri, object_id=f"{object_id}_heic")
        try:
            return await self.manipulator.manipulate(
                local, fmt="jpeg", quality=self.quality
            )
        finally:
            await self.normalizer.cleanup(local)
