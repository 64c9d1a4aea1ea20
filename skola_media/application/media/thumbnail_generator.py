from __future__ import annotations

import logging
from typing import Optional

from skola_media.application.interfaces.image_manipulator import IImageManipulator
from skola_media.application.media.uri_normalizer import UriNormalizer
from skola_media.application.models import PDF_CONTENT_TYPE
from skola_media.core.config import settings
from skola_media.core.exceptions import ThumbnailError


logger = logging.getLogger(__name__)


class ThumbnailGenerator:
    """Produces a fixed-width JPEG preview of an image.

    Returns None whenever no usable thumbnail could be made; only a PDF
    request is treated as a programming error.
    """

    def __init__(
        self,
        manipulator: IImageManipulator,
        normalizer: UriNormalizer,
        *,
        width: Optional[int] = None,
    ) -> None:
        self.manipulator = manipulator
        self.normalizer = normalizer
        self.width = width or settings.thumbnail_width

    async def generate_thumbnail(
        self,
        uri: str,
        *,
        object_id: str = "",
        content_type: Optional[str] = None,
    ) -> Optional[str]:
        if (content_type or "").lower() == PDF_CONTENT_TYPE:
            raise ThumbnailError("Thumbnails are not generated for PDF files", uri=uri)

        try:
            resized = await self.manipulator.manipulate(uri, width=self.width, fmt="jpeg")
        except Exception as direct_error:  # noqa: BLE001
            if not self.normalizer.accessor_for(uri).requires_copy:
                logger.error("Thumbnail resize failed for %s: %s", uri, direct_error)
                return None
            logger.info(
                "Direct resize failed for %s, falling back to scratch copy: %s",
                uri,
                direct_error,
            )
            return await self._resize_from_scratch(uri, object_id)

        if not resized or resized == uri:
            # Some platforms hand back the input instead of failing
            logger.warning("Resize returned the original URI; no thumbnail for %s", uri)
            return None
        return resized

    async def _resize_from_scratch(self, uri: str, object_id: str) -> Optional[str]:
        try:
            local = await self.normalizer.normalize(uri, object_id=f"{object_id}_temp")
        except Exception as e:  # noqa: BLE001
            logger.error("Could not copy %s for thumbnailing: %s", uri, e)
            return None

        try:
            for fmt in ("jpeg", "png"):
                try:
                    resized = await self.manipulator.manipulate(
                        local, width=self.width, fmt=fmt
                    )
                except Exception as e:  # noqa: BLE001
                    logger.info("%s resize failed for %s: %s", fmt.upper(), local, e)
                    continue
                if resized and resized not in (local, uri):
                    return resized
            logger.error("All thumbnail attempts failed for %s", uri)
            return None
        finally:
            await self.normalizer.cleanup(local)
