from __future__ import annotations

import logging

from skola_media.application.media.object_uploader import ObjectUploader
from skola_media.application.media.thumbnail_generator import ThumbnailGenerator
from skola_media.application.models import JPEG_CONTENT_TYPE, thumbnail_key_for
from skola_media.application.pipeline.base import BaseStep, PipelineContext


logger = logging.getLogger(__name__)


class UploadThumbnailStep(BaseStep):
    """Best-effort preview upload under the derived ``resized-`` key.

    Never raises: any failure leaves ``thumbnail_result`` as None.
    """

    name = "upload_thumbnail"
    required_keys = ["request", "descriptor", "upload_uri", "original_result"]

    def __init__(self, thumbnails: ThumbnailGenerator, uploader: ObjectUploader):
        self.thumbnails = thumbnails
        self.uploader = uploader

    def can_skip(self, context: PipelineContext) -> bool:
        request = context.get("request")
        descriptor = context.get("descriptor")
        if not request.want_thumbnail or descriptor.is_pdf:
            context.set("thumbnail_result", None)
            return True
        return False

    async def run(self, context: PipelineContext) -> None:  # type: ignore[override]
        context.set("thumbnail_result", None)
        request = context.get("request")
        source = context.get("upload_uri")
        thumb_key = thumbnail_key_for(request.object_key)
        try:
            resized = await self.thumbnails.generate_thumbnail(
                source,
                object_id=request.object_key,
                content_type=context.get("upload_content_type"),
            )
            if not resized or resized == source:
                logger.info("No thumbnail produced for %s", request.object_key)
                return
            tracker = context.get("scratch")
            if tracker is not None:
                tracker.track(resized)
            result = await self.uploader.upload(thumb_key, resized, JPEG_CONTENT_TYPE)
        except Exception as e:  # noqa: BLE001
            logger.error("Thumbnail upload for %s failed: %s", request.object_key, e)
            return
        context.set("thumbnail_result", result)
