from __future__ import annotations

import logging

from skola_media.application.media.format_converter import FormatConverter
from skola_media.application.pipeline.base import BaseStep, PipelineContext


logger = logging.getLogger(__name__)


class ConvertFormatStep(BaseStep):
    """HEIC/HEIF becomes JPEG; every other type passes through.

    Output: upload_uri, upload_content_type
    """

    name = "convert_format"
    required_keys = ["request", "descriptor"]

    def __init__(self, converter: FormatConverter):
        self.converter = converter

    async def run(self, context: PipelineContext) -> None:  # type: ignore[override]
        request = context.get("request")
        descriptor = context.get("descriptor")
        uri, content_type = await self.converter.convert_if_heic(
            descriptor.local_uri,
            descriptor.declared_content_type,
            object_id=request.object_key,
        )
        if uri != descriptor.local_uri:
            logger.info("Converted %s -> %s (%s)", descriptor.local_uri, uri, content_type)
            tracker = context.get("scratch")
            if tracker is not None:
                tracker.track(uri)
        context.set("upload_uri", uri)
        context.set("upload_content_type", content_type)
