from __future__ import annotations

from skola_media.application.media.object_uploader import ObjectUploader
from skola_media.application.pipeline.base import BaseStep, PipelineContext


class UploadOriginalStep(BaseStep):
    """Failures here fail the whole attachment upload.

    Output: original_result
    """

    name = "upload_original"
    required_keys = ["request", "upload_uri", "upload_content_type"]

    def __init__(self, uploader: ObjectUploader):
        self.uploader = uploader

    async def run(self, context: PipelineContext) -> None:  # type: ignore[override]
        request = context.get("request")
        result = await self.uploader.upload(
            request.object_key,
            context.get("upload_uri"),
            context.get("upload_content_type"),
        )
        context.set("original_result", result)
