from __future__ import annotations

import asyncio
import logging
from typing import Optional

from skola_media.application.interfaces.media_adapters import IMediaPipelineAdapters
from skola_media.application.media import (
    ChunkedUploadOrchestrator,
    ObjectUploader,
    SignedUrlResolver,
    UriNormalizer,
)
from skola_media.application.media.chunked_uploader import ProgressSink
from skola_media.application.models import AttachmentUploadResult, UploadResult
from skola_media.application.pipeline.attachment.builder import build_attachment_pipeline
from skola_media.application.pipeline.base import PipelineContext
from skola_media.core.config import settings
from skola_media.core.messages import describe_failure
from media_utils.resource_manager import managed_scratch


logger = logging.getLogger(__name__)

__all__ = ["UploadCoordinator", "describe_failure"]


class UploadCoordinator:
    """Entry point for screens: one call per attachment or video."""

    def __init__(self, adapters: IMediaPipelineAdapters) -> None:
        self._adapters = adapters
        self.normalizer = UriNormalizer(
            adapters.file_accessor_factory,
            scratch_dir=adapters.scratch_dir,
            clock=adapters.clock,
        )

    async def upload_attachment(
        self,
        object_key: str,
        local_uri: str,
        content_type: str,
        want_thumbnail: bool = False,
    ) -> AttachmentUploadResult:
        async with managed_scratch() as tracker:
            ctx = PipelineContext(
                input={
                    "object_key": object_key,
                    "local_uri": local_uri,
                    "content_type": content_type,
                    "want_thumbnail": want_thumbnail,
                }
            )
            ctx.set_run_id(object_key)
            ctx.set("scratch", tracker)

            pipeline = build_attachment_pipeline(self._adapters, normalizer=self.normalizer)
            result = await pipeline.execute(ctx)
            ctx = result["context"]

            return AttachmentUploadResult(
                original=ctx.get("original_result"),
                thumbnail=ctx.get("thumbnail_result"),
            )

    async def upload_video(
        self,
        object_key: str,
        local_uri: str,
        content_type: str = "video/mp4",
        *,
        progress: Optional[ProgressSink] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> UploadResult:
        """Chunked upload above the size threshold, single object below it.

        Content handles always take the chunked path since their size is
        only known after copying.
        """
        accessor = self.normalizer.accessor_for(local_uri)
        size = -1 if accessor.requires_copy else await accessor.size(local_uri)

        if 0 <= size <= settings.chunked_upload_threshold_bytes:
            logger.info("Video %s is small (%d bytes); single upload", object_key, size)
            return await ObjectUploader(self._adapters.storage, self.normalizer).upload(
                object_key, local_uri, content_type
            )

        orchestrator = ChunkedUploadOrchestrator(self._adapters.storage, self.normalizer)
        multipart = await orchestrator.upload(
            object_key,
            local_uri,
            content_type,
            progress=progress,
            cancel_event=cancel_event,
        )
        return UploadResult(
            storage_key=multipart.object_key,
            byte_size=multipart.byte_size,
            content_type=content_type,
            location=multipart.location,
        )

    async def resolve_url(
        self, object_key: str, prefer_thumbnail: bool = False, *, legacy: bool = False
    ) -> str:
        return await SignedUrlResolver(self._adapters.storage).resolve_url(
            object_key, prefer_thumbnail, legacy=legacy
        )
