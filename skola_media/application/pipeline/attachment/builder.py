from __future__ import annotations

from skola_media.application.interfaces import IMediaPipelineAdapters
from skola_media.application.media import (
    FormatConverter,
    ObjectUploader,
    ThumbnailGenerator,
    UriNormalizer,
)
from skola_media.application.pipeline.attachment.steps.convert_format import (
    ConvertFormatStep,
)
from skola_media.application.pipeline.attachment.steps.upload_original import (
    UploadOriginalStep,
)
from skola_media.application.pipeline.attachment.steps.upload_thumbnail import (
    UploadThumbnailStep,
)
from skola_media.application.pipeline.attachment.steps.validate_request import (
    ValidateRequestStep,
)
from skola_media.application.pipeline.base import Pipeline, make_logging_middleware
from skola_media.application.pipeline.factory import PipelineFactory


def build_attachment_pipeline(
    adapters: IMediaPipelineAdapters,
    *,
    normalizer: UriNormalizer | None = None,
    enable_logging_middleware: bool = True,
) -> Pipeline:
    """validate -> convert -> upload original -> (optional) upload thumbnail"""
    normalizer = normalizer or UriNormalizer(
        adapters.file_accessor_factory,
        scratch_dir=adapters.scratch_dir,
        clock=adapters.clock,
    )
    uploader = ObjectUploader(adapters.storage, normalizer)

    middlewares = [make_logging_middleware()] if enable_logging_middleware else []
    factory = PipelineFactory(middlewares=middlewares, fail_fast=True)
    factory.add(ValidateRequestStep())
    factory.add(
        ConvertFormatStep(FormatConverter(adapters.image_manipulator, normalizer=normalizer))
    )
    factory.add(UploadOriginalStep(uploader))
    factory.add(
        UploadThumbnailStep(ThumbnailGenerator(adapters.image_manipulator, normalizer), uploader)
    )
    return factory.build()
