from __future__ import annotations

import os
from types import SimpleNamespace

from skola_media.application.interfaces import IMediaPipelineAdapters, IStorageProxy
from skola_media.infrastructure.adapters import (
    CloudFunctionStorageProxy,
    ParseCloudFunctionClient,
    PillowImageManipulator,
    S3StorageProxy,
    SystemClock,
    default_content_resolver,
    select_accessor,
)
from skola_media.core.config import settings


def build_storage_proxy() -> IStorageProxy:
    """Storage backend selected by ``settings.storage_backend``."""
    if settings.storage_backend == "s3":
        return S3StorageProxy()
    return CloudFunctionStorageProxy(ParseCloudFunctionClient(settings.backend_config()))


def get_media_adapter_bundle(
    *,
    scratch_dir: str | None = None,
    storage: IStorageProxy | None = None,
) -> IMediaPipelineAdapters:
    """Concrete adapters for the upload pipeline.

    Converted images, thumbnails and content-handle copies all land in the
    same scratch directory.
    """
    work_dir = scratch_dir or settings.scratch_dir
    os.makedirs(work_dir, exist_ok=True)

    resolver = default_content_resolver()
    return SimpleNamespace(
        storage=storage or build_storage_proxy(),
        image_manipulator=PillowImageManipulator(output_dir=work_dir),
        content_resolver=resolver,
        file_accessor_factory=lambda uri: select_accessor(uri, resolver),
        clock=SystemClock(),
        scratch_dir=work_dir,
    )
