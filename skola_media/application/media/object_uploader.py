from __future__ import annotations

import asyncio
import logging

from pydantic import ValidationError

from skola_media.application.interfaces.storage_proxy import IStorageProxy
from skola_media.application.media.uri_normalizer import UriNormalizer
from skola_media.application.models import UploadResult
from skola_media.core.config import settings
from skola_media.core.exceptions import CloudFunctionError, FileAccessError, UploadError
from skola_media.core.messages import get_error_message
from skola_media.core.pyd_schemas import UploadObjectData
from media_utils.file_utils import to_data_url


logger = logging.getLogger(__name__)


class ObjectUploader:
    """Uploads a whole file as one base64 data URL through the storage proxy."""

    def __init__(self, storage: IStorageProxy, normalizer: UriNormalizer) -> None:
        self.storage = storage
        self.normalizer = normalizer

    async def upload(self, object_key: str, local_uri: str, content_type: str) -> UploadResult:
        local_path = await self.normalizer.normalize(local_uri, object_id=object_key)
        copied = local_path != local_uri
        try:
            return await self._upload_local(object_key, local_path, content_type)
        finally:
            if copied:
                await self.normalizer.cleanup(local_path)

    async def _upload_local(
        self, object_key: str, local_path: str, content_type: str
    ) -> UploadResult:
        accessor = self.normalizer.accessor_for(local_path)
        size = await accessor.size(local_path)
        if size < 0:
            raise FileAccessError("File not found", path=local_path)
        if size == 0:
            raise FileAccessError("File is empty", path=local_path)

        payload = to_data_url(content_type, await accessor.read_base64(local_path))
        logger.info("Uploading %s (%d bytes, %s)", object_key, size, content_type)

        try:
            response = await asyncio.wait_for(
                self.storage.upload_object(object_key, payload, content_type),
                timeout=settings.upload_object_timeout,
            )
        except asyncio.TimeoutError as e:
            raise UploadError(
                f"Upload timeout after {settings.upload_object_timeout}s",
                object_key=object_key,
            ) from e
        except CloudFunctionError as e:
            raise UploadError(str(e), object_key=object_key) from e

        if response is None:
            raise UploadError(get_error_message(None), object_key=object_key)
        if not response.success:
            code = response.error_code
            message = response.error.message if response.error else None
            raise UploadError(
                get_error_message(code, message), object_key=object_key, error_code=code
            )

        data = None
        if isinstance(response.data, dict):
            try:
                data = UploadObjectData.model_validate(response.data)
            except ValidationError:
                logger.debug("Upload of %s returned no object metadata", object_key)

        logger.info("Uploaded %s", object_key)
        return UploadResult(
            storage_key=data.object_key if data else object_key,
            byte_size=data.size if data and data.size else size,
            content_type=(data.content_type if data and data.content_type else content_type),
            remote_etag=data.etag if data else None,
            bucket=data.bucket if data else None,
            uploaded_at=data.uploaded_at if data else None,
        )
