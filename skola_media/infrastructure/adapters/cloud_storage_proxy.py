from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from skola_media.application.interfaces.cloud_functions import ICloudFunctionClient
from skola_media.application.interfaces.storage_proxy import IStorageProxy
from skola_media.core.config import settings
from skola_media.core.pyd_schemas import (
    ApiResponse,
    CompleteMultipartRequest,
    PartDescriptor,
)


logger = logging.getLogger(__name__)


# Cloud function names registered on the backend
UPLOAD_OBJECT_FN = "uploadAWSS3Object"
SIGNED_URL_FN = "getAWSS3SignedUrl"
SIGNED_URL_LEGACY_FN = "getOLDAWSS3SignedUrl"
INITIATE_MULTIPART_FN = "initiateMultipartUpload"
UPLOAD_PART_FN = "uploadPart"
COMPLETE_MULTIPART_FN = "completeMultipartUpload"
ABORT_MULTIPART_FN = "abortMultipartUpload"


class CloudFunctionStorageProxy(IStorageProxy):
    """Object storage through the backend's S3 cloud functions."""

    def __init__(self, client: ICloudFunctionClient) -> None:
        self.client = client

    async def _call(
        self, name: str, params: Dict[str, Any], timeout: Optional[float]
    ) -> Optional[ApiResponse]:
        raw = await self.client.run(name, params, timeout=timeout)
        if raw is None:
            return None
        try:
            return ApiResponse.model_validate(raw)
        except ValidationError as e:
            logger.warning("Cloud function %s returned a malformed envelope: %s", name, e)
            return None

    async def upload_object(
        self, object_key: str, base64_payload: str, content_type: str
    ) -> Optional[ApiResponse]:
        return await self._call(
            UPLOAD_OBJECT_FN,
            {
                "objectKey": object_key,
                "imageBase64": base64_payload,
                "contentType": content_type,
            },
            settings.upload_object_timeout,
        )

    async def get_signed_url(self, object_key: str) -> Optional[ApiResponse]:
        return await self._call(
            SIGNED_URL_FN, {"objectKey": object_key}, settings.signed_url_timeout
        )

    async def get_signed_url_legacy(self, object_key: str) -> Optional[ApiResponse]:
        return await self._call(
            SIGNED_URL_LEGACY_FN, {"objectKey": object_key}, settings.signed_url_timeout
        )

    async def initiate_multipart_upload(
        self, object_key: str, content_type: str
    ) -> Optional[ApiResponse]:
        return await self._call(
            INITIATE_MULTIPART_FN,
            {"objectKey": object_key, "contentType": content_type},
            settings.session_call_timeout,
        )

    async def upload_part(
        self,
        object_key: str,
        upload_id: str,
        part_number: int,
        data: str,
        content_type: str,
    ) -> Optional[ApiResponse]:
        return await self._call(
            UPLOAD_PART_FN,
            {
                "objectKey": object_key,
                "uploadId": upload_id,
                "partNumber": part_number,
                "data": data,
                "contentType": content_type,
            },
            settings.chunk_upload_timeout,
        )

    async def complete_multipart_upload(
        self, object_key: str, upload_id: str, parts: List[Dict[str, Any]]
    ) -> Optional[ApiResponse]:
        request = CompleteMultipartRequest(
            object_key=object_key,
            upload_id=upload_id,
            parts=[PartDescriptor.model_validate(p) for p in parts],
        )
        return await self._call(
            COMPLETE_MULTIPART_FN,
            request.model_dump(by_alias=True),
            settings.session_call_timeout,
        )

    async def abort_multipart_upload(
        self, object_key: str, upload_id: str
    ) -> Optional[ApiResponse]:
        return await self._call(
            ABORT_MULTIPART_FN,
            {"objectKey": object_key, "uploadId": upload_id},
            settings.session_call_timeout,
        )
