from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from skola_media.application.interfaces.storage_proxy import IStorageProxy
from skola_media.core.config import settings
from skola_media.core.exceptions import ConfigurationError
from skola_media.core.pyd_schemas import ApiResponse
from media_utils.file_utils import split_data_url


logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound", "NoSuchUpload"}


class S3StorageProxy(IStorageProxy):
    """Same storage surface as the cloud functions, served straight from S3.

    Meant for tooling that holds bucket credentials. Answers use the same
    ``ApiResponse`` envelope so the upload components cannot tell the two
    backends apart.
    """

    def __init__(
        self,
        *,
        bucket: Optional[str] = None,
        legacy_bucket: Optional[str] = None,
        region: Optional[str] = None,
        client: Any = None,
        signed_url_ttl: Optional[int] = None,
    ) -> None:
        self.bucket = bucket or settings.aws_s3_bucket
        self.legacy_bucket = legacy_bucket or settings.aws_s3_legacy_bucket or self.bucket
        self.region = region or settings.aws_s3_region
        self.signed_url_ttl = signed_url_ttl or settings.aws_s3_signed_url_ttl
        if not self.bucket:
            raise ConfigurationError("S3 bucket is not configured", config_key="aws_s3_bucket")
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                aws_access_key_id=settings.aws_access_key_id or None,
                aws_secret_access_key=settings.aws_secret_access_key or None,
            )
        return self._client

    async def _run(self, fn: Callable[[], Dict[str, Any]], op: str) -> ApiResponse:
        """Run a blocking boto3 call in a worker thread and wrap the outcome."""
        try:
            data = await asyncio.to_thread(fn)
            return ApiResponse.ok(data)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            message = str(e.response.get("Error", {}).get("Message", "")) or str(e)
            logger.warning("S3 %s failed: %s %s", op, code, message)
            if code in _NOT_FOUND_CODES:
                return ApiResponse.fail("NOT_FOUND", message)
            if code in ("AccessDenied", "403"):
                return ApiResponse.fail("UNAUTHORIZED", message)
            return ApiResponse.fail("S3_ERROR", message)
        except BotoCoreError as e:
            logger.error("S3 %s failed: %s", op, e)
            return ApiResponse.fail("S3_ERROR", str(e))

    @staticmethod
    def _decode(payload: str) -> Optional[bytes]:
        _, data = split_data_url(payload)
        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError):
            return None

    async def upload_object(
        self, object_key: str, base64_payload: str, content_type: str
    ) -> Optional[ApiResponse]:
        if not object_key or not base64_payload:
            return ApiResponse.fail("INVALID_PARAMS", "objectKey and payload are required")
        body = self._decode(base64_payload)
        if body is None:
            return ApiResponse.fail("INVALID_PARAMS", "Payload is not valid base64")

        def _put() -> Dict[str, Any]:
            resp = self.client.put_object(
                Bucket=self.bucket, Key=object_key, Body=body, ContentType=content_type
            )
            etag = resp.get("ETag")
            return {
                "objectKey": object_key,
                "size": len(body),
                "contentType": content_type,
                "uploadedAt": datetime.now(timezone.utc).isoformat(),
                "etag": etag.strip('"') if isinstance(etag, str) else None,
                "bucket": self.bucket,
            }

        return await self._run(_put, "put_object")

    async def _signed_url(self, bucket: str, object_key: str) -> ApiResponse:
        ttl = int(self.signed_url_ttl)

        def _presign() -> Dict[str, Any]:
            # Presigning never checks existence, so ask S3 first
            self.client.head_object(Bucket=bucket, Key=object_key)
            url = self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": object_key},
                ExpiresIn=ttl,
            )
            expires_at = datetime.now(timezone.utc) + timedelta(seconds=ttl)
            return {
                "signedUrl": url,
                "expiresAt": expires_at.isoformat(),
                "expiresIn": ttl,
                "objectKey": object_key,
            }

        return await self._run(_presign, "presign")

    async def get_signed_url(self, object_key: str) -> Optional[ApiResponse]:
        return await self._signed_url(self.bucket, object_key)

    async def get_signed_url_legacy(self, object_key: str) -> Optional[ApiResponse]:
        return await self._signed_url(self.legacy_bucket, object_key)

    async def initiate_multipart_upload(
        self, object_key: str, content_type: str
    ) -> Optional[ApiResponse]:
        def _create() -> Dict[str, Any]:
            resp = self.client.create_multipart_upload(
                Bucket=self.bucket, Key=object_key, ContentType=content_type
            )
            return {"uploadId": resp["UploadId"]}

        return await self._run(_create, "create_multipart_upload")

    async def upload_part(
        self,
        object_key: str,
        upload_id: str,
        part_number: int,
        data: str,
        content_type: str,
    ) -> Optional[ApiResponse]:
        body = self._decode(data)
        if body is None:
            return ApiResponse.fail("INVALID_PARAMS", "Chunk is not valid base64")

        def _upload() -> Dict[str, Any]:
            resp = self.client.upload_part(
                Bucket=self.bucket,
                Key=object_key,
                UploadId=upload_id,
                PartNumber=part_number,
                Body=body,
            )
            return {"PartNumber": part_number, "ETag": resp["ETag"]}

        return await self._run(_upload, "upload_part")

    async def complete_multipart_upload(
        self, object_key: str, upload_id: str, parts: List[Dict[str, Any]]
    ) -> Optional[ApiResponse]:
        def _complete() -> Dict[str, Any]:
            resp = self.client.complete_multipart_upload(
                Bucket=self.bucket,
                Key=object_key,
                UploadId=upload_id,
                MultipartUpload={
                    "Parts": [
                        {"PartNumber": p["PartNumber"], "ETag": p["ETag"]} for p in parts
                    ]
                },
            )
            return {"location": resp.get("Location")}

        return await self._run(_complete, "complete_multipart_upload")

    async def abort_multipart_upload(
        self, object_key: str, upload_id: str
    ) -> Optional[ApiResponse]:
        def _abort() -> Dict[str, Any]:
            self.client.abort_multipart_upload(
                Bucket=self.bucket, Key=object_key, UploadId=upload_id
            )
            return {}

        return await self._run(_abort, "abort_multipart_upload")
