from __future__ import annotations

import asyncio
import logging
from typing import Optional

from pydantic import ValidationError

from skola_media.application.interfaces.storage_proxy import IStorageProxy
from skola_media.application.models import SignedUrl, thumbnail_key_for
from skola_media.core.exceptions import CloudFunctionError, SignedUrlError
from skola_media.core.messages import get_error_message
from skola_media.core.pyd_schemas import SignedUrlData


logger = logging.getLogger(__name__)


class SignedUrlResolver:
    """Issues time-limited read URLs, preferring the thumbnail when asked."""

    def __init__(self, storage: IStorageProxy) -> None:
        self.storage = storage

    async def resolve(
        self,
        object_key: str,
        prefer_thumbnail: bool = False,
        *,
        legacy: bool = False,
    ) -> SignedUrl:
        if not object_key:
            raise SignedUrlError("No object key provided", error_code="INVALID_PARAMS")

        if prefer_thumbnail:
            thumb_key = thumbnail_key_for(object_key)
            try:
                return await self._issue(thumb_key, legacy)
            except SignedUrlError as e:
                if not e.is_not_found:
                    raise
                logger.info("No thumbnail for %s, using the original", object_key)

        return await self._issue(object_key, legacy)

    async def resolve_url(
        self,
        object_key: str,
        prefer_thumbnail: bool = False,
        *,
        legacy: bool = False,
    ) -> str:
        signed = await self.resolve(object_key, prefer_thumbnail, legacy=legacy)
        return signed.url

    async def _issue(self, object_key: str, legacy: bool) -> SignedUrl:
        call = (
            self.storage.get_signed_url_legacy(object_key)
            if legacy
            else self.storage.get_signed_url(object_key)
        )
        try:
            response = await call
        except (CloudFunctionError, asyncio.TimeoutError) as e:
            raise SignedUrlError(
                f"Signed URL request failed: {e}", object_key=object_key
            ) from e

        if response is None:
            raise SignedUrlError(get_error_message(None), object_key=object_key)
        if not response.success:
            code = response.error_code
            message = response.error.message if response.error else None
            raise SignedUrlError(
                get_error_message(code, message), object_key=object_key, error_code=code
            )

        try:
            data = SignedUrlData.model_validate(response.data or {})
        except ValidationError as e:
            raise SignedUrlError(
                "Signed URL missing from server response", object_key=object_key
            ) from e

        return SignedUrl(
            url=data.signed_url,
            object_key=data.object_key or object_key,
            expires_at=data.expires_at,
            expires_in=data.expires_in,
        )
