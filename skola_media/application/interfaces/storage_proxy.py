from __future__ import annotations
from typing import Any, Dict, List, Optional, Protocol

from skola_media.core.pyd_schemas import ApiResponse


class IStorageProxy(Protocol):
    """Object-storage operations exposed by the backend.

    Every call returns the standard ``ApiResponse`` envelope, or None when
    no response was received at all.
    """

    async def upload_object(
        self, object_key: str, base64_payload: str, content_type: str
    ) -> Optional[ApiResponse]:
        ...

    async def get_signed_url(self, object_key: str) -> Optional[ApiResponse]:
        ...

    async def get_signed_url_legacy(self, object_key: str) -> Optional[ApiResponse]:
        ...

    async def initiate_multipart_upload(
        self, object_key: str, content_type: str
    ) -> Optional[ApiResponse]:
        ...

    async def upload_part(
        self,
        object_key: str,
        upload_id: str,
        part_number: int,
        data: str,
        content_type: str,
    ) -> Optional[ApiResponse]:
        ...

    async def complete_multipart_upload(
        self, object_key: str, upload_id: str, parts: List[Dict[str, Any]]
    ) -> Optional[ApiResponse]:
        ...

    async def abort_multipart_upload(
        self, object_key: str, upload_id: str
    ) -> Optional[ApiResponse]:
        ...
