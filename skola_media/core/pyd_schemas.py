from __future__ import annotations

from typing import Any, Generic, List, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


T = TypeVar("T")


class ApiErrorBody(BaseModel):
    code: str = ""
    message: str = ""


class ApiResponse(BaseModel, Generic[T]):
    """Standard envelope returned by every storage cloud function."""

    success: bool = False
    data: Optional[T] = None
    error: Optional[ApiErrorBody] = None

    model_config = ConfigDict(extra="ignore")

    @property
    def error_code(self) -> Optional[str]:
        return self.error.code if self.error else None

    @classmethod
    def ok(cls, data: Any = None) -> "ApiResponse":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: str, message: str = "") -> "ApiResponse":
        return cls(success=False, error=ApiErrorBody(code=code, message=message))


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class UploadObjectData(_WireModel):
    object_key: str = Field(alias="objectKey")
    size: int = 0
    content_type: str = Field(default="", alias="contentType")
    uploaded_at: Optional[str] = Field(default=None, alias="uploadedAt")
    etag: Optional[str] = None
    bucket: Optional[str] = None


class SignedUrlData(_WireModel):
    signed_url: str = Field(alias="signedUrl")
    expires_at: Optional[str] = Field(default=None, alias="expiresAt")
    expires_in: Optional[int] = Field(default=None, alias="expiresIn")
    object_key: Optional[str] = Field(default=None, alias="objectKey")


class InitiateMultipartData(_WireModel):
    upload_id: str = Field(alias="uploadId")


class UploadPartData(_WireModel):
    # The backend answers with S3-style capitalized names
    part_number: int = Field(validation_alias=AliasChoices("PartNumber", "partNumber"))
    etag: str = Field(validation_alias=AliasChoices("ETag", "eTag", "etag"))


class CompleteMultipartData(_WireModel):
    location: Optional[str] = None


class PartDescriptor(_WireModel):
    part_number: int = Field(alias="PartNumber")
    etag: str = Field(alias="ETag")


class CompleteMultipartRequest(_WireModel):
    object_key: str = Field(alias="objectKey")
    upload_id: str = Field(alias="uploadId")
    parts: List[PartDescriptor]


class AttachmentRequest(BaseModel):
    """Input of one attachment upload run."""

    object_key: str = Field(min_length=1)
    local_uri: str = Field(min_length=1)
    content_type: str = Field(min_length=1)
    want_thumbnail: bool = False

    model_config = ConfigDict(str_strip_whitespace=True)
