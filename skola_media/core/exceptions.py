"""
Custom error types for the media upload pipeline
"""

from typing import Optional


class MediaUploadError(Exception):
    """Base exception for media upload errors"""

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class FileAccessError(MediaUploadError):
    """Local file missing, empty or unreadable after normalization.

    Args:
        message (str): Error message
        path (Optional[str]): The path that was attempted
    Example:
        raise FileAccessError("Copied file is empty", path="/tmp/abc.pdf")
    """

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, "FILE_ACCESS_ERROR")
        self.path = path


class FormatConversionError(MediaUploadError):
    """Exception raised when HEIC/HEIF transcoding fails"""

    def __init__(self, message: str, uri: Optional[str] = None):
        super().__init__(message, "FORMAT_CONVERSION_ERROR")
        self.uri = uri


class ThumbnailError(MediaUploadError):
    """Exception raised when a thumbnail cannot be produced"""

    def __init__(self, message: str, uri: Optional[str] = None):
        super().__init__(message, "THUMBNAIL_ERROR")
        self.uri = uri


class UploadError(MediaUploadError):
    """The object-storage proxy returned a structured failure or no response"""

    def __init__(
        self,
        reason: str,
        object_key: Optional[str] = None,
        error_code: Optional[str] = None,
    ):
        super().__init__(reason, error_code or "UPLOAD_ERROR")
        self.reason = reason
        self.object_key = object_key


class ChunkUploadError(UploadError):
    """A video chunk failed after exhausting its retry budget"""

    def __init__(
        self,
        part_number: int,
        object_key: Optional[str] = None,
        attempts: int = 0,
        last_error: Optional[BaseException] = None,
    ):
        msg = f"Failed to upload part {part_number} after {attempts} attempts"
        if last_error is not None:
            msg = f"{msg}: {last_error}"
        super().__init__(msg, object_key=object_key, error_code="CHUNK_UPLOAD_ERROR")
        self.part_number = part_number
        self.attempts = attempts
        self.last_error = last_error


class UploadCancelledError(UploadError):
    """Raised when a chunked upload is cancelled through its cancel signal"""

    def __init__(self, object_key: Optional[str] = None, part_number: int = 0):
        super().__init__(
            f"Upload cancelled before part {part_number}",
            object_key=object_key,
            error_code="UPLOAD_CANCELLED",
        )
        self.part_number = part_number


class SignedUrlError(MediaUploadError):
    """Signed URL issuance failed"""

    def __init__(
        self,
        message: str,
        object_key: Optional[str] = None,
        error_code: Optional[str] = None,
    ):
        super().__init__(message, error_code or "SIGNED_URL_ERROR")
        self.object_key = object_key

    @property
    def is_not_found(self) -> bool:
        return self.error_code == "NOT_FOUND"


class CloudFunctionError(MediaUploadError):
    """Transport or Parse-level failure while running a cloud function"""

    def __init__(
        self,
        message: str,
        function_name: Optional[str] = None,
        code: Optional[int] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message, "CLOUD_FUNCTION_ERROR")
        self.function_name = function_name
        self.code = code
        self.status = status


class ConfigurationError(MediaUploadError):
    """Exception raised when configuration is invalid"""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message, "CONFIGURATION_ERROR")
        self.config_key = config_key
