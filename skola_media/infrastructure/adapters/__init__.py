from .clock import SystemClock
from .cloud_storage_proxy import CloudFunctionStorageProxy
from .content_resolvers import (
    CompositeContentResolver,
    HttpContentResolver,
    default_content_resolver,
)
from .file_accessors import ContentHandleAccessor, DirectFileAccessor, select_accessor
from .image_manipulator import PillowImageManipulator
from .parse_cloud_client import ParseCloudFunctionClient
from .progress_observers import (
    CallbackProgressObserver,
    LoggingProgressObserver,
    QueueProgressChannel,
)
from .s3_storage_proxy import S3StorageProxy

__all__ = [
    "SystemClock",
    "CloudFunctionStorageProxy",
    "CompositeContentResolver",
    "HttpContentResolver",
    "default_content_resolver",
    "ContentHandleAccessor",
    "DirectFileAccessor",
    "select_accessor",
    "PillowImageManipulator",
    "ParseCloudFunctionClient",
    "CallbackProgressObserver",
    "LoggingProgressObserver",
    "QueueProgressChannel",
    "S3StorageProxy",
]
