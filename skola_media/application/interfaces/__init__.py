from .cloud_functions import ICloudFunctionClient
from .storage_proxy import IStorageProxy
from .file_accessor import ILocalFileAccessor
from .content_resolver import IContentResolver
from .image_manipulator import IImageManipulator
from .progress import IProgressObserver
from .utils import IClock
from .media_adapters import IMediaPipelineAdapters

__all__ = [
    "ICloudFunctionClient",
    "IStorageProxy",
    "ILocalFileAccessor",
    "IContentResolver",
    "IImageManipulator",
    "IProgressObserver",
    "IClock",
    "IMediaPipelineAdapters",
]
