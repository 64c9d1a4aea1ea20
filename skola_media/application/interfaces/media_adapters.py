from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

from .storage_proxy import IStorageProxy
from .image_manipulator import IImageManipulator
from .content_resolver import IContentResolver
from .file_accessor import ILocalFileAccessor
from .utils import IClock


@runtime_checkable
class IMediaPipelineAdapters(Protocol):
    storage: IStorageProxy
    image_manipulator: IImageManipulator
    content_resolver: IContentResolver
    file_accessor_factory: Callable[[str], ILocalFileAccessor]
    clock: IClock
    scratch_dir: str
