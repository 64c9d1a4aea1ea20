from .chunked_uploader import ChunkedUploadOrchestrator, progress_percent
from .format_converter import FormatConverter
from .object_uploader import ObjectUploader
from .signed_url_resolver import SignedUrlResolver
from .thumbnail_generator import ThumbnailGenerator
from .uri_normalizer import UriNormalizer

__all__ = [
    "ChunkedUploadOrchestrator",
    "FormatConverter",
    "ObjectUploader",
    "SignedUrlResolver",
    "ThumbnailGenerator",
    "UriNormalizer",
    "progress_percent",
]
