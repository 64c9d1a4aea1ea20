from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from skola_media.application.interfaces.content_resolver import IContentResolver
from skola_media.core.exceptions import FileAccessError
from media_utils.download_utils import download_file
from media_utils.file_utils import uri_scheme


logger = logging.getLogger(__name__)


class HttpContentResolver(IContentResolver):
    """Resolves http(s) handles (e.g. asset-library URLs) by downloading them."""

    schemes = ("http", "https")

    def __init__(self, headers: Optional[Dict[str, str]] = None) -> None:
        self.headers = headers

    def supports(self, uri: str) -> bool:
        return uri_scheme(uri) in self.schemes

    async def copy_to(self, uri: str, dest_path: str) -> str:
        path = await download_file(uri, dest_path, headers=self.headers)
        if path is None:
            raise FileAccessError(f"Could not fetch content from {uri}", path=dest_path)
        return path


class CompositeContentResolver(IContentResolver):
    """Dispatches to the first registered resolver that supports the URI.

    Platform integrations register their own resolvers (for example one that
    reads ``content://`` handles through a device bridge).
    """

    def __init__(self, resolvers: Iterable[IContentResolver] = ()) -> None:
        self._resolvers = list(resolvers)

    def register(self, resolver: IContentResolver) -> "CompositeContentResolver":
        self._resolvers.append(resolver)
        return self

    def supports(self, uri: str) -> bool:
        return any(r.supports(uri) for r in self._resolvers)

    async def copy_to(self, uri: str, dest_path: str) -> str:
        for resolver in self._resolvers:
            if resolver.supports(uri):
                return await resolver.copy_to(uri, dest_path)
        logger.error("No content resolver registered for %s", uri)
        raise FileAccessError(
            f"Unsupported content handle scheme '{uri_scheme(uri)}'", path=uri
        )


def default_content_resolver() -> CompositeContentResolver:
    return CompositeContentResolver([HttpContentResolver()])
