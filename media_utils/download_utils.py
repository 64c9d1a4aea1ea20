"""
Download utility functions.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional, Union

import aiofiles
import aiohttp

from skola_media.core.config import settings

logger = logging.getLogger(__name__)


async def download_file(
    url: str,
    destination: Union[str, Path],
    *,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> Optional[str]:
    """
    Download a file from URL to an exact destination path.

    Args:
        url: Source URL to download from
        destination: Local file path to write (parent folders are created)
        headers: Optional request headers (e.g. auth for private handles)
        timeout: Total timeout in seconds, defaults to settings.download_timeout

    Returns:
        Path to the downloaded file or None if download fails
    """
    dest_path = str(destination)
    parent = os.path.dirname(dest_path)
    if parent:
        os.makedirs(parent, exist_ok=True)

    result = await _download_file_internal(
        url, dest_path, headers=headers, timeout=timeout
    )
    if not result["success"]:
        logger.debug("Failed to download %s: %s", url, result["error"])
        return None

    return dest_path


async def _download_file_internal(
    url: str,
    dest_path: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> dict:
    """Internal function to stream a single file to disk"""
    try:
        client_timeout = aiohttp.ClientTimeout(
            total=timeout if timeout is not None else settings.download_timeout
        )
        async with aiohttp.ClientSession(timeout=client_timeout) as session:
            async with session.get(url, headers=headers) as response:
                response.raise_for_status()

                async with aiofiles.open(dest_path, "wb") as f:
                    async for chunk in response.content.iter_chunked(64 * 1024):
                        await f.write(chunk)

                logger.debug("Downloaded %s to %s", url, dest_path)
                return {"success": True, "local_path": dest_path}

    except aiohttp.ClientError as e:
        logger.error("Failed to download %s: %s", url, str(e))
        return {"success": False, "error": f"Failed to download {url}: {e}"}
    except (OSError, IOError) as e:
        logger.error("File operation error downloading %s: %s", url, str(e))
        return {
            "success": False,
            "error": f"File operation error downloading {url}: {e}",
        }
