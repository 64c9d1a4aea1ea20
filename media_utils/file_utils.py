"""
File reference helpers shared by the upload components.
"""

import base64
import hashlib
import os
import re
from typing import Optional
from urllib.parse import unquote, urlparse

# Windows drive letters ("C:\...") look like a scheme to urlparse
_DRIVE_RE = re.compile(r"^[a-zA-Z]:[\\/]")


def uri_scheme(uri: str) -> str:
    """Lower-case scheme of ``uri`` or "" for plain paths."""
    if not uri or _DRIVE_RE.match(uri):
        return ""
    return urlparse(uri).scheme.lower()


def is_plain_path(uri: str) -> bool:
    """True for direct file references (bare paths and file:// URIs)."""
    return uri_scheme(uri) in ("", "file")


def uri_to_path(uri: str) -> str:
    """Filesystem path for a direct file reference."""
    if uri_scheme(uri) == "file":
        parsed = urlparse(uri)
        return unquote(parsed.path)
    return uri


def guess_extension(uri: str, default: str = ".jpg") -> str:
    """Extension taken from the last path segment when it looks like one.

    Content handles rarely carry one, so anything longer than four
    characters after the dot is ignored.
    """
    path = urlparse(uri).path if uri_scheme(uri) else uri
    _, ext = os.path.splitext(path)
    if ext and 1 < len(ext) <= 5 and ext[1:].isalnum():
        return ext.lower()
    return default


def hashed_scratch_name(seed: str, extension: str = "") -> str:
    """SHA-256 hex name for a scratch file, keeping ``extension``."""
    digest = hashlib.sha256(seed.encode("utf-8")).hexdigest()
    if extension and not extension.startswith("."):
        extension = f".{extension}"
    return f"{digest}{extension}"


def encode_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def to_data_url(content_type: str, base64_data: str) -> str:
    """``data:<content_type>;base64,<data>`` payload understood by the backend."""
    return f"data:{content_type};base64,{base64_data}"


def split_data_url(payload: str) -> tuple[Optional[str], str]:
    """Return (content_type, base64_data); plain base64 yields (None, payload)."""
    if payload.startswith("data:") and ";base64," in payload:
        header, data = payload.split(";base64,", 1)
        return header[len("data:"):] or None, data
    return None, payload
