"""
Shared fixtures and fakes for the upload pipeline tests.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

from skola_media.core.config import settings
from skola_media.core.pyd_schemas import ApiResponse
from skola_media.infrastructure.adapters.file_accessors import select_accessor


def setup_logging() -> None:
    formatter = logging.Formatter(
        "[%(asctime)s] %(levelname)-8s [%(name)s:%(lineno)d] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.addHandler(console_handler)

    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)
    logging.getLogger("skola_media").setLevel(logging.DEBUG)


def pytest_configure(config):  # pylint: disable=unused-argument
    setup_logging()


class FakeStorageProxy:
    """In-memory storage proxy that records every call.

    ``part_failures`` maps a part number to how many times it should fail
    before succeeding.
    """

    def __init__(self) -> None:
        self.calls: List[tuple] = []
        self.objects: Dict[str, Dict[str, Any]] = {}
        self.part_failures: Dict[int, int] = {}
        self.upload_response: Optional[ApiResponse] = None
        self.missing_keys: set = set()
        self.signed_url_error: Optional[str] = None
        self.initiate_response: Optional[ApiResponse] = None
        self.complete_response: Optional[ApiResponse] = None
        self.abort_raises: Optional[Exception] = None

    def names(self) -> List[str]:
        return [c[0] for c in self.calls]

    def calls_to(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]

    async def upload_object(self, object_key, base64_payload, content_type):
        self.calls.append(("upload_object", object_key, base64_payload, content_type))
        if self.upload_response is not None:
            return self.upload_response
        self.objects[object_key] = {"payload": base64_payload, "content_type": content_type}
        return ApiResponse.ok(
            {
                "objectKey": object_key,
                "size": 4,
                "contentType": content_type,
                "uploadedAt": "2026-01-01T00:00:00Z",
                "etag": "etag-" + object_key,
                "bucket": "skola-test",
            }
        )

    async def _signed(self, name, object_key):
        self.calls.append((name, object_key))
        if self.signed_url_error:
            return ApiResponse.fail(self.signed_url_error, "boom")
        if object_key in self.missing_keys:
            return ApiResponse.fail("NOT_FOUND", "missing")
        return ApiResponse.ok(
            {
                "signedUrl": f"https://cdn.test/{object_key}?sig=1",
                "expiresAt": "2026-01-01T00:15:00Z",
                "expiresIn": 900,
                "objectKey": object_key,
            }
        )

    async def get_signed_url(self, object_key):
        return await self._signed("get_signed_url", object_key)

    async def get_signed_url_legacy(self, object_key):
        return await self._signed("get_signed_url_legacy", object_key)

    async def initiate_multipart_upload(self, object_key, content_type):
        self.calls.append(("initiate", object_key, content_type))
        if self.initiate_response is not None:
            return self.initiate_response
        return ApiResponse.ok({"uploadId": "upload-1"})

    async def upload_part(self, object_key, upload_id, part_number, data, content_type):
        self.calls.append(("upload_part", object_key, upload_id, part_number, data, content_type))
        remaining = self.part_failures.get(part_number, 0)
        if remaining > 0:
            self.part_failures[part_number] = remaining - 1
            return ApiResponse.fail("S3_ERROR", "transient")
        return ApiResponse.ok({"PartNumber": part_number, "ETag": f'"etag-{part_number}"'})

    async def complete_multipart_upload(self, object_key, upload_id, parts):
        self.calls.append(("complete", object_key, upload_id, parts))
        if self.complete_response is not None:
            return self.complete_response
        return ApiResponse.ok({"location": f"https://bucket.test/{object_key}"})

    async def abort_multipart_upload(self, object_key, upload_id):
        self.calls.append(("abort", object_key, upload_id))
        if self.abort_raises is not None:
            raise self.abort_raises
        return ApiResponse.ok({})


class FakeImageManipulator:
    """Writes a small file per call; can be told to fail or echo its input."""

    def __init__(self, out_dir: Path) -> None:
        self.out_dir = Path(out_dir)
        self.calls: List[Dict[str, Any]] = []
        self.fail_when = None  # callable(uri, fmt, width) -> bool
        self.echo_input = False

    async def manipulate(self, uri, *, width=None, fmt="jpeg", quality=None):
        self.calls.append({"uri": uri, "width": width, "fmt": fmt, "quality": quality})
        if self.fail_when is not None and self.fail_when(uri, fmt, width):
            raise ValueError(f"cannot manipulate {uri} as {fmt}")
        if self.echo_input:
            return uri
        self.out_dir.mkdir(parents=True, exist_ok=True)
        ext = ".png" if fmt == "png" else ".jpg"
        out = self.out_dir / f"out_{len(self.calls)}{ext}"
        out.write_bytes(b"IMG" + str(width).encode())
        return str(out)


class FakeResolver:
    """Content resolver serving ``content://`` handles from a dict."""

    def __init__(self, contents: Optional[Dict[str, bytes]] = None) -> None:
        self.contents = dict(contents or {})
        self.copies: List[tuple] = []

    def supports(self, uri: str) -> bool:
        return uri.startswith("content://")

    async def copy_to(self, uri: str, dest_path: str) -> str:
        self.copies.append((uri, dest_path))
        if uri not in self.contents:
            raise FileNotFoundError(uri)
        Path(dest_path).write_bytes(self.contents[uri])
        return dest_path


class FixedClock:
    def __init__(self, ts: Optional[datetime] = None) -> None:
        self.ts = ts or datetime(2026, 1, 1, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.ts


@pytest.fixture
def scratch_dir(tmp_path) -> Path:
    d = tmp_path / "scratch"
    d.mkdir()
    return d


@pytest.fixture
def fake_storage() -> FakeStorageProxy:
    return FakeStorageProxy()


@pytest.fixture
def fake_resolver() -> FakeResolver:
    return FakeResolver()


@pytest.fixture
def fake_manipulator(tmp_path) -> FakeImageManipulator:
    return FakeImageManipulator(tmp_path / "manipulated")


@pytest.fixture
def fake_adapters(fake_storage, fake_manipulator, fake_resolver, scratch_dir):
    """Adapter bundle made of fakes, shaped like get_media_adapter_bundle()."""
    return SimpleNamespace(
        storage=fake_storage,
        image_manipulator=fake_manipulator,
        content_resolver=fake_resolver,
        file_accessor_factory=lambda uri: select_accessor(uri, fake_resolver),
        clock=FixedClock(),
        scratch_dir=str(scratch_dir),
    )


@pytest.fixture
def small_chunks(monkeypatch):
    """Shrink chunk size to 5 bytes so tests stay fast."""
    monkeypatch.setattr(settings, "chunk_size_bytes", 5, raising=False)
    monkeypatch.setattr(settings, "chunked_upload_threshold_bytes", 5, raising=False)
    return 5
