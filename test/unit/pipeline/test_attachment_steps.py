from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from skola_media.application.media import ObjectUploader, ThumbnailGenerator, UriNormalizer
from skola_media.application.models import AttachmentDescriptor, UploadResult
from skola_media.application.pipeline.attachment.builder import build_attachment_pipeline
from skola_media.application.pipeline.attachment.steps.convert_format import ConvertFormatStep
from skola_media.application.pipeline.attachment.steps.upload_original import UploadOriginalStep
from skola_media.application.pipeline.attachment.steps.upload_thumbnail import (
    UploadThumbnailStep,
)
from skola_media.application.pipeline.attachment.steps.validate_request import (
    ValidateRequestStep,
)
from skola_media.application.pipeline.base import PipelineContext, StepStatus
from skola_media.core.pyd_schemas import AttachmentRequest


def _thumbnail_step(adapters):
    normalizer = UriNormalizer(adapters.file_accessor_factory, scratch_dir=adapters.scratch_dir)
    return UploadThumbnailStep(
        ThumbnailGenerator(adapters.image_manipulator, normalizer),
        ObjectUploader(adapters.storage, normalizer),
    )


def _context(uri, content_type, want_thumbnail):
    ctx = PipelineContext(input={})
    ctx.set(
        "request",
        AttachmentRequest(
            object_key="rec1",
            local_uri=uri,
            content_type=content_type,
            want_thumbnail=want_thumbnail,
        ),
    )
    ctx.set("descriptor", AttachmentDescriptor.create(uri, content_type))
    ctx.set("upload_uri", uri)
    ctx.set("upload_content_type", content_type)
    ctx.set("original_result", UploadResult("rec1", 1, content_type))
    return ctx


def test_builder_orders_steps(fake_adapters):
    pipeline = build_attachment_pipeline(fake_adapters)
    assert pipeline.step_names == [
        "validate_request",
        "convert_format",
        "upload_original",
        "upload_thumbnail",
    ]


@pytest.mark.asyncio
async def test_validate_request_rejects_blank_key():
    ctx = PipelineContext(
        input={"object_key": "  ", "local_uri": "/tmp/a.jpg", "content_type": "image/jpeg"}
    )
    with pytest.raises(ValueError) as ei:
        await ValidateRequestStep()(ctx)
    assert "object_key" in str(ei.value)


@pytest.mark.asyncio
async def test_validate_request_builds_descriptor():
    ctx = PipelineContext(
        input={"object_key": "rec1", "local_uri": "/tmp/a.pdf", "content_type": "application/pdf"}
    )
    await ValidateRequestStep()(ctx)
    assert ctx.get("descriptor").is_pdf
    assert ctx.get("request").want_thumbnail is False


@pytest.mark.asyncio
async def test_thumbnail_step_skips_pdf_even_when_requested(fake_adapters):
    step = _thumbnail_step(fake_adapters)
    ctx = _context("/tmp/doc.pdf", "application/pdf", True)
    await step(ctx)
    assert step.status is StepStatus.SKIPPED
    assert ctx.get("thumbnail_result") is None
    assert fake_adapters.image_manipulator.calls == []


@pytest.mark.asyncio
async def test_thumbnail_step_skips_when_not_wanted(fake_adapters):
    step = _thumbnail_step(fake_adapters)
    await step(_context("/tmp/a.jpg", "image/jpeg", False))
    assert step.status is StepStatus.SKIPPED


@pytest.mark.asyncio
async def test_thumbnail_upload_failure_is_swallowed(fake_adapters, tmp_path, monkeypatch):
    async def broken(*a, **k):
        raise RuntimeError("storage down")

    monkeypatch.setattr(fake_adapters.storage, "upload_object", broken)
    step = _thumbnail_step(fake_adapters)
    ctx = _context("/tmp/a.jpg", "image/jpeg", True)

    await step(ctx)

    assert step.status is StepStatus.COMPLETED
    assert ctx.get("thumbnail_result") is None


@pytest.mark.asyncio
async def test_convert_step_tracks_converted_file():
    converter = AsyncMock()
    converter.convert_if_heic.return_value = ("/scratch/x.jpg", "image/jpeg")
    tracked = []
    tracker = SimpleNamespace(track=tracked.append)
    ctx = _context("/tmp/a.heic", "image/heic", False)
    ctx.set("scratch", tracker)

    await ConvertFormatStep(converter)(ctx)

    converter.convert_if_heic.assert_awaited_once_with(
        "/tmp/a.heic", "image/heic", object_id="rec1"
    )
    assert ctx.get("upload_uri") == "/scratch/x.jpg"
    assert ctx.get("upload_content_type") == "image/jpeg"
    assert tracked == ["/scratch/x.jpg"]


@pytest.mark.asyncio
async def test_upload_original_step_uses_converted_uri():
    uploader = AsyncMock()
    uploader.upload.return_value = UploadResult("rec1", 4, "image/jpeg")
    ctx = _context("/tmp/a.heic", "image/heic", False)
    ctx.set("upload_uri", "/scratch/x.jpg")
    ctx.set("upload_content_type", "image/jpeg")

    await UploadOriginalStep(uploader)(ctx)

    uploader.upload.assert_awaited_once_with("rec1", "/scratch/x.jpg", "image/jpeg")
    assert ctx.get("original_result").storage_key == "rec1"


@pytest.mark.asyncio
async def test_upload_original_failure_propagates():
    uploader = AsyncMock()
    uploader.upload.side_effect = RuntimeError("down")
    step = UploadOriginalStep(uploader)
    with pytest.raises(RuntimeError):
        await step(_context("/tmp/a.jpg", "image/jpeg", False))
    assert step.status is StepStatus.FAILED
