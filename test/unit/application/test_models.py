import pytest

from skola_media.application.models import (
    AttachmentDescriptor,
    CompletedPart,
    SessionState,
    TargetKind,
    UploadSession,
    is_heic,
    original_key_for,
    thumbnail_key_for,
)


@pytest.mark.parametrize("key", ["abc123", "resized-x", "", "a/b/c.jpg"])
def test_thumbnail_key_is_prefix_transform(key):
    derived = thumbnail_key_for(key)
    assert derived == "resized-" + key
    assert original_key_for(derived) == key


def test_original_key_for_plain_key_is_identity():
    assert original_key_for("photo1") == "photo1"


@pytest.mark.parametrize(
    "ct,kind",
    [
        ("application/pdf", TargetKind.PDF),
        ("video/mp4", TargetKind.VIDEO),
        ("video/quicktime", TargetKind.VIDEO),
        ("image/jpeg", TargetKind.IMAGE),
        ("image/heic", TargetKind.IMAGE),
    ],
)
def test_target_kind_from_content_type(ct, kind):
    assert AttachmentDescriptor.create("/tmp/x", ct).target_kind is kind


def test_descriptor_is_immutable():
    d = AttachmentDescriptor.create("/tmp/x.pdf", "application/pdf")
    assert d.is_pdf
    with pytest.raises(Exception):
        d.local_uri = "/tmp/other"  # type: ignore[misc]


@pytest.mark.parametrize(
    "mime,expected",
    [("image/heic", True), ("image/HEIF", True), ("image/jpeg", False), (None, False)],
)
def test_is_heic(mime, expected):
    assert is_heic(mime) is expected


def test_session_lifecycle_happy_path():
    s = UploadSession(object_key="v", content_type="video/mp4", total_chunks=2)
    s.transition(SessionState.INITIATED)
    s.transition(SessionState.UPLOADING_PARTS)
    s.record_part(CompletedPart(1, "e1"))
    s.record_part(CompletedPart(2, "e2"))
    s.transition(SessionState.COMPLETED)
    assert s.completed_chunks == 2
    assert [p.part_number for p in s.ordered_parts()] == [1, 2]


def test_session_rejects_gaps_and_duplicates():
    s = UploadSession(object_key="v", content_type="video/mp4", total_chunks=3)
    s.record_part(CompletedPart(1, "e1"))
    with pytest.raises(ValueError):
        s.record_part(CompletedPart(1, "again"))
    with pytest.raises(ValueError):
        s.record_part(CompletedPart(3, "e3"))


def test_session_rejects_invalid_transition():
    s = UploadSession(object_key="v", content_type="video/mp4", total_chunks=1)
    with pytest.raises(ValueError):
        s.transition(SessionState.COMPLETED)
    s.transition(SessionState.FAILED)
    s.transition(SessionState.ABORTED)
    with pytest.raises(ValueError):
        s.transition(SessionState.INITIATED)
