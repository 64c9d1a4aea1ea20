import base64

import pytest

from media_utils.file_utils import (
    encode_base64,
    guess_extension,
    hashed_scratch_name,
    is_plain_path,
    split_data_url,
    to_data_url,
    uri_scheme,
    uri_to_path,
)


@pytest.mark.parametrize(
    "uri,plain",
    [
        ("/var/mobile/photo.jpg", True),
        ("file:///var/mobile/photo.jpg", True),
        ("C:\\Users\\me\\photo.jpg", True),
        ("content://media/external/images/42", False),
        ("ph://ABC-123", False),
        ("https://example.com/a.jpg", False),
    ],
)
def test_is_plain_path(uri, plain):
    assert is_plain_path(uri) is plain


def test_uri_scheme_lowercases():
    assert uri_scheme("CONTENT://x/y") == "content"
    assert uri_scheme("relative/path.png") == ""


def test_uri_to_path_decodes_file_uri():
    assert uri_to_path("file:///tmp/my%20photo.jpg") == "/tmp/my photo.jpg"
    assert uri_to_path("/tmp/a.jpg") == "/tmp/a.jpg"


@pytest.mark.parametrize(
    "uri,expected",
    [
        ("/tmp/clip.MP4", ".mp4"),
        ("file:///tmp/doc.pdf", ".pdf"),
        ("content://media/external/images/42", ".bin"),
        ("/tmp/archive.whatever", ".bin"),
    ],
)
def test_guess_extension(uri, expected):
    assert guess_extension(uri, ".bin") == expected


def test_hashed_scratch_name_is_deterministic_and_distinct():
    a = hashed_scratch_name("obj1" + "1700000000000", ".jpg")
    b = hashed_scratch_name("obj1" + "1700000000000", "jpg")
    c = hashed_scratch_name("obj2" + "1700000000000", ".jpg")
    assert a == b
    assert a != c
    assert a.endswith(".jpg") and len(a) == 64 + 4


def test_data_url_helpers():
    b64 = encode_base64(b"hello")
    assert base64.b64decode(b64) == b"hello"
    payload = to_data_url("image/jpeg", b64)
    assert payload == f"data:image/jpeg;base64,{b64}"
    assert split_data_url(payload) == ("image/jpeg", b64)
    assert split_data_url(b64) == (None, b64)
