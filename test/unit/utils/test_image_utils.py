import pytest
from PIL import Image

from media_utils.image_utils import reencode_image, resolve_format, scaled_size


def _make_image(path, size=(400, 300), mode="RGB", fmt="PNG"):
    Image.new(mode, size, color=(200, 10, 10, 255)[: len(mode)]).save(path, format=fmt)
    return str(path)


def test_scaled_size_keeps_aspect_ratio():
    assert scaled_size((400, 300), 200) == (200, 150)
    assert scaled_size((3000, 4000), 200) == (200, 267)


def test_scaled_size_rejects_empty_image():
    with pytest.raises(ValueError):
        scaled_size((0, 10), 200)


def test_resolve_format_rejects_unknown():
    with pytest.raises(ValueError):
        resolve_format("bmpx")


def test_reencode_resizes_to_width_as_jpeg(tmp_path):
    src = _make_image(tmp_path / "in.png")
    out = reencode_image(src, str(tmp_path / "out.jpg"), width=200, fmt="jpeg")
    with Image.open(out) as im:
        assert im.format == "JPEG"
        assert im.size == (200, 150)


def test_reencode_converts_alpha_to_rgb_for_jpeg(tmp_path):
    src = _make_image(tmp_path / "alpha.png", mode="RGBA")
    out = reencode_image(src, str(tmp_path / "alpha.jpg"), fmt="jpeg", quality=0.9)
    with Image.open(out) as im:
        assert im.mode == "RGB"
        assert im.size == (400, 300)


def test_reencode_png_output(tmp_path):
    src = _make_image(tmp_path / "in2.png")
    out = reencode_image(src, str(tmp_path / "out.png"), width=100, fmt="png")
    with Image.open(out) as im:
        assert im.format == "PNG"
        assert im.size == (100, 75)
