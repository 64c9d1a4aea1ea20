"""
Image processing utilities for the upload pipeline.

Pillow does the decoding and re-encoding; pillow-heif registers the
HEIC/HEIF opener so photos from iOS devices can be transcoded.
"""

import logging
import os
from typing import Optional, Tuple

from PIL import Image
from pillow_heif import register_heif_opener

register_heif_opener()

logger = logging.getLogger(__name__)

# Output format -> (Pillow format name, file extension)
FORMATS = {
    "jpeg": ("JPEG", ".jpg"),
    "jpg": ("JPEG", ".jpg"),
    "png": ("PNG", ".png"),
}


def resolve_format(fmt: str) -> Tuple[str, str]:
    try:
        return FORMATS[fmt.lower()]
    except KeyError:
        raise ValueError(f"Unsupported output format: {fmt}") from None


def scaled_size(size: Tuple[int, int], width: int) -> Tuple[int, int]:
    """(width, height) for a resize to ``width`` keeping the aspect ratio."""
    src_w, src_h = size
    if src_w <= 0 or src_h <= 0:
        raise ValueError(f"Invalid image size: {size}")
    height = max(1, round(src_h * width / src_w))
    return width, height


def reencode_image(
    src_path: str,
    dest_path: str,
    *,
    width: Optional[int] = None,
    fmt: str = "jpeg",
    quality: Optional[float] = None,
) -> str:
    """
    Decode ``src_path`` and write it to ``dest_path`` in ``fmt``.

    Args:
        src_path: Source image (any format Pillow can open, HEIC included)
        dest_path: Output file path
        width: Optional target width; height follows the aspect ratio
        fmt: "jpeg" or "png"
        quality: JPEG quality factor in (0, 1]; ignored for PNG

    Returns:
        dest_path
    """
    pil_format, _ = resolve_format(fmt)
    with Image.open(src_path) as img:
        if width:
            img = img.resize(scaled_size(img.size, width), Image.Resampling.LANCZOS)

        save_kwargs = {}
        if pil_format == "JPEG":
            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            if quality is not None:
                save_kwargs["quality"] = max(1, min(95, int(round(quality * 100))))
        parent = os.path.dirname(dest_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        img.save(dest_path, format=pil_format, **save_kwargs)

    logger.debug(
        "Re-encoded %s -> %s (format=%s width=%s)", src_path, dest_path, fmt, width
    )
    return dest_path
