"""Image inspection and variant generation using Pillow."""

from __future__ import annotations

import io
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

IMAGE_SIZES: dict[str, tuple[int, int | None]] = {
    "icon": (64, 64),
    "thumb": (200, 200),
    "small": (400, None),
    "medium": (800, None),
    "cover": (1200, None),
}

_FORMAT_TO_CONTENT_TYPE = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
    "GIF": "image/gif",
    "BMP": "image/bmp",
}


class InvalidImage(ValueError):
    """Raised when bytes cannot be decoded as an image."""


@dataclass(frozen=True)
class ImageInfo:
    width: int
    height: int
    format: str

    @property
    def content_type(self) -> str:
        return _FORMAT_TO_CONTENT_TYPE.get(self.format.upper(), "application/octet-stream")


def detect_image_content_type(data: bytes) -> str | None:
    """Detect image content type from magic bytes.

    Returns ``None`` if the data does not match a known image signature.
    """
    if data[:3] == b"\xff\xd8\xff":
        return "image/jpeg"
    if data[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    if data[:2] == b"BM":
        return "image/bmp"
    return None


def measure_image(data: bytes) -> ImageInfo:
    """Read dimensions and format without decoding the full pixel data.

    Raises:
        InvalidImage: If Pillow cannot identify the data.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size
            fmt = (img.format or "").lower()
    except (UnidentifiedImageError, OSError) as exc:
        raise InvalidImage("Data is not a recognised image") from exc
    return ImageInfo(width=width, height=height, format=fmt)


def resize_image(
    data: bytes,
    max_width: int,
    max_height: int | None,
) -> tuple[bytes, str]:
    """Resize an image to fit within the given dimensions.

    Preserves aspect ratio and original format. Does not upscale if the
    original is already smaller than the target.

    Returns:
        A tuple of ``(resized_bytes, content_type)``.
    """
    img = Image.open(io.BytesIO(data))
    orig_format = img.format or "PNG"
    content_type = _FORMAT_TO_CONTENT_TYPE.get(orig_format, "image/png")

    orig_w, orig_h = img.size

    if max_height is not None:
        if orig_w <= max_width and orig_h <= max_height:
            return data, content_type
        img.thumbnail((max_width, max_height), Image.LANCZOS)
    else:
        if orig_w <= max_width:
            return data, content_type
        new_h = int(orig_h * (max_width / orig_w))
        img = img.resize((max_width, new_h), Image.LANCZOS)

    buf = io.BytesIO()
    save_kwargs: dict = {}
    if orig_format in ("JPEG", "WEBP"):
        save_kwargs["quality"] = 85
    if orig_format in ("JPEG", "PNG"):
        save_kwargs["optimize"] = True

    img.save(buf, format=orig_format, **save_kwargs)
    return buf.getvalue(), content_type


def variant_key(reference: str, width: int, height: int | None) -> str:
    """Derive the storage key for a resized variant.

    E.g. ``variant_key("images/ab12.png", 200, 200)`` → ``"images/ab12.png.200x200"``
    """
    return f"{reference}.{width}x{height or 0}"
