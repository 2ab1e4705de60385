"""Tests for Pillow-based image helpers."""

import io

import pytest
from PIL import Image as PILImage

from galleria.lib.imaging import (
    IMAGE_SIZES,
    InvalidImage,
    detect_image_content_type,
    measure_image,
    resize_image,
    variant_key,
)


def _encode(width, height, fmt):
    buf = io.BytesIO()
    PILImage.new("RGB", (width, height)).save(buf, format=fmt)
    return buf.getvalue()


class TestDetectContentType:
    @pytest.mark.parametrize(
        "fmt,expected",
        [("PNG", "image/png"), ("JPEG", "image/jpeg"), ("GIF", "image/gif"), ("BMP", "image/bmp")],
    )
    def test_known_formats(self, fmt, expected):
        assert detect_image_content_type(_encode(2, 2, fmt)) == expected

    def test_unknown(self):
        assert detect_image_content_type(b"hello world") is None


class TestMeasureImage:
    def test_reads_size_and_format(self):
        info = measure_image(_encode(12, 7, "JPEG"))
        assert (info.width, info.height, info.format) == (12, 7, "jpeg")
        assert info.content_type == "image/jpeg"

    def test_rejects_garbage(self):
        with pytest.raises(InvalidImage):
            measure_image(b"\x00\x01\x02")


class TestResizeImage:
    def test_no_upscale(self):
        data = _encode(50, 40, "PNG")
        resized, content_type = resize_image(data, 200, 200)
        assert resized is data
        assert content_type == "image/png"

    def test_fits_box_preserving_ratio(self):
        resized, _ = resize_image(_encode(400, 200, "PNG"), 200, 200)
        assert measure_image(resized).width == 200
        assert measure_image(resized).height == 100

    def test_width_only(self):
        resized, content_type = resize_image(_encode(1000, 500, "JPEG"), 400, None)
        info = measure_image(resized)
        assert (info.width, info.height) == (400, 200)
        assert content_type == "image/jpeg"


def test_variant_key():
    assert variant_key("images/ab.png", 200, 200) == "images/ab.png.200x200"
    assert variant_key("images/ab.png", 800, None) == "images/ab.png.800x0"


def test_named_sizes():
    assert set(IMAGE_SIZES) == {"icon", "thumb", "small", "medium", "cover"}
