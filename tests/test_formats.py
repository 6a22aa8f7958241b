import pytest

from thumbsink.formats import (
    FormatFamily,
    classify_format,
    format_from_path,
    is_jpeg_or_bmp,
    is_png,
)


@pytest.mark.parametrize("name", ["jpg", "jpeg", "bmp", "JPG", "JPEG", "BMP", "Jpeg", "bMp"])
def test_jpeg_family(name):
    assert is_jpeg_or_bmp(name)
    assert not is_png(name)
    assert classify_format(name) is FormatFamily.JPEG_FAMILY


@pytest.mark.parametrize("name", ["png", "PNG", "Png"])
def test_png(name):
    assert is_png(name)
    assert not is_jpeg_or_bmp(name)
    assert classify_format(name) is FormatFamily.PNG


@pytest.mark.parametrize("name", ["gif", "webp", "tiff", "inv", "jp", "pngx", ""])
def test_other(name):
    assert classify_format(name) is FormatFamily.OTHER


def test_format_from_path():
    assert format_from_path("out/thumb.JPG") == "JPG"
    assert format_from_path("thumb.tar.png") == "png"
    assert format_from_path("thumb") is None
    assert format_from_path("thumb.") is None
