# src/thumbsink/formats.py
from __future__ import annotations
from enum import Enum
from pathlib import Path
from typing import Optional


class FormatFamily(str, Enum):
    JPEG_FAMILY = "jpeg-family"   # shares the compression-quality knob
    PNG = "png"
    OTHER = "other"


_JPEG_FAMILY = frozenset({"jpg", "jpeg", "bmp"})


def normalize_format_name(name: str) -> str:
    return name.strip().lower()


def is_jpeg_or_bmp(name: str) -> bool:
    return normalize_format_name(name) in _JPEG_FAMILY


def is_png(name: str) -> bool:
    return normalize_format_name(name) == "png"


def classify_format(name: str) -> FormatFamily:
    """
    Case-insensitive: "JPG", "jpeg", "Bmp" -> JPEG_FAMILY; "PNG" -> PNG; anything else -> OTHER.
    """
    if is_jpeg_or_bmp(name):
        return FormatFamily.JPEG_FAMILY
    if is_png(name):
        return FormatFamily.PNG
    return FormatFamily.OTHER


def format_from_path(path: str | Path) -> Optional[str]:
    """File extension without the dot ("thumb.JPG" -> "JPG"), or None if there is none."""
    suffix = Path(path).suffix
    return suffix[1:] if len(suffix) > 1 else None
