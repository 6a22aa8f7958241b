# src/thumbsink/compat.py
"""
Encoder compatibility policy.

Some default PNG encoders on modern platforms reject a write that has
compression enabled but no explicit quality. Two workarounds exist and both
are expressed here as plain functions over explicit inputs:

  - select_encoder: on a modern platform prefer a non-default PNG encoder.
  - needs_png_quality_workaround: if the default PNG encoder was still
    selected, force its quality to 0.0.

Whether the platform counts as "modern" is carried by CompatibilityMode, which
callers (and tests) construct directly instead of probing the environment.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Protocol, Sequence, TypeVar

from . import settings
from .formats import is_png

DEFAULT_PNG_ENCODER_NAME = "pillow.png"
PNG_WORKAROUND_QUALITY = 0.0


class _Named(Protocol):
    name: str


T = TypeVar("T", bound=_Named)


def is_modern_platform(version: str) -> bool:
    """
    "1.8" -> legacy, "9" / "17" -> modern.
    A dotted version string is the legacy numbering scheme.
    """
    return "." not in version


@dataclass(frozen=True)
class CompatibilityMode:
    modern_platform: bool = False
    prefer_alternate_png_encoder: bool = True
    png_quality_workaround: bool = True

    @classmethod
    def from_version(cls, version: str, **kwargs) -> "CompatibilityMode":
        return cls(modern_platform=is_modern_platform(version), **kwargs)

    @classmethod
    def from_settings(cls) -> "CompatibilityMode":
        return cls.from_version(
            settings.PLATFORM_VERSION,
            prefer_alternate_png_encoder=settings.PREFER_ALTERNATE_PNG_ENCODER,
            png_quality_workaround=settings.PNG_QUALITY_WORKAROUND,
        )

    @classmethod
    def disabled(cls) -> "CompatibilityMode":
        return cls(modern_platform=False, prefer_alternate_png_encoder=False, png_quality_workaround=False)


def is_default_png_encoder(encoder: _Named) -> bool:
    return encoder.name == DEFAULT_PNG_ENCODER_NAME


def select_encoder(format_name: str, candidates: Sequence[T], mode: CompatibilityMode) -> T:
    """
    Pick one of `candidates` (registration order, must be non-empty).

    The first candidate wins, except for PNG on a modern platform with
    prefer_alternate_png_encoder set: then the first non-default PNG encoder
    wins, falling back to the first candidate when there is no alternative.
    """
    if not candidates:
        raise ValueError("select_encoder() needs at least one candidate")
    if is_png(format_name) and mode.modern_platform and mode.prefer_alternate_png_encoder:
        for candidate in candidates:
            if not is_default_png_encoder(candidate):
                return candidate
    return candidates[0]


def needs_png_quality_workaround(format_name: str, encoder: _Named, mode: CompatibilityMode) -> bool:
    return (
        is_png(format_name)
        and mode.modern_platform
        and mode.png_quality_workaround
        and is_default_png_encoder(encoder)
    )
