# src/thumbsink/params.py
from __future__ import annotations
import math
from dataclasses import dataclass

# Sentinels understood by the sinks
UNSPECIFIED_QUALITY = float("nan")
DEFAULT_FORMAT_TYPE = "default"


def is_quality_specified(quality: float | None) -> bool:
    return quality is not None and not math.isnan(quality)


@dataclass(frozen=True)
class EncodingParameters:
    """
    Output options handed to an ImageSink by the thumbnail pipeline.

      - quality     : compression quality in [0, 1], or UNSPECIFIED_QUALITY
      - format_type : encoder compression scheme, or DEFAULT_FORMAT_TYPE
    """
    quality: float = UNSPECIFIED_QUALITY
    format_type: str = DEFAULT_FORMAT_TYPE

    def __post_init__(self):
        if is_quality_specified(self.quality) and not 0.0 <= self.quality <= 1.0:
            raise ValueError(f"quality must be in [0, 1], got {self.quality}")
        if not self.format_type:
            raise ValueError("format_type must be a non-empty string")

    @property
    def has_quality(self) -> bool:
        return is_quality_specified(self.quality)

    @property
    def has_format_type(self) -> bool:
        return self.format_type != DEFAULT_FORMAT_TYPE
