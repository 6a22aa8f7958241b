"""
thumbsink: output adapter that encodes finished thumbnails into byte sinks.
"""

# Package version (kept in sync with pyproject.toml)
__version__ = "0.1.0"

# Expose key public classes
from .compat import CompatibilityMode
from .errors import InvalidArgumentError, InvalidStateError, ThumbsinkError, UnsupportedFormatError
from .params import DEFAULT_FORMAT_TYPE, UNSPECIFIED_QUALITY, EncodingParameters
from .registry import EncoderRegistry, build_default_registry, default_registry
from .sinks import FileImageSink, ImageSink, OutputStreamImageSink

__all__ = [
    "ImageSink",
    "OutputStreamImageSink",
    "FileImageSink",
    "EncodingParameters",
    "UNSPECIFIED_QUALITY",
    "DEFAULT_FORMAT_TYPE",
    "CompatibilityMode",
    "EncoderRegistry",
    "build_default_registry",
    "default_registry",
    "ThumbsinkError",
    "InvalidArgumentError",
    "InvalidStateError",
    "UnsupportedFormatError",
    "__version__",
]
