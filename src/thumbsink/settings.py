# src/thumbsink/settings.py
"""
thumbsink settings.

Every value can be overridden through the environment before import.
"""

import os


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# =============================================================================
# PLATFORM COMPATIBILITY
# =============================================================================
# Platform version used by CompatibilityMode.from_settings().
# "1.8"-style (dotted) versions are legacy, "9"/"17"-style versions are modern.
PLATFORM_VERSION = os.getenv("THUMBSINK_PLATFORM_VERSION", "1.8")

# On modern platforms, prefer a non-default PNG encoder when one is registered
PREFER_ALTERNATE_PNG_ENCODER = _env_flag("THUMBSINK_PREFER_ALTERNATE_PNG", True)

# On modern platforms, force quality 0.0 on the default PNG encoder
PNG_QUALITY_WORKAROUND = _env_flag("THUMBSINK_PNG_QUALITY_WORKAROUND", True)

# =============================================================================
# ENCODERS
# =============================================================================
# Pillow's JPEG quality above 95 only grows the file
JPEG_MAX_QUALITY = 95

# zlib levels used by the PNG encoders
PNG_MAX_COMPRESS_LEVEL = 9

# Formats the OpenCV encoder is registered for, as alternates to Pillow
OPENCV_FORMATS = ("png", "jpeg", "bmp")
