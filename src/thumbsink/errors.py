# src/thumbsink/errors.py
from __future__ import annotations


class ThumbsinkError(Exception):
    """Base class for errors raised by thumbsink."""


class InvalidArgumentError(ThumbsinkError, ValueError):
    """A required argument (sink, image, path) was None."""


class InvalidStateError(ThumbsinkError, RuntimeError):
    """The sink was used before it was configured."""


class UnsupportedFormatError(ThumbsinkError, OSError):
    """
    No encoder is registered for the requested format name.
    Also an OSError, like any other failed write.
    """
    def __init__(self, format_name: str, message: str | None = None):
        self.format_name = format_name
        super().__init__(message or f"No suitable ImageWriter found for {format_name}.")
