# src/thumbsink/registry.py
from __future__ import annotations
from dataclasses import dataclass
from typing import BinaryIO, Callable, Dict, Iterable, Iterator, List, Optional

from loguru import logger
from PIL import Image

from . import settings
from .codecs import Encoder, OpenCVEncoder, PillowEncoder
from .formats import normalize_format_name


@dataclass(frozen=True)
class EncoderProvider:
    """
    Registry entry: knows how to create an encoder handle for one format.
    Handles are only created for the provider a sink actually selects.
    """
    name: str
    format_id: str
    factory: Callable[[], Encoder]

    def create(self) -> Encoder:
        return self.factory()


class EncodedOutputStream:
    """
    Write-through view over a caller-owned binary stream.
    close() releases the view only; the underlying stream stays open.
    """
    def __init__(self, raw: BinaryIO):
        self.raw = raw
        self.bytes_written = 0
        self.close_count = 0

    @property
    def closed(self) -> bool:
        return self.close_count > 0

    def write(self, data: bytes) -> int:
        if self.closed:
            raise ValueError("write to closed EncodedOutputStream")
        self.raw.write(data)
        self.bytes_written += len(data)
        return len(data)

    def flush(self) -> None:
        if self.closed:
            raise ValueError("flush of closed EncodedOutputStream")
        flush = getattr(self.raw, "flush", None)
        if flush is not None:
            flush()

    def close(self) -> None:
        self.close_count += 1


class EncoderRegistry:
    """
    Ordered, case-insensitive mapping: format name -> encoder providers.
    The first provider registered for a name is that name's default encoder.
    """
    def __init__(self):
        self._providers: Dict[str, List[EncoderProvider]] = {}

    def register(self, format_names: Iterable[str], provider: EncoderProvider) -> None:
        for fname in format_names:
            self._providers.setdefault(normalize_format_name(fname), []).append(provider)

    def format_names(self) -> List[str]:
        return sorted(self._providers)

    def providers_for(self, format_name: str) -> List[EncoderProvider]:
        return list(self._providers.get(normalize_format_name(format_name), ()))

    def encoders_for(self, format_name: str) -> Iterator[Encoder]:
        """Yield a fresh handle per provider, in registration order. Callers dispose them."""
        for provider in self.providers_for(format_name):
            yield provider.create()

    def open_output_stream(self, raw: BinaryIO) -> EncodedOutputStream:
        if getattr(raw, "closed", False):
            raise OSError("Could not open output stream.")
        writable = getattr(raw, "writable", None)
        if not callable(getattr(raw, "write", None)) or (callable(writable) and not writable()):
            raise OSError("Could not open output stream.")
        return EncodedOutputStream(raw)


def _pillow_aliases() -> Dict[str, set]:
    """Pillow save format id -> names it answers to ("JPEG" -> {"jpeg", "jpg", "jpe", ...})."""
    aliases: Dict[str, set] = {}
    extensions = Image.registered_extensions()  # also runs Image.init()
    for format_id in Image.SAVE:
        aliases[format_id] = {format_id.lower()}
    for ext, format_id in extensions.items():
        if format_id in aliases:
            aliases[format_id].add(ext.lstrip(".").lower())
    return aliases


def build_default_registry(opencv_formats: Optional[Iterable[str]] = None) -> EncoderRegistry:
    """Pillow encoders for every format Pillow can save, then OpenCV alternates."""
    registry = EncoderRegistry()
    aliases = _pillow_aliases()
    for format_id in sorted(aliases):
        registry.register(
            aliases[format_id],
            EncoderProvider(f"pillow.{format_id.lower()}", format_id, lambda fid=format_id: PillowEncoder(fid)),
        )

    for fname in settings.OPENCV_FORMATS if opencv_formats is None else opencv_formats:
        format_id = fname.upper()
        if format_id not in aliases:
            logger.warning(f"[EncoderRegistry] no Pillow format {format_id}, skipping OpenCV alternate")
            continue
        registry.register(
            aliases[format_id],
            EncoderProvider(f"opencv.{fname.lower()}", format_id, lambda fid=format_id: OpenCVEncoder(fid)),
        )

    logger.debug(f"[EncoderRegistry] registered {len(registry.format_names())} format names")
    return registry


_default_registry: Optional[EncoderRegistry] = None


def default_registry() -> EncoderRegistry:
    global _default_registry
    if _default_registry is None:
        _default_registry = build_default_registry()
    return _default_registry
