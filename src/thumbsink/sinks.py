# src/thumbsink/sinks.py
from __future__ import annotations
import os
import tempfile
from pathlib import Path
from typing import BinaryIO, Optional

from loguru import logger
from PIL import Image

from .codecs import Encoder, WriteOptions
from .compat import (
    PNG_WORKAROUND_QUALITY,
    CompatibilityMode,
    needs_png_quality_workaround,
    select_encoder,
)
from .errors import InvalidArgumentError, InvalidStateError, UnsupportedFormatError
from .formats import FormatFamily, classify_format, format_from_path
from .params import EncodingParameters
from .registry import EncoderRegistry, default_registry

# modes both JPEG and BMP encoders take as-is
_JPEG_FAMILY_MODES = ("RGB", "L")


class ImageSink:
    """
    Abstract image sink: receives a finished thumbnail (PIL image) and writes it somewhere.
    The output format must be set before write(); encoding parameters are optional.
    """
    def __init__(self):
        self._output_format: Optional[str] = None
        self._param: Optional[EncodingParameters] = None

    def set_output_format_name(self, format_name: str) -> None:
        self._output_format = format_name

    def set_encoding_parameters(self, param: Optional[EncodingParameters]) -> None:
        self._param = param

    # name used by the thumbnail pipeline
    set_thumbnail_parameter = set_encoding_parameters

    def preferred_output_format_name(self) -> Optional[str]:
        return self._output_format

    def write(self, img: Image.Image) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass


class OutputStreamImageSink(ImageSink):
    """
    Encodes into a caller-owned binary stream (file object, BytesIO, socket file, ...).

    The stream is flushed after every write but never closed. Encoder handles
    and the encoded-output view are released before write() returns or raises.
    Not thread-safe: serialize calls to write() on one instance.
    """
    def __init__(
        self,
        sink: BinaryIO,
        registry: Optional[EncoderRegistry] = None,
        compatibility: Optional[CompatibilityMode] = None,
    ):
        if sink is None:
            raise InvalidArgumentError("OutputStream cannot be null.")
        super().__init__()
        self._sink = sink
        self.registry = registry or default_registry()
        self.compatibility = compatibility or CompatibilityMode.from_settings()

    @property
    def sink(self) -> BinaryIO:
        return self._sink

    def write(self, img: Image.Image) -> None:
        if img is None:
            raise InvalidArgumentError("Cannot write a null image.")
        format_name = self._output_format
        if format_name is None:
            raise InvalidStateError("Output format has not been set.")

        family = classify_format(format_name)
        if family is FormatFamily.JPEG_FAMILY and img.mode not in _JPEG_FAMILY_MODES:
            # alpha, palette and high-depth images are written from an RGB copy
            logger.debug(f"[OutputStreamImageSink] converting {img.mode} -> RGB for {format_name}")
            img = img.convert("RGB")

        stream = self.registry.open_output_stream(self._sink)
        encoder: Optional[Encoder] = None
        try:
            providers = self.registry.providers_for(format_name)
            if not providers:
                raise UnsupportedFormatError(format_name)
            provider = select_encoder(format_name, providers, self.compatibility)
            encoder = provider.create()

            options = self._build_write_options(format_name, family, encoder)
            nbytes = encoder.write(img, stream, options)
            stream.flush()
            logger.debug(f"[OutputStreamImageSink] {format_name}: {nbytes} bytes via {encoder.name}")
        finally:
            if encoder is not None:
                encoder.dispose()
            stream.close()

    def _build_write_options(self, format_name: str, family: FormatFamily, encoder: Encoder) -> WriteOptions:
        options = encoder.default_write_options()
        param = self._param

        if family is FormatFamily.JPEG_FAMILY:
            if options.can_write_compressed and param is not None:
                # the scheme must be selected first: selecting it resets quality
                if param.has_format_type:
                    options.set_compression_type(param.format_type)
                if param.has_quality:
                    options.set_compression_quality(param.quality)

        elif family is FormatFamily.PNG:
            if needs_png_quality_workaround(format_name, encoder, self.compatibility):
                logger.warning(
                    f"[OutputStreamImageSink] default PNG encoder on a modern platform, "
                    f"forcing quality {PNG_WORKAROUND_QUALITY}"
                )
                options.set_compression_quality(PNG_WORKAROUND_QUALITY)

        return options


class FileImageSink(ImageSink):
    """
    Writes the image to a file. Without an explicit format, the format comes
    from the file extension ("thumb.png" -> "png").

    The image is encoded into a temporary file in the same directory and moved
    over `path` only on success. With allow_overwrite=False an existing file
    raises FileExistsError before anything is encoded.
    """
    def __init__(
        self,
        path: str | Path,
        allow_overwrite: bool = True,
        registry: Optional[EncoderRegistry] = None,
        compatibility: Optional[CompatibilityMode] = None,
    ):
        if path is None:
            raise InvalidArgumentError("File cannot be null.")
        super().__init__()
        self.path = Path(path)
        self.allow_overwrite = allow_overwrite
        self.registry = registry or default_registry()
        self.compatibility = compatibility or CompatibilityMode.from_settings()

    @property
    def sink(self) -> Path:
        return self.path

    def preferred_output_format_name(self) -> Optional[str]:
        return self._output_format or format_from_path(self.path)

    def write(self, img: Image.Image) -> None:
        if img is None:
            raise InvalidArgumentError("Cannot write a null image.")
        format_name = self.preferred_output_format_name()
        if format_name is None:
            raise InvalidStateError("Output format has not been set.")
        if not self.registry.providers_for(format_name):
            raise UnsupportedFormatError(format_name)
        if self.path.exists() and not self.allow_overwrite:
            raise FileExistsError(f"The destination file exists: {self.path}")

        # encode next to the target, then swap it in; a failed write leaves an existing file untouched
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                inner = OutputStreamImageSink(f, registry=self.registry, compatibility=self.compatibility)
                inner.set_output_format_name(format_name)
                inner.set_encoding_parameters(self._param)
                inner.write(img)
            tmp_path.replace(self.path)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise
        logger.debug(f"[FileImageSink] wrote {self.path}")
