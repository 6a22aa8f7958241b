# src/thumbsink/codecs.py
from __future__ import annotations
from io import BytesIO
from typing import BinaryIO, Dict, Optional, Tuple

import cv2  # opencv-python-headless
import numpy as np
from loguru import logger
from PIL import Image

from . import settings


class WriteOptions:
    """
    Encoder-specific tuning for one write, obtained from Encoder.default_write_options().

    Selecting a compression type resets quality to the encoder default, so a
    non-default type has to be selected before quality is set.
    """
    def __init__(
        self,
        can_write_compressed: bool = False,
        compression_types: Tuple[str, ...] = (),
        compression_type: Optional[str] = None,
    ):
        self.can_write_compressed = can_write_compressed
        self.compression_types = tuple(compression_types)
        self.compression_type = compression_type
        self.quality: Optional[float] = None

    def set_compression_type(self, compression_type: str) -> None:
        if not self.can_write_compressed:
            raise RuntimeError("Compression not supported.")
        if compression_type not in self.compression_types:
            raise ValueError(
                f"Unknown compression type {compression_type!r}; expected one of {list(self.compression_types)}"
            )
        self.compression_type = compression_type
        self.quality = None

    def set_compression_quality(self, quality: float) -> None:
        if not self.can_write_compressed:
            raise RuntimeError("Compression not supported.")
        if len(self.compression_types) > 1 and self.compression_type is None:
            raise RuntimeError("No compression type set.")
        if not 0.0 <= quality <= 1.0:
            raise ValueError(f"Quality out-of-bounds: {quality}")
        self.quality = float(quality)

    def __repr__(self) -> str:
        return (
            f"WriteOptions(compression_type={self.compression_type!r}, quality={self.quality!r})"
        )


class Encoder:
    """
    Abstract encoder handle: serializes one image into one file format.
    A handle is created per write and must be disposed by whoever created it.
    """
    library = "abstract"

    def __init__(self, format_id: str):
        self.format_id = format_id.upper()
        self.dispose_count = 0

    @property
    def name(self) -> str:
        return f"{self.library}.{self.format_id.lower()}"

    @property
    def disposed(self) -> bool:
        return self.dispose_count > 0

    def default_write_options(self) -> WriteOptions:
        return WriteOptions()

    def encode(self, img: Image.Image, options: Optional[WriteOptions] = None) -> bytes:
        raise NotImplementedError

    def write(self, img: Image.Image, stream: BinaryIO, options: Optional[WriteOptions] = None) -> int:
        if self.disposed:
            raise RuntimeError(f"{self.name} encoder has been disposed")
        data = self.encode(img, options or self.default_write_options())
        stream.write(data)
        logger.debug(f"[{self.name}] wrote {len(data)} bytes ({img.width}x{img.height}, {options})")
        return len(data)

    def dispose(self) -> None:
        self.dispose_count += 1

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


# ---------- Pillow ----------

class PillowEncoder(Encoder):
    """
    Encodes through PIL.Image.save; one handle per Pillow save format (JPEG, PNG, BMP, GIF, ...).
    """
    library = "pillow"

    def default_write_options(self) -> WriteOptions:
        if self.format_id == "JPEG":
            return WriteOptions(True, ("baseline", "progressive"), "baseline")
        if self.format_id == "PNG":
            return WriteOptions(True)
        return WriteOptions()

    def _save_kwargs(self, options: WriteOptions) -> Dict:
        kw: Dict = {}
        if self.format_id == "JPEG":
            if options.compression_type == "progressive":
                kw["progressive"] = True
                kw["optimize"] = True
            if options.quality is not None:
                kw["quality"] = max(1, round(options.quality * settings.JPEG_MAX_QUALITY))
        elif self.format_id == "PNG" and options.quality is not None:
            kw["compress_level"] = _png_compress_level(options.quality)
        return kw

    def encode(self, img: Image.Image, options: Optional[WriteOptions] = None) -> bytes:
        buf = BytesIO()
        img.save(buf, format=self.format_id, **self._save_kwargs(options or self.default_write_options()))
        return buf.getvalue()


# ---------- OpenCV ----------

_CV_EXTENSIONS = {"PNG": ".png", "JPEG": ".jpg", "BMP": ".bmp"}


class OpenCVEncoder(Encoder):
    """
    Encodes through cv2.imencode. Registered after Pillow, so it is only picked
    when a compatibility policy asks for a non-default encoder.
    """
    library = "opencv"

    def __init__(self, format_id: str):
        super().__init__(format_id)
        if self.format_id not in _CV_EXTENSIONS:
            raise ValueError(f"OpenCV encoder does not support {format_id}")

    def default_write_options(self) -> WriteOptions:
        if self.format_id == "JPEG":
            return WriteOptions(True, ("baseline", "progressive"), "baseline")
        if self.format_id == "PNG":
            return WriteOptions(True)
        return WriteOptions()

    def _imencode_params(self, options: WriteOptions) -> list:
        params: list = []
        if self.format_id == "JPEG":
            if options.compression_type == "progressive":
                params += [cv2.IMWRITE_JPEG_PROGRESSIVE, 1]
            if options.quality is not None:
                params += [cv2.IMWRITE_JPEG_QUALITY, int(round(options.quality * 100))]
        elif self.format_id == "PNG" and options.quality is not None:
            params += [cv2.IMWRITE_PNG_COMPRESSION, _png_compress_level(options.quality)]
        return params

    def encode(self, img: Image.Image, options: Optional[WriteOptions] = None) -> bytes:
        arr = _to_cv_array(img, png=self.format_id == "PNG")
        ok, buf = cv2.imencode(
            _CV_EXTENSIONS[self.format_id], arr, self._imencode_params(options or self.default_write_options())
        )
        if not ok:
            raise OSError(f"OpenCV failed to encode {img.width}x{img.height} image as {self.format_id}")
        return buf.tobytes()


# ---------- Helpers ----------

def _png_compress_level(quality: float) -> int:
    """Quality 1.0 -> no compression (level 0), 0.0 -> best compression (level 9)."""
    return int(round(settings.PNG_MAX_COMPRESS_LEVEL * (1.0 - quality)))


def _to_cv_array(img: Image.Image, png: bool) -> np.ndarray:
    """
    PIL image -> array in OpenCV channel order (gray, BGR or BGRA).
    PNG output keeps alpha and 16-bit grayscale; everything else is 8-bit.
    """
    if img.mode in ("1", "L"):
        return np.asarray(img.convert("L"))
    if png and (img.mode == "I" or img.mode.startswith("I;16")):
        return np.clip(np.asarray(img), 0, 65535).astype(np.uint16)
    has_alpha = img.mode in ("RGBA", "LA", "PA") or "transparency" in img.info
    if has_alpha and png:
        return cv2.cvtColor(np.asarray(img.convert("RGBA")), cv2.COLOR_RGBA2BGRA)
    return cv2.cvtColor(np.asarray(img.convert("RGB")), cv2.COLOR_RGB2BGR)
