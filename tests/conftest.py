import io

import pytest
from PIL import Image

from thumbsink.codecs import Encoder
from thumbsink.compat import CompatibilityMode
from thumbsink.registry import EncoderProvider, EncoderRegistry, build_default_registry


class RecordingEncoder(Encoder):
    """Wraps a real encoder and remembers the options it was asked to use."""

    def __init__(self, inner: Encoder):
        super().__init__(inner.format_id)
        self.inner = inner
        self.options = None

    @property
    def name(self) -> str:
        return self.inner.name

    def default_write_options(self):
        return self.inner.default_write_options()

    def encode(self, img, options=None):
        self.options = options
        return self.inner.encode(img, options)

    def dispose(self):
        super().dispose()
        self.inner.dispose()


class FailingEncoder(Encoder):
    library = "failing"

    def encode(self, img, options=None):
        raise OSError("encoder exploded")


class TrackingRegistry(EncoderRegistry):
    """Default registry whose encoder handles and output streams are recorded for leak checks."""

    def __init__(self, base: EncoderRegistry):
        super().__init__()
        self.created = []
        self.streams = []
        for fname in base.format_names():
            for provider in base.providers_for(fname):
                self.register([fname], EncoderProvider(provider.name, provider.format_id, self._recording(provider)))

    def _recording(self, provider):
        def factory():
            enc = RecordingEncoder(provider.create())
            self.created.append(enc)
            return enc
        return factory

    def open_output_stream(self, raw):
        stream = super().open_output_stream(raw)
        self.streams.append(stream)
        return stream


class BrokenStream(io.RawIOBase):
    def writable(self):
        return True

    def write(self, b):
        raise OSError("disk full")


@pytest.fixture(scope="session")
def base_registry():
    return build_default_registry()


@pytest.fixture
def registry(base_registry):
    return TrackingRegistry(base_registry)


@pytest.fixture
def legacy():
    return CompatibilityMode(modern_platform=False)


@pytest.fixture
def modern():
    return CompatibilityMode(modern_platform=True)


@pytest.fixture
def rgb_image():
    """100x100 RGB image with a gradient so encoders have something to compress."""
    img = Image.new("RGB", (100, 100))
    img.putdata([(x * 2, y * 2, (x + y) % 256) for y in range(100) for x in range(100)])
    return img


@pytest.fixture
def rgba_image():
    return Image.new("RGBA", (100, 100), (200, 100, 50, 128))


@pytest.fixture
def output():
    return io.BytesIO()


@pytest.fixture
def failing_registry():
    """Registry with a single encoder, for format "fail", that raises while encoding."""
    reg = TrackingRegistry(EncoderRegistry())
    failing = EncoderProvider("failing.fail", "FAIL", lambda: FailingEncoder("FAIL"))
    reg.register(["fail"], EncoderProvider(failing.name, failing.format_id, reg._recording(failing)))
    return reg


@pytest.fixture
def broken_stream():
    return BrokenStream()
