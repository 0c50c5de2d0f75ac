"""Tests for the layered decoder."""

import pytest

from photoconv.exceptions import DecodeError
from photoconv.image.decoder import (
    BundledHeifCapability,
    Decoder,
    HeifUnsupportedError,
    RawImage,
    is_heif,
)
from photoconv.models import InputFile, Metadata
from tests.imaging import BLUE, RED, make_quadrant_image


class FakeCapability:
    """Decode capability with scripted availability and behavior."""

    def __init__(self, name, available=True, result=None, error=None):
        self.name = name
        self.available = available
        self.result = result
        self.error = error
        self.calls = 0

    def is_available(self):
        return self.available

    def decode(self, data):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


def raw_pattern(width=40, height=20):
    return RawImage.from_image(make_quadrant_image(width, height))


class TestIsHeif:
    """Tests for HEIF detection."""

    @pytest.mark.parametrize("name", ["IMG_0001.HEIC", "photo.heic", "burst.heif"])
    def test_by_extension(self, name):
        """HEIF extensions are detected case-insensitively."""
        assert is_heif(b"", name)

    def test_by_type_hint(self):
        """A HEIC MIME hint is enough."""
        assert is_heif(b"", "upload.bin", "image/heic")

    def test_by_brand(self):
        """An ftyp box with a HEIF brand identifies the container."""
        data = b"\x00\x00\x00\x18ftypheic\x00\x00\x00\x00mif1heic"
        assert is_heif(data, "noext")

    def test_not_heif(self, png_file):
        """Standard rasters are not HEIF."""
        assert not is_heif(png_file.data, png_file.name, png_file.type_hint)


class TestHeifChain:
    """Tests for the HEIF capability chain."""

    def test_native_first(self):
        """An available native capability is preferred."""
        native = FakeCapability("native", result=raw_pattern())
        bundled = FakeCapability("bundled", result=raw_pattern())
        decoder = Decoder(heif_capabilities=[native, bundled])

        buffer = decoder.decode(InputFile("a.heic", b"x"), Metadata())

        assert (buffer.width, buffer.height) == (40, 20)
        assert native.calls == 1
        assert bundled.calls == 0

    def test_bundled_used_when_native_unavailable(self):
        """Without a native decoder the bundled one runs."""
        native = FakeCapability("native", available=False)
        bundled = FakeCapability("bundled", result=raw_pattern())
        decoder = Decoder(heif_capabilities=[native, bundled])

        buffer = decoder.decode(InputFile("a.heic", b"x"), Metadata())

        assert (buffer.width, buffer.height) == (40, 20)
        assert native.calls == 0
        assert bundled.calls == 1

    def test_bundled_used_when_native_fails(self):
        """A failing native decode falls through to the bundled decoder."""
        native = FakeCapability("native", error=OSError("codec missing"))
        bundled = FakeCapability("bundled", result=raw_pattern())
        decoder = Decoder(heif_capabilities=[native, bundled])

        decoder.decode(InputFile("a.heic", b"x"), Metadata())

        assert bundled.calls == 1

    def test_all_fail_raises_decode_error(self):
        """When every capability fails a DecodeError is raised with the cause chained."""
        cause = ValueError("bad box")
        decoder = Decoder(
            heif_capabilities=[
                FakeCapability("native", error=OSError("codec missing")),
                FakeCapability("bundled", error=cause),
            ]
        )

        with pytest.raises(DecodeError) as exc_info:
            decoder.decode(InputFile("a.heic", b"x"), Metadata())

        assert exc_info.value.file_name == "a.heic"
        assert exc_info.value.cause is cause
        assert not isinstance(exc_info.value, HeifUnsupportedError)

    def test_none_available_raises_unsupported(self):
        """No available capability is reported distinctly."""
        decoder = Decoder(
            heif_capabilities=[FakeCapability("native", available=False), BundledHeifCapability(enabled=False)]
        )

        assert not decoder.supports_heif
        with pytest.raises(HeifUnsupportedError):
            decoder.decode(InputFile("a.heic", b"x"), Metadata())

    def test_real_bundled_decode(self, heic_file):
        """The bundled libheif path decodes a real HEIC file."""
        decoder = Decoder(
            heif_capabilities=[FakeCapability("native", available=False), BundledHeifCapability()]
        )

        buffer = decoder.decode(heic_file, Metadata(width=64, height=32))

        assert (buffer.width, buffer.height) == (64, 32)
        assert len(buffer.data) == 64 * 32 * 4


class TestGenericDecode:
    """Tests for standard raster input."""

    def test_png(self, png_file):
        """PNG decodes losslessly."""
        buffer = Decoder().decode(png_file, Metadata(width=40, height=20))
        assert buffer.to_image().tobytes() == make_quadrant_image(40, 20).tobytes()

    def test_orientation_applied_once(self, png_file):
        """Orientation from metadata is applied during decode."""
        buffer = Decoder().decode(png_file, Metadata(width=40, height=20, orientation=6))
        img = buffer.to_image()

        assert img.size == (20, 40)
        # 90° CW: source top-left (red) ends top-right, bottom-left (blue) ends top-left
        assert img.getpixel((15, 5)) == RED
        assert img.getpixel((5, 5)) == BLUE

    def test_corrupt_raises_decode_error(self, corrupt_file):
        """Unreadable data raises DecodeError with the cause chained."""
        with pytest.raises(DecodeError) as exc_info:
            Decoder().decode(corrupt_file, Metadata())

        assert exc_info.value.file_name == "broken.jpg"
        assert exc_info.value.cause is not None
        assert exc_info.value.__cause__ is exc_info.value.cause
