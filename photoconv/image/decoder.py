"""Decode raw file bytes into orientation-corrected pixel buffers.

HEIF/HEIC input goes through a chain of decode capabilities, probed at call
time: Pillow with the pillow-heif plugin registered (the native path) and,
failing that, a direct libheif decode through pillow-heif (the bundled
software path). Everything else goes through Pillow's generic loader.
"""

from __future__ import annotations

import io
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

import pillow_heif
from PIL import Image

from photoconv.config.constants import HEIF_BRANDS, HEIF_EXTENSIONS
from photoconv.exceptions import DecodeError
from photoconv.image.orientation import apply_orientation
from photoconv.models import InputFile, Metadata, PixelBuffer
from photoconv.utils.logging import get_logger

log = get_logger(__name__)


class HeifUnsupportedError(DecodeError):
    """No HEIF decode capability is available in this process."""


def is_heif(data: bytes, name: str = "", type_hint: str | None = None) -> bool:
    """Detect the HEIF container by extension, MIME hint or ``ftyp`` brand.

    Args:
        data: Raw file bytes
        name: Declared file name
        type_hint: Optional MIME type

    Returns:
        True if the input should take the HEIF decode path
    """
    if any(name.lower().endswith(ext) for ext in HEIF_EXTENSIONS):
        return True
    hint = (type_hint or "").lower()
    if "heic" in hint or "heif" in hint:
        return True
    return len(data) >= 12 and data[4:8] == b"ftyp" and data[8:12] in HEIF_BRANDS


def register_native_heif() -> None:
    """Expose HEIF through Pillow's plugin registry for this process."""
    pillow_heif.register_heif_opener()


@dataclass
class RawImage:
    """Decoded pixels at source dimensions, before orientation."""

    width: int
    height: int
    rgba: bytes = field(repr=False)

    @classmethod
    def from_image(cls, img: Image.Image) -> RawImage:
        if img.mode != "RGBA":
            img = img.convert("RGBA")
        return cls(width=img.width, height=img.height, rgba=img.tobytes())

    def to_image(self) -> Image.Image:
        return Image.frombytes("RGBA", (self.width, self.height), self.rgba)


class DecodeCapability(Protocol):
    """A way of turning encoded bytes into RGBA pixels."""

    name: str

    def is_available(self) -> bool:
        """Probe whether this capability can run in the current process."""
        ...

    def decode(self, data: bytes) -> RawImage:
        """Decode bytes, raising on any failure."""
        ...


class NativeHeifCapability:
    """HEIF through Pillow's registered image plugins."""

    name = "native"

    def is_available(self) -> bool:
        return ".heic" in Image.registered_extensions()

    def decode(self, data: bytes) -> RawImage:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return RawImage.from_image(img)


class BundledHeifCapability:
    """HEIF decoded directly by the libheif binding shipped with pillow-heif."""

    name = "bundled"

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

    def is_available(self) -> bool:
        return self.enabled

    def decode(self, data: bytes) -> RawImage:
        heif_file = pillow_heif.open_heif(data, convert_hdr_to_8bit=True)
        img = Image.frombuffer(
            heif_file.mode, heif_file.size, heif_file.data, "raw", heif_file.mode, heif_file.stride
        )
        return RawImage.from_image(img)


class PillowCapability:
    """Generic raster loader (JPEG, PNG, WebP, GIF, TIFF, BMP...)."""

    name = "pillow"

    def is_available(self) -> bool:
        return True

    def decode(self, data: bytes) -> RawImage:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return RawImage.from_image(img)


def default_heif_capabilities(native: bool = True, bundled: bool = True) -> list[DecodeCapability]:
    """The HEIF chain in preference order."""
    capabilities: list[DecodeCapability] = []
    if native:
        capabilities.append(NativeHeifCapability())
    capabilities.append(BundledHeifCapability(enabled=bundled))
    return capabilities


class Decoder:
    """Layered decoder producing :class:`PixelBuffer` objects."""

    def __init__(
        self,
        heif_capabilities: Sequence[DecodeCapability] | None = None,
        generic: DecodeCapability | None = None,
    ) -> None:
        """Initialize the decoder.

        Args:
            heif_capabilities: HEIF decoders tried in order (default: native, bundled)
            generic: Loader for every other format (default: Pillow)
        """
        self.heif_capabilities = (
            list(heif_capabilities) if heif_capabilities is not None else default_heif_capabilities()
        )
        self.generic = generic or PillowCapability()

    @property
    def supports_heif(self) -> bool:
        return any(capability.is_available() for capability in self.heif_capabilities)

    def decode(self, file: InputFile, metadata: Metadata) -> PixelBuffer:
        """Decode a file and apply its orientation.

        Args:
            file: Input file
            metadata: Extracted metadata; only the orientation code is used

        Returns:
            Pixel buffer at display orientation

        Raises:
            HeifUnsupportedError: HEIF input and no HEIF capability available
            DecodeError: Every applicable decode path failed
        """
        if is_heif(file.data, file.name, file.type_hint):
            raw = self._decode_heif(file)
        else:
            raw = self._decode_generic(file)

        oriented = apply_orientation(raw.to_image(), metadata.orientation)
        log.debug(
            "Decoded image",
            file=file.name,
            source=f"{raw.width}x{raw.height}",
            oriented=f"{oriented.width}x{oriented.height}",
            orientation=metadata.orientation,
        )
        return PixelBuffer.from_image(oriented)

    def _decode_heif(self, file: InputFile) -> RawImage:
        errors: list[Exception] = []

        for capability in self.heif_capabilities:
            if not capability.is_available():
                log.debug("HEIF capability unavailable", capability=capability.name, file=file.name)
                continue
            try:
                return capability.decode(file.data)
            except Exception as e:
                log.warning(
                    "HEIF decode failed, trying next decoder",
                    capability=capability.name,
                    file=file.name,
                    error=str(e),
                )
                errors.append(e)

        if not errors:
            raise HeifUnsupportedError(file.name, "No HEIF decoder available")

        messages = [str(e) for e in errors]
        raise DecodeError(
            file.name, f"All HEIF decoders failed: {messages}", cause=errors[-1]
        ) from errors[-1]

    def _decode_generic(self, file: InputFile) -> RawImage:
        try:
            return self.generic.decode(file.data)
        except Exception as e:
            raise DecodeError(file.name, f"Failed to load image: {e}", cause=e) from e
