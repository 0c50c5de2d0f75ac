"""Encode pixel buffers to the output formats."""

from __future__ import annotations

import io
from dataclasses import dataclass, field

from PIL import Image

from photoconv.config.constants import (
    DEFAULT_THUMBNAIL_QUALITY,
    DEFAULT_THUMBNAIL_SIZE,
    PDF_PAGE_HEIGHT,
    PDF_PAGE_WIDTH,
)
from photoconv.exceptions import EncodeError
from photoconv.image.quality import search_quality
from photoconv.models import ConversionRequest, PixelBuffer
from photoconv.utils.logging import get_logger

log = get_logger(__name__)


# =============================================================================
# Module-level helpers (picklable, shared by the worker and the calling context)
# =============================================================================


def flatten_alpha(img: Image.Image, background: tuple[int, int, int] = (255, 255, 255)) -> Image.Image:
    """Composite an RGBA image onto an opaque background (JPEG has no alpha)."""
    if img.mode != "RGBA":
        return img.convert("RGB")
    canvas = Image.new("RGB", img.size, background)
    canvas.paste(img, mask=img.getchannel("A"))
    return canvas


def encode_jpeg(img: Image.Image, quality: int) -> bytes:
    """Encode an RGB image as baseline JPEG with no metadata segments."""
    output = io.BytesIO()
    img.save(output, format="JPEG", quality=quality)
    return output.getvalue()


def encode_png(img: Image.Image) -> bytes:
    """Encode losslessly as PNG with no ancillary metadata chunks."""
    output = io.BytesIO()
    img.save(output, format="PNG", optimize=True)
    return output.getvalue()


@dataclass(frozen=True)
class PagePlacement:
    """Where an image lands on the document page, in PDF points (top-left origin)."""

    x: float
    y: float
    width: float
    height: float
    scale: float

    @property
    def rect(self) -> tuple[float, float, float, float]:
        return (self.x, self.y, self.x + self.width, self.y + self.height)


def fit_to_page(
    width: int,
    height: int,
    page_width: float = PDF_PAGE_WIDTH,
    page_height: float = PDF_PAGE_HEIGHT,
) -> PagePlacement:
    """Scale an image to fit the page preserving aspect ratio, centered on both axes.

    Args:
        width: Image width in pixels
        height: Image height in pixels
        page_width: Page width in points
        page_height: Page height in points

    Returns:
        Placement rectangle of the scaled image
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Cannot place an empty image ({width}x{height})")

    scale = min(page_width / width, page_height / height)
    scaled_width = width * scale
    scaled_height = height * scale
    return PagePlacement(
        x=(page_width - scaled_width) / 2,
        y=(page_height - scaled_height) / 2,
        width=scaled_width,
        height=scaled_height,
        scale=scale,
    )


def encode_pdf(img: Image.Image) -> bytes:
    """Embed an image as PNG on a single A4 page."""
    import fitz  # PyMuPDF

    placement = fit_to_page(img.width, img.height)
    png_data = encode_png(img)

    doc = fitz.open()
    try:
        page = doc.new_page(width=PDF_PAGE_WIDTH, height=PDF_PAGE_HEIGHT)
        page.insert_image(fitz.Rect(*placement.rect), stream=png_data, keep_proportion=False)
        # No producer or timestamps, so the same pixels give the same document
        doc.set_metadata({})
        return doc.tobytes(garbage=3, deflate=True, no_new_id=True)
    finally:
        doc.close()


@dataclass
class EncodedImage:
    """Encoder output for one file."""

    data: bytes = field(repr=False)
    achieved_quality: int | None = None
    achieved_size_target: int | None = None

    @property
    def size(self) -> int:
        return len(self.data)


class FormatEncoder:
    """Encode a :class:`PixelBuffer` according to a :class:`ConversionRequest`.

    Orientation is never touched here; buffers arrive already normalized.
    """

    def encode(self, buffer: PixelBuffer, request: ConversionRequest, file_name: str = "") -> EncodedImage:
        """Encode a buffer.

        Args:
            buffer: Orientation-corrected RGBA pixels
            request: Output format, quality and optional target size
            file_name: Name used in error reports

        Returns:
            Encoded bytes plus the achieved quality (JPEG only) and the
            target size that drove the search, if any

        Raises:
            EncodeError: If the encoder fails or produces no output
        """
        try:
            img = buffer.to_image()
            if request.target_format == "jpeg":
                encoded = self._encode_jpeg(img, request)
            elif request.target_format == "png":
                encoded = EncodedImage(data=encode_png(img))
            else:
                encoded = EncodedImage(data=encode_pdf(img))
        except EncodeError:
            raise
        except Exception as e:
            raise EncodeError(file_name, f"Failed to encode {request.target_format}: {e}", cause=e) from e

        if not encoded.data:
            raise EncodeError(file_name, f"Encoder produced no {request.target_format} output")

        log.debug(
            "Encoded image",
            file=file_name,
            format=request.target_format,
            size=encoded.size,
            quality=encoded.achieved_quality,
            metadata_policy=request.metadata_policy,
        )
        return encoded

    def _encode_jpeg(self, img: Image.Image, request: ConversionRequest) -> EncodedImage:
        rgb = flatten_alpha(img)

        target_size = request.target_size if request.uses_target_size else None
        if target_size is not None:
            best = search_quality(
                lambda q: encode_jpeg(rgb, max(1, round(q * 100))),
                target_size,
            )
            return EncodedImage(
                data=best.data,
                achieved_quality=best.quality,
                achieved_size_target=target_size,
            )

        return EncodedImage(data=encode_jpeg(rgb, request.quality), achieved_quality=request.quality)


def make_thumbnail(
    buffer: PixelBuffer,
    max_size: int = DEFAULT_THUMBNAIL_SIZE,
    quality: int = DEFAULT_THUMBNAIL_QUALITY,
) -> bytes:
    """Render a small JPEG preview, longest side at most ``max_size`` pixels.

    Each side is at least one pixel; small images are never upscaled.
    """
    ratio = min(max_size / buffer.width, max_size / buffer.height, 1.0)
    size = (max(1, round(buffer.width * ratio)), max(1, round(buffer.height * ratio)))

    img = flatten_alpha(buffer.to_image())
    if img.size != size:
        img = img.resize(size, Image.Resampling.LANCZOS)
    return encode_jpeg(img, quality)
