"""Best-effort metadata extraction (dimensions, orientation, date taken)."""

from __future__ import annotations

import io

import pillow_heif
from PIL import ExifTags, Image

from photoconv.exceptions import MetadataError
from photoconv.image.decoder import BundledHeifCapability, is_heif
from photoconv.models import Metadata
from photoconv.utils.logging import get_logger

log = get_logger(__name__)

# Tag dialects: HEIF exports usually carry pixel dimensions in the EXIF
# sub-IFD, standard rasters in IFD0.
_HEIF_WIDTH_TAGS = (ExifTags.Base.ImageWidth, ExifTags.Base.ExifImageWidth)
_HEIF_HEIGHT_TAGS = (ExifTags.Base.ImageLength, ExifTags.Base.ExifImageHeight)
_RASTER_WIDTH_TAGS = (ExifTags.Base.ImageWidth,)
_RASTER_HEIGHT_TAGS = (ExifTags.Base.ImageLength,)


def _first_tag(exif: Image.Exif, sub_ifd: dict, tags: tuple[int, ...]) -> int:
    for tag in tags:
        value = exif.get(tag) or sub_ifd.get(tag)
        if value:
            return int(value)
    return 0


def _orientation_of(exif: Image.Exif) -> int:
    value = exif.get(ExifTags.Base.Orientation, 1)
    try:
        code = int(value)
    except (TypeError, ValueError):
        return 1
    return code if 1 <= code <= 8 else 1


def _date_of(exif: Image.Exif, sub_ifd: dict) -> str | None:
    value = sub_ifd.get(ExifTags.Base.DateTimeOriginal) or exif.get(ExifTags.Base.DateTime)
    if not value:
        return None
    return str(value).strip("\x00 ") or None


def _metadata_from_exif(
    exif: Image.Exif,
    width_tags: tuple[int, ...],
    height_tags: tuple[int, ...],
) -> Metadata:
    sub_ifd = exif.get_ifd(ExifTags.IFD.Exif)
    return Metadata(
        width=_first_tag(exif, sub_ifd, width_tags),
        height=_first_tag(exif, sub_ifd, height_tags),
        orientation=_orientation_of(exif),
        date_taken=_date_of(exif, sub_ifd),
    )


def read_heif_tags(data: bytes, name: str = "") -> Metadata:
    """Read HEIF metadata from its EXIF block and container header.

    Raises:
        MetadataError: If the container cannot be parsed
    """
    try:
        heif_file = pillow_heif.open_heif(data, convert_hdr_to_8bit=True)
        exif = Image.Exif()
        exif_bytes = heif_file.info.get("exif")
        if exif_bytes:
            exif.load(exif_bytes)
        metadata = _metadata_from_exif(exif, _HEIF_WIDTH_TAGS, _HEIF_HEIGHT_TAGS)
        if not (metadata.width and metadata.height):
            width, height = heif_file.size
            metadata = Metadata(
                width=metadata.width or width,
                height=metadata.height or height,
                orientation=metadata.orientation,
                date_taken=metadata.date_taken,
            )
    except Exception as e:
        raise MetadataError(name, f"Unreadable HEIF metadata: {e}", cause=e) from e
    return metadata


def read_raster_tags(data: bytes, name: str = "") -> Metadata:
    """Read IFD0 dimension and orientation tags of a standard raster.

    Raises:
        MetadataError: If the header cannot be parsed
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            return _metadata_from_exif(img.getexif(), _RASTER_WIDTH_TAGS, _RASTER_HEIGHT_TAGS)
    except Exception as e:
        raise MetadataError(name, f"Unreadable EXIF: {e}", cause=e) from e


def extract_metadata(data: bytes, name: str = "", type_hint: str | None = None) -> Metadata:
    """Extract dimensions and orientation, never raising.

    Strategies, first success wins:

    1. Structured EXIF tags in the container's dialect.
    2. HEIF only: full decode for the dimensions, orientation 1, marked estimated.
    3. Standard rasters only: natural size from Pillow's loader.
    4. ``Metadata()`` (0x0, orientation 1).

    Args:
        data: Raw file bytes
        name: Declared file name
        type_hint: Optional MIME type

    Returns:
        Best-effort metadata
    """
    heif = is_heif(data, name, type_hint)
    tagged: Metadata | None = None

    try:
        tagged = read_heif_tags(data, name) if heif else read_raster_tags(data, name)
    except MetadataError as e:
        log.debug("Structured metadata unavailable", file=name, error=str(e))

    if tagged is not None and (tagged.width or tagged.height):
        return tagged

    if heif:
        try:
            raw = BundledHeifCapability().decode(data)
            log.debug("HEIF dimensions estimated by decoding", file=name)
            return Metadata(width=raw.width, height=raw.height, orientation=1, estimated=True)
        except Exception as e:
            log.debug("HEIF decode for metadata failed", file=name, error=str(e))
    else:
        try:
            with Image.open(io.BytesIO(data)) as img:
                return Metadata(
                    width=img.width,
                    height=img.height,
                    orientation=tagged.orientation if tagged else 1,
                    date_taken=tagged.date_taken if tagged else None,
                )
        except Exception as e:
            log.debug("Image load for metadata failed", file=name, error=str(e))

    return Metadata()
