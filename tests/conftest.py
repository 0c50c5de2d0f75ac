"""Pytest configuration and fixtures."""

import io
import tempfile
from pathlib import Path

import pytest
from PIL import Image

from photoconv.models import InputFile
from tests.imaging import encode_image, make_quadrant_image

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def quadrant_image() -> Image.Image:
    """40x20 four-color test pattern."""
    return make_quadrant_image()


@pytest.fixture
def png_file(quadrant_image) -> InputFile:
    """A small PNG input."""
    return InputFile(name="pattern.png", data=encode_image(quadrant_image, "PNG"), type_hint="image/png")


@pytest.fixture
def jpeg_file(quadrant_image) -> InputFile:
    """A small JPEG input without EXIF."""
    return InputFile(
        name="photo.jpg", data=encode_image(quadrant_image, "JPEG", quality=95), type_hint="image/jpeg"
    )


@pytest.fixture
def rotated_jpeg_file(quadrant_image) -> InputFile:
    """A JPEG tagged with orientation 6 (rotate 90° CW to display)."""
    return InputFile(
        name="rotated.jpg",
        data=encode_image(quadrant_image, "JPEG", orientation=6, quality=95),
        type_hint="image/jpeg",
    )


@pytest.fixture
def corrupt_file() -> InputFile:
    """Bytes that no decoder accepts."""
    return InputFile(name="broken.jpg", data=b"\xff\xd8\xff\xe0not really a jpeg", type_hint="image/jpeg")


@pytest.fixture(scope="session")
def heic_bytes() -> bytes:
    """A small HEIC image, skipped when no HEIF encoder is available."""
    pillow_heif = pytest.importorskip("pillow_heif")
    pillow_heif.register_heif_opener()

    output = io.BytesIO()
    try:
        make_quadrant_image(64, 32).convert("RGB").save(output, format="HEIF", quality=90)
    except Exception as e:  # encoder plugins are optional in libheif builds
        pytest.skip(f"HEIF encoder unavailable: {e}")
    return output.getvalue()


@pytest.fixture
def heic_file(heic_bytes) -> InputFile:
    """A HEIC input file."""
    return InputFile(name="IMG_0001.HEIC", data=heic_bytes, type_hint="image/heic")
