"""Data model for the conversion pipeline."""

from __future__ import annotations

import mimetypes
import re
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from PIL import Image

from photoconv.config.constants import (
    DEFAULT_JPEG_QUALITY,
    ORIENTATION_LABELS,
    OUTPUT_EXTENSIONS,
    SIZE_UNITS,
    SWAPPED_ORIENTATIONS,
)

OutputFormat = Literal["jpeg", "png", "pdf"]
MetadataPolicy = Literal["strip", "keep_basic"]

_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([KM]?B)?\s*$", re.IGNORECASE)


def parse_size(value: str | int) -> int:
    """Parse a target size such as ``"500KB"``, ``"1.5MB"`` or ``"20000"`` into bytes.

    KB and MB are binary units (1024 and 1024²).

    Raises:
        ValueError: If the value cannot be parsed or is not positive
    """
    if isinstance(value, int):
        size = value
    else:
        match = _SIZE_PATTERN.match(value)
        if not match:
            raise ValueError(f"Invalid size: {value!r}")
        number, unit = match.groups()
        size = int(float(number) * SIZE_UNITS[(unit or "B").upper()])

    if size <= 0:
        raise ValueError(f"Size must be positive: {value!r}")
    return size


@dataclass(frozen=True)
class InputFile:
    """An image accepted for conversion: name, raw bytes and an optional MIME hint."""

    name: str
    data: bytes = field(repr=False)
    type_hint: str | None = None

    @classmethod
    def from_path(cls, path: Path) -> InputFile:
        """Read a file from disk, guessing its type hint from the extension."""
        type_hint, _ = mimetypes.guess_type(path.name)
        if type_hint is None and path.suffix.lower() in (".heic", ".heif"):
            type_hint = f"image/{path.suffix.lower().lstrip('.')}"
        return cls(name=path.name, data=path.read_bytes(), type_hint=type_hint)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class Metadata:
    """Dimensions and EXIF orientation of an input, best effort."""

    width: int = 0
    height: int = 0
    orientation: int = 1
    estimated: bool = False
    date_taken: str | None = None

    @property
    def orientation_text(self) -> str:
        label = ORIENTATION_LABELS.get(self.orientation, "Unknown")
        return f"{label} (estimated)" if self.estimated else label

    @property
    def swaps_dimensions(self) -> bool:
        return self.orientation in SWAPPED_ORIENTATIONS


@dataclass
class PixelBuffer:
    """Dense RGBA raster, already orientation-corrected."""

    width: int
    height: int
    data: bytes = field(repr=False)

    def __post_init__(self) -> None:
        expected = self.width * self.height * 4
        if len(self.data) != expected:
            raise ValueError(
                f"RGBA buffer of {len(self.data)} bytes does not match {self.width}x{self.height}"
            )

    @classmethod
    def from_image(cls, img: Image.Image) -> PixelBuffer:
        """Copy a Pillow image into a new buffer."""
        if img.mode != "RGBA":
            img = img.convert("RGBA")
        return cls(width=img.width, height=img.height, data=img.tobytes())

    def to_image(self) -> Image.Image:
        """View the buffer as a Pillow RGBA image."""
        return Image.frombytes("RGBA", (self.width, self.height), self.data)


@dataclass(frozen=True)
class ConversionRequest:
    """What to produce for one file. Never mutated after creation."""

    target_format: OutputFormat = "jpeg"
    quality: int = DEFAULT_JPEG_QUALITY
    target_size: int | None = None
    # "keep_basic" is accepted and reported but currently writes the same
    # metadata-free bytes as "strip".
    metadata_policy: MetadataPolicy = "strip"

    def __post_init__(self) -> None:
        if self.target_format not in OUTPUT_EXTENSIONS:
            raise ValueError(f"Unsupported output format: {self.target_format}")
        if not 1 <= self.quality <= 100:
            raise ValueError(f"Quality must be between 1 and 100, got {self.quality}")
        if self.target_size is not None and self.target_size <= 0:
            raise ValueError(f"Target size must be positive, got {self.target_size}")
        if self.metadata_policy not in ("strip", "keep_basic"):
            raise ValueError(f"Unknown metadata policy: {self.metadata_policy}")

    @property
    def uses_target_size(self) -> bool:
        """Target sizes only drive the lossy format."""
        return self.target_size is not None and self.target_format == "jpeg"

    @property
    def extension(self) -> str:
        return OUTPUT_EXTENSIONS[self.target_format]


@dataclass
class ConversionResult:
    """A successfully converted file."""

    file_name: str
    output_name: str
    target_format: OutputFormat
    output_bytes: bytes = field(repr=False)
    thumbnail_bytes: bytes = field(repr=False)
    width: int
    height: int
    achieved_quality: int | None = None
    achieved_size_target: int | None = None
    metadata_policy: MetadataPolicy = "strip"

    @property
    def size(self) -> int:
        return len(self.output_bytes)


@dataclass(frozen=True)
class BatchItem:
    """One file of a batch with the request it is converted under."""

    file: InputFile
    request: ConversionRequest
    item_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])


@dataclass(frozen=True)
class FileFailure:
    """A file that could not be converted."""

    item_id: str
    file_name: str
    error: Exception

    @property
    def message(self) -> str:
        return str(self.error)


@dataclass
class BatchJob:
    """Progress and outcomes of a batch.

    ``completed`` counts successes and failures alike and never exceeds
    ``total``; results are stored in completion order and looked up by item id.
    """

    items: list[BatchItem]
    completed: int = 0
    results: list[ConversionResult] = field(default_factory=list)
    errors: list[FileFailure] = field(default_factory=list)
    _outcomes: dict[str, ConversionResult | FileFailure] = field(
        default_factory=dict, repr=False
    )

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def is_complete(self) -> bool:
        return self.completed == self.total

    @property
    def progress(self) -> float:
        """Get current progress (0.0 to 1.0)."""
        if self.total == 0:
            return 1.0
        return self.completed / self.total

    def record_result(self, item_id: str, result: ConversionResult) -> None:
        self._record(item_id, result)
        self.results.append(result)

    def record_failure(self, failure: FileFailure) -> None:
        self._record(failure.item_id, failure)
        self.errors.append(failure)

    def _record(self, item_id: str, outcome: ConversionResult | FileFailure) -> None:
        if item_id in self._outcomes:
            raise ValueError(f"Outcome for item {item_id} already recorded")
        if not any(item.item_id == item_id for item in self.items):
            raise ValueError(f"Unknown batch item: {item_id}")
        self._outcomes[item_id] = outcome
        self.completed += 1

    def outcome_for(self, item_id: str) -> ConversionResult | FileFailure | None:
        return self._outcomes.get(item_id)

    @property
    def total_output_bytes(self) -> int:
        return sum(result.size for result in self.results)

    @property
    def average_output_size(self) -> float:
        if not self.results:
            return 0.0
        return self.total_output_bytes / len(self.results)
