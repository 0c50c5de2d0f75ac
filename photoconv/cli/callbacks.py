"""CLI callback functions."""

from pathlib import Path

import typer

from photoconv.config.constants import CONFLICT_POLICIES, METADATA_POLICIES, OUTPUT_FORMATS
from photoconv.models import parse_size


def validate_output_dir(value: Path | None) -> Path | None:
    """Validate the output directory; it is created later if missing."""
    if value is None:
        return None

    if value.exists() and not value.is_dir():
        raise typer.BadParameter(f"Output path exists but is not a directory: {value}")

    return value


def validate_input_paths(value: list[Path]) -> list[Path]:
    """Validate that every input path exists."""
    missing = [str(path) for path in value if not path.exists()]
    if missing:
        raise typer.BadParameter(f"Not found: {', '.join(missing)}")
    return value


def validate_output_format(value: str | None) -> str | None:
    """Validate output format option."""
    if value is None:
        return None

    normalized = value.lower()
    if normalized == "jpg":
        normalized = "jpeg"
    if normalized not in OUTPUT_FORMATS:
        raise typer.BadParameter(f"Invalid format '{value}'. Options: {', '.join(OUTPUT_FORMATS)}")
    return normalized


def validate_metadata_policy(value: str | None) -> str | None:
    """Validate metadata policy option."""
    if value is not None and value not in METADATA_POLICIES:
        raise typer.BadParameter(
            f"Invalid metadata policy '{value}'. Options: {', '.join(METADATA_POLICIES)}"
        )
    return value


def validate_conflict_policy(value: str | None) -> str | None:
    """Validate conflict policy option."""
    if value is not None and value not in CONFLICT_POLICIES:
        raise typer.BadParameter(
            f"Invalid conflict policy '{value}'. Options: {', '.join(CONFLICT_POLICIES)}"
        )
    return value


def validate_target_size(value: str | None) -> str | None:
    """Validate a target size such as 500KB or 2MB."""
    if value is None:
        return None

    try:
        parse_size(value)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    return value
