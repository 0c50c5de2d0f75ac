"""File system helpers for reading inputs and writing converted outputs."""

from pathlib import Path

from photoconv.config.constants import STRIPPED_INPUT_EXTENSIONS, SUPPORTED_EXTENSIONS
from photoconv.utils.logging import get_logger

log = get_logger(__name__)


def ensure_directory(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def safe_filename(filename: str, max_length: int = 255) -> str:
    """Create a safe filename by removing/replacing problematic characters.

    Args:
        filename: Original filename
        max_length: Maximum filename length

    Returns:
        Safe filename
    """
    result = filename
    for char in '/\\:*?"<>|':
        result = result.replace(char, "_")
    result = result.replace("\0", "").strip(". ")

    # Truncate if too long (preserve extension)
    if len(result) > max_length:
        stem = Path(result).stem
        suffix = Path(result).suffix
        result = stem[: max_length - len(suffix)] + suffix

    return result


def output_name_for(file_name: str, extension: str) -> str:
    """Name of the converted file: known image extensions swapped for ``extension``.

    Examples:
        >>> output_name_for("IMG_0001.HEIC", "jpg")
        'IMG_0001.jpg'
        >>> output_name_for("scan.tiff", "png")
        'scan.tiff.png'
    """
    path = Path(file_name)
    stem = path.stem if path.suffix.lower() in STRIPPED_INPUT_EXTENSIONS else path.name
    return f"{stem}.{extension}"


def get_unique_path(path: Path) -> Path:
    """Get a unique path by adding a counter suffix if path exists."""
    if not path.exists():
        return path

    counter = 1
    while True:
        new_path = path.parent / f"{path.stem}_{counter}{path.suffix}"
        if not new_path.exists():
            return new_path
        counter += 1


def discover_images(paths: list[Path], recursive: bool = False) -> list[Path]:
    """Expand files and directories into the list of supported image files.

    Args:
        paths: Files and/or directories given by the user
        recursive: Descend into subdirectories

    Returns:
        Image files in a stable order, duplicates removed
    """
    found: list[Path] = []
    seen: set[Path] = set()

    for path in paths:
        if path.is_dir():
            pattern = "**/*" if recursive else "*"
            candidates = sorted(
                p for p in path.glob(pattern) if p.is_file() and p.suffix.lower() in SUPPORTED_EXTENSIONS
            )
        else:
            candidates = [path]

        for candidate in candidates:
            resolved = candidate.resolve()
            if resolved not in seen:
                seen.add(resolved)
                found.append(candidate)

    return found


def format_size(size_bytes: int | float) -> str:
    """Format size in bytes to human-readable string."""
    size = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB"]:
        if abs(size) < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def write_output(
    output_dir: Path,
    name: str,
    data: bytes,
    on_conflict: str = "rename",
) -> Path | None:
    """Write a converted file into ``output_dir``.

    Args:
        output_dir: Destination directory (created if missing)
        name: Output file name
        data: File contents
        on_conflict: "skip", "overwrite" or "rename" when the file exists

    Returns:
        Written path, or None when skipped
    """
    target = ensure_directory(output_dir) / safe_filename(name)

    if target.exists():
        if on_conflict == "skip":
            log.info("Output exists, skipping", path=str(target))
            return None
        if on_conflict == "rename":
            target = get_unique_path(target)

    target.write_bytes(data)
    log.debug("Output written", path=str(target), size=len(data))
    return target
