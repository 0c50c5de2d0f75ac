"""Info command: show extracted image metadata."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from photoconv.cli.callbacks import validate_input_paths
from photoconv.image.decoder import is_heif
from photoconv.image.metadata import extract_metadata
from photoconv.models import InputFile
from photoconv.utils.fs import discover_images, format_size
from photoconv.utils.logging import get_logger

console = Console()
log = get_logger(__name__)


def info(
    inputs: Annotated[
        list[Path],
        typer.Argument(
            help="Image files or directories to inspect.",
            callback=validate_input_paths,
        ),
    ],
    recursive: Annotated[
        bool,
        typer.Option(
            "--recursive",
            "-r",
            help="Descend into subdirectories of directory inputs.",
        ),
    ] = False,
) -> None:
    """Show dimensions, orientation and capture date of images.

    Examples:
        photoconv info IMG_0001.HEIC
        photoconv info ./photos -r
    """
    files = discover_images(inputs, recursive=recursive)
    if not files:
        console.print("[yellow]No supported images found.[/yellow]")
        raise typer.Exit(1)

    table = Table(title="Image Metadata")
    table.add_column("File", style="cyan")
    table.add_column("Container")
    table.add_column("Size", justify="right")
    table.add_column("Dimensions", justify="right")
    table.add_column("Orientation")
    table.add_column("Date Taken")

    for path in files:
        try:
            file = InputFile.from_path(path)
        except OSError as e:
            log.warning("Cannot read input", path=str(path), error=str(e))
            table.add_row(path.name, "-", "-", "-", f"[red]{e}[/red]", "-")
            continue

        metadata = extract_metadata(file.data, file.name, file.type_hint)
        dimensions = f"{metadata.width}x{metadata.height}" if metadata.width else "unknown"
        table.add_row(
            file.name,
            "HEIF" if is_heif(file.data, file.name, file.type_hint) else "Raster",
            format_size(file.size),
            dimensions,
            metadata.orientation_text,
            metadata.date_taken or "-",
        )

    console.print(table)
