"""Main CLI application using Typer."""

from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console

from photoconv import __version__
from photoconv.cli.commands.convert import convert
from photoconv.cli.commands.info import info
from photoconv.config.constants import APP_NAME

# Load environment variables from .env file
load_dotenv()

# Create main Typer app
app = typer.Typer(
    name=APP_NAME,
    help="Convert HEIC and other photos to JPEG, PNG or PDF.",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)

# Console for output
console = Console()

# Register commands
app.command(name="convert", help="Convert images to JPEG, PNG or PDF.")(convert)
app.command(name="info", help="Show dimensions and orientation of images.")(info)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]{APP_NAME}[/bold blue] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """photoconv - Photo format conversion.

    Decodes HEIC/HEIF and common raster formats, applies the EXIF orientation
    and re-encodes to JPEG (optionally to a target size), PNG or a one-page PDF.
    """
    pass


if __name__ == "__main__":
    app()
