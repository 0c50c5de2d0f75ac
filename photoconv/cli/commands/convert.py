"""Convert command for batch image conversion."""

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from photoconv.cli.callbacks import (
    validate_conflict_policy,
    validate_input_paths,
    validate_metadata_policy,
    validate_output_dir,
    validate_output_format,
    validate_target_size,
)
from photoconv.config import PhotoconvSettings, get_settings
from photoconv.config.constants import CONFLICT_POLICIES, METADATA_POLICIES, OUTPUT_FORMATS
from photoconv.core.batch import BatchOrchestrator
from photoconv.core.dispatcher import ParallelDispatcher
from photoconv.exceptions import ConfigurationError
from photoconv.image.decoder import register_native_heif
from photoconv.models import (
    BatchItem,
    BatchJob,
    ConversionRequest,
    ConversionResult,
    FileFailure,
    InputFile,
    parse_size,
)
from photoconv.utils.fs import discover_images, format_size, write_output
from photoconv.utils.logging import get_logger, setup_task_logging

console = Console()
log = get_logger(__name__)


class RichProgressReporter:
    """Progress reporter driving a rich progress bar."""

    def __init__(self, progress: Progress, task_id: TaskID, quiet: bool = False) -> None:
        self.progress = progress
        self.task_id = task_id
        self.quiet = quiet

    def on_file_converted(self, item: BatchItem, result: ConversionResult) -> None:
        if not self.quiet:
            self.progress.console.print(
                f"  [green]✓[/green] {escape(item.file.name)} → {escape(result.output_name)} "
                f"({format_size(result.size)})"
            )

    def on_file_failed(self, item: BatchItem, failure: FileFailure) -> None:
        self.progress.console.print(f"  [red]✗[/red] {escape(failure.message)}")

    def on_progress(self, completed: int, total: int) -> None:
        self.progress.update(self.task_id, completed=completed, total=total)

    def on_batch_complete(self, job: BatchJob) -> None:
        self.progress.update(self.task_id, description="[green]Done")


def convert(
    inputs: Annotated[
        list[Path],
        typer.Argument(
            help="Image files or directories to convert.",
            callback=validate_input_paths,
        ),
    ],
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output directory for converted files.",
            callback=validate_output_dir,
            file_okay=False,
            dir_okay=True,
            resolve_path=True,
        ),
    ] = None,
    output_format: Annotated[
        str | None,
        typer.Option(
            "--format",
            "-f",
            help=f"Output format. Options: {', '.join(OUTPUT_FORMATS)}",
            callback=validate_output_format,
        ),
    ] = None,
    quality: Annotated[
        int | None,
        typer.Option(
            "--quality",
            "-q",
            help="JPEG quality (1-100).",
            min=1,
            max=100,
        ),
    ] = None,
    target_size: Annotated[
        str | None,
        typer.Option(
            "--target-size",
            "-s",
            help="Approximate JPEG output size, e.g. 500KB or 2MB.",
            callback=validate_target_size,
        ),
    ] = None,
    metadata: Annotated[
        str | None,
        typer.Option(
            "--metadata",
            help=f"Metadata policy. Options: {', '.join(METADATA_POLICIES)}",
            callback=validate_metadata_policy,
        ),
    ] = None,
    on_conflict: Annotated[
        str | None,
        typer.Option(
            "--on-conflict",
            help=f"What to do when an output file exists. Options: {', '.join(CONFLICT_POLICIES)}",
            callback=validate_conflict_policy,
        ),
    ] = None,
    recursive: Annotated[
        bool,
        typer.Option(
            "--recursive",
            "-r",
            help="Descend into subdirectories of directory inputs.",
        ),
    ] = False,
    no_worker: Annotated[
        bool,
        typer.Option(
            "--no-worker",
            help="Convert in-process instead of in an isolated worker.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Show conversion plan without executing.",
        ),
    ] = False,
) -> None:
    """Convert images to JPEG, PNG or a one-page PDF.

    Examples:
        photoconv convert IMG_0001.HEIC
        photoconv convert ./photos -o ./converted --format png
        photoconv convert ./photos --target-size 500KB
    """
    try:
        settings = get_settings()
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    task_id, log_path = setup_task_logging(
        log_dir=settings.log_dir,
        prefix="convert",
        verbose=verbose,
        level=settings.log_level,
    )
    if verbose:
        log.info("Logs will be saved to", log_file=str(log_path))
    log.info("Task Configuration", task_id=task_id, config=settings.model_dump())

    files = discover_images(inputs, recursive=recursive)
    if not files:
        console.print("[yellow]No supported images found.[/yellow]")
        raise typer.Exit(1)

    try:
        request = ConversionRequest(
            target_format=output_format or settings.conversion.output_format,  # type: ignore[arg-type]
            quality=quality or settings.conversion.jpeg_quality,
            target_size=parse_size(target_size) if target_size else None,
            metadata_policy=metadata or settings.conversion.metadata_policy,  # type: ignore[arg-type]
        )
    except ValueError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    output_dir = output or settings.get_output_dir()
    conflict_policy = on_conflict or settings.output.on_conflict

    log.info(
        "Starting conversion",
        files=len(files),
        output_dir=str(output_dir),
        format=request.target_format,
        target_size=request.target_size,
    )

    if dry_run:
        _show_dry_run(files, output_dir, request, conflict_policy, use_worker=not no_worker)
        return

    try:
        job = _execute_batch(
            files=files,
            request=request,
            settings=settings,
            use_worker=settings.worker.use_worker and not no_worker,
            verbose=verbose,
        )
    except KeyboardInterrupt:
        log.warning("Task Interrupted by KeyboardInterrupt")
        console.print("\n[yellow]Interrupted. Exiting...[/yellow]")
        raise typer.Exit(130) from None
    except Exception as e:
        log.error("Conversion failed", error=str(e), exc_info=True)
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    written = _write_results(job, output_dir, conflict_policy)
    _show_summary(job, written, output_dir)

    if job.total and not job.results:
        log.error("Task Failed", failed=len(job.errors))
        raise typer.Exit(1)
    log.info("Task Completed", converted=len(job.results), failed=len(job.errors))


def _load_inputs(files: list[Path]) -> list[InputFile]:
    """Read input files, skipping unreadable ones."""
    inputs: list[InputFile] = []
    for path in files:
        try:
            inputs.append(InputFile.from_path(path))
        except OSError as e:
            log.warning("Cannot read input", path=str(path), error=str(e))
            console.print(f"[yellow]Skipping unreadable file:[/yellow] {path} ({e})")
    return inputs


def _execute_batch(
    files: list[Path],
    request: ConversionRequest,
    settings: PhotoconvSettings,
    use_worker: bool,
    verbose: bool,
) -> BatchJob:
    """Run the batch behind a progress bar."""
    if settings.decode.native_heif:
        register_native_heif()

    inputs = _load_inputs(files)

    async def run(reporter: RichProgressReporter) -> BatchJob:
        dispatcher = ParallelDispatcher(
            use_worker=use_worker,
            worker_native_heif=settings.worker.native_heif,
            worker_bundled_fallback=settings.worker.bundled_fallback,
            thumbnail_size=settings.thumbnail.max_size,
            thumbnail_quality=settings.thumbnail.quality,
            worker_log_level="DEBUG" if verbose else "WARNING",
        )
        async with dispatcher:
            job = await BatchOrchestrator(dispatcher, reporter).run(inputs, request)
        if dispatcher.fallback_count:
            log.info("Fallback conversions", count=dispatcher.fallback_count)
        return job

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TextColumn("({task.completed}/{task.total})"),
        TimeElapsedColumn(),
        console=console,
        transient=False,
    ) as progress:
        progress_task_id = progress.add_task("[cyan]Converting images...", total=len(inputs))
        reporter = RichProgressReporter(progress, progress_task_id, quiet=not verbose)
        return asyncio.run(run(reporter))


def _write_results(job: BatchJob, output_dir: Path, on_conflict: str) -> list[Path]:
    """Write converted files to disk."""
    written: list[Path] = []
    for result in job.results:
        try:
            path = write_output(output_dir, result.output_name, result.output_bytes, on_conflict)
        except OSError as e:
            log.error("Cannot write output", file=result.output_name, error=str(e))
            console.print(f"[red]Cannot write {escape(result.output_name)}:[/red] {escape(str(e))}")
            continue
        if path is not None:
            written.append(path)
    return written


def _show_dry_run(
    files: list[Path],
    output_dir: Path,
    request: ConversionRequest,
    on_conflict: str,
    use_worker: bool,
) -> None:
    """Display the conversion plan without executing."""
    console.print("\n[bold blue]Conversion Plan (Dry Run)[/bold blue]\n")
    console.print(f"  [bold]Files:[/bold] {len(files)}")
    console.print(f"  [bold]Output Directory:[/bold] {output_dir}")
    console.print()
    console.print("[bold]Options:[/bold]")
    console.print(f"  Format: {request.target_format}")
    if request.uses_target_size:
        console.print(f"  Target Size: {format_size(request.target_size or 0)}")
    elif request.target_format == "jpeg":
        console.print(f"  Quality: {request.quality}")
    console.print(f"  Metadata: {request.metadata_policy}")
    console.print(f"  On Conflict: {on_conflict}")
    console.print(f"  Isolated Worker: {'Enabled' if use_worker else 'Disabled'}")
    console.print()
    for path in files[:20]:
        console.print(f"  {path}")
    if len(files) > 20:
        console.print(f"  ... and {len(files) - 20} more")


def _show_summary(job: BatchJob, written: list[Path], output_dir: Path) -> None:
    """Display batch summary."""
    console.print()

    table = Table(title="Conversion Summary", show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value")

    table.add_row("Total Files", str(job.total))
    table.add_row("Converted", f"[green]{len(job.results)}[/green]")
    table.add_row("Failed", f"[red]{len(job.errors)}[/red]")
    table.add_row("Written", str(len(written)))
    if job.results:
        table.add_row("Total Size", format_size(job.total_output_bytes))
        table.add_row("Average Size", format_size(job.average_output_size))
    table.add_row("Output Directory", str(output_dir))

    console.print(table)

    if job.errors:
        console.print()
        console.print("[bold red]Failed Files:[/bold red]")
        for failure in job.errors[:10]:
            console.print(f"  - {escape(failure.message)}")
        if len(job.errors) > 10:
            console.print(f"  ... and {len(job.errors) - 10} more")
