"""
CLI Interface
=============
Command-line interface for the signature pipeline.

Usage:
    python -m sigstamp.cli run <pdf_path> <signature_path> [options]
    python -m sigstamp.cli stamp <pdf_path> <signature_path> [options]
    python -m sigstamp.cli rasterize <pdf_path> [options]
    python -m sigstamp.cli composite <image>... [options]
    python -m sigstamp.cli info <pdf_path>
"""

from __future__ import annotations

import json
import os
import sys

import click
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from . import __version__
from .compositor import ImageCompositor
from .engine import PipelineConfig, SignatureEngine
from .errors import SigstampError
from .models import Placement
from .rasterizer import PageRasterizer
from .stamper import SignatureStamper

console = Console()


def _fail(error: Exception, debug: bool = False):
    console.print(f"[red]Error:[/] {error}")
    if debug:
        console.print_exception()
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="sigstamp")
def cli():
    """Signature stamper: sign every PDF page and composite the pages."""
    pass


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("signature_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--stamped-dir",
    default="output",
    help="Directory for the stamped PDF",
)
@click.option(
    "--temp-dir",
    default="tmp",
    help="Directory for per-page images",
)
@click.option(
    "--output-dir", "-o",
    default="output",
    help="Directory for the composite image",
)
@click.option(
    "--dpi",
    default=None,
    type=int,
    help="Render resolution for both axes (overrides --dpi-x/--dpi-y)",
)
@click.option("--dpi-x", default=300, type=int, help="Horizontal render DPI")
@click.option("--dpi-y", default=300, type=int, help="Vertical render DPI")
@click.option("--x", "overlay_x", default=70.0, type=float, help="Signature left edge (PDF units)")
@click.option("--y", "overlay_y", default=10.0, type=float, help="Signature bottom edge (PDF units)")
@click.option("--width", "overlay_width", default=100.0, type=float, help="Signature width (PDF units)")
@click.option("--height", "overlay_height", default=100.0, type=float, help="Signature height (PDF units)")
@click.option(
    "--background",
    default="black",
    help="Composite background colour (name or #rrggbb)",
)
@click.option(
    "--rotation",
    default="90",
    type=click.Choice(["0", "90", "180", "270"]),
    help="Clockwise rotation for pages after the first",
)
@click.option(
    "--keep-intermediates",
    is_flag=True,
    default=False,
    help="Keep per-page images after compositing",
)
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level",
)
@click.option(
    "--log-file",
    default=None,
    help="Path to log file",
)
@click.option(
    "--json-output",
    is_flag=True,
    default=False,
    help="Output only JSON result to stdout (for programmatic use)",
)
def run(
    pdf_path: str,
    signature_path: str,
    stamped_dir: str,
    temp_dir: str,
    output_dir: str,
    dpi: int,
    dpi_x: int,
    dpi_y: int,
    overlay_x: float,
    overlay_y: float,
    overlay_width: float,
    overlay_height: float,
    background: str,
    rotation: str,
    keep_intermediates: bool,
    log_level: str,
    log_file: str,
    json_output: bool,
):
    """Stamp, rasterize and composite a single PDF."""

    if json_output:
        # Suppress console output for JSON mode
        log_level = "ERROR"

    if dpi is not None:
        dpi_x = dpi_y = dpi

    config = PipelineConfig(
        stamped_dir=stamped_dir,
        temp_dir=temp_dir,
        output_dir=output_dir,
        dpi_x=dpi_x,
        dpi_y=dpi_y,
        rotation_degrees=int(rotation),
        overlay_x=overlay_x,
        overlay_y=overlay_y,
        overlay_width=overlay_width,
        overlay_height=overlay_height,
        background=background,
        keep_intermediates=keep_intermediates,
        log_level=log_level,
        log_file=log_file,
    )

    if not json_output:
        console.print()
        console.print(
            Panel.fit(
                f"[bold cyan]Signature Stamper v{__version__}[/]\n"
                f"[dim]Processing: {os.path.basename(pdf_path)}[/]",
                border_style="cyan",
            )
        )
        console.print()

    try:
        engine = SignatureEngine(config)

        if not json_output:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
                console=console,
            ) as progress:
                task = progress.add_task("Rendering pages...", total=None)

                def on_page(page_num: int, total: int):
                    progress.update(task, completed=page_num, total=total)

                result = engine.run(pdf_path, signature_path, progress_callback=on_page)

            _display_result(result)
        else:
            result = engine.run(pdf_path, signature_path)
            # Output clean JSON to stdout
            click.echo(json.dumps(
                result.model_dump(),
                indent=2,
                ensure_ascii=False,
                default=str,
            ))

    except (FileNotFoundError, SigstampError, ValueError) as e:
        _fail(e, debug=log_level == "DEBUG")


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("signature_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--output-dir", "-o", default="output", help="Output directory")
@click.option("--x", "overlay_x", default=70.0, type=float, help="Signature left edge")
@click.option("--y", "overlay_y", default=10.0, type=float, help="Signature bottom edge")
@click.option("--width", "overlay_width", default=100.0, type=float, help="Signature width")
@click.option("--height", "overlay_height", default=100.0, type=float, help="Signature height")
def stamp(
    pdf_path: str,
    signature_path: str,
    output_dir: str,
    overlay_x: float,
    overlay_y: float,
    overlay_width: float,
    overlay_height: float,
):
    """Only stamp the signature onto every page."""
    try:
        placement = Placement(
            x=overlay_x, y=overlay_y, width=overlay_width, height=overlay_height
        )
        result = SignatureStamper(output_dir, placement=placement).stamp(
            pdf_path, signature_path
        )
    except (SigstampError, ValueError) as e:
        _fail(e)

    console.print(
        f"[green]✓[/] Stamped {result.page_count} page(s): {result.stamped_pdf}"
    )


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--output-dir", "-o", default="tmp", help="Directory for page images")
@click.option("--dpi", default=300, type=int, help="Render resolution")
@click.option(
    "--rotation",
    default="90",
    type=click.Choice(["0", "90", "180", "270"]),
    help="Clockwise rotation for pages after the first",
)
def rasterize(pdf_path: str, output_dir: str, dpi: int, rotation: str):
    """Only render each page of a PDF to PNG."""
    try:
        pages = PageRasterizer(
            output_dir, dpi_x=dpi, dpi_y=dpi, rotation_degrees=int(rotation)
        ).rasterize(pdf_path)
    except (SigstampError, ValueError) as e:
        _fail(e)

    table = Table(title="Rendered Pages", border_style="cyan")
    table.add_column("Page", justify="right", style="bold")
    table.add_column("Size", justify="right")
    table.add_column("Rotated", justify="center")
    table.add_column("File")
    for page in pages:
        table.add_row(
            str(page.page_number),
            f"{page.width}x{page.height}",
            "[green]✓[/]" if page.rotated else "-",
            page.path,
        )
    console.print(table)


@cli.command()
@click.argument(
    "images",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False),
)
@click.option("--output-dir", "-o", default="output", help="Output directory")
@click.option("--background", default="black", help="Background colour")
def composite(images: tuple[str, ...], output_dir: str, background: str):
    """Only join images side by side, in the order given."""
    try:
        result = ImageCompositor(output_dir, background=background).composite(
            list(images)
        )
    except (SigstampError, ValueError) as e:
        _fail(e)

    console.print(
        f"[green]✓[/] {result.image_count} image(s) → "
        f"{result.width}x{result.height}: {result.path}"
    )


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True, dir_okay=False))
def info(pdf_path: str):
    """Display PDF file information."""

    import fitz

    try:
        doc = fitz.open(pdf_path)
    except Exception as e:
        _fail(e)

    table = Table(title="PDF Information", border_style="cyan")
    table.add_column("Property", style="bold")
    table.add_column("Value")

    try:
        with doc:
            table.add_row("File", os.path.basename(pdf_path))
            table.add_row("Pages", str(doc.page_count))
            table.add_row(
                "File Size",
                f"{os.path.getsize(pdf_path) / 1024 / 1024:.2f} MB",
            )

            metadata = doc.metadata or {}
            for key in ["title", "author", "subject", "creator", "producer"]:
                val = metadata.get(key, "")
                if val:
                    table.add_row(key.title(), val)

            for page in doc:
                rect = page.rect
                rotation = f", rotated {page.rotation}°" if page.rotation else ""
                table.add_row(
                    f"Page {page.number + 1}",
                    f"{rect.width:.0f} x {rect.height:.0f} pt{rotation}",
                )
    except OSError as e:
        _fail(e)

    console.print()
    console.print(table)
    console.print()


# ─── Display Helpers ──────────────────────────────────────────────────────────


def _display_result(result):
    """Display a pipeline result in a formatted table."""
    console.print()

    table = Table(title="Pipeline Result", border_style="cyan")
    table.add_column("Artifact", style="bold")
    table.add_column("Value")
    table.add_row("Stamped PDF", result.stamp.stamped_pdf)
    table.add_row("Pages", str(result.stamp.page_count))
    table.add_row(
        "Composite",
        f"{result.composite.path} ({result.composite.width}x{result.composite.height})",
    )
    table.add_row(
        "Page Images",
        "removed" if result.intermediates_removed else str(len(result.pages)),
    )
    console.print(table)
    console.print()

    console.print(
        f"[dim]sigstamp v{result.version} | "
        f"Elapsed: {result.elapsed_seconds:.2f}s | "
        f"Created: {result.created_at}[/]"
    )
    console.print()


# ─── Entry point (for python -m sigstamp.cli) ─────────────────────────────────


if __name__ == "__main__":
    cli()
