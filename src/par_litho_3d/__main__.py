"""Command line host for the lithophane layer export."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.pretty import Pretty
from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn

from . import __application_binary__, __application_title__, __version__
from .config import BorderMetric, ExportConfig, OutputFormat
from .errors import InputError, LithoError
from .layers import ZLayout
from .logging_config import get_logger, setup_logging
from .pipeline import export_lithophane
from .utils import check_mesh_from_stl, load_rgba

# Create the main Typer app with rich help
app = typer.Typer(
    name=__application_binary__,
    help=f"{__application_title__} - Multi-material lithophane layer generator",
    rich_markup_mode="rich",
    add_completion=False,
    no_args_is_help=True,
    invoke_without_command=True,
)
console = Console(stderr=True)
logger = get_logger(__name__)

# Load environment variables
load_dotenv()
load_dotenv(Path(f"~/.{__application_binary__}.env").expanduser())


def version_callback(value: bool) -> None:
    """Print version and exit.

    Args:
        value: If True, print version and exit.

    Raises:
        typer.Exit: Always raised when value is True.
    """
    if value:
        console.print(f"[bold blue]{__application_title__}[/bold blue] version [bold green]{__version__}[/bold green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
) -> None:
    """Par Litho 3D - Multi-material lithophane layer generator.

    Args:
        version: Version flag. If provided, prints version and exits.
    """
    pass


@app.command("export", help="Convert an image into printable base, CMY and white layer meshes")
def export_command(
    image: Annotated[
        Path,
        typer.Argument(
            help="Composited photo (transparent pixels are not printed)",
            exists=True,
            file_okay=True,
            dir_okay=False,
        ),
    ],
    mask: Annotated[
        Path | None,
        typer.Option(
            "--mask",
            "-m",
            help="Black and white shape mask, white is kept",
            exists=True,
            file_okay=True,
            dir_okay=False,
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output file path (without extension). Defaults to the image name",
        ),
    ] = None,
    width_mm: Annotated[
        float | None,
        typer.Option(
            "--width",
            "-w",
            help="Width of the print in mm (before border). Defaults to 100 when no height is given",
            min=1.0,
            max=1000.0,
        ),
    ] = None,
    height_mm: Annotated[
        float | None,
        typer.Option(
            "--height",
            "-h",
            help="Height of the print in mm. Follows the aspect ratio when omitted",
            min=1.0,
            max=1000.0,
        ),
    ] = None,
    pitch_mm: Annotated[
        float,
        typer.Option(
            "--pitch",
            "-p",
            help="Size of one mesh sample in mm",
            min=0.01,
            max=10.0,
        ),
    ] = 0.2,
    border_mm: Annotated[
        float,
        typer.Option(
            "--border",
            "-b",
            help="Width of the solid white rim around the shape in mm",
            min=0.0,
            max=50.0,
        ),
    ] = 0.0,
    border_metric: Annotated[
        BorderMetric,
        typer.Option(
            "--border-metric",
            help="Distance used to grow the rim",
        ),
    ] = BorderMetric.CHAMFER,
    layout: Annotated[
        ZLayout,
        typer.Option(
            "--layout",
            "-l",
            help="stacked: one z band per colour, overlapping: colours share one band",
        ),
    ] = ZLayout.STACKED,
    base_thickness: Annotated[
        float,
        typer.Option("--base-thickness", "-bt", help="Base plate thickness in mm", min=0.05, max=10.0),
    ] = 0.2,
    color_thickness: Annotated[
        float,
        typer.Option("--color-thickness", "-ct", help="Thickness of each colour band in mm", min=0.05, max=10.0),
    ] = 0.5,
    white_min: Annotated[
        float,
        typer.Option("--white-min", "-wn", help="White layer thickness for light pixels in mm", min=0.0, max=10.0),
    ] = 0.3,
    white_max: Annotated[
        float,
        typer.Option("--white-max", "-wx", help="White layer thickness for dark pixels in mm", min=0.05, max=20.0),
    ] = 2.5,
    white_base: Annotated[
        float,
        typer.Option("--white-base", "-wb", help="Solid white backing under the texture in mm", min=0.0, max=10.0),
    ] = 1.0,
    side_walls: Annotated[
        bool,
        typer.Option("--side-walls/--no-side-walls", help="Close every layer along its silhouette"),
    ] = False,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-F", help="3D file format: stl (one file per layer), 3mf or both"),
    ] = OutputFormat.THREE_MF,
    bundle_stl: Annotated[
        bool,
        typer.Option("--zip", "-z", help="Bundle the per-layer STL files into one zip archive"),
    ] = False,
    check: Annotated[
        bool,
        typer.Option("--check", "-c", help="Report watertightness and manifold diagnostics per layer"),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option("--debug", "-D", help="Enable debug mode with verbose output"),
    ] = False,
) -> None:
    """Convert an image into a lithophane sandwich of printable meshes.

    Args:
        image: Composited photo, transparent pixels are not printed.
        mask: Optional black and white shape mask applied to the photo.
        output: Output file path (without extension).
        width_mm: Print width in mm before the border.
        height_mm: Print height in mm, follows the aspect ratio when omitted.
        pitch_mm: Size of one mesh sample in mm.
        border_mm: Width of the white rim around the shape in mm.
        border_metric: Distance metric used to grow the rim.
        layout: Z layout of the colour layers.
        base_thickness: Base plate thickness in mm.
        color_thickness: Thickness of each colour band in mm.
        white_min: White layer thickness at zero density in mm.
        white_max: White layer thickness at full density in mm.
        white_base: Solid white backing thickness under the texture in mm.
        side_walls: If True, close every layer along its silhouette.
        output_format: 3D file format to write.
        bundle_stl: If True, bundle per-layer STL files into a zip archive.
        check: If True, print mesh diagnostics per layer.
        debug: If True, enable debug mode with verbose output.

    Raises:
        typer.Exit: On user cancellation (code 0) or error (code 1).
    """
    try:
        setup_logging(debug=debug)
        logger.debug("Starting export command")

        if output is None:
            output = image.with_suffix("")
        if width_mm is None and height_mm is None:
            width_mm = 100.0

        config = ExportConfig(
            width_mm=width_mm,
            height_mm=height_mm,
            pitch_mm=pitch_mm,
            border_mm=border_mm,
            border_metric=border_metric,
            layout=layout,
            base_thickness_mm=base_thickness,
            color_thickness_mm=color_thickness,
            white_min_thickness_mm=white_min,
            white_max_thickness_mm=white_max,
            white_base_thickness_mm=white_base,
            side_walls=side_walls,
            output_format=output_format,
            bundle_stl=bundle_stl,
            validate_meshes=check,
        ).validate()

        photo = load_rgba(image)
        shape = load_rgba(mask) if mask else None

        with Progress(
            TextColumn("[blue]{task.description}"),
            BarColumn(),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Exporting...", total=100)

            def _progress(pct: int, msg: str) -> None:
                progress.update(task, completed=pct, description=msg)

            result = export_lithophane(photo, output, config, mask=shape, progress_callback=_progress)

        if result.is_empty:
            console.print("[yellow]Nothing to export:[/yellow] the image has no opaque pixels")
        if result.used_fallback:
            console.print("[yellow]Warning:[/yellow] not enough memory for a combined file, wrote one STL per layer")
        for path in result.files:
            console.print(f"[green]✓[/green] Created {path}")

        console.print("\n[bold]Summary:[/bold]")
        summary = {
            "Image": str(image),
            "Mask": str(mask) if mask else "None",
            "Size": f"{result.stack.size_mm[0]:.1f} x {result.stack.size_mm[1]:.1f} mm",
            "Grid": f"{result.stack.grid.width}x{result.stack.grid.height} samples",
            "Border": f"{border_mm} mm ({border_metric.value})" if border_mm > 0 else "None",
            "Layout": layout.value,
            "Layers": {mesh.name: mesh.triangle_count for mesh in result.stack.meshes},
            "Triangles": result.triangle_count,
        }
        console.print(Pretty(summary))

        if check:
            console.print("\n[bold]Mesh diagnostics:[/bold]")
            console.print(Pretty(result.diagnostics))

    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        raise typer.Exit(0)
    except InputError as e:
        console.print(f"[yellow]Nothing to export:[/yellow] {e}")
        raise typer.Exit(code=1)
    except LithoError as e:
        logger.error(f"Export failed: {e}")
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)
    except Exception as e:
        logger.error(f"Export failed: {e}")
        console.print(f"[bold red]Error:[/bold red] {str(e)}")
        if debug:
            console.print_exception()
        raise typer.Exit(code=1)


@app.command("check", help="Check an STL file for geometry issues")
def check_command(
    stl_file: Annotated[
        Path,
        typer.Argument(help="STL file to check", exists=True, file_okay=True, dir_okay=False),
    ],
    debug: Annotated[
        bool,
        typer.Option("--debug", "-D", help="Enable debug mode with verbose output"),
    ] = False,
) -> None:
    """Check an STL file for geometry issues.

    Args:
        stl_file: STL file to check.
        debug: If True, enable debug mode with verbose output.
    """
    setup_logging(debug=debug)
    console.print(f"\nChecking STL file: {stl_file}")
    results = check_mesh_from_stl(stl_file, verbose=False)
    console.print(Pretty(results))

    if results["is_watertight"] and results["non_manifold_edges"] == 0:
        console.print("[green]✓[/green] Mesh appears to be valid for 3D printing")
        return

    console.print("[yellow]⚠[/yellow] Mesh has issues that may cause problems in slicing:")
    if not results["is_watertight"]:
        console.print(f"  - Mesh is not watertight ({results['boundary_edges']} open edges)")
    if results["non_manifold_edges"] > 0:
        console.print(f"  - {results['non_manifold_edges']} non-manifold edges found")


if __name__ == "__main__":
    app()
