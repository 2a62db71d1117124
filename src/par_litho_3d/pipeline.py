"""Run the image to layered mesh export for one configuration."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
from PIL import Image

from .border import crop_to_bounds, expand_border
from .config import ExportConfig, OutputFormat
from .errors import InputError, ResourceExhaustion
from .logging_config import get_logger
from .mesher import Mesh, build_layer_mesh
from .pixel_sampler import Bounds, PixelGrid, sample_image, sample_pixels
from .resampler import resample_grid
from .serializer import ExportPackage, save_3mf, save_layer_stls, save_stl_archive
from .utils import apply_shape_mask, mesh_to_trimesh, validate_mesh

logger = get_logger(__name__)

ProgressCallback = Callable[[int, str], None]


@dataclass
class LayerStack:
    """Meshes of one export run and the grid they were built from."""

    meshes: list[Mesh]
    colors: list[str]
    grid: PixelGrid
    size_mm: tuple[float, float]

    @property
    def triangle_count(self) -> int:
        return sum(mesh.triangle_count for mesh in self.meshes)

    def package(self) -> ExportPackage:
        package = ExportPackage()
        for mesh, color in zip(self.meshes, self.colors):
            package.add(mesh, color)
        return package


@dataclass
class ExportResult:
    """Summary of a finished export."""

    files: list[Path]
    stack: LayerStack
    used_fallback: bool = False
    diagnostics: dict[str, dict[str, Any]] = field(default_factory=dict)

    @property
    def triangle_count(self) -> int:
        return self.stack.triangle_count

    @property
    def is_empty(self) -> bool:
        return self.triangle_count == 0


def pixels_per_mm(bounds: Bounds, config: ExportConfig) -> tuple[float, float]:
    """Grid resolution along x and y implied by the target physical size.

    A missing width or height keeps the shape's aspect ratio.
    """
    ppm_x = bounds.width / config.width_mm if config.width_mm else None
    ppm_y = bounds.height / config.height_mm if config.height_mm else None
    if ppm_x is None:
        ppm_x = ppm_y
    if ppm_y is None:
        ppm_y = ppm_x
    assert ppm_x is not None and ppm_y is not None
    return ppm_x, ppm_y


def _report(progress_callback: ProgressCallback | None, pct: int, msg: str) -> None:
    if progress_callback:
        progress_callback(pct, msg)


def build_layer_stack(
    grid: PixelGrid,
    config: ExportConfig,
    progress_callback: ProgressCallback | None = None,
) -> LayerStack:
    """Grow, crop, resample and mesh a sampled grid.

    A grid without any valid pixel is not an error: it produces empty meshes.

    Args:
        grid: Sampled pixel grid
        config: Export configuration
        progress_callback: Optional callable taking (percent, message)

    Returns:
        LayerStack with one mesh per configured layer

    Raises:
        InputError: If the grid has zero area
        ConfigurationError: If the configuration is unusable
    """
    config.validate()
    if grid.is_empty:
        raise InputError("Image has zero area, nothing to export")

    layers = config.layer_specs()
    bounds = grid.bounds
    if bounds is None:
        logger.warning("Image has no opaque pixels, the export will be empty")
        bounds = Bounds(0, 0, grid.width, grid.height)

    ppm_x, ppm_y = pixels_per_mm(bounds, config)
    _report(progress_callback, 5, "Growing border...")
    grown = expand_border(grid, config.border_mm, ppm_x, config.border_metric)
    cropped = crop_to_bounds(grown, grown.bounds or bounds)

    width_mm = cropped.width / ppm_x
    height_mm = cropped.height / ppm_y
    _report(progress_callback, 10, "Resampling...")
    export = resample_grid(cropped, width_mm, height_mm, config.pitch_mm)
    scale = (width_mm / export.width, height_mm / export.height)
    logger.info(
        f"Export grid {export.width}x{export.height} samples for {width_mm:.1f} x {height_mm:.1f} mm "
        f"({scale[0]:.3f} mm/sample)"
    )

    meshes = []
    for index, layer in enumerate(layers):
        start = 15 + 70 * index // len(layers)
        span = 70 // len(layers)

        def _layer_progress(pct: int, msg: str, start: int = start, span: int = span) -> None:
            _report(progress_callback, start + span * pct // 100, msg)

        mesh = build_layer_mesh(export, layer, scale, side_walls=config.side_walls, progress_callback=_layer_progress)
        logger.info(f"Layer {layer.name}: z {layer.z_base:.2f}-{layer.z_top:.2f} mm, {mesh.triangle_count} triangles")
        meshes.append(mesh)

    return LayerStack(
        meshes=meshes,
        colors=[layer.color for layer in layers],
        grid=export,
        size_mm=(width_mm, height_mm),
    )


def write_stack(stack: LayerStack, config: ExportConfig, output_path: Path | str) -> tuple[list[Path], bool]:
    """Write a layer stack in the configured formats.

    A combined output (3MF, STL archive) that cannot be written is replaced by
    one STL file per layer. Files already written are kept, and the per-layer
    files are written at most once.

    Args:
        stack: Meshes to write
        config: Export configuration
        output_path: Base output path, suffix is replaced per format

    Returns:
        Tuple of (written files, whether the per-layer fallback was used)
    """
    output_path = Path(output_path)
    output_format = OutputFormat(config.output_format)
    files: list[Path] = []
    failed: list[str] = []
    layer_files_written = False

    if output_format in (OutputFormat.THREE_MF, OutputFormat.BOTH):
        try:
            files.append(save_3mf(stack.package(), output_path.with_suffix(".3mf")))
        except ResourceExhaustion as e:
            logger.warning(f"{e}")
            failed.append("3MF package")

    if output_format in (OutputFormat.STL, OutputFormat.BOTH):
        if config.bundle_stl:
            try:
                files.append(save_stl_archive(stack.meshes, output_path.with_suffix(".zip")))
            except ResourceExhaustion as e:
                logger.warning(f"{e}")
                failed.append("STL archive")
        else:
            files.extend(save_layer_stls(stack.meshes, output_path))
            layer_files_written = True

    if failed and not layer_files_written:
        logger.warning(f"{' and '.join(failed)} not written, writing one STL file per layer instead")
        files.extend(save_layer_stls(stack.meshes, output_path))

    return files, bool(failed)


def export_lithophane(
    image: Image.Image | np.ndarray,
    output_path: Path | str,
    config: ExportConfig | None = None,
    mask: Image.Image | None = None,
    progress_callback: ProgressCallback | None = None,
) -> ExportResult:
    """Convert a composited image into printable layer meshes on disk.

    Args:
        image: RGBA image or (h, w, 4) array
        output_path: Base output path
        config: Export configuration, defaults to ``ExportConfig()``
        mask: Optional shape mask applied to a Pillow image
        progress_callback: Optional callable taking (percent, message)

    Returns:
        ExportResult describing the written files

    Raises:
        InputError: If the image has zero area
        ConfigurationError: If the configuration is unusable
    """
    config = (config or ExportConfig()).validate()

    _report(progress_callback, 0, "Sampling pixels...")
    if isinstance(image, Image.Image):
        if mask is not None:
            image = apply_shape_mask(image, mask)
        grid = sample_image(image)
    else:
        grid = sample_pixels(image)

    stack = build_layer_stack(grid, config, progress_callback)

    diagnostics: dict[str, dict[str, Any]] = {}
    if config.validate_meshes:
        for mesh in stack.meshes:
            if not mesh.is_empty:
                diagnostics[mesh.name] = validate_mesh(mesh_to_trimesh(mesh))

    _report(progress_callback, 85, "Writing files...")
    files, used_fallback = write_stack(stack, config, output_path)
    _report(progress_callback, 100, "Export complete")

    for path in files:
        logger.info(f"Saved {path}")
    return ExportResult(files=files, stack=stack, used_fallback=used_fallback, diagnostics=diagnostics)
