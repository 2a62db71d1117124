"""Resample the working pixel grid onto the physical export grid."""

from __future__ import annotations

import math

import numpy as np

from .errors import ConfigurationError
from .logging_config import get_logger
from .pixel_sampler import PixelGrid

logger = get_logger(__name__)

# Upper bound on samples per axis, caps memory and triangle count
MAX_EXPORT_SAMPLES = 2000


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def export_grid_size(width_mm: float, height_mm: float, pitch_mm: float) -> tuple[int, int]:
    """Number of samples along each axis for a physical size and pitch.

    Args:
        width_mm: Physical width in mm
        height_mm: Physical height in mm
        pitch_mm: Physical size of one sample in mm

    Returns:
        Tuple of (columns, rows), each clamped to 1..MAX_EXPORT_SAMPLES

    Raises:
        ConfigurationError: If any argument is not positive
    """
    if not (width_mm > 0 and height_mm > 0):
        raise ConfigurationError(f"Export size must be positive, got {width_mm} x {height_mm} mm")
    if not pitch_mm > 0:
        raise ConfigurationError(f"Pixel pitch must be positive, got {pitch_mm} mm")

    columns = min(max(_round_half_up(width_mm / pitch_mm), 1), MAX_EXPORT_SAMPLES)
    rows = min(max(_round_half_up(height_mm / pitch_mm), 1), MAX_EXPORT_SAMPLES)
    return columns, rows


def nearest_indices(source_size: int, target_size: int) -> np.ndarray:
    """Source index for every target index, sampling at pixel centres."""
    scale = source_size / target_size
    indices = np.floor((np.arange(target_size) + 0.5) * scale).astype(np.intp)
    return np.clip(indices, 0, source_size - 1)


def resample_grid(grid: PixelGrid, width_mm: float, height_mm: float, pitch_mm: float) -> PixelGrid:
    """Nearest-neighbour resample of a grid to the export resolution.

    Hard silhouette edges are preserved; diagonals may alias.

    Args:
        grid: Cropped source grid
        width_mm: Physical width in mm
        height_mm: Physical height in mm
        pitch_mm: Desired physical sample pitch in mm

    Returns:
        New grid of ``export_grid_size(width_mm, height_mm, pitch_mm)`` samples
    """
    columns, rows = export_grid_size(width_mm, height_mm, pitch_mm)
    if grid.is_empty:
        return PixelGrid.empty(columns, rows)

    ys = nearest_indices(grid.height, rows)[:, np.newaxis]
    xs = nearest_indices(grid.width, columns)[np.newaxis, :]

    resampled = PixelGrid(
        valid=grid.valid[ys, xs],
        cyan=grid.cyan[ys, xs],
        magenta=grid.magenta[ys, xs],
        yellow=grid.yellow[ys, xs],
        white=grid.white[ys, xs],
        has_shape=grid.has_shape,
    )
    logger.debug(f"Resampled {grid.width}x{grid.height} to {columns}x{rows} at {pitch_mm}mm pitch")
    return resampled
