"""Grow the valid region of a pixel grid by a solid rim."""

from __future__ import annotations

import math

import numpy as np
from scipy import ndimage

from .config import BorderMetric
from .logging_config import get_logger
from .pixel_sampler import Bounds, PixelGrid

logger = get_logger(__name__)


def distance_field(valid: np.ndarray, metric: BorderMetric | str = BorderMetric.CHAMFER) -> np.ndarray:
    """Distance in pixels from every pixel to the nearest valid pixel.

    The chamfer metric is the two-pass 4-neighbour transform with unit step
    cost, which equals the taxicab distance. The euclidean metric is exact.
    Pixels inside the valid region have distance 0. Without any valid pixel
    every distance is infinite.

    Args:
        valid: Boolean mask of shape (height, width)
        metric: Distance metric

    Returns:
        float64 array with the same shape as ``valid``
    """
    valid = np.asarray(valid, dtype=bool)
    if valid.size == 0 or not valid.any():
        return np.full(valid.shape, np.inf)

    if BorderMetric(metric) == BorderMetric.EUCLIDEAN:
        return ndimage.distance_transform_edt(~valid).astype(np.float64)
    return ndimage.distance_transform_cdt(~valid, metric="taxicab").astype(np.float64)


def pad_grid(grid: PixelGrid, pad: int) -> PixelGrid:
    """Add ``pad`` invalid pixels on every side of the grid."""
    if pad <= 0:
        return grid

    def _pad(array: np.ndarray) -> np.ndarray:
        return np.pad(array, pad, mode="constant", constant_values=0)

    return PixelGrid(
        valid=_pad(grid.valid),
        cyan=_pad(grid.cyan),
        magenta=_pad(grid.magenta),
        yellow=_pad(grid.yellow),
        white=_pad(grid.white),
        has_shape=grid.has_shape,
    )


def crop_to_bounds(grid: PixelGrid, bounds: Bounds | None = None) -> PixelGrid:
    """Crop a grid to a bounding box, by default its own bounds.

    Args:
        grid: Grid to crop
        bounds: Box to keep. Defaults to ``grid.bounds``

    Returns:
        Cropped grid, or the grid unchanged when there are no bounds
    """
    bounds = bounds or grid.bounds
    if bounds is None:
        return grid
    window = (slice(bounds.y, bounds.y1), slice(bounds.x, bounds.x1))
    return PixelGrid(
        valid=grid.valid[window].copy(),
        cyan=grid.cyan[window].copy(),
        magenta=grid.magenta[window].copy(),
        yellow=grid.yellow[window].copy(),
        white=grid.white[window].copy(),
        has_shape=grid.has_shape,
    )


def border_pixels(border_mm: float, pixels_per_mm: float) -> float:
    """Convert a border width in mm to pixels."""
    return max(0.0, border_mm * pixels_per_mm)


def expand_border(
    grid: PixelGrid,
    border_mm: float,
    pixels_per_mm: float,
    metric: BorderMetric | str = BorderMetric.CHAMFER,
) -> PixelGrid:
    """Grow the valid region by a rim of ``border_mm``.

    Rim pixels get no colour and full white density. The grid is padded first
    so the rim always fits. Grids without a shape mask grow their bounding box
    instead of following a silhouette.

    Args:
        grid: Source grid, not modified
        border_mm: Rim width in mm
        pixels_per_mm: Resolution of the grid
        metric: Distance metric for shape-following growth

    Returns:
        New grid with recomputed bounds, or ``grid`` itself when there is nothing to grow
    """
    border_px = border_pixels(border_mm, pixels_per_mm)
    if border_px <= 0 or grid.bounds is None:
        return grid

    # Padding allocates new arrays, so the source grid stays untouched
    grown = pad_grid(grid, math.ceil(border_px))

    if grid.has_shape:
        distances = distance_field(grown.valid, metric)
        new_valid = distances <= border_px
    else:
        bounds = grown.bounds
        assert bounds is not None
        step = math.floor(border_px)
        new_valid = np.zeros_like(grown.valid)
        new_valid[bounds.y - step : bounds.y1 + step, bounds.x - step : bounds.x1 + step] = True

    rim = new_valid & ~grown.valid
    for channel in (grown.cyan, grown.magenta, grown.yellow):
        channel[rim] = 0.0
    grown.white[rim] = 1.0
    grown.valid = new_valid | grown.valid
    grown.refresh_bounds()

    logger.debug(f"Border {border_mm}mm ({border_px:.2f}px) added {int(rim.sum())} rim pixels, bounds {grown.bounds}")
    return grown
