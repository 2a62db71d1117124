"""Decompose composited RGBA pixels into a validity mask and density channels."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from PIL import Image

from .errors import InputError
from .layers import ChannelRef
from .logging_config import get_logger
from .utils import ensure_rgba

logger = get_logger(__name__)

# Pixels at or below this alpha are treated as transparent
ALPHA_THRESHOLD = 10

# Luminance weights for the white channel. The perceptual Rec. 709 weights are not used here.
LUMA_WEIGHTS = (0.299, 0.587, 0.114)


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned box of valid pixels, in pixel units."""

    x: int
    y: int
    width: int
    height: int

    @property
    def x1(self) -> int:
        return self.x + self.width

    @property
    def y1(self) -> int:
        return self.y + self.height


@dataclass
class PixelGrid:
    """Validity mask plus cyan/magenta/yellow/white densities in 0-1.

    Arrays are row-major with shape ``(height, width)``. Channel values are
    zero wherever ``valid`` is False.
    """

    valid: np.ndarray
    cyan: np.ndarray
    magenta: np.ndarray
    yellow: np.ndarray
    white: np.ndarray
    has_shape: bool = True
    bounds: Bounds | None = field(init=False)

    def __post_init__(self) -> None:
        self.bounds = compute_bounds(self.valid)

    @property
    def width(self) -> int:
        return int(self.valid.shape[1])

    @property
    def height(self) -> int:
        return int(self.valid.shape[0])

    @property
    def is_empty(self) -> bool:
        """True when the grid has zero area."""
        return self.valid.size == 0

    def channel(self, ref: ChannelRef | str) -> np.ndarray:
        """Return the density array for a channel."""
        return getattr(self, ChannelRef(ref).value)

    def refresh_bounds(self) -> Bounds | None:
        """Recompute the bounds after the valid region changed."""
        self.bounds = compute_bounds(self.valid)
        return self.bounds

    @classmethod
    def empty(cls, width: int = 0, height: int = 0) -> PixelGrid:
        """Create an all-invalid grid."""
        zeros = np.zeros((height, width), dtype=np.float32)
        return cls(
            valid=np.zeros((height, width), dtype=bool),
            cyan=zeros.copy(),
            magenta=zeros.copy(),
            yellow=zeros.copy(),
            white=zeros.copy(),
        )


def compute_bounds(valid: np.ndarray) -> Bounds | None:
    """Tight bounding box of the True pixels of a mask.

    Args:
        valid: Boolean mask of shape (height, width)

    Returns:
        Bounds, or None if no pixel is valid
    """
    if valid.size == 0:
        return None
    rows = np.flatnonzero(valid.any(axis=1))
    if rows.size == 0:
        return None
    cols = np.flatnonzero(valid.any(axis=0))
    return Bounds(
        x=int(cols[0]),
        y=int(rows[0]),
        width=int(cols[-1] - cols[0] + 1),
        height=int(rows[-1] - rows[0] + 1),
    )


def sample_pixels(rgba: np.ndarray) -> PixelGrid:
    """Build a pixel grid from an RGBA array.

    A pixel is valid when its alpha is above ``ALPHA_THRESHOLD``. For valid
    pixels cyan, magenta and yellow are the complements of red, green and blue
    and white is the complement of the luminance.

    Args:
        rgba: uint8-compatible array of shape (height, width, 4)

    Returns:
        PixelGrid with densities normalized to 0-1

    Raises:
        InputError: If a non-empty array is not RGBA
    """
    rgba = np.asarray(rgba)
    if rgba.ndim != 3 or rgba.shape[2] != 4:
        if rgba.size == 0:
            return PixelGrid.empty()
        raise InputError(f"Expected an RGBA array of shape (h, w, 4), got {rgba.shape}")

    height, width = rgba.shape[:2]
    if height == 0 or width == 0:
        return PixelGrid.empty(width, height)

    rgb = rgba[..., :3].astype(np.float32)
    valid = rgba[..., 3] > ALPHA_THRESHOLD

    luminance = rgb @ np.asarray(LUMA_WEIGHTS, dtype=np.float32)
    densities = [(255.0 - rgb[..., i]) / 255.0 for i in range(3)]
    densities.append((255.0 - luminance) / 255.0)
    cyan, magenta, yellow, white = (np.where(valid, np.clip(d, 0.0, 1.0), 0.0).astype(np.float32) for d in densities)

    grid = PixelGrid(
        valid=valid,
        cyan=cyan,
        magenta=magenta,
        yellow=yellow,
        white=white,
        has_shape=not bool(valid.all()),
    )
    logger.debug(f"Sampled {width}x{height} pixels, {int(valid.sum())} valid, bounds {grid.bounds}")
    return grid


def sample_image(image: Image.Image) -> PixelGrid:
    """Build a pixel grid from a Pillow image of any mode.

    Args:
        image: Composited image

    Returns:
        PixelGrid for the image
    """
    return sample_pixels(np.asarray(ensure_rgba(image)))
