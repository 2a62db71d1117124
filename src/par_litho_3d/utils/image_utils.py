"""Image loading and compositing helpers."""

from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image

from ..logging_config import get_logger

logger = get_logger(__name__)


def ensure_rgba(image: Image.Image) -> Image.Image:
    """Return the image in RGBA mode, converting palette and grey images."""
    if image.mode != "RGBA":
        logger.debug(f"Converting {image.mode} image to RGBA")
        image = image.convert("RGBA")
    return image


def load_rgba(path: Path | str) -> Image.Image:
    """Open an image file as RGBA.

    Args:
        path: Image file path

    Returns:
        Fully loaded RGBA image
    """
    with Image.open(path) as image:
        image.load()
        return ensure_rgba(image).copy()


def shape_alpha(mask: Image.Image, size: tuple[int, int]) -> np.ndarray:
    """Alpha plane of a black and white shape mask.

    The red channel is used (grey masks have equal channels). Masks of a
    different size are stretched with nearest-neighbour sampling.

    Args:
        mask: Shape mask, white is kept
        size: Target (width, height)

    Returns:
        uint8 array of shape (height, width)
    """
    red = mask.getchannel("R") if "R" in mask.getbands() else mask.convert("L")
    if red.size != size:
        logger.debug(f"Resizing mask from {red.size} to {size}")
        red = red.resize(size, Image.Resampling.NEAREST)
    return np.asarray(red, dtype=np.uint8)


def apply_shape_mask(photo: Image.Image, mask: Image.Image) -> Image.Image:
    """Cut a photo to the shape of a black and white mask.

    The mask alpha is multiplied into the photo's own alpha, so black areas
    become transparent and white areas keep the photo.

    Args:
        photo: Edited photograph
        mask: Shape mask

    Returns:
        New RGBA image
    """
    pixels = np.array(ensure_rgba(photo))
    alpha = shape_alpha(mask, (pixels.shape[1], pixels.shape[0])).astype(np.uint16)
    pixels[..., 3] = (pixels[..., 3].astype(np.uint16) * alpha // 255).astype(np.uint8)
    return Image.fromarray(pixels)
