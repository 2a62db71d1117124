"""Shared fixtures building synthetic RGBA images."""

from __future__ import annotations

import numpy as np
import pytest

from par_litho_3d.pixel_sampler import PixelGrid, sample_pixels


def make_rgba(width: int, height: int, color: tuple[int, int, int] = (200, 100, 50), alpha: int = 255) -> np.ndarray:
    """Uniform RGBA array of shape (height, width, 4)."""
    rgba = np.zeros((height, width, 4), dtype=np.uint8)
    rgba[..., :3] = color
    rgba[..., 3] = alpha
    return rgba


def square_on_canvas(canvas: int = 20, size: int = 10, offset: int = 5) -> np.ndarray:
    """Opaque square of ``size`` pixels on a transparent canvas."""
    rgba = make_rgba(canvas, canvas, alpha=0)
    rgba[offset : offset + size, offset : offset + size, 3] = 255
    return rgba


@pytest.fixture
def opaque_10x10() -> np.ndarray:
    return make_rgba(10, 10)


@pytest.fixture
def square_grid() -> PixelGrid:
    return sample_pixels(square_on_canvas())


@pytest.fixture
def transparent_rgba() -> np.ndarray:
    return make_rgba(12, 8, alpha=0)
