"""Tests for export grid sizing and resampling."""

from __future__ import annotations

import numpy as np
import pytest

from par_litho_3d.errors import ConfigurationError
from par_litho_3d.pixel_sampler import sample_pixels
from par_litho_3d.resampler import MAX_EXPORT_SAMPLES, export_grid_size, nearest_indices, resample_grid

from .conftest import make_rgba


@pytest.mark.parametrize(
    ("width", "height", "pitch", "expected"),
    [
        (10.0, 10.0, 1.0, (10, 10)),
        (10.4, 3.0, 0.2, (52, 15)),
        (2.5, 1.0, 1.0, (3, 1)),
        (0.01, 0.01, 1.0, (1, 1)),
        (1000.0, 1.0, 0.1, (MAX_EXPORT_SAMPLES, 10)),
        (5000.0, 5000.0, 1.0, (MAX_EXPORT_SAMPLES, MAX_EXPORT_SAMPLES)),
    ],
)
def test_export_grid_size(width, height, pitch, expected) -> None:
    assert export_grid_size(width, height, pitch) == expected


@pytest.mark.parametrize(
    ("width", "height", "pitch"),
    [(0.0, 10.0, 1.0), (10.0, -1.0, 1.0), (10.0, 10.0, 0.0), (10.0, 10.0, -0.5)],
)
def test_non_positive_sizes_are_rejected(width, height, pitch) -> None:
    with pytest.raises(ConfigurationError):
        export_grid_size(width, height, pitch)


def test_nearest_indices_sample_pixel_centres() -> None:
    assert nearest_indices(4, 2).tolist() == [1, 3]
    assert nearest_indices(2, 4).tolist() == [0, 0, 1, 1]
    assert nearest_indices(3, 3).tolist() == [0, 1, 2]


def test_resample_keeps_hard_edges() -> None:
    rgba = make_rgba(4, 4)
    rgba[:, 2:, 3] = 0
    grid = sample_pixels(rgba)

    resampled = resample_grid(grid, width_mm=8.0, height_mm=8.0, pitch_mm=1.0)

    assert (resampled.width, resampled.height) == (8, 8)
    assert resampled.valid[:, :4].all()
    assert not resampled.valid[:, 4:].any()
    assert resampled.has_shape


def test_resample_carries_channels() -> None:
    rgba = make_rgba(2, 1, color=(0, 255, 255))
    rgba[0, 1, :3] = (255, 255, 255)
    grid = sample_pixels(rgba)

    resampled = resample_grid(grid, width_mm=4.0, height_mm=2.0, pitch_mm=1.0)

    assert np.allclose(resampled.cyan, [[1.0, 1.0, 0.0, 0.0]] * 2)
