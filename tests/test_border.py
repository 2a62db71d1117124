"""Tests for shape-aware border growth."""

from __future__ import annotations

import numpy as np
import pytest

from par_litho_3d.border import crop_to_bounds, distance_field, expand_border
from par_litho_3d.config import BorderMetric
from par_litho_3d.pixel_sampler import sample_pixels

from .conftest import make_rgba, square_on_canvas


def test_zero_border_is_noop(square_grid) -> None:
    grown = expand_border(square_grid, border_mm=0.0, pixels_per_mm=1.0)

    assert np.array_equal(grown.valid, square_grid.valid)
    assert grown.bounds == square_grid.bounds


def test_border_grows_square_bounds(square_grid) -> None:
    grown = expand_border(square_grid, border_mm=2.0, pixels_per_mm=1.0)

    assert grown.bounds is not None
    assert (grown.bounds.width, grown.bounds.height) == (14, 14)


def test_border_does_not_modify_source(square_grid) -> None:
    before = square_grid.valid.copy()

    expand_border(square_grid, border_mm=3.0, pixels_per_mm=1.0)

    assert np.array_equal(square_grid.valid, before)


def test_border_is_clipped_by_nothing_at_canvas_edge() -> None:
    grid = sample_pixels(square_on_canvas(canvas=10, size=10, offset=0))
    grid.has_shape = True

    grown = expand_border(grid, border_mm=1.5, pixels_per_mm=2.0)

    # 3px rim on every side even though the shape touches the canvas
    assert (grown.bounds.width, grown.bounds.height) == (16, 16)


def test_chamfer_rim_follows_taxicab_distance(square_grid) -> None:
    grown = expand_border(square_grid, border_mm=2.0, pixels_per_mm=1.0)
    bounds = grown.bounds
    # Original square corner (bottom-right) in grown coordinates
    corner_y, corner_x = bounds.y1 - 3, bounds.x1 - 3

    assert grown.valid[corner_y + 1, corner_x + 1]  # distance 2
    assert grown.valid[corner_y + 2, corner_x]  # distance 2
    assert not grown.valid[corner_y + 2, corner_x + 1]  # distance 3


def test_euclidean_metric_rounds_corners_less() -> None:
    grid = sample_pixels(square_on_canvas())
    chamfer = expand_border(grid, border_mm=3.0, pixels_per_mm=1.0, metric=BorderMetric.CHAMFER)
    euclidean = expand_border(grid, border_mm=3.0, pixels_per_mm=1.0, metric=BorderMetric.EUCLIDEAN)

    # Taxicab distance 4, euclidean distance sqrt(8)
    y, x = chamfer.bounds.y1 - 4 + 2, chamfer.bounds.x1 - 4 + 2
    assert not chamfer.valid[y, x]
    assert euclidean.valid[y, x]
    assert euclidean.valid.sum() > chamfer.valid.sum()


def test_rim_pixels_are_white_without_colour(square_grid) -> None:
    grown = expand_border(square_grid, border_mm=2.0, pixels_per_mm=1.0)
    rim = grown.valid.copy()
    inner = crop_to_bounds(grown)
    bounds = grown.bounds
    rim[bounds.y + 2 : bounds.y1 - 2, bounds.x + 2 : bounds.x1 - 2] = False

    assert inner.valid.any()
    assert np.allclose(grown.cyan[rim], 0.0)
    assert np.allclose(grown.magenta[rim], 0.0)
    assert np.allclose(grown.yellow[rim], 0.0)
    assert np.allclose(grown.white[rim], 1.0)


def test_bounding_box_growth_without_shape_mask() -> None:
    grid = sample_pixels(make_rgba(4, 4))
    assert not grid.has_shape

    grown = expand_border(grid, border_mm=1.0, pixels_per_mm=1.0)

    assert (grown.width, grown.height) == (6, 6)
    # Box growth fills the corners too
    assert grown.valid.all()


@pytest.mark.parametrize("metric", list(BorderMetric))
def test_distance_is_monotonic_away_from_seed(metric) -> None:
    valid = np.zeros((11, 11), dtype=bool)
    valid[5, 5] = True

    distances = distance_field(valid, metric)

    assert distances[5, 5] == 0
    row = distances[5, 5:]
    assert np.all(np.diff(row) >= 0)
    assert np.all(np.diff(distances[5:, 8]) >= 0)


def test_chamfer_distance_is_taxicab() -> None:
    valid = np.zeros((5, 5), dtype=bool)
    valid[0, 0] = True

    distances = distance_field(valid)

    ys, xs = np.indices(valid.shape)
    assert np.array_equal(distances, ys + xs)


def test_distance_field_without_valid_pixels() -> None:
    assert np.isinf(distance_field(np.zeros((2, 3), dtype=bool))).all()
