"""Tests for the layer composition table."""

from __future__ import annotations

import pytest

from par_litho_3d.errors import ConfigurationError
from par_litho_3d.layers import Channel, ChannelRef, Constant, Visibility, ZLayout, plan_layers


def test_stacked_layers_occupy_disjoint_bands() -> None:
    layers = plan_layers(ZLayout.STACKED, base_thickness=0.2, color_thickness=0.5)

    assert [layer.name for layer in layers] == ["base", "cyan", "magenta", "yellow", "white"]
    for lower, upper in zip(layers, layers[1:]):
        assert upper.z_base == pytest.approx(lower.z_top)


def test_overlapping_layers_share_one_band() -> None:
    layers = {layer.name: layer for layer in plan_layers(ZLayout.OVERLAPPING, base_thickness=0.2, color_thickness=0.5)}

    assert layers["cyan"].z_base == layers["magenta"].z_base == layers["yellow"].z_base == pytest.approx(0.2)
    assert layers["white"].z_base == pytest.approx(0.7)


def test_density_sources_and_visibility() -> None:
    layers = {layer.name: layer for layer in plan_layers()}

    assert layers["base"].density == Constant(1.0)
    assert layers["base"].visibility == Visibility.ANY_CORNER
    assert layers["magenta"].density == Channel(ChannelRef.MAGENTA)
    assert layers["magenta"].visibility == Visibility.ALL_CORNERS
    assert layers["white"].density == Channel(ChannelRef.WHITE)
    assert layers["white"].visibility == Visibility.ANY_CORNER
    assert layers["white"].min_thickness == pytest.approx(0.3)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"base_thickness": 0.0},
        {"color_thickness": -1.0},
        {"white_min_thickness": 3.0, "white_max_thickness": 2.5},
    ],
)
def test_invalid_thickness_is_rejected(kwargs) -> None:
    with pytest.raises(ConfigurationError):
        plan_layers(**kwargs)


def test_layout_accepts_plain_strings() -> None:
    layers = plan_layers("overlapping")  # type: ignore[arg-type]

    assert layers[1].z_base == layers[3].z_base


def test_white_backing_raises_white_top() -> None:
    layers = {layer.name: layer for layer in plan_layers(white_max_thickness=2.5, white_base_thickness=1.0)}

    assert layers["white"].backing_thickness == pytest.approx(1.0)
    assert layers["white"].z_top == pytest.approx(layers["white"].z_base + 3.5)
    assert all(layers[name].backing_thickness == 0.0 for name in ("base", "cyan", "magenta", "yellow"))


def test_negative_backing_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        plan_layers(white_base_thickness=-0.5)
