"""Material layer table for the lithophane sandwich."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import ConfigurationError


class ChannelRef(str, Enum):
    """Density channels produced by the pixel sampler."""

    CYAN = "cyan"
    MAGENTA = "magenta"
    YELLOW = "yellow"
    WHITE = "white"


class Visibility(str, Enum):
    """Rule deciding whether a grid cell is meshed."""

    ANY_CORNER = "any_corner"
    ALL_CORNERS = "all_corners"


class ZLayout(str, Enum):
    """How the colour layers are arranged along z."""

    STACKED = "stacked"
    OVERLAPPING = "overlapping"


@dataclass(frozen=True)
class Constant:
    """Uniform density, used for plate-like layers."""

    value: float = 1.0


@dataclass(frozen=True)
class Channel:
    """Density read from one of the sampled channels."""

    ref: ChannelRef


DensitySource = Constant | Channel


@dataclass(frozen=True)
class LayerSpec:
    """One material layer of the sandwich.

    Attributes:
        name: Object name used in the exported files
        z_base: Bottom of the layer in mm
        z_thickness: Thickness at full density in mm
        density: Where per-pixel density comes from
        visibility: Cell inclusion rule
        min_thickness: Thickness at zero density in mm
        backing_thickness: Solid slab under the density surface in mm
        color: Display colour for slicers (name or hex code)
    """

    name: str
    z_base: float
    z_thickness: float
    density: DensitySource
    visibility: Visibility
    min_thickness: float = 0.0
    backing_thickness: float = 0.0
    color: str = "white"

    @property
    def z_top(self) -> float:
        return self.z_base + self.backing_thickness + self.z_thickness


COLOR_LAYERS: tuple[tuple[str, ChannelRef, str], ...] = (
    ("cyan", ChannelRef.CYAN, "#00FFFF"),
    ("magenta", ChannelRef.MAGENTA, "#FF00FF"),
    ("yellow", ChannelRef.YELLOW, "#FFFF00"),
)


def plan_layers(
    layout: ZLayout = ZLayout.STACKED,
    base_thickness: float = 0.2,
    color_thickness: float = 0.5,
    white_min_thickness: float = 0.3,
    white_max_thickness: float = 2.5,
    white_base_thickness: float = 1.0,
) -> list[LayerSpec]:
    """Build the layer table for the given z layout.

    Stacked gives every colour its own band above the base plate. Overlapping
    puts all colours in one shared band so a multi-material slicer can blend
    them by density. The white texture layer always sits on top, on a solid
    white backing slab of ``white_base_thickness``.

    Args:
        layout: Z layout policy
        base_thickness: Base plate thickness in mm
        color_thickness: Thickness of one colour band in mm
        white_min_thickness: White layer thickness where density is 0
        white_max_thickness: White layer thickness where density is 1
        white_base_thickness: Solid white slab under the texture, 0 for none

    Returns:
        Layer specs ordered bottom to top (base, cyan, magenta, yellow, white)

    Raises:
        ConfigurationError: If a thickness is not usable
    """
    if base_thickness <= 0 or color_thickness <= 0 or white_max_thickness <= 0:
        raise ConfigurationError("Layer thicknesses must be positive")
    if not 0 <= white_min_thickness <= white_max_thickness:
        raise ConfigurationError(
            f"White minimum thickness {white_min_thickness} must be between 0 and {white_max_thickness}"
        )
    if white_base_thickness < 0:
        raise ConfigurationError(f"White backing thickness cannot be negative, got {white_base_thickness}")
    layout = ZLayout(layout)

    layers = [
        LayerSpec(
            name="base",
            z_base=0.0,
            z_thickness=base_thickness,
            density=Constant(1.0),
            visibility=Visibility.ANY_CORNER,
            color="#F0F0F0",
        )
    ]

    z = base_thickness
    for name, ref, color in COLOR_LAYERS:
        layers.append(
            LayerSpec(
                name=name,
                z_base=z,
                z_thickness=color_thickness,
                density=Channel(ref),
                visibility=Visibility.ALL_CORNERS,
                color=color,
            )
        )
        if layout == ZLayout.STACKED:
            z += color_thickness
    if layout == ZLayout.OVERLAPPING:
        z += color_thickness

    layers.append(
        LayerSpec(
            name="white",
            z_base=z,
            z_thickness=white_max_thickness,
            density=Channel(ChannelRef.WHITE),
            visibility=Visibility.ANY_CORNER,
            min_thickness=white_min_thickness,
            backing_thickness=white_base_thickness,
            color="white",
        )
    )
    return layers
