"""Export configuration passed explicitly into the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from .errors import ConfigurationError
from .layers import LayerSpec, ZLayout, plan_layers


class OutputFormat(str, Enum):
    """Mesh file formats the pipeline can write."""

    STL = "stl"
    THREE_MF = "3mf"
    BOTH = "both"


class BorderMetric(str, Enum):
    """Distance metric used to grow the shape border."""

    CHAMFER = "chamfer"
    EUCLIDEAN = "euclidean"


@dataclass(frozen=True)
class ExportConfig:
    """Everything one export run reads.

    Either ``width_mm`` or ``height_mm`` may be left as None, in which case it
    follows the aspect ratio of the shape.
    """

    width_mm: float | None = 100.0
    height_mm: float | None = None
    pitch_mm: float = 0.2
    border_mm: float = 0.0
    border_metric: BorderMetric = BorderMetric.CHAMFER
    layout: ZLayout = ZLayout.STACKED
    base_thickness_mm: float = 0.2
    color_thickness_mm: float = 0.5
    white_min_thickness_mm: float = 0.3
    white_max_thickness_mm: float = 2.5
    white_base_thickness_mm: float = 1.0
    side_walls: bool = False
    output_format: OutputFormat = OutputFormat.THREE_MF
    bundle_stl: bool = False
    validate_meshes: bool = False

    def validate(self) -> ExportConfig:
        """Check the configuration before any work starts.

        Returns:
            self, to allow chaining

        Raises:
            ConfigurationError: If a value cannot produce an export grid
        """
        if self.width_mm is None and self.height_mm is None:
            raise ConfigurationError("At least one of width or height must be given")
        for label, value in (("width", self.width_mm), ("height", self.height_mm)):
            if value is not None and not value > 0:
                raise ConfigurationError(f"Export {label} must be positive, got {value}")
        if not self.pitch_mm > 0:
            raise ConfigurationError(f"Pixel pitch must be positive, got {self.pitch_mm}")
        if self.border_mm < 0:
            raise ConfigurationError(f"Border width cannot be negative, got {self.border_mm}")
        try:
            BorderMetric(self.border_metric)
            OutputFormat(self.output_format)
            ZLayout(self.layout)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        # Thickness checks live with the planner
        self.layer_specs()
        return self

    def layer_specs(self) -> list[LayerSpec]:
        """Layer table for this configuration."""
        return plan_layers(
            layout=self.layout,
            base_thickness=self.base_thickness_mm,
            color_thickness=self.color_thickness_mm,
            white_min_thickness=self.white_min_thickness_mm,
            white_max_thickness=self.white_max_thickness_mm,
            white_base_thickness=self.white_base_thickness_mm,
        )

    def replace(self, **changes: Any) -> ExportConfig:
        """Return a copy with some fields changed."""
        return replace(self, **changes)
