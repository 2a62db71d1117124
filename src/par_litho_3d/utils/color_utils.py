"""Colour handling for slicer display colours."""

from __future__ import annotations

import lib3mf
from PIL import ImageColor

from ..logging_config import get_logger

logger = get_logger(__name__)


def parse_color(color_str: str, default_color: str = "white") -> tuple[int, int, int]:
    """Parse a colour name or hex code into an RGB tuple.

    Args:
        color_str: Colour name or hex code
        default_color: Fallback colour if parsing fails

    Returns:
        RGB tuple with values 0-255
    """
    try:
        rgb = ImageColor.getrgb(color_str)
    except (ValueError, AttributeError) as e:
        logger.warning(f"Invalid color '{color_str}': {e}, using '{default_color}'")
        rgb = ImageColor.getrgb(default_color)
    # Drop alpha from RGBA input
    return (rgb[0], rgb[1], rgb[2])


def layer_color(color_str: str, wrapper: lib3mf.Wrapper) -> lib3mf.Color:
    """Opaque 3MF colour for a layer's display colour.

    Args:
        color_str: Colour name or hex code, unknown names fall back to white
        wrapper: lib3mf wrapper instance

    Returns:
        lib3mf Color
    """
    red, green, blue = parse_color(color_str, "white")
    return wrapper.RGBAToColor(red, green, blue, 255)
