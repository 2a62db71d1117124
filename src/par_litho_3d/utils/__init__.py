"""Utility modules for par_litho_3d."""

from .color_utils import layer_color, parse_color
from .image_utils import apply_shape_mask, ensure_rgba, load_rgba, shape_alpha
from .mesh_utils import check_mesh_from_stl, mesh_to_trimesh, validate_mesh
from .path_utils import layer_file_name, layer_output_path, prepare_output_path

__all__ = [
    "parse_color",
    "layer_color",
    "ensure_rgba",
    "load_rgba",
    "shape_alpha",
    "apply_shape_mask",
    "prepare_output_path",
    "layer_file_name",
    "layer_output_path",
    "validate_mesh",
    "mesh_to_trimesh",
    "check_mesh_from_stl",
]
