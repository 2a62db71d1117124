"""Triangulate density grids into slab meshes, one per material layer."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from .layers import Channel, Constant, LayerSpec, Visibility
from .logging_config import get_logger
from .pixel_sampler import PixelGrid

logger = get_logger(__name__)

ProgressCallback = Callable[[int, str], None]

# Normal written for triangles whose edges are collinear
PLACEHOLDER_NORMAL = (0.0, 0.0, 1.0)

# Cell rows meshed between progress callbacks
DEFAULT_ROW_BATCH = 128


@dataclass
class Mesh:
    """Named triangle soup in millimetres, shape (T, 3, 3)."""

    name: str
    triangles: np.ndarray

    @classmethod
    def empty(cls, name: str) -> Mesh:
        return cls(name=name, triangles=np.zeros((0, 3, 3), dtype=np.float32))

    @property
    def triangle_count(self) -> int:
        return int(self.triangles.shape[0])

    @property
    def is_empty(self) -> bool:
        return self.triangle_count == 0

    def normals(self) -> np.ndarray:
        """Unit normal per triangle, following the right-hand rule."""
        return face_normals(self.triangles)

    def indexed(self) -> tuple[np.ndarray, np.ndarray]:
        """Shared vertex list and 0-based triangle indices.

        Returns:
            Tuple of (vertices (V, 3), faces (T, 3))
        """
        if self.is_empty:
            return np.zeros((0, 3), dtype=np.float32), np.zeros((0, 3), dtype=np.int64)
        vertices, inverse = np.unique(self.triangles.reshape(-1, 3), axis=0, return_inverse=True)
        return vertices, inverse.reshape(-1, 3)


def face_normals(triangles: np.ndarray) -> np.ndarray:
    """Unit normals of triangles; degenerate triangles get ``PLACEHOLDER_NORMAL``.

    Args:
        triangles: Array of shape (T, 3, 3)

    Returns:
        float64 array of shape (T, 3)
    """
    triangles = np.asarray(triangles, dtype=np.float64)
    normals = np.tile(np.asarray(PLACEHOLDER_NORMAL), (len(triangles), 1))
    if len(triangles) == 0:
        return normals
    cross = np.cross(triangles[:, 1] - triangles[:, 0], triangles[:, 2] - triangles[:, 0])
    length = np.linalg.norm(cross, axis=1)
    ok = length > 0
    normals[ok] = cross[ok] / length[ok, np.newaxis]
    return normals


def visible_cells(valid: np.ndarray, visibility: Visibility) -> np.ndarray:
    """Cells, indexed by their lower-left corner, that pass the visibility rule.

    Args:
        valid: Boolean corner mask of shape (rows, columns)
        visibility: Cell inclusion rule

    Returns:
        Boolean array of shape (rows - 1, columns - 1)
    """
    if valid.shape[0] < 2 or valid.shape[1] < 2:
        return np.zeros((max(valid.shape[0] - 1, 0), max(valid.shape[1] - 1, 0)), dtype=bool)
    corners = (valid[:-1, :-1], valid[:-1, 1:], valid[1:, :-1], valid[1:, 1:])
    if Visibility(visibility) == Visibility.ALL_CORNERS:
        return corners[0] & corners[1] & corners[2] & corners[3]
    return corners[0] | corners[1] | corners[2] | corners[3]


def _points(x: np.ndarray, y: np.ndarray, z: np.ndarray) -> np.ndarray:
    return np.stack([x, y, z], axis=-1)


def _wall(a: np.ndarray, b: np.ndarray, c: np.ndarray, d: np.ndarray) -> list[np.ndarray]:
    # Quad a-b-c-d counter-clockwise seen from outside
    return [np.stack([a, b, c], axis=1), np.stack([a, c, d], axis=1)]


def build_heightfield_mesh(
    density: np.ndarray,
    valid: np.ndarray,
    visibility: Visibility,
    scale: float | tuple[float, float],
    z_base: float,
    z_thickness: float,
    min_thickness: float = 0.0,
    name: str = "layer",
    side_walls: bool = False,
    row_batch: int = DEFAULT_ROW_BATCH,
    progress_callback: ProgressCallback | None = None,
) -> Mesh:
    """Mesh a density grid as a slab between ``z_base`` and its density surface.

    Each grid sample is a cell corner. Every visible cell gets two top
    triangles facing +z and two bottom triangles facing -z. The top of a corner
    sits at ``z_base + min_thickness + (z_thickness - min_thickness) * density``.
    Cells whose four corners all have zero thickness are skipped.
    Density is used as given at every corner of a visible cell, so channel
    grids should already be zero where invalid. Row 0 of the grid ends up at
    the top (largest y) of the mesh.

    Side walls are only emitted when ``side_walls`` is set, along every cell
    edge whose neighbouring cell is not meshed. Without them the slab is open
    at its silhouette.

    Args:
        density: Density per sample in 0-1, shape (rows, columns)
        valid: Validity per sample, same shape
        visibility: Cell inclusion rule
        scale: mm per sample, either a scalar or (x, y)
        z_base: Bottom of the slab in mm
        z_thickness: Slab thickness at density 1 in mm
        min_thickness: Slab thickness at density 0 in mm
        name: Mesh name
        side_walls: Close the slab along its boundary
        row_batch: Cell rows meshed between progress callbacks
        progress_callback: Optional callable taking (percent, message)

    Returns:
        Mesh with 4 triangles per visible cell, plus walls if requested
    """
    sx, sy = (scale, scale) if np.isscalar(scale) else scale
    valid = np.flipud(np.asarray(valid, dtype=bool))
    density = np.flipud(np.asarray(density, dtype=np.float64))

    top = z_base + min_thickness + (z_thickness - min_thickness) * np.clip(density, 0.0, 1.0)
    include = visible_cells(valid, visibility)
    # Cells with no height at any corner would be zero-volume sheets
    include &= visible_cells(top > z_base, Visibility.ANY_CORNER)
    if not include.any():
        logger.debug(f"{name}: no visible cells")
        return Mesh.empty(name)

    padded = np.pad(include, 1, mode="constant", constant_values=False)

    rows = include.shape[0]
    row_batch = max(1, row_batch)
    parts: list[np.ndarray] = []
    for start in range(0, rows, row_batch):
        cy, cx = np.nonzero(include[start : start + row_batch])
        if cy.size:
            cy = cy + start
            parts.extend(_cell_triangles(cy, cx, top, z_base, sx, sy, padded if side_walls else None))
        if progress_callback:
            done = min(start + row_batch, rows)
            progress_callback(int(100 * done / rows), f"Meshing {name} ({done}/{rows} rows)")

    triangles = np.concatenate(parts).astype(np.float32) if parts else np.zeros((0, 3, 3), dtype=np.float32)
    logger.debug(f"{name}: {int(include.sum())} cells, {len(triangles)} triangles")
    return Mesh(name=name, triangles=triangles)


def _cell_triangles(
    cy: np.ndarray,
    cx: np.ndarray,
    top: np.ndarray,
    z_base: float,
    sx: float,
    sy: float,
    padded: np.ndarray | None,
) -> list[np.ndarray]:
    x0, x1 = cx * sx, (cx + 1) * sx
    y0, y1 = cy * sy, (cy + 1) * sy
    base = np.full(cx.shape, z_base, dtype=np.float64)

    t00 = _points(x0, y0, top[cy, cx])
    t10 = _points(x1, y0, top[cy, cx + 1])
    t01 = _points(x0, y1, top[cy + 1, cx])
    t11 = _points(x1, y1, top[cy + 1, cx + 1])
    b00 = _points(x0, y0, base)
    b10 = _points(x1, y0, base)
    b01 = _points(x0, y1, base)
    b11 = _points(x1, y1, base)

    cells = np.stack(
        [
            np.stack([t00, t10, t11], axis=1),
            np.stack([t00, t11, t01], axis=1),
            np.stack([b00, b11, b10], axis=1),
            np.stack([b00, b01, b11], axis=1),
        ],
        axis=1,
    )
    triangles = [cells.reshape(-1, 3, 3)]
    if padded is None:
        return triangles

    # Neighbour lookups in the padded mask are offset by one
    edges = (
        (~padded[cy, cx + 1], (b00, b10, t10, t00)),  # -y
        (~padded[cy + 2, cx + 1], (b11, b01, t01, t11)),  # +y
        (~padded[cy + 1, cx], (b01, b00, t00, t01)),  # -x
        (~padded[cy + 1, cx + 2], (b10, b11, t11, t10)),  # +x
    )
    for open_edge, quad in edges:
        if open_edge.any():
            triangles.extend(_wall(*(corner[open_edge] for corner in quad)))
    return triangles


def layer_density(grid: PixelGrid, layer: LayerSpec) -> np.ndarray:
    """Density array for a layer's density source."""
    source = layer.density
    if isinstance(source, Constant):
        return np.full(grid.valid.shape, source.value, dtype=np.float32)
    if isinstance(source, Channel):
        return grid.channel(source.ref)
    raise TypeError(f"Unknown density source {source!r}")


def build_layer_mesh(
    grid: PixelGrid,
    layer: LayerSpec,
    scale: float | tuple[float, float],
    side_walls: bool = False,
    progress_callback: ProgressCallback | None = None,
) -> Mesh:
    """Mesh one material layer of an export grid.

    A backing slab is meshed as extra thickness at every corner, so it
    shares the layer's top surface and silhouette.

    Args:
        grid: Resampled export grid
        layer: Layer to mesh
        scale: mm per sample, scalar or (x, y)
        side_walls: Close the slab along its boundary
        progress_callback: Optional callable taking (percent, message)

    Returns:
        Mesh named after the layer
    """
    return build_heightfield_mesh(
        layer_density(grid, layer),
        grid.valid,
        layer.visibility,
        scale,
        z_base=layer.z_base,
        z_thickness=layer.backing_thickness + layer.z_thickness,
        min_thickness=layer.backing_thickness + layer.min_thickness,
        name=layer.name,
        side_walls=side_walls,
        progress_callback=progress_callback,
    )
