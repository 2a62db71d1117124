"""Mesh diagnostics using trimesh."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import numpy as np
import trimesh

from ..logging_config import get_logger

if TYPE_CHECKING:
    from ..mesher import Mesh

logger = get_logger(__name__)


def mesh_to_trimesh(mesh: Mesh) -> trimesh.Trimesh:
    """Convert a triangle-soup layer mesh to trimesh, merging shared vertices.

    Args:
        mesh: Layer mesh

    Returns:
        Trimesh object
    """
    vertices = mesh.triangles.reshape(-1, 3).astype(np.float64)
    faces = np.arange(len(vertices)).reshape(-1, 3)
    return trimesh.Trimesh(vertices=vertices, faces=faces, process=True)


def validate_mesh(mesh: trimesh.Trimesh, verbose: bool = False) -> dict[str, Any]:
    """Collect diagnostics about a mesh.

    Args:
        mesh: The trimesh object to validate
        verbose: If True, log every result at INFO level

    Returns:
        Dictionary containing validation results
    """
    results: dict[str, Any] = {
        "is_watertight": bool(mesh.is_watertight),
        "is_winding_consistent": bool(mesh.is_winding_consistent),
        "vertex_count": len(mesh.vertices),
        "face_count": len(mesh.faces),
        "non_manifold_edges": 0,
        "boundary_edges": 0,
        "degenerate_faces": 0,
    }

    if len(mesh.faces):
        # Every edge of a closed manifold is used by exactly two faces
        edge_use = np.unique(mesh.edges_sorted, axis=0, return_counts=True)[1]
        results["boundary_edges"] = int(np.sum(edge_use == 1))
        results["non_manifold_edges"] = int(np.sum(edge_use > 2))
        results["degenerate_faces"] = int(np.sum(~mesh.nondegenerate_faces()))
    results["is_edge_manifold"] = results["non_manifold_edges"] == 0

    log = logger.info if verbose else logger.debug
    for key, value in results.items():
        log(f"{key.replace('_', ' ').capitalize()}: {value}")

    return results


def check_mesh_from_stl(stl_path: Path | str, verbose: bool = True) -> dict[str, Any]:
    """Load and validate an STL file.

    Args:
        stl_path: Path to the STL file
        verbose: If True, log diagnostics

    Returns:
        Validation results dictionary
    """
    mesh = trimesh.load(stl_path, force="mesh")
    return validate_mesh(mesh, verbose)  # type: ignore[arg-type]
