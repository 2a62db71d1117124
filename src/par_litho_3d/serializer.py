"""Write layer meshes as ASCII STL files and 3MF packages."""

from __future__ import annotations

import io
import zipfile
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

import lib3mf
import numpy as np
from lib3mf import get_wrapper
from stl import Mode  # type: ignore[import-untyped]
from stl import mesh as stl_mesh  # type: ignore[import-untyped]

from .errors import ResourceExhaustion
from .logging_config import get_logger
from .mesher import Mesh, face_normals
from .utils import layer_color, layer_file_name, layer_output_path, prepare_output_path

logger = get_logger(__name__)

# Model units accepted by ExportPackage.unit
UNITS = {
    "micron": lib3mf.ModelUnit.MicroMeter,
    "millimeter": lib3mf.ModelUnit.MilliMeter,
    "centimeter": lib3mf.ModelUnit.CentiMeter,
    "inch": lib3mf.ModelUnit.Inch,
    "foot": lib3mf.ModelUnit.Foot,
    "meter": lib3mf.ModelUnit.Meter,
}


@dataclass
class PackageObject:
    """One mesh object of a 3MF package."""

    object_id: int
    mesh: Mesh
    color: str = "white"


@dataclass
class ExportPackage:
    """Ordered mesh objects plus unit metadata."""

    objects: list[PackageObject] = field(default_factory=list)
    unit: str = "millimeter"

    def add(self, mesh: Mesh, color: str = "white") -> PackageObject:
        """Append a mesh with the next free object id."""
        obj = PackageObject(object_id=len(self.objects) + 1, mesh=mesh, color=color)
        self.objects.append(obj)
        return obj

    @property
    def triangle_count(self) -> int:
        return sum(obj.mesh.triangle_count for obj in self.objects)


def to_stl_mesh(mesh: Mesh) -> stl_mesh.Mesh:
    """Convert a mesh to numpy-stl with unit facet normals.

    Args:
        mesh: Layer mesh

    Returns:
        numpy-stl Mesh named after the layer
    """
    data = np.zeros(mesh.triangle_count, dtype=stl_mesh.Mesh.dtype)
    data["vectors"] = mesh.triangles
    data["normals"] = face_normals(mesh.triangles)
    # Speedups write a different float format, keep the pure python writer
    return stl_mesh.Mesh(data, calculate_normals=False, name=mesh.name, speedups=False)


def write_stl_ascii(mesh: Mesh, fh: BinaryIO) -> None:
    """Write one ASCII STL solid to a binary file handle."""
    to_stl_mesh(mesh).save(mesh.name, fh=fh, mode=Mode.ASCII, update_normals=False)


def stl_ascii_text(mesh: Mesh) -> str:
    """ASCII STL text for one mesh."""
    buffer = io.BytesIO()
    write_stl_ascii(mesh, buffer)
    return buffer.getvalue().decode("ascii")


def save_stl(mesh: Mesh, output_path: Path | str) -> Path:
    """Save a mesh as an ASCII STL file.

    Args:
        mesh: Layer mesh
        output_path: Target path, ``.stl`` is enforced

    Returns:
        Path of the written file
    """
    output_path = prepare_output_path(output_path, ".stl")
    with open(output_path, "wb") as fh:
        write_stl_ascii(mesh, fh)
    logger.debug(f"Wrote {mesh.triangle_count} facets to {output_path}")
    return output_path


def save_layer_stls(meshes: Iterable[Mesh], output_path: Path | str) -> list[Path]:
    """Save every non-empty mesh as its own STL file next to ``output_path``.

    Files are named ``<stem>_<layer>.stl``.

    Args:
        meshes: Layer meshes
        output_path: Base path; its suffix is ignored

    Returns:
        Paths of the written files
    """
    paths = []
    for mesh in meshes:
        if mesh.is_empty:
            logger.debug(f"Skipping empty layer {mesh.name}")
            continue
        paths.append(save_stl(mesh, layer_output_path(output_path, mesh.name)))
    return paths


def save_stl_archive(meshes: Iterable[Mesh], output_path: Path | str) -> Path:
    """Bundle one STL file per non-empty mesh into a zip archive.

    Args:
        meshes: Layer meshes
        output_path: Target path, ``.zip`` is enforced

    Returns:
        Path of the archive

    Raises:
        ResourceExhaustion: If the archive could not be built in memory
    """
    output_path = prepare_output_path(output_path, ".zip")
    try:
        with zipfile.ZipFile(output_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for mesh in meshes:
                if mesh.is_empty:
                    continue
                with zf.open(layer_file_name(output_path, mesh.name), "w", force_zip64=True) as fh:
                    write_stl_ascii(mesh, fh)  # type: ignore[arg-type]
    except MemoryError as e:
        output_path.unlink(missing_ok=True)
        raise ResourceExhaustion(f"Out of memory while writing {output_path.name}") from e
    logger.debug(f"Wrote STL archive {output_path}")
    return output_path


def _add_mesh_object(model: lib3mf.Model, mesh: Mesh) -> lib3mf.MeshObject:
    vertices, faces = mesh.indexed()
    # Zero-height walls collapse onto a repeated vertex, 3MF rejects those triangles
    keep = (faces[:, 0] != faces[:, 1]) & (faces[:, 1] != faces[:, 2]) & (faces[:, 0] != faces[:, 2])
    if not keep.all():
        logger.debug(f"{mesh.name}: dropped {int((~keep).sum())} collapsed triangles")
        faces = faces[keep]

    mesh_object = model.AddMeshObject()
    mesh_object.SetName(mesh.name)

    vertex_ids = []
    for x, y, z in vertices.tolist():
        position = lib3mf.Position()
        position.Coordinates[0] = x
        position.Coordinates[1] = y
        position.Coordinates[2] = z
        vertex_ids.append(mesh_object.AddVertex(position))

    for v0, v1, v2 in faces.tolist():
        triangle = lib3mf.Triangle()
        triangle.Indices[0] = vertex_ids[v0]
        triangle.Indices[1] = vertex_ids[v1]
        triangle.Indices[2] = vertex_ids[v2]
        mesh_object.AddTriangle(triangle)
    return mesh_object


def build_3mf_model(package: ExportPackage, wrapper: lib3mf.Wrapper) -> lib3mf.Model:
    """Build a lib3mf model with one object and build item per non-empty mesh.

    Objects are never merged and keep their own vertex lists. A single colour
    group holds one display colour per object so slicers can assign a
    filament per layer.

    Args:
        package: Objects to write
        wrapper: lib3mf wrapper instance

    Returns:
        lib3mf Model ready to be written
    """
    model = wrapper.CreateModel()
    model.SetUnit(UNITS[package.unit])

    objects = [obj for obj in package.objects if not obj.mesh.is_empty]
    if not objects:
        logger.debug("No geometry, writing an empty 3MF model")
        return model

    color_group = model.AddColorGroup()
    for obj in objects:
        mesh_object = _add_mesh_object(model, obj.mesh)
        color_id = color_group.AddColor(layer_color(obj.color, wrapper))
        mesh_object.SetObjectLevelProperty(color_group.GetResourceID(), color_id)
        model.AddBuildItem(mesh_object, wrapper.GetIdentityTransform())
    return model


def write_3mf(package: ExportPackage, output_path: Path | str) -> None:
    """Write a 3MF package to ``output_path``.

    Args:
        package: Objects to write
        output_path: Output file path

    Raises:
        ResourceExhaustion: If lib3mf ran out of memory or failed to write the package
    """
    output_path = Path(output_path)
    try:
        wrapper = get_wrapper()
        model = build_3mf_model(package, wrapper)
        writer = model.QueryWriter("3mf")
        writer.WriteToFile(str(output_path))
    except (MemoryError, lib3mf.ELib3MFException) as e:
        output_path.unlink(missing_ok=True)
        raise ResourceExhaustion(f"Could not write the 3MF package: {e}") from e


def save_3mf(package: ExportPackage, output_path: Path | str) -> Path:
    """Save a 3MF package.

    Args:
        package: Objects to write
        output_path: Target path, ``.3mf`` is enforced

    Returns:
        Path of the written file
    """
    output_path = prepare_output_path(output_path, ".3mf")
    write_3mf(package, output_path)
    logger.debug(f"Wrote {len(package.objects)} objects, {package.triangle_count} triangles to {output_path}")
    return output_path
