"""Output file naming for layer exports."""

from __future__ import annotations

from pathlib import Path

from ..logging_config import get_logger

logger = get_logger(__name__)


def _suffix(extension: str) -> str:
    return "." + extension.lstrip(".")


def prepare_output_path(path: Path | str, extension: str) -> Path:
    """Give a path the expected suffix and create its directory.

    A suffix that already matches, ignoring case, is kept as written so
    ``photo.STL`` is not renamed.

    Args:
        path: Requested output path
        extension: Expected extension, with or without the leading dot

    Returns:
        Path ready to be written
    """
    path = Path(path)
    suffix = _suffix(extension)
    if path.suffix.lower() != suffix.lower():
        path = path.with_suffix(suffix)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def layer_file_name(base: Path | str, layer_name: str, extension: str = ".stl") -> str:
    """File name of one layer exported next to ``base``: ``<stem>_<layer><ext>``."""
    return f"{Path(base).stem}_{layer_name}{_suffix(extension)}"


def layer_output_path(base: Path | str, layer_name: str, extension: str = ".stl") -> Path:
    """Path of one layer file in the directory of ``base``.

    Args:
        base: Base output path, its own suffix is ignored
        layer_name: Layer name appended to the stem
        extension: Layer file extension

    Returns:
        Prepared layer path
    """
    path = Path(base).with_name(layer_file_name(base, layer_name, extension))
    logger.debug(f"Layer {layer_name} goes to {path}")
    return prepare_output_path(path, extension)
