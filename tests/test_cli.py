"""Tests for the command line host."""

from __future__ import annotations

import importlib
import os

import numpy as np
import pytest
from PIL import Image
from typer.testing import CliRunner

import par_litho_3d
from par_litho_3d.__main__ import app
from par_litho_3d.layers import Visibility
from par_litho_3d.mesher import build_heightfield_mesh
from par_litho_3d.serializer import save_stl

from .conftest import make_rgba, square_on_canvas


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def photo_path(tmp_path):
    path = tmp_path / "photo.png"
    Image.fromarray(square_on_canvas()).save(path)
    return path


def test_version(runner) -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0


def test_export_writes_3mf(runner, photo_path, tmp_path) -> None:
    result = runner.invoke(app, ["export", str(photo_path), "-o", str(tmp_path / "out"), "-w", "10", "-p", "1"])

    assert result.exit_code == 0, result.output
    assert (tmp_path / "out.3mf").exists()


def test_export_stl_with_border(runner, photo_path, tmp_path) -> None:
    result = runner.invoke(
        app,
        ["export", str(photo_path), "-o", str(tmp_path / "out"), "-w", "10", "-p", "1", "-b", "1", "-F", "stl"],
    )

    assert result.exit_code == 0, result.output
    assert sorted(p.name for p in tmp_path.glob("out_*.stl")) == [
        "out_base.stl",
        "out_cyan.stl",
        "out_magenta.stl",
        "out_white.stl",
        "out_yellow.stl",
    ]


def test_export_transparent_image_succeeds(runner, tmp_path) -> None:
    path = tmp_path / "clear.png"
    Image.fromarray(make_rgba(8, 8, alpha=0)).save(path)

    result = runner.invoke(app, ["export", str(path), "-w", "10", "-p", "1"])

    assert result.exit_code == 0, result.output
    assert (tmp_path / "clear.3mf").exists()


def test_export_missing_image_fails(runner, tmp_path) -> None:
    result = runner.invoke(app, ["export", str(tmp_path / "missing.png")])

    assert result.exit_code != 0


def test_check_command(runner, tmp_path) -> None:
    mesh = build_heightfield_mesh(
        np.ones((3, 3)), np.ones((3, 3), dtype=bool), Visibility.ANY_CORNER, 1.0, 0.0, 1.0, side_walls=True
    )
    path = save_stl(mesh, tmp_path / "slab.stl")

    result = runner.invoke(app, ["check", str(path)])

    assert result.exit_code == 0, result.output


def test_import_leaves_environment_alone(monkeypatch) -> None:
    monkeypatch.delenv("USER_AGENT", raising=False)

    importlib.reload(par_litho_3d)

    assert "USER_AGENT" not in os.environ
