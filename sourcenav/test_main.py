"""Tests for the command line entry point and file loading."""

import pytest

from sourcenav.loader import NavLoader
from sourcenav.main import main
from sourcenav.parser.mock_generator import MockNavGenerator


@pytest.fixture
def nav_file(tmp_path):
    gen = MockNavGenerator(version=16)
    areas = [
        gen.flat_area(1, 0, 0, 100, 100, z=0.0, place=1),
        gen.flat_area(2, 0, 0, 100, 100, z=128.0),
    ]
    path = tmp_path / "de_test.nav"
    path.write_bytes(gen.encode(areas, places=["Ground"]))
    return path


def test_load_file(nav_file):
    mesh, index = NavLoader.load_file(nav_file)
    assert len(mesh) == 2
    assert index.find_best_height(50, 50, 100.0) == 128.0
    assert len(NavLoader.decode_file(nav_file)) == 2


def test_height_command(nav_file, capsys):
    assert main(["height", str(nav_file), "50", "50", "--hint", "120"]) == 0
    assert capsys.readouterr().out.strip() == "128.0000"


def test_height_all_surfaces(nav_file, capsys):
    assert main(["height", str(nav_file), "50", "50", "--all"]) == 0
    assert capsys.readouterr().out.split() == ["0.0000", "128.0000"]


def test_height_no_match(nav_file, capsys):
    assert main(["height", str(nav_file), "500", "500"]) == 1
    assert "no match" in capsys.readouterr().out


def test_info_command(nav_file, capsys):
    assert main(["--preset", "fine", "info", str(nav_file), "--places"]) == 0
    out = capsys.readouterr().out
    assert "Areas:        2" in out
    assert "Ground" in out


def test_corrupt_file(tmp_path):
    path = tmp_path / "broken.nav"
    path.write_bytes(b'\x00\x01\x02\x03\x04')
    assert main(["info", str(path)]) == 2


def test_missing_file(tmp_path):
    assert main(["info", str(tmp_path / "nope.nav")]) == 2
