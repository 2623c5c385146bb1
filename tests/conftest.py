"""Shared fixtures: SVG documents written to tmp_path and small paths."""

from pathlib import Path

import pytest

from pathgpu.paths.commands import Path as GeoPath

SVG_HEADER = '<svg xmlns="http://www.w3.org/2000/svg" {attrs}>'


@pytest.fixture
def write_svg(tmp_path):
    """Factory writing an SVG document; returns its path.

    write_svg('<rect width="10" height="10"/>') wraps the body in a root
    <svg> with a 100x100 viewBox unless attrs are given.
    """
    def _write(body: str, name: str = "doc.svg", attrs: str = 'viewBox="0 0 100 100"') -> Path:
        path = tmp_path / name
        path.write_text(
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            + SVG_HEADER.format(attrs=attrs) + body + '</svg>\n',
            encoding="utf-8",
        )
        return path

    return _write


@pytest.fixture
def square():
    """Closed 10x10 square with implicit closing edge."""
    return GeoPath().move_to((0, 0)).line_to((10, 0)).line_to((10, 10)).line_to((0, 10)).close_path()


@pytest.fixture
def curve():
    """Single open cubic with a pronounced bulge."""
    return GeoPath().move_to((0, 0)).curve_to((0, 40), (100, 40), (100, 0))
