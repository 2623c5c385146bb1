"""Document loader: which shapes become paths, in which order.

Tests:
    - Solid fills emitted; none / gradient / url fills excluded
    - Fill cascade: inheritance, style attribute, inherit, currentColor
    - Pre-order document order across nested groups
    - Basic shapes converted to paths
    - Recoverable errors (bad path data, bad color, <use>) skip one shape
    - Unreadable / malformed / non-SVG documents raise DocumentError
    - Viewport from viewBox or width/height
"""

import logging
import math

import pytest

from pathgpu.document import DocumentError, SkipReason, load_document, parse_svg
from pathgpu.document.shapes import MalformedShapeError, path_from_d
from pathgpu.document.style import parse_length, resolve_paint, PaintKind
from pathgpu.paths.commands import ClosePath, CubicCurveTo, LineTo, MoveTo
from pathgpu.utils.geometry import bezier_cubic_point


def reasons(doc):
    return [s.reason for s in doc.skipped]


class TestFillSelection:

    def test_solid_fill_emitted(self, write_svg):
        svg = write_svg('<path d="M0 0 L10 0 L10 10 Z" fill="red"/>')
        doc = load_document(svg)
        assert len(doc.paths) == 1
        assert doc.shapes[0].fill_rgb == (255, 0, 0)

    def test_default_fill_is_black(self, write_svg):
        doc = load_document(write_svg('<path d="M0 0 L10 0 L10 10 Z"/>'))
        assert doc.shapes[0].fill_rgb == (0, 0, 0)

    def test_fill_none_excluded(self, write_svg):
        doc = load_document(write_svg('<path d="M0 0 L10 0 L10 10 Z" fill="none" stroke="black"/>'))
        assert doc.paths == []
        assert reasons(doc) == [SkipReason.NO_FILL]

    def test_gradient_fill_excluded(self, write_svg):
        svg = write_svg(
            '<defs><linearGradient id="g"><stop offset="0" stop-color="red"/></linearGradient></defs>'
            '<rect width="10" height="10" fill="url(#g)"/>'
            '<rect x="20" width="10" height="10" fill="blue"/>'
        )
        doc = load_document(svg)
        assert len(doc.paths) == 1
        assert doc.paths[0].bounding_box() == (20.0, 0.0, 30.0, 10.0)
        assert reasons(doc) == [SkipReason.NON_SOLID_FILL]
        assert doc.recoverable_errors == []

    def test_inherited_fill(self, write_svg):
        svg = write_svg('<g fill="none"><rect width="5" height="5"/><rect width="5" height="5" fill="#00ff00"/></g>')
        doc = load_document(svg)
        assert [s.fill_rgb for s in doc.shapes] == [(0, 255, 0)]

    def test_style_attribute_beats_presentation_attribute(self, write_svg):
        svg = write_svg('<rect width="5" height="5" fill="red" style="fill: none"/>')
        assert load_document(svg).paths == []

    def test_explicit_inherit(self, write_svg):
        svg = write_svg('<g fill="none"><rect width="5" height="5" fill="inherit"/></g>')
        assert load_document(svg).paths == []

    def test_current_color(self, write_svg):
        svg = write_svg('<g color="rgb(0, 0, 255)"><rect width="5" height="5" fill="currentColor"/></g>')
        assert load_document(svg).shapes[0].fill_rgb == (0, 0, 255)

    def test_line_never_filled(self, write_svg):
        doc = load_document(write_svg('<line x1="0" y1="0" x2="10" y2="10" stroke="black"/>'))
        assert doc.paths == []
        assert reasons(doc) == [SkipReason.NOT_FILLABLE]

    def test_defs_content_not_rendered(self, write_svg):
        svg = write_svg('<defs><rect id="tpl" width="5" height="5"/></defs>')
        doc = load_document(svg)
        assert doc.paths == []
        assert doc.skipped == []


class TestDocumentOrder:

    def test_nested_groups_preorder(self, write_svg):
        svg = write_svg(
            '<rect id="a" x="0" width="1" height="1"/>'
            '<g><rect id="b" x="1" width="1" height="1"/>'
            '<g><rect id="c" x="2" width="1" height="1"/></g>'
            '<rect id="d" x="3" width="1" height="1"/></g>'
            '<rect id="e" x="4" width="1" height="1"/>'
        )
        doc = load_document(svg)
        assert [s.element_id for s in doc.shapes] == ["a", "b", "c", "d", "e"]

    def test_parse_svg_matches_document_paths(self, write_svg):
        svg = write_svg('<rect width="1" height="1"/><circle cx="5" cy="5" r="2"/>')
        assert parse_svg(svg) == load_document(svg).paths


class TestShapes:

    def test_rect(self, write_svg):
        path = load_document(write_svg('<rect x="1" y="2" width="3" height="4"/>')).paths[0]
        assert [type(c) for c in path] == [MoveTo, LineTo, LineTo, LineTo, ClosePath]
        assert path.bounding_box() == (1.0, 2.0, 4.0, 6.0)

    def test_rounded_rect_uses_curves(self, write_svg):
        path = load_document(write_svg('<rect width="20" height="10" rx="2"/>')).paths[0]
        assert path.curve_count == 4
        assert path.bounding_box() == pytest.approx((0.0, 0.0, 20.0, 10.0))

    def test_circle(self, write_svg):
        path = load_document(write_svg('<circle cx="50" cy="50" r="10"/>')).paths[0]
        assert path.curve_count == 4
        assert isinstance(path.commands[-1], ClosePath)
        assert path.bounding_box() == pytest.approx((40.0, 40.0, 60.0, 60.0))

    def test_polygon_closed_polyline_open(self, write_svg):
        doc = load_document(write_svg(
            '<polygon points="0,0 10,0 5,5"/><polyline points="0 0 10 0 5 5"/>'
        ))
        polygon, polyline = doc.paths
        assert isinstance(polygon.commands[-1], ClosePath)
        assert isinstance(polyline.commands[-1], LineTo)

    def test_zero_size_is_empty_geometry(self, write_svg):
        doc = load_document(write_svg('<rect width="0" height="10"/><circle r="0"/>'))
        assert doc.paths == []
        assert reasons(doc) == [SkipReason.EMPTY_GEOMETRY, SkipReason.EMPTY_GEOMETRY]

    def test_units(self, write_svg):
        path = load_document(write_svg('<rect width="1in" height="2.54cm"/>')).paths[0]
        assert path.bounding_box() == pytest.approx((0.0, 0.0, 96.0, 96.0))


class TestPathData:

    def test_relative_and_shorthand_commands(self):
        path = path_from_d("m10 10 h10 v10 h-10 z")
        assert [type(c) for c in path] == [MoveTo, LineTo, LineTo, LineTo, ClosePath]
        assert path.bounding_box() == (10.0, 10.0, 20.0, 20.0)

    def test_quadratic_elevated_to_cubic(self):
        path = path_from_d("M0 0 Q50 100 100 0")
        cmd = path.commands[1]
        assert isinstance(cmd, CubicCurveTo)
        assert cmd.ctrl1 == pytest.approx((100.0 / 3.0, 200.0 / 3.0))
        assert cmd.point == (100.0, 0.0)

    def test_arc_becomes_cubics(self):
        path = path_from_d("M0 0 A10 10 0 0 1 20 0")
        assert path.curve_count == 2
        assert path.commands[-1].point == pytest.approx((20.0, 0.0))

    def test_half_circle_stays_on_circle(self):
        path = path_from_d("M0 0 A10 10 0 0 1 20 0")
        prev = (0.0, 0.0)
        for cmd in path.commands[1:]:
            for t in (0.0, 0.3, 0.5, 0.7, 1.0):
                x, y = bezier_cubic_point(prev, cmd.ctrl1, cmd.ctrl2, cmd.point, t)
                assert math.hypot(x - 10.0, y) == pytest.approx(10.0, abs=0.01)
            prev = cmd.point

    def test_small_arc_radii_scaled_up(self):
        path = path_from_d("M0 0 A1 1 0 0 1 20 0")
        assert path.curve_count == 2
        assert path.commands[-1].point == pytest.approx((20.0, 0.0))

    def test_zero_radius_arc_is_straight(self):
        path = path_from_d("M0 0 A0 5 0 0 1 4 0")
        assert path.curve_count == 0
        assert path.commands[-1].point == pytest.approx((4.0, 0.0))

    def test_garbage_rejected(self):
        with pytest.raises(MalformedShapeError):
            path_from_d("M 0 0 L nonsense")

    @pytest.mark.parametrize("d", ["Z", "L 10 10 L 0 10", "L 10 10 L 0 10 Z"])
    def test_drawing_before_moveto_rejected(self, d):
        with pytest.raises(MalformedShapeError):
            path_from_d(d)

    def test_overflowing_coordinate_rejected(self):
        with pytest.raises(MalformedShapeError, match="out of range"):
            path_from_d("M 0 0 L 1e999 0 L 0 5 Z")


class TestRecoverableErrors:

    def test_malformed_path_skipped_others_kept(self, write_svg, caplog):
        svg = write_svg(
            '<path id="bad" d="M 0 0 L nonsense"/>'
            '<rect id="ok" width="5" height="5"/>'
        )
        with caplog.at_level(logging.WARNING, logger="pathgpu.document.svg_loader"):
            doc = load_document(svg)
        assert [s.element_id for s in doc.shapes] == ["ok"]
        assert reasons(doc) == [SkipReason.MALFORMED_GEOMETRY]
        assert doc.skipped[0].element_id == "bad"
        assert any("bad" in r.getMessage() for r in caplog.records)

    def test_invalid_color(self, write_svg):
        doc = load_document(write_svg('<rect width="5" height="5" fill="notacolor"/>'))
        assert reasons(doc) == [SkipReason.INVALID_PAINT]
        assert doc.recoverable_errors == doc.skipped

    def test_unsupported_elements(self, write_svg):
        doc = load_document(write_svg('<text x="0" y="10">hi</text><use href="#x"/>'))
        assert reasons(doc) == [SkipReason.UNSUPPORTED_ELEMENT] * 2

    def test_relative_units_malformed(self, write_svg):
        doc = load_document(write_svg('<rect width="50%" height="10"/>'))
        assert reasons(doc) == [SkipReason.MALFORMED_GEOMETRY]

    @pytest.mark.parametrize("d", ["Z", "L 10 10 L 0 10", "M 0 0 L 1e999 0 L 0 5 Z"])
    def test_bad_path_data_skips_one_shape(self, write_svg, d):
        doc = load_document(write_svg(f'<path d="{d}"/><rect id="ok" width="10" height="10"/>'))
        assert [s.element_id for s in doc.shapes] == ["ok"]
        assert reasons(doc) == [SkipReason.MALFORMED_GEOMETRY]

    def test_overflowing_length_skipped(self, write_svg):
        doc = load_document(write_svg('<rect width="1e999" height="10"/><circle r="5"/>'))
        assert len(doc.paths) == 1
        assert reasons(doc) == [SkipReason.MALFORMED_GEOMETRY]

    def test_transparent_fill_is_not_an_error(self, write_svg):
        doc = load_document(write_svg('<rect width="5" height="5" fill="transparent"/>'))
        assert reasons(doc) == [SkipReason.NO_FILL]
        assert doc.recoverable_errors == []


class TestVisibility:

    def test_display_none_prunes_subtree(self, write_svg):
        svg = write_svg('<g display="none"><rect width="5" height="5"/></g><rect width="1" height="1"/>')
        doc = load_document(svg)
        assert len(doc.paths) == 1
        assert reasons(doc) == [SkipReason.HIDDEN]

    def test_visibility_hidden(self, write_svg):
        svg = write_svg('<rect width="5" height="5" visibility="hidden"/>')
        assert load_document(svg).paths == []

    def test_child_overrides_hidden_visibility(self, write_svg):
        svg = write_svg('<g visibility="hidden"><rect width="5" height="5" visibility="visible"/></g>')
        assert len(load_document(svg).paths) == 1

    def test_include_hidden(self, write_svg):
        svg = write_svg('<g display="none"><rect width="5" height="5"/></g>')
        assert len(load_document(svg, include_hidden=True).paths) == 1


class TestDocumentErrors:

    def test_missing_file(self, tmp_path):
        with pytest.raises(DocumentError, match="Cannot read"):
            load_document(tmp_path / "missing.svg")

    def test_not_xml(self, tmp_path):
        bad = tmp_path / "bad.svg"
        bad.write_text("<svg><g></svg>")
        with pytest.raises(DocumentError, match="Cannot parse"):
            load_document(bad)

    def test_wrong_root(self, tmp_path):
        html = tmp_path / "page.svg"
        html.write_text("<html><body/></html>")
        with pytest.raises(DocumentError, match="expected <svg>"):
            parse_svg(html)

    def test_error_chained(self, tmp_path):
        with pytest.raises(DocumentError) as excinfo:
            load_document(tmp_path / "missing.svg")
        assert isinstance(excinfo.value.__cause__, OSError)


class TestViewport:

    def test_view_box(self, write_svg):
        svg = write_svg("", attrs='viewBox="10 20 300 150" width="600" height="300"')
        assert load_document(svg).viewport == (10.0, 20.0, 300.0, 150.0)

    def test_width_height(self, write_svg):
        svg = write_svg("", attrs='width="200" height="100"')
        assert load_document(svg).viewport == (0.0, 0.0, 200.0, 100.0)

    def test_empty_document(self, write_svg):
        doc = load_document(write_svg(""))
        assert doc.paths == []
        assert doc.skipped == []


class TestStyleHelpers:

    def test_resolve_paint(self):
        assert resolve_paint("none").kind is PaintKind.NONE
        assert resolve_paint("Transparent").kind is PaintKind.NONE
        assert resolve_paint("url(#grad)").kind is PaintKind.NON_SOLID
        assert resolve_paint("#abc").rgb == (0xaa, 0xbb, 0xcc)
        assert resolve_paint("currentColor", "white").rgb == (255, 255, 255)
        assert resolve_paint("bogus").kind is PaintKind.INVALID

    def test_parse_length(self):
        assert parse_length("12") == 12.0
        assert parse_length("3pt") == pytest.approx(4.0)
        assert parse_length(None, 0.0) == 0.0
        with pytest.raises(ValueError, match="unit"):
            parse_length("2em")
        with pytest.raises(ValueError):
            parse_length(None)
