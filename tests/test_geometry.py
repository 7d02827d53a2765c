"""Tests for geometry primitives."""

import pytest

from cgalite.geometry import (
    axis_extent,
    bounding_rect,
    box_from_rect,
    centroid,
    extrude_ring,
    offset_rect,
    polygon_area,
    rect_is_collapsed,
    rect_polygon,
    setback_rect,
    signed_area,
    triangulate_faces,
)
from cgalite.rules import ALL_SETBACK_FACES, Axis, SetbackFace

SQUARE_OPEN = [(0, 0), (10, 0), (10, 10), (0, 10)]
SQUARE_CLOSED = SQUARE_OPEN + [(0, 0)]


class TestArea:
    """Shoelace area."""

    def test_open_and_closed_agree(self):
        assert polygon_area(SQUARE_OPEN) == 100
        assert polygon_area(SQUARE_CLOSED) == 100

    def test_orientation_sign(self):
        assert signed_area(SQUARE_OPEN) == 100
        assert signed_area(list(reversed(SQUARE_OPEN))) == -100
        assert polygon_area(list(reversed(SQUARE_OPEN))) == 100

    def test_l_shape(self):
        ring = [(0, 0), (10, 0), (10, 6), (4, 6), (4, 10), (0, 10), (0, 0)]
        assert polygon_area(ring) == pytest.approx(76)

    def test_too_few_points(self):
        assert polygon_area([(0, 0), (1, 1)]) == 0


class TestRectangles:
    """Bounding-rectangle operations."""

    def test_centroid(self):
        assert centroid(SQUARE_OPEN) == (5, 5)
        assert centroid([]) == (0.0, 0.0)

    def test_bounding_rect(self):
        ring = [(0, 0), (10, 0), (10, 6), (4, 6), (4, 10), (0, 10)]
        assert bounding_rect(ring) == (0, 0, 10, 10)

    def test_rect_polygon_is_ccw(self):
        ring = rect_polygon((1, 2, 5, 4))
        assert ring == [(1, 2), (5, 2), (5, 4), (1, 4)]
        assert signed_area(ring) > 0

    def test_offset(self):
        assert offset_rect((0, 0, 10, 10), 2) == (-2, -2, 12, 12)
        assert offset_rect((0, 0, 10, 10), -2) == (2, 2, 8, 8)

    def test_collapse(self):
        assert rect_is_collapsed((5, 0, 5, 10))
        assert rect_is_collapsed((0, 6, 10, 4))
        assert not rect_is_collapsed((0, 0, 1, 1))

    @pytest.mark.parametrize("face, expected", [
        (SetbackFace.FRONT, (0, 2, 10, 10)),
        (SetbackFace.BACK, (0, 0, 10, 8)),
        (SetbackFace.LEFT, (2, 0, 10, 10)),
        (SetbackFace.RIGHT, (0, 0, 8, 10)),
    ])
    def test_setback_single_face(self, face, expected):
        assert setback_rect((0, 0, 10, 10), 2, [face]) == expected

    def test_setback_all_faces(self):
        assert setback_rect((0, 0, 10, 10), 1, ALL_SETBACK_FACES) == (1, 1, 9, 9)

    def test_setback_repeated_face_applies_once(self):
        assert setback_rect((0, 0, 10, 10), 1, [SetbackFace.FRONT, SetbackFace.FRONT]) == (0, 1, 10, 10)

    def test_axis_extent(self):
        box = box_from_rect((0, 0, 10, 4), 0, 7)
        assert axis_extent(box, Axis.X) == 10
        assert axis_extent(box, Axis.Y) == 4
        assert axis_extent(box, Axis.Z) == 7


class TestExtrusion:
    """Prism mesh layout."""

    def test_vertices(self):
        vertices, _ = extrude_ring(SQUARE_OPEN, 5)
        assert len(vertices) == 8
        assert vertices[0] == (0.0, 0.0, 0.0)
        assert vertices[4] == (0.0, 0.0, 5.0)

    def test_faces(self):
        _, faces = extrude_ring(SQUARE_OPEN, 5)
        assert len(faces) == 2 + 4
        assert faces[0] == (0, 1, 2, 3)
        assert faces[1] == (7, 6, 5, 4)
        assert faces[2:] == [(0, 1, 5, 4), (1, 2, 6, 5), (2, 3, 7, 6), (3, 0, 4, 7)]

    def test_triangulate(self):
        assert triangulate_faces([(0, 1, 2, 3)]) == [(0, 1, 2), (0, 2, 3)]
        assert triangulate_faces([(4, 5, 6)]) == [(4, 5, 6)]
