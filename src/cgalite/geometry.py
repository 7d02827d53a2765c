"""
Geometry primitives used by the rules engine.

Offset and setback work on the axis-aligned bounding rectangle of the
vertex set, not on the true outline: a non-rectangular footprint is
approximated by its bounding rectangle for those operations.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from .model import BoundingBox, Face, Point2D, Point3, Vertex
from .rules import Axis, SetbackFace

Rect = Tuple[float, float, float, float]  # (min_x, min_y, max_x, max_y)


def signed_area(points: Sequence[Sequence[float]]) -> float:
    """Shoelace sum over consecutive vertex pairs, wrapping around."""
    n = len(points)
    if n < 3:
        return 0.0
    total = 0.0
    for i in range(n):
        x0, y0 = points[i][0], points[i][1]
        x1, y1 = points[(i + 1) % n][0], points[(i + 1) % n][1]
        total += x0 * y1 - x1 * y0
    return total / 2.0


def polygon_area(points: Sequence[Sequence[float]]) -> float:
    """
    Unsigned polygon area. A duplicated closing vertex contributes a zero
    term, so open and explicitly closed rings give the same result.
    """
    return abs(signed_area(points))


def centroid(points: Sequence[Sequence[float]]) -> Point2D:
    """Arithmetic mean of the vertex coordinates."""
    if not points:
        return (0.0, 0.0)
    sx = sum(p[0] for p in points)
    sy = sum(p[1] for p in points)
    return (sx / len(points), sy / len(points))


def bounding_rect(points: Sequence[Sequence[float]]) -> Rect:
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return (min(xs), min(ys), max(xs), max(ys))


def rect_is_collapsed(rect: Rect) -> bool:
    min_x, min_y, max_x, max_y = rect
    return max_x <= min_x or max_y <= min_y


def rect_area(rect: Rect) -> float:
    min_x, min_y, max_x, max_y = rect
    return (max_x - min_x) * (max_y - min_y)


def rect_polygon(rect: Rect) -> List[Point2D]:
    """Counter-clockwise ring starting at the min corner."""
    min_x, min_y, max_x, max_y = rect
    return [(min_x, min_y), (max_x, min_y), (max_x, max_y), (min_x, max_y)]


def offset_rect(rect: Rect, distance: float) -> Rect:
    """Move all four sides outward by ``distance`` (inward when negative)."""
    min_x, min_y, max_x, max_y = rect
    return (min_x - distance, min_y - distance, max_x + distance, max_y + distance)


def setback_rect(rect: Rect, distance: float, faces: Iterable[SetbackFace]) -> Rect:
    """Pull only the named edges inward by ``distance``."""
    min_x, min_y, max_x, max_y = rect
    for face in set(faces):
        if face is SetbackFace.FRONT:
            min_y += distance
        elif face is SetbackFace.BACK:
            max_y -= distance
        elif face is SetbackFace.LEFT:
            min_x += distance
        elif face is SetbackFace.RIGHT:
            max_x -= distance
    return (min_x, min_y, max_x, max_y)


def axis_extent(box: BoundingBox, axis: Axis) -> float:
    if axis is Axis.X:
        return box.max.x - box.min.x
    if axis is Axis.Y:
        return box.max.y - box.min.y
    return box.max.z - box.min.z


def box_from_rect(rect: Rect, z_min: float = 0.0, z_max: float = 0.0) -> BoundingBox:
    min_x, min_y, max_x, max_y = rect
    return BoundingBox(Point3(min_x, min_y, z_min), Point3(max_x, max_y, z_max))


def extrude_ring(ring: Sequence[Sequence[float]], height: float) -> Tuple[List[Vertex], List[Face]]:
    """
    Lift a 2D ring into a prism.

    Vertices are the ring at z=0 followed by the ring at z=height. Faces are
    the bottom (ring order), the top (reversed, so its normal points up) and
    one quad per edge ordered ``[i, next, n + next, n + i]``.
    """
    n = len(ring)
    vertices: List[Vertex] = [(float(p[0]), float(p[1]), 0.0) for p in ring]
    vertices += [(float(p[0]), float(p[1]), float(height)) for p in ring]

    faces: List[Face] = [tuple(range(n))]
    faces.append(tuple(2 * n - 1 - i for i in range(n)))
    for i in range(n):
        nxt = (i + 1) % n
        faces.append((i, nxt, n + nxt, n + i))
    return vertices, faces


def triangulate_faces(faces: Sequence[Sequence[int]]) -> List[Tuple[int, int, int]]:
    """Fan-triangulate polygonal faces around their first vertex."""
    triangles = []
    for face in faces:
        for k in range(1, len(face) - 1):
            triangles.append((face[0], face[k], face[k + 1]))
    return triangles
