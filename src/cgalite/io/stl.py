"""STL export for extruded building solids."""

from __future__ import annotations

import math
import struct
from contextlib import contextmanager
from dataclasses import dataclass
from typing import IO, Iterable, Iterator, List, Optional, Sequence, Tuple

from ..geometry import triangulate_faces
from ..model import SimpleGeometry

Vec3 = Tuple[float, float, float]

_HEADER_SIZE = 80
_STRUCT_TRIANGLE = struct.Struct('<12fH')
_EPSILON = 1e-12


@dataclass(frozen=True)
class Triangle:
    """Immutable triangle in XYZ space."""

    normal: Vec3
    v0: Vec3
    v1: Vec3
    v2: Vec3


def triangle_normal(v0: Vec3, v1: Vec3, v2: Vec3) -> Optional[Vec3]:
    """Return the unit normal of a triangle or ``None`` if degenerate."""

    ax, ay, az = v1[0] - v0[0], v1[1] - v0[1], v1[2] - v0[2]
    bx, by, bz = v2[0] - v0[0], v2[1] - v0[1], v2[2] - v0[2]
    nx, ny, nz = ay * bz - az * by, az * bx - ax * bz, ax * by - ay * bx
    length = math.sqrt(nx * nx + ny * ny + nz * nz)
    if length <= _EPSILON:
        return None
    return (nx / length, ny / length, nz / length)


def triangles_from_geometry(geometry: SimpleGeometry) -> List[Triangle]:
    """Fan-triangulate the faces of a solid, dropping degenerate triangles."""
    if not geometry.is_solid:
        raise ValueError(f"STL export needs a solid, got {geometry.kind.value}")

    vertices = [(float(v[0]), float(v[1]), float(v[2]) if len(v) > 2 else 0.0)
                for v in geometry.vertices]
    triangles = []
    for a, b, c in triangulate_faces(geometry.faces):
        v0, v1, v2 = vertices[a], vertices[b], vertices[c]
        normal = triangle_normal(v0, v1, v2)
        if normal is None:
            continue
        triangles.append(Triangle(normal, v0, v1, v2))
    return triangles


def write_stl(geometry: SimpleGeometry, path_or_file, *, binary: bool = True, name: str = 'cgalite') -> int:
    """Write a solid ``geometry`` to STL and return the triangle count.

    ``path_or_file`` can be a filesystem path or an open binary/text stream.
    """

    triangles = triangles_from_geometry(geometry)

    if binary:
        with _stream(path_or_file, 'wb') as stream:
            stream.write(_binary_body(triangles, name))
    else:
        with _stream(path_or_file, 'w', encoding='ascii') as stream:
            stream.writelines(_ascii_lines(triangles, name))
    return len(triangles)


@contextmanager
def _stream(path_or_file, mode: str, encoding: Optional[str] = None) -> Iterator[IO]:
    """Yield ``path_or_file`` itself when it is writable, else a file we own."""
    if hasattr(path_or_file, 'write'):
        yield path_or_file
        return
    with open(path_or_file, mode, encoding=encoding) as stream:
        yield stream


def _binary_body(triangles: Sequence[Triangle], name: str) -> bytes:
    header = name[:_HEADER_SIZE].encode('ascii', errors='replace').ljust(_HEADER_SIZE, b' ')
    records = b''.join(
        _STRUCT_TRIANGLE.pack(*tri.normal, *tri.v0, *tri.v1, *tri.v2, 0) for tri in triangles
    )
    return header + struct.pack('<I', len(triangles)) + records


def _ascii_lines(triangles: Iterable[Triangle], name: str) -> Iterator[str]:
    yield f"solid {name}\n"
    for tri in triangles:
        yield "  facet normal {:.6e} {:.6e} {:.6e}\n".format(*tri.normal)
        yield "    outer loop\n"
        for v in (tri.v0, tri.v1, tri.v2):
            yield "      vertex {:.6e} {:.6e} {:.6e}\n".format(*v)
        yield "    endloop\n"
        yield "  endfacet\n"
    yield f"endsolid {name}\n"


__all__ = ['Triangle', 'triangle_normal', 'triangles_from_geometry', 'write_stl']
