"""
Geometry context, geometry snapshots and execution results.

All containers here are frozen: the engine derives new snapshots and never
mutates a caller's object.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .errors import GeometryError

Point2D = Tuple[float, float]
Vertex = Tuple[float, ...]
Face = Tuple[int, ...]


@dataclass(frozen=True)
class Point3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z}


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned min/max extent."""
    min: Point3
    max: Point3

    @classmethod
    def from_points(cls, points: Sequence[Sequence[float]]) -> "BoundingBox":
        """Box around 2D or 3D points; 2D points sit at z = 0."""
        if not points:
            raise GeometryError("cannot compute the bounding box of an empty point set")
        xs = [float(p[0]) for p in points]
        ys = [float(p[1]) for p in points]
        zs = [float(p[2]) if len(p) > 2 else 0.0 for p in points]
        return cls(Point3(min(xs), min(ys), min(zs)), Point3(max(xs), max(ys), max(zs)))

    @property
    def size(self) -> Tuple[float, float, float]:
        return (self.max.x - self.min.x, self.max.y - self.min.y, self.max.z - self.min.z)

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {"min": self.min.to_dict(), "max": self.max.to_dict()}


def _coerce_number(value: Any, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise GeometryError(f"{where}: expected a number, got {type(value).__name__}")
    try:
        number = float(value)
    except OverflowError:
        raise GeometryError(f"{where}: coordinate must be finite") from None
    if not math.isfinite(number):
        raise GeometryError(f"{where}: coordinate must be finite")
    return number


def _coerce_point3(data: Any, where: str) -> Point3:
    if not isinstance(data, Mapping):
        raise GeometryError(f"{where}: expected a mapping with x, y, z")
    return Point3(
        _coerce_number(data.get("x", 0.0), f"{where}.x"),
        _coerce_number(data.get("y", 0.0), f"{where}.y"),
        _coerce_number(data.get("z", 0.0), f"{where}.z"),
    )


@dataclass(frozen=True)
class GeometryContext:
    """
    Input to a rule program: a footprint ring, free-form attributes and a
    bounding box consistent with the ring. The first and last vertex may
    coincide to close the ring.
    """
    polygon: Tuple[Point2D, ...]
    attributes: Dict[str, Any] = field(default_factory=dict)
    bounding_box: Optional[BoundingBox] = None

    def __post_init__(self):
        # freeze our own copies so callers can keep mutating theirs
        object.__setattr__(self, "polygon", tuple(
            (_coerce_number(p[0], f"polygon[{i}][0]"), _coerce_number(p[1], f"polygon[{i}][1]"))
            for i, p in enumerate(self.polygon)
        ))
        object.__setattr__(self, "attributes", dict(self.attributes))
        if self.bounding_box is None and self.polygon:
            object.__setattr__(self, "bounding_box", BoundingBox.from_points(self.polygon))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GeometryContext":
        """Build a context from its wire shape ``{polygon, attributes, boundingBox}``."""
        if not isinstance(data, Mapping):
            raise GeometryError(f"geometry context must be a mapping, got {type(data).__name__}")
        raw = data.get("polygon")
        if not isinstance(raw, (list, tuple)):
            raise GeometryError("geometry context requires a 'polygon' list of [x, y] pairs")

        polygon: List[Point2D] = []
        for i, vertex in enumerate(raw):
            if not isinstance(vertex, (list, tuple)) or len(vertex) < 2:
                raise GeometryError(f"polygon[{i}]: expected an [x, y] pair")
            polygon.append((
                _coerce_number(vertex[0], f"polygon[{i}][0]"),
                _coerce_number(vertex[1], f"polygon[{i}][1]"),
            ))

        attributes = data.get("attributes") or {}
        if not isinstance(attributes, Mapping):
            raise GeometryError("geometry context 'attributes' must be a mapping")

        bbox = None
        raw_box = data.get("boundingBox", data.get("bounding_box"))
        if raw_box is not None:
            if not isinstance(raw_box, Mapping):
                raise GeometryError("'boundingBox' must be a mapping with min and max")
            bbox = BoundingBox(
                _coerce_point3(raw_box.get("min"), "boundingBox.min"),
                _coerce_point3(raw_box.get("max"), "boundingBox.max"),
            )
        return cls(tuple(polygon), dict(attributes), bbox)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "polygon": [list(p) for p in self.polygon],
            "attributes": dict(self.attributes),
        }
        if self.bounding_box is not None:
            data["boundingBox"] = self.bounding_box.to_dict()
        return data


class GeometryKind(str, Enum):
    POLYGON = "polygon"
    SOLID = "solid"
    MESH = "mesh"


@dataclass(frozen=True)
class SimpleGeometry:
    """
    One geometry snapshot. Polygons carry a 2D ring; solids carry a 3D vertex
    list and faces indexing into it.
    """
    kind: GeometryKind
    vertices: Tuple[Vertex, ...]
    faces: Tuple[Face, ...] = ()
    attributes: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_solid(self) -> bool:
        return self.kind is GeometryKind.SOLID

    def footprint(self) -> List[Point2D]:
        """
        The 2D ring this geometry stands on. For an extruded solid that is
        the bottom ring, i.e. the first half of the vertex list.
        """
        if self.is_solid and self.faces:
            ring = self.vertices[:len(self.faces[0])]
        else:
            ring = self.vertices
        return [(v[0], v[1]) for v in ring]

    def height(self) -> float:
        if not self.vertices or not self.is_solid:
            return 0.0
        zs = [v[2] for v in self.vertices if len(v) > 2]
        return max(zs) - min(zs) if zs else 0.0

    def with_attributes(self, **updates: Any) -> "SimpleGeometry":
        """Copy of this snapshot with ``updates`` merged into its attributes."""
        merged = dict(self.attributes)
        merged.update(updates)
        return SimpleGeometry(self.kind, self.vertices, self.faces, merged)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.kind.value,
            "vertices": [list(v) for v in self.vertices],
            "attributes": _plain(self.attributes),
        }
        if self.faces:
            data["faces"] = [list(f) for f in self.faces]
        return data


@dataclass(frozen=True)
class ExecutionMetadata:
    operation_count: int = 0
    execution_time_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operationCount": self.operation_count,
            "executionTimeMs": self.execution_time_ms,
        }


@dataclass(frozen=True)
class RuleExecutionResult:
    """
    Outcome of one program run. ``attributes`` is always present, even on
    failure, so callers can render partial state.
    """
    success: bool
    attributes: Dict[str, Any] = field(default_factory=dict)
    geometry: Optional[SimpleGeometry] = None
    error: Optional[str] = None
    metadata: ExecutionMetadata = field(default_factory=ExecutionMetadata)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": self.success,
            "attributes": _plain(self.attributes),
            "metadata": self.metadata.to_dict(),
        }
        if self.geometry is not None:
            data["geometry"] = self.geometry.to_dict()
        if self.error is not None:
            data["error"] = self.error
        return data


def _plain(attributes: Mapping[str, Any]) -> Dict[str, Any]:
    """Attribute mapping with enums and tuples reduced to JSON-friendly values."""
    out: Dict[str, Any] = {}
    for key, value in attributes.items():
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, (list, tuple)):
            value = [v.value if isinstance(v, Enum) else v for v in value]
        out[key] = value
    return out
