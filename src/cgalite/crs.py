"""
Coordinate reference systems and the footprint usability check.

The engine runs :func:`validate_footprint` before any rule is applied. It
checks vertex count, degenerate area, coordinate-range sanity for the
declared CRS units, winding order and obvious self-intersections. Errors
reject the footprint; warnings are informational.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Sequence

from .errors import GeometryError
from .geometry import polygon_area


class CRSUnits(str, Enum):
    METERS = "meters"
    FEET = "feet"
    DEGREES = "degrees"


class CRSType(str, Enum):
    PROJECTED = "projected"
    GEOGRAPHIC = "geographic"
    COMPOUND = "compound"


@dataclass(frozen=True)
class CRS:
    epsg: int
    name: str
    units: CRSUnits
    type: CRSType


def validate_crs(data: Any) -> CRS:
    """Build a :class:`CRS` from a mapping, raising ``GeometryError`` if malformed."""
    if isinstance(data, CRS):
        return data
    if not isinstance(data, Mapping):
        raise GeometryError(f"CRS must be a mapping, got {type(data).__name__}")
    epsg = data.get("epsg")
    if isinstance(epsg, bool) or not isinstance(epsg, int) or epsg <= 0:
        raise GeometryError("CRS 'epsg' must be a positive integer")
    name = data.get("name")
    if not isinstance(name, str):
        raise GeometryError("CRS 'name' must be a string")
    try:
        units = CRSUnits(data.get("units"))
        crs_type = CRSType(data.get("type"))
    except ValueError as e:
        raise GeometryError(f"invalid CRS: {e}") from e
    return CRS(epsg, name, units, crs_type)


COMMON_CRS: Dict[str, CRS] = {
    "BUENOS_AIRES_UTM": CRS(32721, "WGS 84 / UTM zone 21S", CRSUnits.METERS, CRSType.PROJECTED),
    "ARGENTINA_GEO": CRS(4326, "WGS 84", CRSUnits.DEGREES, CRSType.GEOGRAPHIC),
    "POSGAR_2007": CRS(5348, "POSGAR 2007 / Argentina 4", CRSUnits.METERS, CRSType.PROJECTED),
    "CHANCAY_UTM_WGS84": CRS(32718, "WGS 84 / UTM zone 18S", CRSUnits.METERS, CRSType.PROJECTED),
    "CHANCAY_UTM_PERU96": CRS(5387, "Peru96 / UTM zone 18S", CRSUnits.METERS, CRSType.PROJECTED),
    "PERU_GEO": CRS(4326, "WGS 84", CRSUnits.DEGREES, CRSType.GEOGRAPHIC),
}

# Local/test frame: no UTM range requirement, only the broad sanity bounds.
LOCAL_TEST_CRS = CRS(3857, "Local Test CRS", CRSUnits.METERS, CRSType.PROJECTED)


def resolve_crs(value: Any) -> CRS:
    """Accept a CRS, a mapping, a ``COMMON_CRS`` key or an EPSG code."""
    if isinstance(value, str):
        if value in COMMON_CRS:
            return COMMON_CRS[value]
        if value == "LOCAL_TEST_CRS":
            return LOCAL_TEST_CRS
        raise GeometryError(f"unknown CRS name '{value}'")
    if isinstance(value, int) and not isinstance(value, bool):
        if value == LOCAL_TEST_CRS.epsg:
            return LOCAL_TEST_CRS
        for crs in COMMON_CRS.values():
            if crs.epsg == value:
                return crs
        raise GeometryError(f"unknown EPSG code {value}")
    return validate_crs(value)


def _is_relaxed(crs: CRS) -> bool:
    return crs.name == LOCAL_TEST_CRS.name or crs.epsg == LOCAL_TEST_CRS.epsg


def footprint_area(coordinates: Sequence[Sequence[float]], crs: CRS) -> float:
    """Shoelace area in square CRS units. Only projected frames give a real area."""
    if crs.type is not CRSType.PROJECTED:
        raise GeometryError(f"area requires a projected CRS, got {crs.name} ({crs.type.value})")
    return polygon_area(coordinates)


@dataclass
class FootprintReport:
    """Result of a footprint check."""
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        if self.valid:
            return "Footprint is valid"
        return "; ".join(self.errors)


def validate_coordinate_units(coordinates: Sequence[Sequence[float]], crs: CRS) -> List[str]:
    """Return range errors for coordinates that cannot be in ``crs`` units."""
    errors: List[str] = []
    if not coordinates:
        return errors
    xs = [c[0] for c in coordinates]
    ys = [c[1] for c in coordinates]
    min_x, max_x, min_y, max_y = min(xs), max(xs), min(ys), max(ys)

    if crs.units is CRSUnits.METERS:
        if not _is_relaxed(crs) and max_x < 1000 and max_y < 1000:
            errors.append(f"X coordinates out of expected range for UTM: {min_x} - {max_x}")
        if min_x < -1_000_000 or max_x > 10_000_000:
            errors.append(f"X coordinates out of reasonable range: {min_x} - {max_x}")
        if min_y < -1_000_000 or max_y > 20_000_000:
            errors.append(f"Y coordinates out of reasonable range: {min_y} - {max_y}")

    elif crs.units is CRSUnits.DEGREES:
        if min_x < -180 or max_x > 180:
            errors.append(f"Longitude out of bounds: {min_x} - {max_x}")
        if min_y < -90 or max_y > 90:
            errors.append(f"Latitude out of bounds: {min_y} - {max_y}")

    return errors


def winding_order(coordinates: Sequence[Sequence[float]]) -> str:
    """Return ``'ccw'`` or ``'cw'`` for a ring of at least three vertices."""
    if len(coordinates) < 3:
        raise GeometryError("Polygon must have at least 3 vertices")
    total = 0.0
    n = len(coordinates)
    for i in range(n):
        j = (i + 1) % n
        total += (coordinates[j][0] - coordinates[i][0]) * (coordinates[j][1] + coordinates[i][1])
    return "ccw" if total < 0 else "cw"


def ensure_counter_clockwise(coordinates: Sequence[Sequence[float]]) -> List[Sequence[float]]:
    if winding_order(coordinates) == "cw":
        return list(reversed(coordinates))
    return list(coordinates)


def _segments_intersect(p1, p2, p3, p4, tol: float = 1e-10) -> bool:
    denominator = (p4[1] - p3[1]) * (p2[0] - p1[0]) - (p4[0] - p3[0]) * (p2[1] - p1[1])
    if abs(denominator) < tol:
        return False  # parallel
    ua = ((p4[0] - p3[0]) * (p1[1] - p3[1]) - (p4[1] - p3[1]) * (p1[0] - p3[0])) / denominator
    ub = ((p2[0] - p1[0]) * (p1[1] - p3[1]) - (p2[1] - p1[1]) * (p1[0] - p3[0])) / denominator
    return 0 <= ua <= 1 and 0 <= ub <= 1


def has_self_intersections(coordinates: Sequence[Sequence[float]]) -> bool:
    """
    O(n^2) check of non-adjacent edges of the listed ring. The closing edge
    pair (first and last listed segment) shares a vertex and is skipped.
    """
    n = len(coordinates)
    for i in range(n - 1):
        for j in range(i + 2, n - 1):
            if i == 0 and j == n - 2:
                continue
            if _segments_intersect(coordinates[i], coordinates[i + 1],
                                   coordinates[j], coordinates[j + 1]):
                return True
    return False


def _is_finite(value: float) -> bool:
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def validate_footprint(
    coordinates: Sequence[Sequence[float]],
    crs: CRS = LOCAL_TEST_CRS,
    duplicate_tolerance: float = 0.01,
    area_tolerance: float = 1e-9,
) -> FootprintReport:
    """Check that a footprint ring is usable for rule application."""
    errors: List[str] = []
    warnings: List[str] = []

    if len(coordinates) < 3:
        errors.append("Polygon must have at least 3 vertices")
        return FootprintReport(False, errors, warnings)

    if not all(_is_finite(c) for point in coordinates for c in point[:2]):
        errors.append("Polygon has non-finite coordinates")
        return FootprintReport(False, errors, warnings)

    for i in range(len(coordinates) - 1):
        curr, nxt = coordinates[i], coordinates[i + 1]
        if math.hypot(curr[0] - nxt[0], curr[1] - nxt[1]) < duplicate_tolerance:
            warnings.append(f"Duplicate consecutive vertices at index {i}")

    if polygon_area(coordinates) <= area_tolerance:
        errors.append("Polygon is degenerate (zero area)")

    errors.extend(validate_coordinate_units(coordinates, crs))

    if winding_order(coordinates) == "cw":
        warnings.append("Polygon has clockwise winding")

    if len(coordinates) >= 4 and has_self_intersections(coordinates):
        errors.append("Polygon appears to have self-intersections")

    return FootprintReport(not errors, errors, warnings)
