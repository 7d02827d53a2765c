"""Engine configuration."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping, Union

import yaml

from .crs import COMMON_CRS, CRS, LOCAL_TEST_CRS, resolve_crs
from .errors import GeometryError, InputError


@dataclass(frozen=True)
class EngineConfig:
    """Tunables for the rules engine."""

    default_roof_pitch: float = 30.0  # degrees, used when a roof rule gives neither pitch nor height
    roof_height_scale: float = 10.0  # roof height = radians(pitch) * scale
    footprint_crs: CRS = LOCAL_TEST_CRS  # frame used by the pre-execution footprint check
    area_crs: CRS = field(default_factory=lambda: COMMON_CRS["BUENOS_AIRES_UTM"])
    duplicate_vertex_tolerance: float = 0.01
    degenerate_area_tolerance: float = 1e-9

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EngineConfig":
        """
        Build a config from plain data. CRS fields accept an EPSG code, a
        ``COMMON_CRS`` key or a full ``{epsg, name, units, type}`` mapping.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config fields: {', '.join(sorted(unknown))}")

        values = dict(data)
        try:
            for key in ("footprint_crs", "area_crs"):
                if key in values:
                    values[key] = resolve_crs(values[key])
        except GeometryError as e:
            raise ValueError(str(e)) from e

        for key in ("default_roof_pitch", "roof_height_scale",
                    "duplicate_vertex_tolerance", "degenerate_area_tolerance"):
            if key in values:
                value = values[key]
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise ValueError(f"Config field '{key}' must be a number")
                values[key] = float(value)

        if not 0.0 <= values.get("default_roof_pitch", 30.0) <= 90.0:
            raise ValueError("default_roof_pitch must be between 0 and 90 degrees")

        return replace(cls(), **values)


def load_config(path: Union[str, Path]) -> EngineConfig:
    """Load an :class:`EngineConfig` from a YAML file."""
    config_path = Path(path)
    if not config_path.exists():
        raise InputError(f"Config file not found: {config_path}")
    try:
        with config_path.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp)
    except yaml.YAMLError as e:
        raise InputError(f"YAML parse error in {config_path}: {e}") from e

    if data is None:
        return EngineConfig()
    if not isinstance(data, dict):
        raise InputError(f"Expected mapping at root of {config_path}, got {type(data).__name__}")
    try:
        return EngineConfig.from_mapping(data)
    except ValueError as e:
        raise InputError(f"Invalid config {config_path}: {e}") from e
