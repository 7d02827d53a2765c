"""Shared fixtures for cgalite tests."""

import pytest

from cgalite import GeometryContext, RulesEngine

SQUARE = [[0, 0], [10, 0], [10, 10], [0, 10], [0, 0]]

L_SHAPE = [[0, 0], [10, 0], [10, 6], [4, 6], [4, 10], [0, 10], [0, 0]]


@pytest.fixture
def engine():
    return RulesEngine()


@pytest.fixture
def square_context():
    """Closed 10m x 10m footprint with an explicit bounding box."""
    return GeometryContext.from_dict({
        "polygon": SQUARE,
        "attributes": {},
        "boundingBox": {"min": {"x": 0, "y": 0, "z": 0}, "max": {"x": 10, "y": 10, "z": 0}},
    })


@pytest.fixture
def l_shape_context():
    return GeometryContext.from_dict({"polygon": L_SHAPE, "attributes": {}})


@pytest.fixture
def program():
    """Build a plain-data program from rule dicts."""
    def _build(*rules, name="Test Program", **extra):
        return {"name": name, "rules": list(rules), **extra}
    return _build
