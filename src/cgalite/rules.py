"""
Rule program contract.

A rule program is a flat, ordered sequence of operations in the spirit of
CityEngine CGA. Each operation is its own frozen dataclass, tagged by a
class-level ``op`` string, so the tag alone decides which fields exist.

Execution order is significant and is never reordered.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Tuple, Union

AttrValue = Union[str, int, float, bool]

FLEXIBLE = "*"


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Operation(str, Enum):
    EXTRUDE = "extrude"
    OFFSET = "offset"
    SPLIT = "split"
    REPEAT = "repeat"
    SETBACK = "setback"
    ROOF = "roof"
    TEXTURE_TAG = "textureTag"
    ATTR = "attr"


class Axis(str, Enum):
    X = "x"
    Y = "y"
    Z = "z"


class ExtrudeMode(str, Enum):
    WORLD = "world"
    LOCAL = "local"


class OffsetMode(str, Enum):
    IN = "in"
    OUT = "out"


class RoofKind(str, Enum):
    FLAT = "flat"
    GABLE = "gable"
    HIP = "hip"
    SHED = "shed"


class SetbackFace(str, Enum):
    """Bounding-rectangle edges: front=min-Y, back=max-Y, left=min-X, right=max-X."""
    FRONT = "front"
    BACK = "back"
    LEFT = "left"
    RIGHT = "right"


class TextureFace(str, Enum):
    FRONT = "front"
    BACK = "back"
    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"


ALL_SETBACK_FACES: Tuple[SetbackFace, ...] = (
    SetbackFace.FRONT, SetbackFace.BACK, SetbackFace.LEFT, SetbackFace.RIGHT,
)


# ---------------------------------------------------------------------------
# Rule variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ExtrudeRule:
    """Raise the footprint into a solid of height ``h``."""
    op: ClassVar[Operation] = Operation.EXTRUDE

    h: float
    mode: Optional[ExtrudeMode] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"op": self.op.value, "h": self.h}
        if self.mode is not None:
            data["mode"] = self.mode.value
        return data


@dataclass(frozen=True)
class OffsetRule:
    """Grow or shrink the footprint's bounding rectangle by ``d``."""
    op: ClassVar[Operation] = Operation.OFFSET

    d: float
    mode: Optional[OffsetMode] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"op": self.op.value, "d": self.d}
        if self.mode is not None:
            data["mode"] = self.mode.value
        return data


@dataclass(frozen=True)
class SplitRule:
    """Declare a subdivision of an axis extent into fixed and flexible parts."""
    op: ClassVar[Operation] = Operation.SPLIT

    axis: Axis
    sizes: Tuple[Union[float, str], ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"op": self.op.value, "axis": self.axis.value, "sizes": list(self.sizes)}


@dataclass(frozen=True)
class RepeatRule:
    """Declare how many ``step``-sized units fit along an axis."""
    op: ClassVar[Operation] = Operation.REPEAT

    axis: Axis
    step: float
    limit: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"op": self.op.value, "axis": self.axis.value, "step": self.step}
        if self.limit is not None:
            data["limit"] = self.limit
        return data


@dataclass(frozen=True)
class SetbackRule:
    """Pull the named bounding-rectangle edges inward by ``d``."""
    op: ClassVar[Operation] = Operation.SETBACK

    d: float
    faces: Optional[Tuple[SetbackFace, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"op": self.op.value, "d": self.d}
        if self.faces is not None:
            data["faces"] = [f.value for f in self.faces]
        return data


@dataclass(frozen=True)
class RoofRule:
    """Record a roof of the given kind on top of the current mass."""
    op: ClassVar[Operation] = Operation.ROOF

    kind: RoofKind
    pitch: Optional[float] = None
    height: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"op": self.op.value, "kind": self.kind.value}
        if self.pitch is not None:
            data["pitch"] = self.pitch
        if self.height is not None:
            data["height"] = self.height
        return data


@dataclass(frozen=True)
class TextureTagRule:
    op: ClassVar[Operation] = Operation.TEXTURE_TAG

    tag: str
    faces: Optional[Tuple[TextureFace, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"op": self.op.value, "tag": self.tag}
        if self.faces is not None:
            data["faces"] = [f.value for f in self.faces]
        return data


@dataclass(frozen=True)
class AttrRule:
    op: ClassVar[Operation] = Operation.ATTR

    name: str
    value: AttrValue

    def to_dict(self) -> Dict[str, Any]:
        return {"op": self.op.value, "name": self.name, "value": self.value}


Rule = Union[
    ExtrudeRule,
    OffsetRule,
    SplitRule,
    RepeatRule,
    SetbackRule,
    RoofRule,
    TextureTagRule,
    AttrRule,
]


# ---------------------------------------------------------------------------
# Program
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RuleProgram:
    """
    A named, ordered sequence of rules.

    ``attrs`` seeds the attribute mapping before the first rule runs.
    """
    name: str
    rules: Tuple[Rule, ...] = ()
    description: Optional[str] = None
    attrs: Dict[str, AttrValue] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name}
        if self.description is not None:
            data["description"] = self.description
        if self.attrs:
            data["attrs"] = dict(self.attrs)
        data["rules"] = [rule.to_dict() for rule in self.rules]
        return data
