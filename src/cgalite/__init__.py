# -*- coding: utf-8 -*-
"""CGA-lite: procedural building rules over 2D footprints."""

from importlib.metadata import PackageNotFoundError, version

from .config import EngineConfig, load_config
from .engine import RulesEngine, StepResult, apply_rule, execute_program
from .errors import (
    CgaError,
    GeometryError,
    InputError,
    OperationError,
    SchemaError,
    SchemaIssue,
    UnknownOperationError,
)
from .model import (
    BoundingBox,
    ExecutionMetadata,
    GeometryContext,
    GeometryKind,
    Point3,
    RuleExecutionResult,
    SimpleGeometry,
)
from .rules import (
    AttrRule,
    Axis,
    ExtrudeMode,
    ExtrudeRule,
    OffsetMode,
    OffsetRule,
    Operation,
    RepeatRule,
    RoofKind,
    RoofRule,
    Rule,
    RuleProgram,
    SetbackFace,
    SetbackRule,
    SplitRule,
    TextureFace,
    TextureTagRule,
)
from .samples import SAMPLE_RULES, get_all_rule_names, get_rule_by_name
from .schema import describe_schema_error, validate_program, validate_rule

try:
    __version__ = version("cgalite")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"
