"""
CGA-lite rules engine.

Folds a validated rule program over a ``(geometry, attributes)`` pair:

- the program is schema-validated and the footprint checked before any
  rule runs;
- rules run strictly in program order, each producing a fresh geometry
  snapshot and a set of attributes merged over the previous ones;
- the first failing rule stops the fold; nothing after it is applied.

Each call owns its accumulator, so one engine may serve concurrent callers.
The engine never raises: every failure comes back as a
``RuleExecutionResult`` with ``success=False``.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Union

from .config import EngineConfig
from .crs import footprint_area, validate_footprint
from .errors import GeometryError, OperationError, SchemaError, UnknownOperationError
from .geometry import (
    axis_extent,
    bounding_rect,
    box_from_rect,
    extrude_ring,
    offset_rect,
    polygon_area,
    rect_is_collapsed,
    rect_polygon,
    setback_rect,
)
from .model import (
    BoundingBox,
    ExecutionMetadata,
    GeometryContext,
    GeometryKind,
    RuleExecutionResult,
    SimpleGeometry,
)
from .rules import (
    ALL_SETBACK_FACES,
    FLEXIBLE,
    AttrRule,
    ExtrudeMode,
    ExtrudeRule,
    OffsetMode,
    OffsetRule,
    Operation,
    RepeatRule,
    RoofRule,
    Rule,
    RuleProgram,
    SetbackRule,
    SplitRule,
    TextureTagRule,
)
from .schema import describe_schema_error, validate_program

logger = logging.getLogger(__name__)

# Operations whose per-step volume must not leak forward once they run
VOLUME_SCOPED_OPERATIONS = frozenset({Operation.SETBACK, Operation.ROOF})


@dataclass
class StepResult:
    """Outcome of one rule: the attributes it sets and the geometry it produced."""
    success: bool
    attributes: Dict[str, Any] = field(default_factory=dict)
    geometry: Optional[SimpleGeometry] = None
    error: Optional[str] = None


@dataclass
class _FoldState:
    geometry: SimpleGeometry
    attributes: Dict[str, Any]
    total_height: float = 0.0
    total_volume: float = 0.0
    extrude_count: int = 0
    operation_count: int = 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _current_box(geometry: SimpleGeometry, context: GeometryContext) -> BoundingBox:
    """
    Box of the current footprint. The z extent is the solid's height, or the
    context's z extent while the geometry is still flat.
    """
    rect = bounding_rect(geometry.footprint())
    if geometry.is_solid:
        return box_from_rect(rect, 0.0, geometry.height())
    box = context.bounding_box
    if box is None:
        return box_from_rect(rect)
    return box_from_rect(rect, box.min.z, box.max.z)


def _flat(ring, attributes: Dict[str, Any]) -> SimpleGeometry:
    return SimpleGeometry(GeometryKind.POLYGON, tuple(ring), (), attributes)


def _detached(step: Mapping[str, Any]) -> Dict[str, Any]:
    """Step attributes with list values copied, for storing on a snapshot."""
    return {k: list(v) if isinstance(v, list) else v for k, v in step.items()}


# ---------------------------------------------------------------------------
# Operation handlers
# ---------------------------------------------------------------------------

def _extrude(rule: ExtrudeRule, geometry, attributes, context, config) -> StepResult:
    if rule.h < 0:
        raise OperationError("Extrude height must be non-negative")

    ring = geometry.footprint()
    base_area = footprint_area(ring, config.area_crs)
    vertices, faces = extrude_ring(ring, rule.h)
    volume = base_area * rule.h

    step = {"height": rule.h, "volume": volume, "baseArea": base_area}
    solid = SimpleGeometry(
        GeometryKind.SOLID,
        tuple(vertices),
        tuple(faces),
        {**geometry.attributes, **step, "extrudeMode": (rule.mode or ExtrudeMode.WORLD).value},
    )
    return StepResult(True, step, solid)


def _offset(rule: OffsetRule, geometry, attributes, context, config) -> StepResult:
    outward = rule.mode is OffsetMode.OUT
    rect = bounding_rect(geometry.footprint())

    if not outward:
        min_dimension = min(rect[2] - rect[0], rect[3] - rect[1])
        if rule.d >= min_dimension / 2:
            raise OperationError("Inward offset too large - would eliminate geometry")

    new_rect = offset_rect(rect, rule.d if outward else -rule.d)
    if rect_is_collapsed(new_rect):
        raise OperationError("Offset collapsed the footprint")

    ring = rect_polygon(new_rect)
    step = {
        "offsetDistance": rule.d,
        "offsetMode": (rule.mode or OffsetMode.IN).value,
        "area": polygon_area(ring),
    }
    return StepResult(True, step, _flat(ring, {**geometry.attributes, **_detached(step)}))


def _split(rule: SplitRule, geometry, attributes, context, config) -> StepResult:
    axis_size = axis_extent(_current_box(geometry, context), rule.axis)

    fixed = [s for s in rule.sizes if s != FLEXIBLE]
    flexible_count = len(rule.sizes) - len(fixed)
    total_fixed = sum(fixed)

    if total_fixed > axis_size:
        raise OperationError(
            f"Split sizes ({total_fixed:g}) exceeds axis dimension ({axis_size:g})"
        )

    flexible_size = (axis_size - total_fixed) / flexible_count if flexible_count else 0
    step = {
        "splitAxis": rule.axis.value,
        "splitSizes": list(rule.sizes),
        "splitPartSizes": [flexible_size if s == FLEXIBLE else s for s in rule.sizes],
        "splitParts": len(rule.sizes),
        "flexibleSize": flexible_size,
    }
    return StepResult(True, step, geometry.with_attributes(**_detached(step)))


def _repeat(rule: RepeatRule, geometry, attributes, context, config) -> StepResult:
    axis_size = axis_extent(_current_box(geometry, context), rule.axis)

    count = math.floor(axis_size / rule.step)
    if rule.limit is not None:
        count = min(math.floor(rule.limit), count)

    step = {
        "repeatAxis": rule.axis.value,
        "repeatStep": rule.step,
        "repeatCount": count,
    }
    return StepResult(True, step, geometry.with_attributes(**_detached(step)))


def _setback(rule: SetbackRule, geometry, attributes, context, config) -> StepResult:
    faces = rule.faces if rule.faces is not None else ALL_SETBACK_FACES
    new_rect = setback_rect(bounding_rect(geometry.footprint()), rule.d, faces)
    if rect_is_collapsed(new_rect):
        raise OperationError("Setback too large - would eliminate geometry")

    ring = rect_polygon(new_rect)
    area = polygon_area(ring)
    step = {
        "setbackDistance": rule.d,
        "setbackFaces": [f.value for f in faces],
        "area": area,
        "baseArea": area,
    }
    return StepResult(True, step, _flat(ring, {**geometry.attributes, **_detached(step)}))


def _roof(rule: RoofRule, geometry, attributes, context, config) -> StepResult:
    if rule.pitch is not None and not 0 <= rule.pitch <= 90:
        raise OperationError("Roof pitch must be between 0 and 90 degrees")

    pitch = rule.pitch if rule.pitch is not None else config.default_roof_pitch
    if rule.height is not None:
        roof_height = rule.height
    else:
        roof_height = math.radians(pitch) * config.roof_height_scale

    step = {
        "roofType": rule.kind.value,
        "roofPitch": pitch,
        "roofHeight": roof_height,
    }
    return StepResult(True, step, geometry.with_attributes(**_detached(step)))


def _texture_tag(rule: TextureTagRule, geometry, attributes, context, config) -> StepResult:
    tags = list(attributes.get("textureTags") or [])
    tags.append(rule.tag)
    step = {
        "textureTag": rule.tag,
        "textureFaces": [f.value for f in rule.faces] if rule.faces is not None else ["all"],
        "textureTags": tags,
    }
    return StepResult(True, step, geometry.with_attributes(**_detached(step)))


def _attr(rule: AttrRule, geometry, attributes, context, config) -> StepResult:
    step = {rule.name: rule.value}
    return StepResult(True, step, geometry.with_attributes(**_detached(step)))


_HANDLERS: Dict[Operation, Callable[..., StepResult]] = {
    Operation.EXTRUDE: _extrude,
    Operation.OFFSET: _offset,
    Operation.SPLIT: _split,
    Operation.REPEAT: _repeat,
    Operation.SETBACK: _setback,
    Operation.ROOF: _roof,
    Operation.TEXTURE_TAG: _texture_tag,
    Operation.ATTR: _attr,
}


def apply_rule(
    rule: Rule,
    geometry: SimpleGeometry,
    attributes: Mapping[str, Any],
    context: GeometryContext,
    config: Optional[EngineConfig] = None,
) -> StepResult:
    """
    Run a single rule against one geometry snapshot.

    Never mutates its inputs and never raises. Runtime precondition failures
    come back as ``StepResult(success=False)`` carrying the operation's message;
    anything unexpected is logged and reported the same way.
    """
    config = config or EngineConfig()
    op = getattr(rule, "op", None)
    handler = _HANDLERS.get(op)
    try:
        if handler is None:
            raise UnknownOperationError(f"Unknown rule operation: {getattr(op, 'value', op)}")
        return handler(rule, geometry, dict(attributes), context, config)
    except (OperationError, GeometryError) as e:
        return StepResult(False, {}, None, e.message)
    except Exception as e:
        logger.exception("Unexpected failure in %s rule", getattr(op, "value", op))
        return StepResult(False, {}, None, str(e))


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class RulesEngine:
    """
    Executes rule programs against footprints.

    The instance only holds configuration and ``last_operation_count``, a
    best-effort diagnostic that is reset at the start of every call.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.last_operation_count = 0

    def execute_rules(self, program, context) -> RuleExecutionResult:
        """Alias of :meth:`execute_program`."""
        return self.execute_program(program, context)

    def execute_program(
        self,
        program: Union[RuleProgram, Mapping[str, Any]],
        context: Union[GeometryContext, Mapping[str, Any]],
    ) -> RuleExecutionResult:
        """
        Validate ``program``, check the footprint and fold the rules.

        Args:
            program: A ``RuleProgram`` or its plain-data form
            context: A ``GeometryContext`` or its plain-data form

        Returns:
            RuleExecutionResult; ``attributes`` is populated even on failure
        """
        start = time.perf_counter()
        self.last_operation_count = 0
        attributes: Dict[str, Any] = {}
        state: Optional[_FoldState] = None

        try:
            if isinstance(context, Mapping):
                raw_attrs = context.get("attributes")
                if isinstance(raw_attrs, Mapping):
                    attributes = dict(raw_attrs)
                context = GeometryContext.from_dict(context)
            attributes = dict(context.attributes)

            try:
                valid_program = validate_program(program)
            except SchemaError as e:
                logger.info("Rule program rejected: %s", e)
                return self._failure(f"Rule validation failed: {describe_schema_error(e)}",
                                     attributes, 0, start)

            report = validate_footprint(
                context.polygon,
                self.config.footprint_crs,
                duplicate_tolerance=self.config.duplicate_vertex_tolerance,
                area_tolerance=self.config.degenerate_area_tolerance,
            )
            for warning in report.warnings:
                logger.warning("Footprint: %s", warning)
            if not report.valid:
                return self._failure(f"Invalid footprint geometry: {', '.join(report.errors)}",
                                     attributes, 0, start)

            logger.info("Executing program '%s' (%d rules)", valid_program.name, len(valid_program.rules))
            state = self._initial_state(valid_program, context)

            for index, rule in enumerate(valid_program.rules):
                step = apply_rule(rule, state.geometry, state.attributes, context, self.config)
                if not step.success:
                    error = OperationError(step.error, index, rule.op.value)
                    logger.info("%s", error.located())
                    return self._failure(error.located(), state.attributes, state.operation_count, start)
                self._advance(state, rule, step)
                logger.debug("Rule %d (%s) applied", index, rule.op.value)

            state.attributes["totalHeight"] = state.total_height
            state.attributes["totalVolume"] = state.total_volume

            elapsed = (time.perf_counter() - start) * 1000.0
            logger.info("Program '%s' finished: %d operations in %.2f ms",
                        valid_program.name, state.operation_count, elapsed)
            return RuleExecutionResult(
                success=True,
                attributes=state.attributes,
                geometry=state.geometry,
                metadata=ExecutionMetadata(state.operation_count, elapsed),
            )

        except GeometryError as e:
            return self._failure(f"Invalid footprint geometry: {e.message}", attributes, 0, start)
        except Exception as e:
            logger.exception("Unexpected failure while executing rule program")
            if state is not None:
                return self._failure(f"Rule execution failed: {e}", state.attributes,
                                     state.operation_count, start)
            return self._failure(f"Rule execution failed: {e}", attributes, 0, start)

    # ------------------------------------------------------------------
    # Fold
    # ------------------------------------------------------------------

    def _initial_state(self, program: RuleProgram, context: GeometryContext) -> _FoldState:
        geometry = _flat(context.polygon, _detached(context.attributes))
        attributes = {
            **context.attributes,
            **program.attrs,
            "baseArea": footprint_area(context.polygon, self.config.area_crs),
        }
        return _FoldState(geometry=geometry, attributes=attributes)

    def _advance(self, state: _FoldState, rule: Rule, step: StepResult) -> None:
        attributes = state.attributes
        if rule.op in VOLUME_SCOPED_OPERATIONS:
            attributes = {k: v for k, v in attributes.items() if k != "volume"}
        state.attributes = {**attributes, **step.attributes}

        if step.geometry is not None:
            state.geometry = step.geometry

        if rule.op is Operation.EXTRUDE:
            height = step.attributes.get("height", 0)
            if state.extrude_count == 0:
                state.total_height = height
            else:
                state.total_height += height
            state.extrude_count += 1
            state.total_volume += step.attributes.get("volume", 0)

        state.operation_count += 1
        self.last_operation_count = state.operation_count

    def _failure(self, message: str, attributes: Mapping[str, Any], count: int, start: float) -> RuleExecutionResult:
        return RuleExecutionResult(
            success=False,
            attributes=dict(attributes),
            error=message,
            metadata=ExecutionMetadata(count, (time.perf_counter() - start) * 1000.0),
        )


def execute_program(
    program: Union[RuleProgram, Mapping[str, Any]],
    context: Union[GeometryContext, Mapping[str, Any]],
    config: Optional[EngineConfig] = None,
) -> RuleExecutionResult:
    """Run ``program`` on ``context`` with a fresh engine."""
    return RulesEngine(config).execute_program(program, context)
