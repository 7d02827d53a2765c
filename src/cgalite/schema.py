"""
Rule program schema validation.

Turns untrusted plain data (typically loaded from YAML/JSON) into a typed
:class:`~cgalite.rules.RuleProgram`, or raises :class:`SchemaError` for the
first structural violation found. Nothing here touches geometry.

Callers that show errors to users should go through
:func:`describe_schema_error`, which reduces any violation to one of three
stable message shapes.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Set, Type, Union

from .errors import SchemaError, SchemaIssue
from .rules import (
    FLEXIBLE,
    AttrRule,
    AttrValue,
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

# -----------------------------------------------------------------------------
# Schema Definitions
# -----------------------------------------------------------------------------

PROGRAM_REQUIRED_FIELDS = {"name", "rules"}
PROGRAM_OPTIONAL_FIELDS = {"description", "attrs"}

# Fields per operation, "op" excluded
RULE_REQUIRED_FIELDS: Dict[Operation, Set[str]] = {
    Operation.EXTRUDE: {"h"},
    Operation.OFFSET: {"d"},
    Operation.SPLIT: {"axis", "sizes"},
    Operation.REPEAT: {"axis", "step"},
    Operation.SETBACK: {"d"},
    Operation.ROOF: {"kind"},
    Operation.TEXTURE_TAG: {"tag"},
    Operation.ATTR: {"name", "value"},
}

RULE_OPTIONAL_FIELDS: Dict[Operation, Set[str]] = {
    Operation.EXTRUDE: {"mode"},
    Operation.OFFSET: {"mode"},
    Operation.SPLIT: set(),
    Operation.REPEAT: {"limit"},
    Operation.SETBACK: {"faces"},
    Operation.ROOF: {"pitch", "height"},
    Operation.TEXTURE_TAG: {"faces"},
    Operation.ATTR: set(),
}

HEIGHT_MESSAGE = "height must be non-negative"
INVALID_OPERATION_MESSAGE = "invalid rule operation"


# -----------------------------------------------------------------------------
# Field checks
# -----------------------------------------------------------------------------


def _type_name(value: Any) -> str:
    return "null" if value is None else type(value).__name__


def _check_mapping(value: Any, path: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise SchemaError(path, f"Expected mapping, got {_type_name(value)}", SchemaIssue.INVALID_TYPE)
    return value


def _not_null(value: Any, path: str) -> Any:
    """Optional fields may be omitted but never given as null."""
    if value is None:
        raise SchemaError(path, "Expected a value, got null", SchemaIssue.INVALID_TYPE)
    return value


def _check_string(value: Any, path: str) -> str:
    if not isinstance(value, str):
        raise SchemaError(path, f"Expected string, got {_type_name(value)}", SchemaIssue.INVALID_TYPE)
    return value


def _check_number(
    value: Any,
    path: str,
    minimum: Optional[float] = None,
    maximum: Optional[float] = None,
    positive: bool = False,
) -> Union[int, float]:
    """Check a finite number (booleans excluded) against optional bounds."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SchemaError(path, f"Expected number, got {_type_name(value)}", SchemaIssue.INVALID_TYPE)
    try:
        finite = math.isfinite(value)
    except OverflowError:
        # ints beyond float range
        finite = False
    if not finite:
        raise SchemaError(path, "Expected a finite number", SchemaIssue.INVALID_TYPE)
    if positive and value <= 0:
        raise SchemaError(path, f"Number must be greater than 0, got {value}", SchemaIssue.TOO_SMALL)
    if minimum is not None and value < minimum:
        raise SchemaError(path, f"Number must be greater than or equal to {minimum:g}, got {value}",
                          SchemaIssue.TOO_SMALL)
    if maximum is not None and value > maximum:
        raise SchemaError(path, f"Number must be less than or equal to {maximum:g}, got {value}",
                          SchemaIssue.TOO_BIG)
    return value


def _check_enum(value: Any, enum_cls: Type[Enum], path: str) -> Any:
    valid = [e.value for e in enum_cls]
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str) or value not in valid:
        raise SchemaError(
            path,
            f"Invalid value '{value}', expected one of: {', '.join(valid)}",
            SchemaIssue.INVALID_ENUM,
        )
    return enum_cls(value)


def _check_enum_list(value: Any, enum_cls: Type[Enum], path: str) -> tuple:
    if not isinstance(value, (list, tuple)):
        raise SchemaError(path, f"Expected list, got {_type_name(value)}", SchemaIssue.INVALID_TYPE)
    return tuple(_check_enum(item, enum_cls, f"{path}[{i}]") for i, item in enumerate(value))


def _check_attr_value(value: Any, path: str) -> AttrValue:
    if isinstance(value, (str, bool)):
        return value
    return _check_number(value, path)


def _check_attrs(value: Any, path: str) -> Dict[str, AttrValue]:
    attrs = _check_mapping(value, path)
    out: Dict[str, AttrValue] = {}
    for key, item in attrs.items():
        if not isinstance(key, str):
            raise SchemaError(path, f"Attribute names must be strings, got {_type_name(key)}",
                              SchemaIssue.INVALID_TYPE)
        out[key] = _check_attr_value(item, f"{path}.{key}")
    return out


def _check_fields(data: Mapping[str, Any], required: Set[str], optional: Set[str], path: str) -> None:
    unknown = set(data.keys()) - required - optional
    if unknown:
        raise SchemaError(
            path,
            f"Unrecognized field(s): {', '.join(sorted(str(k) for k in unknown))}",
            SchemaIssue.UNRECOGNIZED_KEY,
        )
    missing = required - set(data.keys())
    if missing:
        raise SchemaError(
            path,
            f"Missing required fields: {', '.join(sorted(missing))}",
            SchemaIssue.MISSING_FIELD,
        )


# -----------------------------------------------------------------------------
# Rule validation
# -----------------------------------------------------------------------------


def _split_sizes(value: Any, path: str) -> tuple:
    if not isinstance(value, (list, tuple)):
        raise SchemaError(path, f"Expected list, got {_type_name(value)}", SchemaIssue.INVALID_TYPE)
    sizes: List[Union[int, float, str]] = []
    for i, item in enumerate(value):
        if item == FLEXIBLE and isinstance(item, str):
            sizes.append(FLEXIBLE)
        elif isinstance(item, str):
            raise SchemaError(f"{path}[{i}]", f"Expected positive number or '{FLEXIBLE}', got '{item}'",
                              SchemaIssue.INVALID_TYPE)
        else:
            sizes.append(_check_number(item, f"{path}[{i}]", positive=True))
    return tuple(sizes)


def validate_rule(data: Any, path: str = "rule") -> Rule:
    """Validate one rule mapping and return the matching rule variant."""
    rule = _check_mapping(data, path)

    tag = rule.get("op")
    try:
        op = Operation(tag)
    except ValueError:
        expected = " | ".join(f"'{o.value}'" for o in Operation)
        raise SchemaError(
            f"{path}.op",
            f"Invalid discriminator value '{tag}', expected {expected}",
            SchemaIssue.INVALID_UNION,
        ) from None

    fields = {k: v for k, v in rule.items() if k != "op"}
    _check_fields(fields, RULE_REQUIRED_FIELDS[op], RULE_OPTIONAL_FIELDS[op], path)

    def optional(name, check):
        if name not in fields:
            return None
        return check(_not_null(fields[name], f"{path}.{name}"), f"{path}.{name}")

    if op is Operation.EXTRUDE:
        return ExtrudeRule(
            h=_check_number(fields["h"], f"{path}.h", minimum=0),
            mode=optional("mode", lambda v, p: _check_enum(v, ExtrudeMode, p)),
        )

    if op is Operation.OFFSET:
        return OffsetRule(
            d=_check_number(fields["d"], f"{path}.d", positive=True),
            mode=optional("mode", lambda v, p: _check_enum(v, OffsetMode, p)),
        )

    if op is Operation.SPLIT:
        return SplitRule(
            axis=_check_enum(fields["axis"], Axis, f"{path}.axis"),
            sizes=_split_sizes(fields["sizes"], f"{path}.sizes"),
        )

    if op is Operation.REPEAT:
        return RepeatRule(
            axis=_check_enum(fields["axis"], Axis, f"{path}.axis"),
            step=_check_number(fields["step"], f"{path}.step", positive=True),
            limit=optional("limit", lambda v, p: _check_number(v, p, positive=True)),
        )

    if op is Operation.SETBACK:
        return SetbackRule(
            d=_check_number(fields["d"], f"{path}.d", positive=True),
            faces=optional("faces", lambda v, p: _check_enum_list(v, SetbackFace, p)),
        )

    if op is Operation.ROOF:
        return RoofRule(
            kind=_check_enum(fields["kind"], RoofKind, f"{path}.kind"),
            pitch=optional("pitch", lambda v, p: _check_number(v, p, minimum=0, maximum=90)),
            height=optional("height", lambda v, p: _check_number(v, p, positive=True)),
        )

    if op is Operation.TEXTURE_TAG:
        return TextureTagRule(
            tag=_check_string(fields["tag"], f"{path}.tag"),
            faces=optional("faces", lambda v, p: _check_enum_list(v, TextureFace, p)),
        )

    return AttrRule(
        name=_check_string(fields["name"], f"{path}.name"),
        value=_check_attr_value(fields["value"], f"{path}.value"),
    )


# -----------------------------------------------------------------------------
# Program validation
# -----------------------------------------------------------------------------


def validate_program(data: Any) -> RuleProgram:
    """Validate a rule program.

    Args:
        data: A mapping (as loaded from YAML/JSON) or an existing
            ``RuleProgram``, which is re-checked through its dict form.

    Returns:
        The typed ``RuleProgram``.

    Raises:
        SchemaError: on the first structural violation.
    """
    if isinstance(data, RuleProgram):
        data = data.to_dict()

    program = _check_mapping(data, "")
    _check_fields(program, PROGRAM_REQUIRED_FIELDS, PROGRAM_OPTIONAL_FIELDS, "")

    name = _check_string(program["name"], "name")

    description = None
    if "description" in program:
        description = _check_string(_not_null(program["description"], "description"), "description")

    attrs: Dict[str, AttrValue] = {}
    if "attrs" in program:
        attrs = _check_attrs(_not_null(program["attrs"], "attrs"), "attrs")

    raw_rules = program["rules"]
    if not isinstance(raw_rules, (list, tuple)):
        raise SchemaError("rules", f"Expected list, got {_type_name(raw_rules)}", SchemaIssue.INVALID_TYPE)
    rules = tuple(validate_rule(rule, f"rules[{i}]") for i, rule in enumerate(raw_rules))

    return RuleProgram(name=name, rules=rules, description=description, attrs=attrs)


def describe_schema_error(error: SchemaError) -> str:
    """Reduce a schema violation to its user-facing message."""
    if error.issue is SchemaIssue.TOO_SMALL and error.path.endswith(".h"):
        return HEIGHT_MESSAGE
    if error.issue is SchemaIssue.INVALID_UNION:
        return INVALID_OPERATION_MESSAGE
    where = f"{error.path}: " if error.path else ""
    return f"schema validation error: {where}{error.message}"
