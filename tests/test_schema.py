"""Tests for rule program schema validation."""

import math

import pytest

from cgalite import (
    Axis,
    ExtrudeRule,
    OffsetMode,
    OffsetRule,
    RoofKind,
    RuleProgram,
    SchemaError,
    SchemaIssue,
    SetbackFace,
    SplitRule,
    TextureFace,
    describe_schema_error,
    validate_program,
    validate_rule,
)
from cgalite.samples import SAMPLE_RULES


def _program(*rules, **extra):
    return {"name": "Schema Test", "rules": list(rules), **extra}


class TestValidateRule:
    """Test validate_rule on each operation."""

    def test_extrude(self):
        rule = validate_rule({"op": "extrude", "h": 10})
        assert rule == ExtrudeRule(h=10)
        assert rule.mode is None

    def test_offset_mode(self):
        rule = validate_rule({"op": "offset", "d": 1.5, "mode": "out"})
        assert rule == OffsetRule(d=1.5, mode=OffsetMode.OUT)

    def test_split_with_flexible(self):
        rule = validate_rule({"op": "split", "axis": "x", "sizes": [3, "*", 2]})
        assert rule == SplitRule(axis=Axis.X, sizes=(3, "*", 2))

    def test_repeat(self):
        rule = validate_rule({"op": "repeat", "axis": "y", "step": 3, "limit": 5})
        assert rule.step == 3
        assert rule.limit == 5

    def test_setback_faces(self):
        rule = validate_rule({"op": "setback", "d": 2, "faces": ["front", "left"]})
        assert rule.faces == (SetbackFace.FRONT, SetbackFace.LEFT)

    def test_roof(self):
        rule = validate_rule({"op": "roof", "kind": "gable", "pitch": 35, "height": 4})
        assert rule.kind is RoofKind.GABLE
        assert rule.pitch == 35
        assert rule.height == 4

    def test_texture_tag(self):
        rule = validate_rule({"op": "textureTag", "tag": "brick", "faces": ["top"]})
        assert rule.tag == "brick"
        assert rule.faces == (TextureFace.TOP,)

    @pytest.mark.parametrize("value", ["R2", 3, 2.5, True])
    def test_attr_values(self, value):
        rule = validate_rule({"op": "attr", "name": "zoning", "value": value})
        assert rule.value == value


class TestRejections:
    """Each structural violation raises SchemaError with the right issue."""

    @pytest.mark.parametrize("data, path, issue", [
        ({"op": "extrude", "h": -1}, "rule.h", SchemaIssue.TOO_SMALL),
        ({"op": "extrude"}, "rule", SchemaIssue.MISSING_FIELD),
        ({"op": "extrude", "h": 1, "depth": 2}, "rule", SchemaIssue.UNRECOGNIZED_KEY),
        ({"op": "extrude", "h": "tall"}, "rule.h", SchemaIssue.INVALID_TYPE),
        ({"op": "extrude", "h": True}, "rule.h", SchemaIssue.INVALID_TYPE),
        ({"op": "extrude", "h": math.nan}, "rule.h", SchemaIssue.INVALID_TYPE),
        ({"op": "extrude", "h": 10**400}, "rule.h", SchemaIssue.INVALID_TYPE),
        ({"op": "extrude", "h": 5, "mode": None}, "rule.mode", SchemaIssue.INVALID_TYPE),
        ({"op": "repeat", "axis": "x", "step": 2, "limit": None}, "rule.limit", SchemaIssue.INVALID_TYPE),
        ({"op": "setback", "d": 1, "faces": None}, "rule.faces", SchemaIssue.INVALID_TYPE),
        ({"op": "extrude", "h": 1, "mode": "sideways"}, "rule.mode", SchemaIssue.INVALID_ENUM),
        ({"op": "offset", "d": 0}, "rule.d", SchemaIssue.TOO_SMALL),
        ({"op": "split", "axis": "w", "sizes": [1]}, "rule.axis", SchemaIssue.INVALID_ENUM),
        ({"op": "split", "axis": "x", "sizes": [1, "auto"]}, "rule.sizes[1]", SchemaIssue.INVALID_TYPE),
        ({"op": "split", "axis": "x", "sizes": [-1]}, "rule.sizes[0]", SchemaIssue.TOO_SMALL),
        ({"op": "repeat", "axis": "x", "step": 0}, "rule.step", SchemaIssue.TOO_SMALL),
        ({"op": "setback", "d": 1, "faces": ["top"]}, "rule.faces[0]", SchemaIssue.INVALID_ENUM),
        ({"op": "roof", "kind": "dome"}, "rule.kind", SchemaIssue.INVALID_ENUM),
        ({"op": "roof", "kind": "flat", "pitch": 91}, "rule.pitch", SchemaIssue.TOO_BIG),
        ({"op": "roof", "kind": "flat", "height": 0}, "rule.height", SchemaIssue.TOO_SMALL),
        ({"op": "textureTag", "tag": 7}, "rule.tag", SchemaIssue.INVALID_TYPE),
        ({"op": "attr", "name": "x", "value": [1]}, "rule.value", SchemaIssue.INVALID_TYPE),
        ({"op": "bogus"}, "rule.op", SchemaIssue.INVALID_UNION),
        ({"h": 3}, "rule.op", SchemaIssue.INVALID_UNION),
        ("extrude", "rule", SchemaIssue.INVALID_TYPE),
    ])
    def test_rule_violation(self, data, path, issue):
        with pytest.raises(SchemaError) as exc_info:
            validate_rule(data)
        assert exc_info.value.path == path
        assert exc_info.value.issue is issue

    def test_missing_program_name(self):
        with pytest.raises(SchemaError) as exc_info:
            validate_program({"rules": []})
        assert exc_info.value.issue is SchemaIssue.MISSING_FIELD

    def test_unknown_program_key(self):
        with pytest.raises(SchemaError) as exc_info:
            validate_program(_program(author="me"))
        assert exc_info.value.issue is SchemaIssue.UNRECOGNIZED_KEY

    def test_rules_must_be_list(self):
        with pytest.raises(SchemaError) as exc_info:
            validate_program({"name": "x", "rules": {"op": "extrude", "h": 1}})
        assert exc_info.value.path == "rules"

    def test_rule_path_is_indexed(self):
        with pytest.raises(SchemaError) as exc_info:
            validate_program(_program({"op": "extrude", "h": 1}, {"op": "offset", "d": -2}))
        assert exc_info.value.path == "rules[1].d"

    def test_bad_attr_value(self):
        with pytest.raises(SchemaError) as exc_info:
            validate_program(_program(attrs={"floors": None}))
        assert exc_info.value.path == "attrs.floors"

    @pytest.mark.parametrize("key", ["description", "attrs"])
    def test_null_optional_program_field(self, key):
        with pytest.raises(SchemaError) as exc_info:
            validate_program(_program({"op": "extrude", "h": 1}, **{key: None}))
        assert exc_info.value.path == key
        assert exc_info.value.issue is SchemaIssue.INVALID_TYPE

    def test_oversized_integer_in_program(self):
        with pytest.raises(SchemaError) as exc_info:
            validate_program(_program({"op": "extrude", "h": 10**400}))
        assert exc_info.value.path == "rules[0].h"

    def test_error_string_has_code(self):
        with pytest.raises(SchemaError) as exc_info:
            validate_program(_program({"op": "extrude", "h": -1}))
        assert str(exc_info.value).startswith("[S100] rules[0].h:")


class TestDescribeSchemaError:
    """User-facing messages come in three shapes."""

    def _describe(self, data):
        with pytest.raises(SchemaError) as exc_info:
            validate_program(data)
        return describe_schema_error(exc_info.value)

    def test_negative_height(self):
        assert self._describe(_program({"op": "extrude", "h": -1})) == "height must be non-negative"

    def test_bad_operation(self):
        assert self._describe(_program({"op": "bogus"})) == "invalid rule operation"

    def test_generic(self):
        message = self._describe(_program({"op": "offset", "d": -1}))
        assert message.startswith("schema validation error: rules[0].d:")


class TestValidateProgram:
    """Test validate_program on whole programs."""

    def test_minimal(self):
        program = validate_program({"name": "Empty", "rules": []})
        assert program == RuleProgram(name="Empty")

    def test_description_and_attrs(self):
        program = validate_program(_program(description="d", attrs={"floors": 3, "kind": "office"}))
        assert program.description == "d"
        assert program.attrs == {"floors": 3, "kind": "office"}

    def test_rule_order_preserved(self):
        ops = ["extrude", "textureTag", "extrude"]
        program = validate_program(_program(
            {"op": "extrude", "h": 1},
            {"op": "textureTag", "tag": "a"},
            {"op": "extrude", "h": 2},
        ))
        assert [r.op.value for r in program.rules] == ops

    def test_idempotent(self):
        data = _program(
            {"op": "split", "axis": "z", "sizes": [4, "*"]},
            {"op": "setback", "d": 2, "faces": ["front"]},
            {"op": "roof", "kind": "hip", "pitch": 0},
            attrs={"zoning": "R1"},
            description="round trip",
        )
        once = validate_program(data)
        assert validate_program(once) == once
        assert validate_program(once.to_dict()) == once

    def test_input_not_mutated(self):
        data = _program({"op": "extrude", "h": 1, "mode": "world"})
        snapshot = {"name": data["name"], "rules": [dict(r) for r in data["rules"]]}
        validate_program(data)
        assert data == snapshot

    @pytest.mark.parametrize("key", sorted(SAMPLE_RULES))
    def test_samples_validate(self, key):
        sample = SAMPLE_RULES[key]
        assert validate_program(sample) == sample
