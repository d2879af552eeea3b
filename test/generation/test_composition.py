import pytest

from jsonfoundry.core.errors import FailureKind
from jsonfoundry.core.result import Err, Ok
from jsonfoundry.coverage.hints import CoverageHint, HintKind
from jsonfoundry.coverage.targets import TargetKind
from jsonfoundry.generation.generators.composition import standalone_branch
from jsonfoundry.generation.generators.reference import ReferenceGenerator
from jsonfoundry.generation.merge import flatten_all_of, merge_schemas, resolve_reference_chain

from ..utils import assert_valid, is_valid

DEFS = {
    "$defs": {
        "id": {"type": "integer", "minimum": 1},
        "name": {"type": "string", "minLength": 1, "maxLength": 12},
        "alias": {"$ref": "#/$defs/name"},
        "node": {
            "type": "object",
            "properties": {"value": {"$ref": "#/$defs/id"}, "next": {"$ref": "#/$defs/node"}},
            "required": ["value"],
        },
    }
}


def draw(make_context, schema, count=20, **kwargs):
    context = make_context(schema, **kwargs)
    return [context.generate() for _ in range(count)]


@pytest.mark.parametrize(
    "schema",
    [
        {"oneOf": [{"type": "string"}, {"type": "integer"}, {"type": "null"}]},
        {"anyOf": [{"type": "integer", "minimum": 10}, {"type": "boolean"}]},
        {"allOf": [{"type": "integer"}, {"minimum": 3}, {"maximum": 9}]},
        {"allOf": [{"type": "object", "properties": {"a": {"type": "null"}}, "required": ["a"]}, {"required": ["b"]}]},
        {"type": "object", "oneOf": [{"required": ["a"]}, {"required": ["b"]}], "properties": {"a": {"type": "null"}}},
        {"oneOf": [{"type": "number", "multipleOf": 2}, {"type": "number", "multipleOf": 3}]},
        {**DEFS, "$ref": "#/$defs/id"},
        {**DEFS, "$ref": "#/$defs/alias"},
        {**DEFS, "type": "array", "items": {"$ref": "#/$defs/name"}, "maxItems": 3},
        {**DEFS, "oneOf": [{"$ref": "#/$defs/id"}, {"$ref": "#/$defs/name"}]},
        {**DEFS, "allOf": [{"$ref": "#/$defs/id"}, {"maximum": 4}]},
        {"definitions": {"flag": {"type": "boolean"}}, "properties": {"flag": {"$ref": "#/definitions/flag"}}, "type": "object"},
    ],
)
def test_compositions_pass_the_oracle(make_context, schema):
    for result in draw(make_context, schema):
        if isinstance(result, Ok):
            assert_valid(schema, result.ok())


@pytest.mark.parametrize(
    "schema",
    [
        {"oneOf": [{"type": "string"}, {"type": "integer"}, {"type": "null"}]},
        {**DEFS, "$ref": "#/$defs/node"},
        {"allOf": [{"type": "integer"}, {"minimum": 3}, {"maximum": 9}]},
    ],
)
def test_compositions_always_succeed(make_context, schema):
    assert all(isinstance(result, Ok) for result in draw(make_context, schema))


def test_one_of_values_match_exactly_one_branch(make_context):
    branches = [{"type": "string"}, {"type": "string", "maxLength": 3}]
    schema = {"oneOf": branches}
    for result in draw(make_context, schema, 30):
        if isinstance(result, Ok):
            assert sum(is_valid(branch, result.ok()) for branch in branches) == 1


def test_prefer_branch_hint(make_context):
    schema = {"oneOf": [{"type": "string"}, {"type": "integer"}, {"type": "null"}]}
    hint = CoverageHint(HintKind.PREFER_BRANCH, "#", {"branchIndex": 2}, None)
    assert make_context(schema, hints=[hint]).generate().ok() is None


def test_branch_coverage_events(make_context, coverage):
    schema = {"anyOf": [{"type": "integer"}, {"type": "string"}]}
    hint = CoverageHint(HintKind.PREFER_BRANCH, "#", {"branchIndex": 1}, None)
    assert isinstance(make_context(schema, hints=[hint], coverage=coverage).generate().ok(), str)
    branches = [event for event in coverage.events if event.kind == TargetKind.ANYOF_BRANCH]
    assert [(event.canon_path, event.params) for event in branches] == [("#", {"branchIndex": 1})]
    assert any(event.canon_path == "#/anyOf/1" and event.kind == TargetKind.SCHEMA_NODE for event in coverage.events)


def test_unsatisfiable_branch_is_skipped(make_context):
    schema = {"oneOf": [{"type": "integer", "minimum": 5, "maximum": 1}, {"type": "boolean"}]}
    for result in draw(make_context, schema, 10):
        assert isinstance(result.ok(), bool)


def test_all_branches_unsatisfiable(make_context):
    schema = {"anyOf": [{"type": "integer", "minimum": 5, "maximum": 1}, {"type": "string", "minLength": 4, "maxLength": 1}]}
    error = make_context(schema).generate().err()
    assert error.kind == FailureKind.SCHEMA_STRUCTURE_ERROR
    assert error.constraint == "anyOf"


def test_empty_branch_list(make_context):
    assert make_context({"oneOf": []}).generate().err().constraint == "oneOf"


def test_contradicting_all_of(make_context):
    error = make_context({"allOf": [{"type": "string"}, False]}).generate().err()
    assert error.constraint == "allOf"


def test_reference_canonical_path(make_context, coverage):
    schema = {**DEFS, "type": "object", "properties": {"id": {"$ref": "#/$defs/id"}}, "required": ["id"]}
    result = make_context(schema, coverage=coverage).generate()
    assert result.ok()["id"] >= 1
    paths = {event.canon_path for event in coverage.events if event.kind == TargetKind.SCHEMA_NODE}
    assert "#/$defs/id" in paths
    assert "#/properties/id" in paths


def test_reference_with_siblings(make_context):
    schema = {**DEFS, "$ref": "#/$defs/id", "maximum": 2}
    for result in draw(make_context, schema, 10):
        assert result.ok() in (1, 2)


@pytest.mark.parametrize(
    "reference",
    ["#/$defs/missing", "https://example.com/schema.json", "other.json#/a"],
)
def test_unresolvable_references(make_context, reference):
    error = make_context({**DEFS, "$ref": reference}).generate().err()
    assert error.kind == FailureKind.SCHEMA_STRUCTURE_ERROR
    assert error.constraint == "$ref"


@pytest.mark.parametrize(
    ["schema", "value", "expected"],
    [
        ({"$ref": "#/$defs/id"}, 3, True),
        ({"$ref": "#/$defs/id"}, 0, False),
        ({"$ref": "#/$defs/id"}, "3", False),
        ({"$ref": "#/$defs/alias", "maxLength": 4}, "abcd", True),
        ({"$ref": "#/$defs/alias", "maxLength": 4}, "abcde", False),
        ({"$ref": "#/$defs/node"}, {"value": 1, "next": {"value": 2}}, True),
        ({"$ref": "#/$defs/node"}, {"value": 1, "next": {"value": 0}}, False),
        ({"$ref": "#/$defs/missing"}, 1, False),
        ({"$ref": "https://example.com/schema.json"}, 1, False),
    ],
)
def test_reference_validation_uses_the_target(schema, value, expected):
    assert ReferenceGenerator().validate(value, schema, DEFS) is expected


def test_reference_validation_in_a_self_contained_schema():
    generator = ReferenceGenerator()
    schema = {**DEFS, "$ref": "#/$defs/name"}
    assert generator.validate("abc", schema)
    assert not generator.validate("", schema)
    assert not generator.validate({"type": "string"}, {"type": "string"})


def test_reference_cycle_without_structure(make_context):
    schema = {"$defs": {"a": {"$ref": "#/$defs/b"}, "b": {"$ref": "#/$defs/a"}}, "$ref": "#/$defs/a"}
    assert make_context(schema).generate().err().constraint == "$ref"


def test_recursion_through_branches_hits_depth_limit(make_context):
    schema = {"$defs": {"loop": {"anyOf": [{"$ref": "#/$defs/loop"}]}}, "$ref": "#/$defs/loop"}
    error = make_context(schema, max_depth=2).generate().err()
    assert error.constraint == "max-depth"
    assert not error.is_unsatisfiable


def test_recursive_structure_stops_at_depth_limit(make_context):
    schema = {**DEFS, "$ref": "#/$defs/node"}
    value = make_context(schema, max_depth=3).generate().ok()
    depth = 0
    while isinstance(value, dict) and "next" in value:
        value = value["next"]
        depth += 1
    assert depth <= 3


@pytest.mark.parametrize(
    ["left", "right", "expected"],
    [
        ({"type": "integer"}, {}, {"type": "integer"}),
        (True, {"type": "string"}, {"type": "string"}),
        ({"type": "string"}, False, False),
        ({"type": ["integer", "string"]}, {"type": "number"}, {"type": ["integer"]}),
        ({"minimum": 1, "maximum": 10}, {"minimum": 3, "maximum": 20}, {"minimum": 3, "maximum": 10}),
        ({"multipleOf": 4}, {"multipleOf": 6}, {"multipleOf": 12}),
        ({"multipleOf": 0.5}, {"multipleOf": 1.5}, {"multipleOf": 1.5}),
        ({"required": ["a", "b"]}, {"required": ["b", "c"]}, {"required": ["a", "b", "c"]}),
        ({"enum": [1, 2, 3]}, {"enum": [3, 2.0]}, {"enum": [2, 3]}),
        ({"const": 1}, {"const": 2}, {"enum": []}),
        (
            {"properties": {"a": {"minimum": 0}}},
            {"properties": {"a": {"maximum": 5}, "b": {}}},
            {"properties": {"a": {"minimum": 0, "maximum": 5}, "b": {}}},
        ),
        ({"uniqueItems": False}, {"uniqueItems": True}, {"uniqueItems": True}),
        ({"items": {"type": "string"}}, {"items": {"maxLength": 2}}, {"items": {"type": "string", "maxLength": 2}}),
    ],
)
def test_merge_schemas(left, right, expected):
    assert merge_schemas(left, right) == expected


def test_flatten_all_of_resolves_references():
    schema = {"allOf": [{"$ref": "#/$defs/id"}, {"allOf": [{"maximum": 7}]}]}
    assert flatten_all_of(DEFS, schema) == {"type": "integer", "minimum": 1, "maximum": 7}


def test_resolve_reference_chain():
    pointer, target = resolve_reference_chain(DEFS, {"$ref": "#/$defs/alias", "maxLength": 4})
    assert pointer == "#/$defs/name"
    assert target == {"type": "string", "minLength": 1, "maxLength": 4}
    assert resolve_reference_chain(DEFS, {"$ref": "#/$defs/nope"}) is None


def test_standalone_branch():
    assert standalone_branch({"type": "object"}, {"type": "null"}) == {"type": "null"}
    wrapped = standalone_branch(DEFS, {"$ref": "#/$defs/id"})
    assert wrapped == {**DEFS, "allOf": [{"$ref": "#/$defs/id"}]}


def test_branch_errors_are_results(make_context):
    result = make_context({"oneOf": [{"type": "integer", "minimum": 5, "maximum": 1}]}).generate()
    assert isinstance(result, Err)
