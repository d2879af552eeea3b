import pytest

from jsonfoundry.coverage.analyzer import Operation, SchemaAnalyzer, collect_targets, operation_targets
from jsonfoundry.coverage.targets import DEFAULT_DIMENSIONS, CoverageDimension, TargetKind, TargetStatus

ALL_DIMENSIONS = list(CoverageDimension)

SCHEMA = {
    "type": "object",
    "properties": {
        "kind": {"enum": ["a", "b"]},
        "value": {"oneOf": [{"type": "integer"}, {"type": "string"}]},
    },
    "required": ["kind"],
}


def summarize(targets):
    return sorted((target.kind.value, target.canon_path, tuple(sorted(target.params.items()))) for target in targets)


def test_default_dimensions():
    targets = collect_targets(SCHEMA, dimensions=DEFAULT_DIMENSIONS)
    assert summarize(targets) == sorted(
        [
            ("SCHEMA_NODE", "#", ()),
            ("PROPERTY_PRESENT", "#", (("propertyName", "kind"),)),
            ("PROPERTY_PRESENT", "#", (("propertyName", "value"),)),
            ("SCHEMA_NODE", "#/properties/kind", ()),
            ("ENUM_VALUE_HIT", "#/properties/kind", (("valueIndex", 0),)),
            ("ENUM_VALUE_HIT", "#/properties/kind", (("valueIndex", 1),)),
            ("SCHEMA_NODE", "#/properties/value", ()),
            ("ONEOF_BRANCH", "#/properties/value", (("branchIndex", 0),)),
            ("ONEOF_BRANCH", "#/properties/value", (("branchIndex", 1),)),
            ("SCHEMA_NODE", "#/properties/value/oneOf/0", ()),
            ("SCHEMA_NODE", "#/properties/value/oneOf/1", ()),
        ]
    )


def test_targets_are_sorted_and_unique():
    targets = collect_targets(SCHEMA, dimensions=ALL_DIMENSIONS)
    assert [target.sort_key for target in targets] == sorted(target.sort_key for target in targets)
    assert len({target.id for target in targets}) == len(targets)


@pytest.mark.parametrize(
    ["schema", "expected"],
    [
        ({"type": "integer", "minimum": 0, "exclusiveMaximum": 9}, ["NUMERIC_MAX_HIT", "NUMERIC_MIN_HIT"]),
        ({"type": "number", "maximum": 1}, ["NUMERIC_MAX_HIT"]),
        ({"type": "string", "minLength": 1, "maxLength": 3}, ["STRING_MAX_LENGTH_HIT", "STRING_MIN_LENGTH_HIT"]),
        ({"type": "array", "maxItems": 3}, ["ARRAY_MAX_ITEMS_HIT"]),
        ({"minItems": 2}, ["ARRAY_MIN_ITEMS_HIT"]),
        ({"type": "boolean"}, []),
    ],
)
def test_boundary_targets(schema, expected):
    targets = collect_targets(schema, dimensions=[CoverageDimension.BOUNDARIES])
    assert sorted(target.kind.value for target in targets) == expected


def test_inadmissible_enum_members_are_unreachable():
    schema = {"type": "string", "enum": ["a", "bb", 3], "minLength": 2}
    targets = collect_targets(schema, dimensions=[CoverageDimension.ENUM])
    statuses = {target.params["valueIndex"]: target.status for target in targets}
    assert statuses == {0: TargetStatus.UNREACHABLE, 1: TargetStatus.ACTIVE, 2: TargetStatus.UNREACHABLE}
    assert targets[0].meta["unreachableReason"] == "enum-constraints"
    assert targets[1].meta == {"value": "bb"}


def test_definitions_and_references():
    schema = {
        "$defs": {"id": {"type": "integer", "minimum": 1}},
        "type": "object",
        "properties": {"id": {"$ref": "#/$defs/id"}},
    }
    targets = collect_targets(schema, dimensions=[CoverageDimension.STRUCTURE, CoverageDimension.BOUNDARIES])
    nodes = {target.canon_path for target in targets if target.kind == TargetKind.SCHEMA_NODE}
    assert nodes == {"#", "#/$defs/id", "#/properties/id"}
    boundaries = [target.canon_path for target in targets if target.dimension == CoverageDimension.BOUNDARIES]
    assert boundaries == ["#/$defs/id"]


def test_all_of_is_merged_into_its_location():
    schema = {"allOf": [{"type": "object", "properties": {"a": {"type": "null"}}}, {"properties": {"b": {"type": "null"}}}]}
    targets = collect_targets(schema, dimensions=[CoverageDimension.STRUCTURE])
    assert {target.canon_path for target in targets} == {"#", "#/properties/a", "#/properties/b"}


def test_branches_inherit_sibling_keywords():
    schema = {"type": "object", "properties": {"x": {"type": "null"}}, "anyOf": [{"required": ["x"]}, {}]}
    targets = collect_targets(schema, dimensions=[CoverageDimension.STRUCTURE, CoverageDimension.BRANCHES])
    paths = {(target.kind.value, target.canon_path) for target in targets}
    assert ("PROPERTY_PRESENT", "#/anyOf/0") in paths
    assert ("SCHEMA_NODE", "#/anyOf/1/properties/x") in paths
    assert ("ANYOF_BRANCH", "#") in paths


def test_arrays():
    schema = {"type": "array", "prefixItems": [{"type": "string"}], "items": {"type": "integer"}, "maxItems": 1}
    targets = collect_targets(schema, dimensions=[CoverageDimension.STRUCTURE])
    # `maxItems` leaves no room for the items after the prefix
    assert {target.canon_path for target in targets} == {"#", "#/prefixItems/0"}


def test_false_and_true_subschemas():
    schema = {"type": "object", "properties": {"never": False, "anything": True}}
    targets = collect_targets(schema, dimensions=[CoverageDimension.STRUCTURE])
    assert summarize(targets) == [
        ("PROPERTY_PRESENT", "#", (("propertyName", "anything"),)),
        ("SCHEMA_NODE", "#", ()),
        ("SCHEMA_NODE", "#/properties/anything", ()),
    ]


def test_recursive_schemas_terminate():
    schema = {"$defs": {"node": {"type": "object", "properties": {"next": {"$ref": "#/$defs/node"}}}}, "$ref": "#/$defs/node"}
    targets = SchemaAnalyzer(schema, dimensions=ALL_DIMENSIONS).analyze()
    assert {target.canon_path for target in targets} == {"#", "#/$defs/node", "#/$defs/node/properties/next"}


def test_operation_targets():
    operation = Operation(key="GET /pets/{id}", request=None, response={"enum": ["ok"]})
    targets = operation_targets(operation, dimensions=ALL_DIMENSIONS)
    assert operation.canon_path("response") == "#/operations/GET ~1pets~1{id}/response"
    assert {target.operation_key for target in targets} == {"GET /pets/{id}"}
    kinds = {(target.kind.value, target.canon_path) for target in targets}
    assert ("OP_RESPONSE_COVERED", "#/operations/GET ~1pets~1{id}/response") in kinds
    assert ("ENUM_VALUE_HIT", "#/operations/GET ~1pets~1{id}/response") in kinds
    assert not any(target.kind == TargetKind.OP_REQUEST_COVERED for target in targets)


def test_operation_dimension_is_opt_in():
    operation = Operation(key="POST /pets", request={"type": "object"}, response=None)
    targets = collect_targets(True, dimensions=DEFAULT_DIMENSIONS, operations=[operation])
    assert not any(target.dimension == CoverageDimension.OPERATIONS for target in targets)
    assert {target.operation_key for target in targets} == {None, "POST /pets"}
