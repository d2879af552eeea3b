import pytest

from jsonfoundry.config import PlannerConfig
from jsonfoundry.coverage.hints import CoverageHint, HintKind, HintSet
from jsonfoundry.coverage.planner import (
    CoveragePlanner,
    assign_test_unit_seeds,
    direct_hint,
    hints_for,
    plan_test_units,
    schema_scope,
    supporting_hints,
)
from jsonfoundry.coverage.targets import CoverageDimension, CoverageTarget, TargetKind


def branch(index, canon_path="#", operation_key=None):
    return CoverageTarget.create(
        TargetKind.ONEOF_BRANCH, canon_path, operation_key=operation_key, params={"branchIndex": index}
    )


def enum_value(index, canon_path="#/properties/kind"):
    return CoverageTarget.create(TargetKind.ENUM_VALUE_HIT, canon_path, params={"valueIndex": index})


@pytest.mark.parametrize(
    ["target", "kind", "params"],
    [
        (branch(2), HintKind.PREFER_BRANCH, {"branchIndex": 2}),
        (enum_value(1), HintKind.COVER_ENUM_VALUE, {"valueIndex": 1}),
        (
            CoverageTarget.create(TargetKind.PROPERTY_PRESENT, "#", params={"propertyName": "a"}),
            HintKind.ENSURE_PROPERTY_PRESENCE,
            {"propertyName": "a", "present": True},
        ),
        (CoverageTarget.create(TargetKind.STRING_MAX_LENGTH_HIT, "#"), HintKind.COVER_BOUNDARY, {"bound": "maxLength"}),
        (CoverageTarget.create(TargetKind.NUMERIC_MIN_HIT, "#"), HintKind.COVER_BOUNDARY, {"bound": "minimum"}),
    ],
)
def test_direct_hint(target, kind, params):
    hint = direct_hint(target)
    assert hint.kind == kind
    assert hint.params == params
    assert hint.target_id == target.id
    assert hint.canon_path == target.canon_path


def test_no_direct_hint_for_schema_nodes():
    assert direct_hint(CoverageTarget.create(TargetKind.SCHEMA_NODE, "#/properties/a")) is None


def test_supporting_hints():
    target = CoverageTarget.create(TargetKind.SCHEMA_NODE, "#/properties/value/oneOf/1/properties/x")
    assert [(hint.kind, hint.canon_path, hint.params) for hint in supporting_hints(target)] == [
        (HintKind.ENSURE_PROPERTY_PRESENCE, "#", {"propertyName": "value", "present": True}),
        (HintKind.PREFER_BRANCH, "#/properties/value", {"branchIndex": 1}),
        (HintKind.ENSURE_PROPERTY_PRESENCE, "#/properties/value/oneOf/1", {"propertyName": "x", "present": True}),
    ]
    assert all(hint.target_id is None for hint in supporting_hints(target))


def test_supporting_hints_skip_operation_prefix():
    target = CoverageTarget.create(
        TargetKind.SCHEMA_NODE, "#/operations/GET ~1a/request/anyOf/0", operation_key="GET /a"
    )
    (hint,) = supporting_hints(target)
    assert hint.canon_path == "#/operations/GET ~1a/request"
    assert hint.params == {"branchIndex": 0}


def test_supporting_hints_ignore_single_schema_keywords():
    target = CoverageTarget.create(TargetKind.SCHEMA_NODE, "#/items/properties/a")
    (hint,) = supporting_hints(target)
    assert hint.canon_path == "#/items"


def test_hints_for():
    target = enum_value(0, "#/properties/kind")
    hints = hints_for(target)
    assert [hint.kind for hint in hints] == [HintKind.ENSURE_PROPERTY_PRESENCE, HintKind.COVER_ENUM_VALUE]


def test_schema_scope():
    assert schema_scope(branch(0, "#/properties/a")) == "#"
    target = branch(0, "#/operations/GET ~1a/response/properties/b", operation_key="GET /a")
    assert schema_scope(target) == "#/operations/GET ~1a/response"


def test_hint_set_conflicts():
    hints = HintSet()
    assert hints.add(CoverageHint(HintKind.PREFER_BRANCH, "#", {"branchIndex": 0}, None))
    assert hints.add(CoverageHint(HintKind.PREFER_BRANCH, "#", {"branchIndex": 0}, "cov:1:1:x"))
    assert not hints.accepts(CoverageHint(HintKind.PREFER_BRANCH, "#", {"branchIndex": 1}, None))
    assert not hints.add(CoverageHint(HintKind.PREFER_BRANCH, "#", {"branchIndex": 1}, None))
    assert hints.add(CoverageHint(HintKind.PREFER_BRANCH, "#/oneOf/0", {"branchIndex": 1}, None))
    assert len(hints) == 2
    assert hints.take(HintKind.PREFER_BRANCH, "#").params == {"branchIndex": 0}
    assert hints.take(HintKind.PREFER_BRANCH, "#") is None
    assert len(hints.consumed) == 1
    assert len(hints.pending) == 1


def test_plan_instance_packs_compatible_targets():
    planner = CoveragePlanner()
    targets = [branch(0), branch(1), enum_value(0), enum_value(1)]
    hints, planned = planner.plan_instance(targets)
    assert [target.id for target in planned] == [targets[0].id, targets[2].id]
    assert [hint.kind for hint in hints] == [HintKind.PREFER_BRANCH, HintKind.ENSURE_PROPERTY_PRESENCE, HintKind.COVER_ENUM_VALUE]
    assert planner.caps_hit == []


def test_hint_budget():
    planner = CoveragePlanner(PlannerConfig(max_hints_per_instance=1))
    targets = [branch(0), enum_value(0)]
    hints, planned = planner.plan_instance(targets)
    assert planned == [targets[0]]
    assert len(hints) == 1
    (cap,) = planner.caps_hit
    assert cap.scope_type == "instance"
    assert cap.scope_key == "max-hints-per-instance"
    assert cap.unplanned_targets == 1
    assert targets[1].id in planner.capped_ids


def test_dimension_cap():
    planner = CoveragePlanner(PlannerConfig(max_targets_per_dimension=1))
    targets = [branch(0), branch(1), branch(2), enum_value(0)]
    selected = planner.select(targets)
    assert [target.id for target in selected] == [targets[0].id, targets[3].id]
    (cap,) = planner.caps_hit
    assert cap.as_dict() == {
        "dimension": "branches",
        "scopeType": "dimension",
        "scopeKey": "branches",
        "totalTargets": 3,
        "plannedTargets": 1,
        "unplannedTargets": 2,
    }
    assert planner.capped_ids == {targets[1].id, targets[2].id}


def test_operation_cap_leaves_schema_targets_alone():
    planner = CoveragePlanner(PlannerConfig(max_targets_per_operation=1))
    targets = [branch(0), branch(1), branch(0, "#/operations/a/request", "a"), branch(1, "#/operations/a/request", "a")]
    selected = planner.select(targets)
    assert len(selected) == 3
    assert [hit.scope_key for hit in planner.caps_hit] == ["a"]


def test_priority_order():
    planner = CoveragePlanner(PlannerConfig(dimension_priority=[CoverageDimension.ENUM, CoverageDimension.BRANCHES]))
    targets = [branch(0), enum_value(0)]
    assert [target.dimension for target in planner.prioritize(targets)] == [CoverageDimension.ENUM, CoverageDimension.BRANCHES]


def test_test_units():
    targets = [branch(0), branch(1), branch(2)]
    units = plan_test_units(targets)
    assert [unit.target_ids for unit in units] == [[target.id] for target in targets]
    assert [unit.id for unit in units] == ["unit-0", "unit-1", "unit-2"]
    assert all(unit.seed is None and unit.count == 1 and unit.scope == "#" for unit in units)
    assign_test_unit_seeds(units, 42)
    assert [unit.seed for unit in units] == [
        (42 ^ 0x9E3779B9) & 0xFFFFFFFF,
        (42 ^ (2 * 0x9E3779B9)) & 0xFFFFFFFF,
        (42 ^ (3 * 0x9E3779B9)) & 0xFFFFFFFF,
    ]
    assert units[0].as_dict()["hints"] == [{"kind": "preferBranch", "canonPath": "#", "params": {"branchIndex": 0}}]
