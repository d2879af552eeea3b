import re

import pytest

from jsonfoundry.coverage.evaluator import CoverageStatus, evaluate, ratio, uncovered_targets
from jsonfoundry.coverage.events import CoverageAccumulator, InstanceCoverage
from jsonfoundry.coverage.targets import (
    CoverageDimension,
    CoverageTarget,
    TargetKind,
    TargetStatus,
    compute_target_id,
    sort_targets,
)


def test_target_id_format():
    target = CoverageTarget.create(TargetKind.ONEOF_BRANCH, "#/properties/a", params={"branchIndex": 1})
    assert re.fullmatch(r"cov:1:1:[0-9a-f]{16}", target.id)
    assert target.dimension == CoverageDimension.BRANCHES
    assert target.status == TargetStatus.ACTIVE
    assert not target.hit


def test_target_ids_are_stable():
    args = (CoverageDimension.ENUM, TargetKind.ENUM_VALUE_HIT, "#", None)
    assert compute_target_id(*args, {"valueIndex": 0}) == compute_target_id(*args, {"valueIndex": 0})
    assert compute_target_id(*args, {"valueIndex": 0}) != compute_target_id(*args, {"valueIndex": 1})
    assert compute_target_id(*args, {}) != compute_target_id(
        CoverageDimension.ENUM, TargetKind.ENUM_VALUE_HIT, "#", "GET /a", {}
    )


def test_target_sorting():
    targets = [
        CoverageTarget.create(TargetKind.ENUM_VALUE_HIT, "#", params={"valueIndex": 0}),
        CoverageTarget.create(TargetKind.SCHEMA_NODE, "#/properties/b"),
        CoverageTarget.create(TargetKind.ONEOF_BRANCH, "#", params={"branchIndex": 0}),
        CoverageTarget.create(TargetKind.SCHEMA_NODE, "#"),
    ]
    ordered = sort_targets(targets)
    assert [(target.kind, target.canon_path) for target in ordered] == [
        (TargetKind.SCHEMA_NODE, "#"),
        (TargetKind.SCHEMA_NODE, "#/properties/b"),
        (TargetKind.ONEOF_BRANCH, "#"),
        (TargetKind.ENUM_VALUE_HIT, "#"),
    ]


def test_target_as_dict():
    target = CoverageTarget.create(TargetKind.SCHEMA_NODE, "#", operation_key="GET /a")
    assert target.as_dict() == {
        "id": target.id,
        "dimension": "structure",
        "kind": "SCHEMA_NODE",
        "canonPath": "#",
        "status": "active",
        "hit": False,
        "operationKey": "GET /a",
    }


def test_instance_coverage_rollback():
    coverage = InstanceCoverage()
    coverage.record(TargetKind.SCHEMA_NODE, "#", {}, None)
    mark = coverage.checkpoint()
    coverage.record(TargetKind.SCHEMA_NODE, "#/oneOf/0", {}, None)
    coverage.mark_unreachable("#/oneOf/1", None, "range")
    coverage.rollback(mark)
    assert len(coverage) == 1
    assert [mark.canon_path for mark in coverage.unreachable] == ["#/oneOf/1"]
    coverage.mark_unreachable("#/oneOf/1", None, "range")
    assert len(coverage.unreachable) == 1


@pytest.fixture
def branch_targets():
    return [
        CoverageTarget.create(TargetKind.SCHEMA_NODE, "#"),
        CoverageTarget.create(TargetKind.ONEOF_BRANCH, "#", params={"branchIndex": 0}),
        CoverageTarget.create(TargetKind.ONEOF_BRANCH, "#", params={"branchIndex": 1}),
        CoverageTarget.create(TargetKind.SCHEMA_NODE, "#/oneOf/0"),
        CoverageTarget.create(TargetKind.SCHEMA_NODE, "#/oneOf/1"),
    ]


def test_accumulator_commit(branch_targets):
    accumulator = CoverageAccumulator(branch_targets)
    coverage = InstanceCoverage()
    coverage.record(TargetKind.SCHEMA_NODE, "#", {}, None)
    coverage.record(TargetKind.ONEOF_BRANCH, "#", {"branchIndex": 1}, None)
    coverage.record(TargetKind.SCHEMA_NODE, "#/unknown", {}, None)
    expected = {branch_targets[0].id, branch_targets[2].id}
    assert accumulator.matching(coverage) == expected
    assert accumulator.hit_ids == set()
    assert accumulator.commit(coverage) == expected
    assert accumulator.commit(coverage) == set()
    assert accumulator.hit_ids == expected
    assert accumulator.is_hit(branch_targets[2].id)
    assert [target.id for target in accumulator.uncovered] == [
        target.id for target in sort_targets(branch_targets) if target.id not in expected
    ]


def test_unreachable_locations_own_their_branch(branch_targets):
    accumulator = CoverageAccumulator(branch_targets)
    coverage = InstanceCoverage()
    coverage.mark_unreachable("#/oneOf/0", None, "range")
    changed = accumulator.apply_unreachable(coverage)
    assert {target.id for target in changed} == {branch_targets[1].id, branch_targets[3].id}
    assert all(target.meta["unreachableReason"] == "range" for target in changed)
    assert accumulator.apply_unreachable(coverage) == []


def test_hits_revive_unreachable_targets(branch_targets):
    accumulator = CoverageAccumulator(branch_targets)
    coverage = InstanceCoverage()
    coverage.mark_unreachable("#/oneOf/1", None, "max-depth")
    accumulator.apply_unreachable(coverage)
    coverage.record(TargetKind.SCHEMA_NODE, "#/oneOf/1", {}, None)
    accumulator.commit(coverage)
    target = branch_targets[4]
    assert target.hit
    assert target.status == TargetStatus.ACTIVE
    assert "unreachableReason" not in target.meta


def test_ratio():
    assert ratio(0, 0) == 1.0
    assert ratio(1, 4) == 0.25


@pytest.mark.parametrize(
    ["exclude_unreachable", "overall", "total"],
    [(True, 0.5, 4), (False, 0.4, 5)],
)
def test_evaluate(branch_targets, exclude_unreachable, overall, total):
    branch_targets[0].hit = True
    branch_targets[2].hit = True
    branch_targets[3].status = TargetStatus.UNREACHABLE
    metrics = evaluate(
        branch_targets,
        dimensions_enabled=[CoverageDimension.STRUCTURE, CoverageDimension.BRANCHES],
        exclude_unreachable=exclude_unreachable,
    )
    assert metrics.overall == overall
    assert metrics.total == total
    assert metrics.covered == 2
    assert metrics.targets_by_status == {"active": 4, "unreachable": 1, "deprecated": 0}
    assert metrics.by_operation == {}
    assert metrics.coverage_status == CoverageStatus.OK


def test_deprecated_targets_are_never_counted(branch_targets):
    branch_targets[1].status = TargetStatus.DEPRECATED
    metrics = evaluate(branch_targets, dimensions_enabled=[CoverageDimension.BRANCHES], exclude_unreachable=False)
    assert metrics.total == 4
    assert list(metrics.by_dimension) == ["branches"]


def test_min_coverage(branch_targets):
    metrics = evaluate(branch_targets, dimensions_enabled=[CoverageDimension.STRUCTURE], min_coverage=0.5)
    assert metrics.coverage_status == CoverageStatus.MIN_COVERAGE_NOT_MET
    assert metrics.as_dict()["thresholds"] == {"overall": 0.5}
    assert metrics.as_dict()["coverageStatus"] == "minCoverageNotMet"


def test_uncovered_targets_follow_dimension_priority(branch_targets):
    ordered = uncovered_targets(branch_targets, dimension_priority=[CoverageDimension.BRANCHES])
    assert [target.dimension for target in ordered] == [CoverageDimension.BRANCHES] * 2 + [CoverageDimension.STRUCTURE] * 3
    assert len(uncovered_targets(branch_targets, dimension_priority=[], limit=2)) == 2
