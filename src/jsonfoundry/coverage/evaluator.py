"""Coverage ratios and threshold checks over a set of targets."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from jsonfoundry.coverage.targets import (
    DIMENSION_ORDER,
    CoverageDimension,
    CoverageTarget,
    TargetStatus,
)

SUMMARY_UNCOVERED_LIMIT = 200


class CoverageStatus(str, Enum):
    OK = "ok"
    MIN_COVERAGE_NOT_MET = "minCoverageNotMet"


def ratio(covered: int, total: int) -> float:
    return 1.0 if total == 0 else covered / total


def is_counted(target: CoverageTarget, *, exclude_unreachable: bool) -> bool:
    if target.status == TargetStatus.ACTIVE:
        return True
    return target.status == TargetStatus.UNREACHABLE and not exclude_unreachable


@dataclass
class CoverageMetrics:
    overall: float
    by_dimension: dict[str, float]
    by_operation: dict[str, float]
    targets_by_status: dict[str, int]
    total: int
    covered: int
    thresholds: dict[str, float]
    coverage_status: CoverageStatus

    __slots__ = (
        "overall",
        "by_dimension",
        "by_operation",
        "targets_by_status",
        "total",
        "covered",
        "thresholds",
        "coverage_status",
    )

    def as_dict(self) -> dict[str, Any]:
        return {
            "overall": self.overall,
            "byDimension": self.by_dimension,
            "byOperation": self.by_operation,
            "targetsByStatus": self.targets_by_status,
            "total": self.total,
            "covered": self.covered,
            "thresholds": self.thresholds,
            "coverageStatus": self.coverage_status.value,
        }


def evaluate(
    targets: list[CoverageTarget],
    *,
    dimensions_enabled: list[CoverageDimension],
    exclude_unreachable: bool = True,
    min_coverage: float | None = None,
) -> CoverageMetrics:
    counted = [target for target in targets if is_counted(target, exclude_unreachable=exclude_unreachable)]
    covered = [target for target in counted if target.hit]

    by_dimension = {}
    for dimension in DIMENSION_ORDER:
        if dimension not in dimensions_enabled:
            continue
        scoped = [target for target in counted if target.dimension == dimension]
        by_dimension[dimension.value] = ratio(sum(target.hit for target in scoped), len(scoped))

    by_operation = {}
    for key in sorted({target.operation_key for target in targets if target.operation_key is not None}):
        scoped = [target for target in counted if target.operation_key == key]
        by_operation[key] = ratio(sum(target.hit for target in scoped), len(scoped))

    targets_by_status = {status.value: 0 for status in TargetStatus}
    for target in targets:
        targets_by_status[target.status.value] += 1

    overall = ratio(len(covered), len(counted))
    thresholds = {"overall": min_coverage} if min_coverage is not None else {}
    status = CoverageStatus.OK
    if min_coverage is not None and overall < min_coverage:
        status = CoverageStatus.MIN_COVERAGE_NOT_MET
    return CoverageMetrics(
        overall=overall,
        by_dimension=by_dimension,
        by_operation=by_operation,
        targets_by_status=targets_by_status,
        total=len(counted),
        covered=len(covered),
        thresholds=thresholds,
        coverage_status=status,
    )


def uncovered_targets(
    targets: list[CoverageTarget],
    *,
    dimension_priority: list[CoverageDimension],
    exclude_unreachable: bool = True,
    limit: int | None = None,
) -> list[CoverageTarget]:
    """Counted targets without a hit, most important dimensions first."""

    def priority(target: CoverageTarget) -> tuple:
        if target.dimension in dimension_priority:
            rank = dimension_priority.index(target.dimension)
        else:
            rank = len(dimension_priority) + target.dimension.order
        return (rank, *target.sort_key)

    uncovered = [
        target for target in targets if is_counted(target, exclude_unreachable=exclude_unreachable) and not target.hit
    ]
    uncovered.sort(key=priority)
    return uncovered if limit is None else uncovered[:limit]
