"""Coverage report assembly and comparison."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from jsonfoundry.core.version import JSONFOUNDRY_VERSION
from jsonfoundry.coverage.evaluator import CoverageMetrics, CoverageStatus
from jsonfoundry.coverage.hints import UnsatisfiedHint
from jsonfoundry.coverage.planner import PlannerCapHit
from jsonfoundry.coverage.targets import CoverageDimension, CoverageMode, CoverageTarget, ReportMode

REPORT_VERSION = "coverage-report/v1"
VOLATILE_RUN_FIELDS = ("startedAt", "durationMs")


@dataclass
class CoverageReport:
    report_mode: ReportMode
    coverage_mode: CoverageMode
    seed: int
    master_seed: int
    max_instances: int
    actual_instances: int
    dimensions_enabled: list[CoverageDimension]
    exclude_unreachable: bool
    started_at: str
    duration_ms: int
    metrics: CoverageMetrics
    targets: list[CoverageTarget]
    uncovered_targets: list[CoverageTarget]
    unsatisfied_hints: list[UnsatisfiedHint]
    planner_caps_hit: list[PlannerCapHit]
    notes: list[str]

    __slots__ = (
        "report_mode",
        "coverage_mode",
        "seed",
        "master_seed",
        "max_instances",
        "actual_instances",
        "dimensions_enabled",
        "exclude_unreachable",
        "started_at",
        "duration_ms",
        "metrics",
        "targets",
        "uncovered_targets",
        "unsatisfied_hints",
        "planner_caps_hit",
        "notes",
    )

    @property
    def is_ok(self) -> bool:
        return self.metrics.coverage_status == CoverageStatus.OK

    def to_dict(self, *, include_volatile: bool = True) -> dict[str, Any]:
        run: dict[str, Any] = {
            "seed": self.seed,
            "masterSeed": self.master_seed,
            "maxInstances": self.max_instances,
            "actualInstances": self.actual_instances,
            "dimensionsEnabled": [dimension.value for dimension in self.dimensions_enabled],
            "excludeUnreachable": self.exclude_unreachable,
        }
        if include_volatile:
            run["startedAt"] = self.started_at
            run["durationMs"] = self.duration_ms
        data: dict[str, Any] = {
            "version": REPORT_VERSION,
            "reportMode": self.report_mode.value,
            "engine": {"version": JSONFOUNDRY_VERSION, "coverageMode": self.coverage_mode.value},
            "run": run,
            "metrics": self.metrics.as_dict(),
        }
        if self.report_mode == ReportMode.FULL:
            data["targets"] = [target.as_dict() for target in self.targets]
        data["uncoveredTargets"] = [target.as_dict() for target in self.uncovered_targets]
        data["unsatisfiedHints"] = [hint.as_dict() for hint in self.unsatisfied_hints]
        data["diagnostics"] = {
            "plannerCapsHit": [hit.as_dict() for hit in self.planner_caps_hit],
            "notes": list(self.notes),
        }
        return data

    def to_json(self, *, include_volatile: bool = True, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(include_volatile=include_volatile), indent=indent, sort_keys=True)


def _as_data(report: CoverageReport | dict[str, Any]) -> dict[str, Any]:
    return report.to_dict(include_volatile=False) if isinstance(report, CoverageReport) else report


def _targets_by_id(data: dict[str, Any]) -> dict[str, dict[str, Any]]:
    targets = data.get("targets")
    if targets is None:
        targets = data.get("uncoveredTargets", [])
    return {target["id"]: target for target in targets}


def diff_reports(before: CoverageReport | dict[str, Any], after: CoverageReport | dict[str, Any]) -> dict[str, Any]:
    """What changed between two reports of the same schema."""
    old, new = _as_data(before), _as_data(after)
    old_targets, new_targets = _targets_by_id(old), _targets_by_id(new)
    common = sorted(set(old_targets) & set(new_targets))
    old_metrics, new_metrics = old["metrics"], new["metrics"]
    dimensions = sorted(set(old_metrics["byDimension"]) | set(new_metrics["byDimension"]))
    return {
        "addedTargets": sorted(set(new_targets) - set(old_targets)),
        "removedTargets": sorted(set(old_targets) - set(new_targets)),
        "newlyCovered": [key for key in common if new_targets[key]["hit"] and not old_targets[key]["hit"]],
        "newlyUncovered": [key for key in common if old_targets[key]["hit"] and not new_targets[key]["hit"]],
        "metrics": {
            "overall": new_metrics["overall"] - old_metrics["overall"],
            "byDimension": {
                dimension: new_metrics["byDimension"].get(dimension, 0.0) - old_metrics["byDimension"].get(dimension, 0.0)
                for dimension in dimensions
            },
        },
    }
