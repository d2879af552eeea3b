"""Turns uncovered targets into generation hints, within configurable caps."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from jsonfoundry.config import PlannerConfig
from jsonfoundry.core import UINT32_MASK
from jsonfoundry.core.jsonschema.pointers import ROOT_POINTER, append_pointer, split_pointer
from jsonfoundry.coverage.hints import CoverageHint, HintKind, HintSet
from jsonfoundry.coverage.targets import CoverageDimension, CoverageTarget, TargetKind

logger = logging.getLogger(__name__)

GOLDEN_RATIO_32 = 0x9E3779B9
INSTANCE_SCOPE = "instance"
BRANCH_KEYWORDS = ("oneOf", "anyOf")
# Schema keywords followed by a property name or an index in a pointer
NAMED_KEYWORDS = frozenset(
    {"properties", "patternProperties", "$defs", "definitions", "dependentSchemas", "oneOf", "anyOf", "allOf", "prefixItems"}
)
BOUNDARY_HINTS = {
    TargetKind.NUMERIC_MIN_HIT: "minimum",
    TargetKind.NUMERIC_MAX_HIT: "maximum",
    TargetKind.STRING_MIN_LENGTH_HIT: "minLength",
    TargetKind.STRING_MAX_LENGTH_HIT: "maxLength",
    TargetKind.ARRAY_MIN_ITEMS_HIT: "minItems",
    TargetKind.ARRAY_MAX_ITEMS_HIT: "maxItems",
}


@dataclass
class PlannerCapHit:
    dimension: CoverageDimension | None
    scope_type: str
    scope_key: str
    total_targets: int
    planned_targets: int
    unplanned_targets: int

    __slots__ = ("dimension", "scope_type", "scope_key", "total_targets", "planned_targets", "unplanned_targets")

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.dimension.value if self.dimension else "", self.scope_type, self.scope_key)

    def as_dict(self) -> dict[str, Any]:
        return {
            "dimension": self.dimension.value if self.dimension else None,
            "scopeType": self.scope_type,
            "scopeKey": self.scope_key,
            "totalTargets": self.total_targets,
            "plannedTargets": self.planned_targets,
            "unplannedTargets": self.unplanned_targets,
        }


@dataclass
class TestUnit:
    """A group of targets that one generated instance can aim at together."""

    __test__ = False

    id: str
    seed: int | None
    count: int
    hints: list[CoverageHint]
    scope: str
    target_ids: list[str]

    __slots__ = ("id", "seed", "count", "hints", "scope", "target_ids")

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "seed": self.seed,
            "count": self.count,
            "scope": self.scope,
            "hints": [hint.as_dict() for hint in self.hints],
            "targetIds": self.target_ids,
        }


def schema_scope(target: CoverageTarget) -> str:
    """The top-level schema a target belongs to."""
    if target.operation_key is None:
        return ROOT_POINTER
    tokens = split_pointer(target.canon_path)
    return append_pointer(ROOT_POINTER, *tokens[:3])


def direct_hint(target: CoverageTarget) -> CoverageHint | None:
    """The hint that makes the generator at the target's location hit it."""
    if target.kind in (TargetKind.ONEOF_BRANCH, TargetKind.ANYOF_BRANCH):
        params = {"branchIndex": target.params["branchIndex"]}
        return CoverageHint(HintKind.PREFER_BRANCH, target.canon_path, params, target.id)
    if target.kind == TargetKind.ENUM_VALUE_HIT:
        params = {"valueIndex": target.params["valueIndex"]}
        return CoverageHint(HintKind.COVER_ENUM_VALUE, target.canon_path, params, target.id)
    if target.kind == TargetKind.PROPERTY_PRESENT:
        params = {"propertyName": target.params["propertyName"], "present": True}
        return CoverageHint(HintKind.ENSURE_PROPERTY_PRESENCE, target.canon_path, params, target.id)
    if target.kind in BOUNDARY_HINTS:
        return CoverageHint(HintKind.COVER_BOUNDARY, target.canon_path, {"bound": BOUNDARY_HINTS[target.kind]}, target.id)
    return None


def supporting_hints(target: CoverageTarget) -> list[CoverageHint]:
    """Hints that steer generation towards the target's location: branches and optional properties on the way."""
    tokens = split_pointer(target.canon_path)
    start = 3 if target.operation_key is not None else 0
    hints = []
    base = append_pointer(ROOT_POINTER, *tokens[:start])
    idx = start
    while idx < len(tokens):
        keyword = tokens[idx]
        value = tokens[idx + 1] if idx + 1 < len(tokens) else None
        if value is None or not (keyword in NAMED_KEYWORDS or (keyword == "items" and value.isdigit())):
            base = append_pointer(base, keyword)
            idx += 1
            continue
        if keyword in BRANCH_KEYWORDS and value.isdigit():
            hints.append(CoverageHint(HintKind.PREFER_BRANCH, base, {"branchIndex": int(value)}, None))
        elif keyword == "properties":
            hints.append(
                CoverageHint(HintKind.ENSURE_PROPERTY_PRESENCE, base, {"propertyName": value, "present": True}, None)
            )
        base = append_pointer(base, keyword, value)
        idx += 2
    return hints


def hints_for(target: CoverageTarget) -> list[CoverageHint]:
    hints = supporting_hints(target)
    direct = direct_hint(target)
    if direct is not None:
        hints.append(direct)
    return hints


class CoveragePlanner:
    __slots__ = ("config", "_caps_hit", "capped_ids")

    def __init__(self, config: PlannerConfig | None = None) -> None:
        self.config = config or PlannerConfig()
        self._caps_hit: dict[tuple[str, str, str], PlannerCapHit] = {}
        # Targets left out of planning by a cap at least once
        self.capped_ids: set[str] = set()

    @property
    def caps_hit(self) -> list[PlannerCapHit]:
        return [self._caps_hit[key] for key in sorted(self._caps_hit)]

    def _record_cap(self, hit: PlannerCapHit) -> None:
        if hit.key not in self._caps_hit:
            logger.debug(
                "Planner cap hit: %s %s, %d of %d targets planned",
                hit.scope_type,
                hit.scope_key,
                hit.planned_targets,
                hit.total_targets,
            )
        self._caps_hit[hit.key] = hit

    def prioritize(self, targets: list[CoverageTarget]) -> list[CoverageTarget]:
        return sorted(targets, key=lambda target: (self.config.priority_of(target.dimension), *target.sort_key))

    def select(self, targets: list[CoverageTarget]) -> list[CoverageTarget]:
        """Targets worth planning, in priority order, with the per-scope caps applied."""
        selected = self.prioritize(targets)
        selected = self._cap(
            selected, "dimension", self.config.max_targets_per_dimension, lambda target: target.dimension.value
        )
        selected = self._cap(selected, "schema", self.config.max_targets_per_schema, schema_scope)
        if self.config.max_targets_per_operation is not None:
            schema_level = [target for target in selected if target.operation_key is None]
            operation_level = self._cap(
                [target for target in selected if target.operation_key is not None],
                "operation",
                self.config.max_targets_per_operation,
                lambda target: target.operation_key,
            )
            selected = schema_level + operation_level
        kept = {target.id for target in selected}
        self.capped_ids.update(target.id for target in targets if target.id not in kept)
        return self.prioritize(selected)

    def _cap(self, targets: list[CoverageTarget], scope_type: str, limit: int | None, scope_of) -> list[CoverageTarget]:
        if limit is None:
            return targets
        kept = []
        counts: dict[str, int] = {}
        totals: dict[tuple[str, CoverageDimension], int] = {}
        planned: dict[tuple[str, CoverageDimension], int] = {}
        for target in targets:
            scope = scope_of(target)
            group = (scope, target.dimension)
            totals[group] = totals.get(group, 0) + 1
            if counts.get(scope, 0) < limit:
                counts[scope] = counts.get(scope, 0) + 1
                planned[group] = planned.get(group, 0) + 1
                kept.append(target)
        for (scope, dimension), total in totals.items():
            done = planned.get((scope, dimension), 0)
            if done < total:
                self._record_cap(PlannerCapHit(dimension, scope_type, scope, total, done, total - done))
        return kept

    def plan_instance(self, targets: list[CoverageTarget]) -> tuple[list[CoverageHint], list[CoverageTarget]]:
        """Pack as many compatible targets as the hint fan-out allows into one instance."""
        budget = self.config.max_hints_per_instance
        plan = HintSet()
        planned = []
        skipped = 0
        for target in self.select(targets):
            hints = hints_for(target)
            if not hints:
                continue
            if not all(plan.accepts(hint) for hint in hints):
                continue
            fresh = [hint for hint in hints if hint.key not in {known.key for known in plan.all}]
            if len(plan) + len(fresh) > budget:
                skipped += 1
                self.capped_ids.add(target.id)
                continue
            for hint in hints:
                plan.add(hint)
            planned.append(target)
        if skipped:
            self._record_cap(
                PlannerCapHit(None, INSTANCE_SCOPE, "max-hints-per-instance", len(planned) + skipped, len(planned), skipped)
            )
        return plan.all, planned


def plan_test_units(targets: list[CoverageTarget], config: PlannerConfig | None = None) -> list[TestUnit]:
    """Split uncovered targets into units of mutually compatible hints, one instance each."""
    planner = CoveragePlanner(config)
    remaining = planner.select(targets)
    units: list[TestUnit] = []
    while remaining:
        hints, planned = planner.plan_instance(remaining)
        if not planned:
            break
        planned_ids = {target.id for target in planned}
        scopes = sorted({target.operation_key or schema_scope(target) for target in planned})
        units.append(
            TestUnit(
                id=f"unit-{len(units)}",
                seed=None,
                count=1,
                hints=hints,
                scope=",".join(scopes),
                target_ids=[target.id for target in planned],
            )
        )
        remaining = [target for target in remaining if target.id not in planned_ids]
    return units


def assign_test_unit_seeds(units: list[TestUnit], master_seed: int) -> list[TestUnit]:
    for idx, unit in enumerate(units):
        unit.seed = (master_seed ^ ((idx + 1) * GOLDEN_RATIO_32)) & UINT32_MASK
    return units
