"""Coverage-tracked generation runs.

A run goes `idle -> collecting -> observing -> reporting -> done`. In `measure` mode the
generated instances are only observed. In `guided` mode the measure baseline is generated
first, then every instance that hit nothing new is regenerated with hints aimed at the
targets that are still uncovered.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from jsonfoundry.config import FoundryConfig
from jsonfoundry.core.errors import InternalError
from jsonfoundry.core.jsonschema.pointers import ROOT_PATH, ROOT_POINTER
from jsonfoundry.core.jsonschema.types import JsonSchema
from jsonfoundry.core.result import Err, Ok
from jsonfoundry.coverage.analyzer import Operation, collect_targets
from jsonfoundry.coverage.evaluator import SUMMARY_UNCOVERED_LIMIT, evaluate, uncovered_targets
from jsonfoundry.coverage.events import CoverageAccumulator, InstanceCoverage
from jsonfoundry.coverage.hints import CoverageHint, HintKind, UnsatisfiedHint, UnsatisfiedReason
from jsonfoundry.coverage.planner import CoveragePlanner, direct_hint, schema_scope
from jsonfoundry.coverage.report import CoverageReport
from jsonfoundry.coverage.targets import CoverageMode, CoverageTarget, ReportMode, TargetKind, TargetStatus
from jsonfoundry.diagnostics import DiagnosticCode, DiagnosticsCollector
from jsonfoundry.generation.engine import GenerationBatch, Generator, InstanceOutcome
from jsonfoundry.generation.enums import EnumState

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    IDLE = "idle"
    COLLECTING = "collecting"
    OBSERVING = "observing"
    REPORTING = "reporting"
    DONE = "done"


TRANSITIONS = {
    RunState.IDLE: RunState.COLLECTING,
    RunState.COLLECTING: RunState.OBSERVING,
    RunState.OBSERVING: RunState.REPORTING,
    RunState.REPORTING: RunState.DONE,
}


def guided_path(slot: int) -> str:
    return f"{ROOT_PATH}#guided{slot}"


@dataclass
class Slot:
    """One instance position of a stream and the coverage it contributed."""

    outcome: InstanceOutcome
    coverage: InstanceCoverage
    hits: set[str]

    __slots__ = ("outcome", "coverage", "hits")

    @property
    def is_ok(self) -> bool:
        return isinstance(self.outcome.result, Ok)


class Stream:
    """Instances of one schema: the root schema, or the request or response of an operation."""

    __slots__ = ("generator", "canon_path", "operation_key", "accepted_kind", "slots")

    def __init__(
        self,
        generator: Generator,
        *,
        canon_path: str,
        operation_key: str | None = None,
        accepted_kind: TargetKind | None = None,
    ) -> None:
        self.generator = generator
        self.canon_path = canon_path
        self.operation_key = operation_key
        self.accepted_kind = accepted_kind
        self.slots: list[Slot] = []

    def __repr__(self) -> str:
        return f"Stream(canon_path={self.canon_path!r}, slots={len(self.slots)})"

    def owns(self, target: CoverageTarget) -> bool:
        if target.operation_key != self.operation_key:
            return False
        return self.operation_key is None or schema_scope(target) == self.canon_path

    def produce(self, *, path: str = ROOT_PATH, hints: list[CoverageHint] | None = None) -> tuple[InstanceOutcome, InstanceCoverage]:
        coverage = InstanceCoverage()
        outcome = self.generator.generate_instance(path=path, hints=hints, coverage=coverage)
        if isinstance(outcome.result, Ok) and self.accepted_kind is not None:
            coverage.record(self.accepted_kind, self.canon_path, {}, self.operation_key)
        return outcome, coverage

    @property
    def batch(self) -> GenerationBatch:
        return GenerationBatch([slot.outcome.result for slot in self.slots], self.generator.diagnostics)


@dataclass
class CoverageOutcome:
    batch: GenerationBatch
    operations: dict[str, dict[str, GenerationBatch]]
    report: CoverageReport

    __slots__ = ("batch", "operations", "report")


class CoverageRun:
    __slots__ = (
        "schema",
        "config",
        "operations",
        "diagnostics",
        "state",
        "planner",
        "accumulator",
        "streams",
        "_enum_state",
        "_unsatisfied",
        "_notes",
        "_instances",
    )

    def __init__(
        self,
        schema: JsonSchema,
        config: FoundryConfig | None = None,
        *,
        operations: list[Operation] | None = None,
        enum_state: EnumState | None = None,
        diagnostics: DiagnosticsCollector | None = None,
    ) -> None:
        self.schema = schema
        self.config = config or FoundryConfig()
        if not self.config.coverage.is_enabled:
            raise InternalError("Coverage runs require `coverage.mode` to be `measure` or `guided`")
        self.operations = sorted(operations or [], key=lambda operation: operation.key)
        self.diagnostics = DiagnosticsCollector() if diagnostics is None else diagnostics
        self.state = RunState.IDLE
        self.planner = CoveragePlanner(self.config.coverage.planner)
        self.accumulator: CoverageAccumulator | None = None
        self.streams: list[Stream] = []
        self._enum_state = enum_state
        # Hint key -> (target id, record)
        self._unsatisfied: dict[tuple[str, str, str], tuple[str, UnsatisfiedHint]] = {}
        self._notes: list[str] = []
        self._instances = 0

    def _transition(self, state: RunState) -> None:
        if TRANSITIONS.get(self.state) != state:
            raise InternalError(f"Invalid coverage run transition: {self.state.value} -> {state.value}")
        logger.debug("Coverage run: %s -> %s", self.state.value, state.value)
        self.state = state

    def run(self) -> CoverageOutcome:
        started_at = datetime.now(timezone.utc).isoformat()
        start = time.monotonic()
        self.collect()
        self.observe()
        report = self.report(started_at=started_at, duration_ms=int((time.monotonic() - start) * 1000))
        operations = {}
        for stream in self.streams[1:]:
            assert stream.operation_key is not None
            part = "request" if stream.accepted_kind == TargetKind.OP_REQUEST_COVERED else "response"
            operations.setdefault(stream.operation_key, {})[part] = stream.batch
        return CoverageOutcome(batch=self.streams[0].batch, operations=operations, report=report)

    def collect(self) -> list[CoverageTarget]:
        self._transition(RunState.COLLECTING)
        coverage = self.config.coverage
        targets = collect_targets(self.schema, dimensions=coverage.dimensions_enabled, operations=self.operations)
        self.accumulator = CoverageAccumulator(targets)
        self.streams = [self._stream(self.schema, canon_path=ROOT_POINTER)]
        for operation in self.operations:
            for part, kind, schema in (
                ("request", TargetKind.OP_REQUEST_COVERED, operation.request),
                ("response", TargetKind.OP_RESPONSE_COVERED, operation.response),
            ):
                if schema is not None:
                    self.streams.append(
                        self._stream(
                            schema, canon_path=operation.canon_path(part), operation_key=operation.key, accepted_kind=kind
                        )
                    )
        logger.debug("Collected %d targets over %d streams", len(targets), len(self.streams))
        return targets

    def _stream(
        self,
        schema: JsonSchema,
        *,
        canon_path: str,
        operation_key: str | None = None,
        accepted_kind: TargetKind | None = None,
    ) -> Stream:
        generator = Generator(
            schema,
            self.config,
            enum_state=self._enum_state,
            diagnostics=self.diagnostics,
            operation_key=operation_key,
            canon_path=canon_path,
        )
        return Stream(generator, canon_path=canon_path, operation_key=operation_key, accepted_kind=accepted_kind)

    def observe(self) -> None:
        self._transition(RunState.OBSERVING)
        assert self.accumulator is not None
        count = self.config.generate.count
        for stream in self.streams:
            for _ in range(count):
                outcome, coverage = stream.produce()
                self._instances += 1
                self._settle_unreachable(coverage)
                hits = self.accumulator.matching(coverage) if isinstance(outcome.result, Ok) else set()
                stream.slots.append(Slot(outcome, coverage, hits))
        if self.config.coverage.mode == CoverageMode.GUIDED:
            self._guide()
        for stream in self.streams:
            for slot in stream.slots:
                if slot.is_ok:
                    self.accumulator.commit(slot.coverage)

    def _settle_unreachable(self, coverage: InstanceCoverage) -> None:
        assert self.accumulator is not None
        for target in self.accumulator.apply_unreachable(coverage):
            self.diagnostics.emit(
                DiagnosticCode.TARGET_UNREACHABLE,
                target.canon_path,
                details={"targetId": target.id, "kind": target.kind.value, "reason": target.meta["unreachableReason"]},
            )

    def _guide(self) -> None:
        assert self.accumulator is not None
        covered: set[str] = set()
        replaced = 0
        for stream in self.streams:
            for idx, slot in enumerate(stream.slots):
                if slot.is_ok and not slot.hits <= covered:
                    covered |= slot.hits
                    continue
                candidates = [
                    target
                    for target in self.accumulator.targets
                    if target.id not in covered and target.status == TargetStatus.ACTIVE and stream.owns(target)
                ]
                hints, planned = self.planner.plan_instance(candidates) if candidates else ([], [])
                if not planned:
                    covered |= slot.hits
                    continue
                outcome, coverage = stream.produce(path=guided_path(idx), hints=hints)
                self._instances += 1
                self._settle_unreachable(coverage)
                hits = self.accumulator.matching(coverage) if isinstance(outcome.result, Ok) else set()
                self._track_hints(outcome, hints, hits)
                if isinstance(outcome.result, Ok) and (not slot.is_ok or not hits <= covered):
                    stream.slots[idx] = Slot(outcome, coverage, hits)
                    replaced += 1
                    covered |= hits
                else:
                    covered |= slot.hits
        if replaced:
            self._notes.append(f"guided: regenerated {replaced} redundant instances")
        logger.debug("Guided pass replaced %d instances", replaced)

    def _track_hints(self, outcome: InstanceOutcome, hints: list[CoverageHint], hits: set[str]) -> None:
        consumed = {hint.key for hint in outcome.hints.consumed} if outcome.hints is not None else set()
        for hint in hints:
            if hint.target_id is None or hint.target_id in hits or hint.key in self._unsatisfied:
                continue
            reason, detail = self._reason(outcome, hint, consumed)
            self._unsatisfied[hint.key] = (hint.target_id, UnsatisfiedHint.from_hint(hint, reason, detail))

    def _reason(
        self, outcome: InstanceOutcome, hint: CoverageHint, consumed: set[tuple[str, str, str]]
    ) -> tuple[UnsatisfiedReason, str]:
        if isinstance(outcome.result, Err):
            error = outcome.result.err()
            if hint.kind == HintKind.PREFER_BRANCH and error.is_unsatisfiable:
                return UnsatisfiedReason.UNREACHABLE_BRANCH, error.message
            return UnsatisfiedReason.CONFLICTING_CONSTRAINTS, error.message
        if outcome.repaired:
            return UnsatisfiedReason.REPAIR_MODIFIED_VALUE, f"Accepted after {outcome.attempts} attempts"
        if hint.key not in consumed:
            return UnsatisfiedReason.UNKNOWN, "The hinted location was not generated"
        return UnsatisfiedReason.UNKNOWN, "The hinted value did not produce the target event"

    def unsatisfied_hints(self) -> list[UnsatisfiedHint]:
        """Hints whose target stayed uncovered, including targets the planner never got to."""
        assert self.accumulator is not None
        hit = self.accumulator.hit_ids
        unsatisfied = {
            key: hint for key, (target_id, hint) in self._unsatisfied.items() if target_id not in hit
        }
        for target in self.accumulator.targets:
            if target.id not in self.planner.capped_ids or target.id in hit:
                continue
            if target.status != TargetStatus.ACTIVE:
                continue
            direct = direct_hint(target)
            if direct is not None and direct.key not in unsatisfied:
                unsatisfied[direct.key] = UnsatisfiedHint.from_hint(
                    direct, UnsatisfiedReason.PLANNER_CAP, "Left out of planning by a planner cap"
                )
        return sorted(unsatisfied.values(), key=lambda hint: hint.sort_key)

    def report(self, *, started_at: str, duration_ms: int) -> CoverageReport:
        self._transition(RunState.REPORTING)
        assert self.accumulator is not None
        coverage = self.config.coverage
        targets = self.accumulator.targets
        metrics = evaluate(
            targets,
            dimensions_enabled=coverage.dimensions_enabled,
            exclude_unreachable=coverage.exclude_unreachable,
            min_coverage=coverage.min_coverage,
        )
        limit = SUMMARY_UNCOVERED_LIMIT if coverage.report_mode == ReportMode.SUMMARY else None
        uncovered = uncovered_targets(
            targets,
            dimension_priority=coverage.planner.dimension_priority,
            exclude_unreachable=coverage.exclude_unreachable,
            limit=limit,
        )
        caps_hit = self.planner.caps_hit
        for hit in caps_hit:
            canon_path = hit.scope_key if hit.scope_key.startswith(ROOT_POINTER) else ROOT_POINTER
            self.diagnostics.emit(DiagnosticCode.PLANNER_CAP_HIT, canon_path, details=hit.as_dict())
        notes = list(self._notes)
        if limit is not None and metrics.total - metrics.covered > limit:
            notes.append(f"summary: uncovered targets truncated to {limit}")
        seed = self.config.effective_seed
        report = CoverageReport(
            report_mode=coverage.report_mode,
            coverage_mode=coverage.mode,
            seed=seed,
            master_seed=self.config.seed if self.config.seed is not None else seed,
            max_instances=self.config.generate.count * len(self.streams),
            actual_instances=self._instances,
            dimensions_enabled=list(coverage.dimensions_enabled),
            exclude_unreachable=coverage.exclude_unreachable,
            started_at=started_at,
            duration_ms=duration_ms,
            metrics=metrics,
            targets=targets,
            uncovered_targets=uncovered,
            unsatisfied_hints=self.unsatisfied_hints(),
            planner_caps_hit=caps_hit,
            notes=notes,
        )
        self._transition(RunState.DONE)
        logger.debug("Coverage run finished: %.3f overall, %s", metrics.overall, metrics.coverage_status.value)
        return report


def run_coverage(
    schema: JsonSchema,
    config: FoundryConfig | None = None,
    *,
    operations: list[Operation] | None = None,
    enum_state: EnumState | None = None,
    diagnostics: DiagnosticsCollector | None = None,
) -> CoverageOutcome:
    return CoverageRun(schema, config, operations=operations, enum_state=enum_state, diagnostics=diagnostics).run()
