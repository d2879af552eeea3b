"""Coverage events emitted by generators and their accumulation into target hits."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from jsonfoundry.core.jsonschema.pointers import ROOT_POINTER, append_pointer, split_pointer
from jsonfoundry.coverage.targets import (
    CoverageDimension,
    CoverageTarget,
    TargetKind,
    TargetStatus,
    match_key,
    sort_targets,
)

logger = logging.getLogger(__name__)

BRANCH_TARGET_KINDS = {"oneOf": TargetKind.ONEOF_BRANCH, "anyOf": TargetKind.ANYOF_BRANCH}


@dataclass
class CoverageEvent:
    dimension: CoverageDimension
    kind: TargetKind
    canon_path: str
    operation_key: str | None
    params: dict[str, Any]

    __slots__ = ("dimension", "kind", "canon_path", "operation_key", "params")

    @property
    def key(self) -> str:
        return match_key(self.dimension, self.kind, self.canon_path, self.operation_key, self.params)


@dataclass
class UnreachableMark:
    canon_path: str
    operation_key: str | None
    constraint: str

    __slots__ = ("canon_path", "operation_key", "constraint")


class InstanceCoverage:
    """Events of one generated instance.

    Failed attempts are rolled back to a checkpoint; unreachable marks survive rollbacks.
    """

    __slots__ = ("events", "unreachable")

    def __init__(self) -> None:
        self.events: list[CoverageEvent] = []
        self.unreachable: list[UnreachableMark] = []

    def __len__(self) -> int:
        return len(self.events)

    def record(self, kind: TargetKind, canon_path: str, params: dict[str, Any], operation_key: str | None) -> None:
        self.events.append(CoverageEvent(kind.dimension, kind, canon_path, operation_key, params))

    def checkpoint(self) -> int:
        return len(self.events)

    def rollback(self, mark: int) -> None:
        del self.events[mark:]

    def mark_unreachable(self, canon_path: str, operation_key: str | None, constraint: str) -> None:
        mark = UnreachableMark(canon_path, operation_key, constraint)
        if mark not in self.unreachable:
            self.unreachable.append(mark)

    def keys(self) -> set[str]:
        return {event.key for event in self.events}


class CoverageAccumulator:
    """Hit state of a fixed set of targets across a run."""

    __slots__ = ("_targets", "_by_key", "_by_path")

    def __init__(self, targets: list[CoverageTarget]) -> None:
        self._targets = sort_targets(targets)
        self._by_key: dict[str, CoverageTarget] = {}
        self._by_path: dict[tuple[str, str | None], list[CoverageTarget]] = {}
        for target in self._targets:
            self._by_key.setdefault(target.key, target)
            self._by_path.setdefault((target.canon_path, target.operation_key), []).append(target)

    @property
    def targets(self) -> list[CoverageTarget]:
        return list(self._targets)

    def get(self, key: str) -> CoverageTarget | None:
        return self._by_key.get(key)

    def matching(self, coverage: InstanceCoverage) -> set[str]:
        """Ids of the targets the instance's events hit."""
        return {self._by_key[key].id for key in coverage.keys() if key in self._by_key}

    def commit(self, coverage: InstanceCoverage) -> set[str]:
        """Mark the instance's hits and return the ids hit for the first time."""
        fresh = set()
        for key in coverage.keys():
            target = self._by_key.get(key)
            if target is None:
                continue
            if not target.hit:
                fresh.add(target.id)
            target.hit = True
            if target.status == TargetStatus.UNREACHABLE:
                target.status = TargetStatus.ACTIVE
                target.meta.pop("unreachableReason", None)
        return fresh

    def apply_unreachable(self, coverage: InstanceCoverage) -> list[CoverageTarget]:
        """Mark targets owned by unsatisfiable locations, returning the ones that changed."""
        changed = []
        for mark in coverage.unreachable:
            for target in self._owned_by(mark.canon_path, mark.operation_key):
                if target.hit or target.status != TargetStatus.ACTIVE:
                    continue
                target.status = TargetStatus.UNREACHABLE
                target.meta["unreachableReason"] = mark.constraint
                changed.append(target)
        if changed:
            logger.debug("Marked %d targets unreachable", len(changed))
        return changed

    def mark_unreachable(self, target: CoverageTarget, reason: str) -> None:
        if not target.hit and target.status == TargetStatus.ACTIVE:
            target.status = TargetStatus.UNREACHABLE
            target.meta["unreachableReason"] = reason

    def _owned_by(self, canon_path: str, operation_key: str | None) -> list[CoverageTarget]:
        owned = [
            target
            for target in self._targets
            if target.operation_key == operation_key
            and (target.canon_path == canon_path or target.canon_path.startswith(canon_path + "/"))
        ]
        # Branch and property targets live on the parent location
        tokens = split_pointer(canon_path)
        if len(tokens) >= 2:
            parent = append_pointer(ROOT_POINTER, *tokens[:-2])
            keyword, last = tokens[-2], tokens[-1]
            for target in self._by_path.get((parent, operation_key), []):
                if keyword in BRANCH_TARGET_KINDS and target.kind == BRANCH_TARGET_KINDS[keyword]:
                    if str(target.params.get("branchIndex")) == last:
                        owned.append(target)
                elif keyword == "properties" and target.kind == TargetKind.PROPERTY_PRESENT:
                    if target.params.get("propertyName") == last:
                        owned.append(target)
        return owned

    def is_hit(self, target_id: str) -> bool:
        return any(target.id == target_id and target.hit for target in self._targets)

    @property
    def hit_ids(self) -> set[str]:
        return {target.id for target in self._targets if target.hit}

    @property
    def uncovered(self) -> list[CoverageTarget]:
        return [target for target in self._targets if target.is_counted and not target.hit]

