"""Measurable units of schema coverage."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from jsonfoundry.core.canonical import canonical_json, struct_hash

ENGINE_MAJOR = 1
REPORT_MAJOR = 1
TARGET_ID_PREFIX = f"cov:{ENGINE_MAJOR}:{REPORT_MAJOR}:"
TARGET_ID_DIGEST_LENGTH = 16


class CoverageMode(str, Enum):
    OFF = "off"
    # Observe what generation hits without steering it
    MEASURE = "measure"
    # Regenerate redundant instances with hints towards uncovered targets
    GUIDED = "guided"


class ReportMode(str, Enum):
    FULL = "full"
    SUMMARY = "summary"


class CoverageDimension(str, Enum):
    STRUCTURE = "structure"
    BRANCHES = "branches"
    ENUM = "enum"
    BOUNDARIES = "boundaries"
    OPERATIONS = "operations"

    @property
    def order(self) -> int:
        return DIMENSION_ORDER.index(self)


DIMENSION_ORDER = list(CoverageDimension)
DEFAULT_DIMENSIONS = [CoverageDimension.STRUCTURE, CoverageDimension.BRANCHES, CoverageDimension.ENUM]


class TargetKind(str, Enum):
    SCHEMA_NODE = "SCHEMA_NODE"
    PROPERTY_PRESENT = "PROPERTY_PRESENT"
    ONEOF_BRANCH = "ONEOF_BRANCH"
    ANYOF_BRANCH = "ANYOF_BRANCH"
    ENUM_VALUE_HIT = "ENUM_VALUE_HIT"
    NUMERIC_MIN_HIT = "NUMERIC_MIN_HIT"
    NUMERIC_MAX_HIT = "NUMERIC_MAX_HIT"
    STRING_MIN_LENGTH_HIT = "STRING_MIN_LENGTH_HIT"
    STRING_MAX_LENGTH_HIT = "STRING_MAX_LENGTH_HIT"
    ARRAY_MIN_ITEMS_HIT = "ARRAY_MIN_ITEMS_HIT"
    ARRAY_MAX_ITEMS_HIT = "ARRAY_MAX_ITEMS_HIT"
    OP_REQUEST_COVERED = "OP_REQUEST_COVERED"
    OP_RESPONSE_COVERED = "OP_RESPONSE_COVERED"

    @property
    def dimension(self) -> CoverageDimension:
        return KIND_DIMENSIONS[self]


KIND_DIMENSIONS = {
    TargetKind.SCHEMA_NODE: CoverageDimension.STRUCTURE,
    TargetKind.PROPERTY_PRESENT: CoverageDimension.STRUCTURE,
    TargetKind.ONEOF_BRANCH: CoverageDimension.BRANCHES,
    TargetKind.ANYOF_BRANCH: CoverageDimension.BRANCHES,
    TargetKind.ENUM_VALUE_HIT: CoverageDimension.ENUM,
    TargetKind.NUMERIC_MIN_HIT: CoverageDimension.BOUNDARIES,
    TargetKind.NUMERIC_MAX_HIT: CoverageDimension.BOUNDARIES,
    TargetKind.STRING_MIN_LENGTH_HIT: CoverageDimension.BOUNDARIES,
    TargetKind.STRING_MAX_LENGTH_HIT: CoverageDimension.BOUNDARIES,
    TargetKind.ARRAY_MIN_ITEMS_HIT: CoverageDimension.BOUNDARIES,
    TargetKind.ARRAY_MAX_ITEMS_HIT: CoverageDimension.BOUNDARIES,
    TargetKind.OP_REQUEST_COVERED: CoverageDimension.OPERATIONS,
    TargetKind.OP_RESPONSE_COVERED: CoverageDimension.OPERATIONS,
}


class TargetStatus(str, Enum):
    ACTIVE = "active"
    # Proven impossible to hit, e.g. an unsatisfiable branch
    UNREACHABLE = "unreachable"
    # Reported for information only, never counted
    DEPRECATED = "deprecated"


def params_key(params: dict[str, Any]) -> str:
    return canonical_json(params) if params else ""


def compute_target_id(
    dimension: CoverageDimension,
    kind: TargetKind,
    canon_path: str,
    operation_key: str | None,
    params: dict[str, Any],
) -> str:
    digest = struct_hash(
        {
            "dimension": dimension.value,
            "kind": kind.value,
            "canonPath": canon_path,
            "operationKey": operation_key,
            "params": params,
        }
    )
    return TARGET_ID_PREFIX + digest[:TARGET_ID_DIGEST_LENGTH]


def match_key(
    dimension: CoverageDimension, kind: TargetKind, canon_path: str, operation_key: str | None, params: dict[str, Any]
) -> str:
    return "|".join((dimension.value, kind.value, canon_path, operation_key or "", params_key(params)))


@dataclass
class CoverageTarget:
    id: str
    dimension: CoverageDimension
    kind: TargetKind
    canon_path: str
    operation_key: str | None
    params: dict[str, Any]
    status: TargetStatus
    meta: dict[str, Any]
    hit: bool

    __slots__ = ("id", "dimension", "kind", "canon_path", "operation_key", "params", "status", "meta", "hit")

    @classmethod
    def create(
        cls,
        kind: TargetKind,
        canon_path: str,
        *,
        operation_key: str | None = None,
        params: dict[str, Any] | None = None,
        meta: dict[str, Any] | None = None,
    ) -> CoverageTarget:
        params = params or {}
        dimension = kind.dimension
        return cls(
            id=compute_target_id(dimension, kind, canon_path, operation_key, params),
            dimension=dimension,
            kind=kind,
            canon_path=canon_path,
            operation_key=operation_key,
            params=params,
            status=TargetStatus.ACTIVE,
            meta=meta or {},
            hit=False,
        )

    @property
    def key(self) -> str:
        return match_key(self.dimension, self.kind, self.canon_path, self.operation_key, self.params)

    @property
    def sort_key(self) -> tuple:
        return (
            self.dimension.order,
            self.canon_path,
            self.kind.value,
            self.operation_key or "",
            params_key(self.params),
            self.id,
        )

    @property
    def is_counted(self) -> bool:
        return self.status == TargetStatus.ACTIVE

    def as_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "dimension": self.dimension.value,
            "kind": self.kind.value,
            "canonPath": self.canon_path,
            "status": self.status.value,
            "hit": self.hit,
        }
        if self.operation_key is not None:
            data["operationKey"] = self.operation_key
        if self.params:
            data["params"] = self.params
        if self.meta:
            data["meta"] = self.meta
        return data


def sort_targets(targets: list[CoverageTarget]) -> list[CoverageTarget]:
    return sorted(targets, key=lambda target: target.sort_key)
