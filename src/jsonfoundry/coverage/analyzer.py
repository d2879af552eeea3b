"""Static pass over a schema collecting the coverage targets generation can hit.

The walk mirrors how generation lays out schema locations: `allOf` is merged into its
parent, `oneOf` / `anyOf` branches carry the parent's sibling keywords, and `enum` / `const`
take precedence over everything else at their location.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from jsonfoundry.core.jsonschema.pointers import ROOT_POINTER, append_pointer
from jsonfoundry.core.jsonschema.types import JsonSchema
from jsonfoundry.coverage.targets import (
    CoverageDimension,
    CoverageTarget,
    TargetKind,
    TargetStatus,
    sort_targets,
)
from jsonfoundry.generation.dispatch import SchemaKind, classify
from jsonfoundry.generation.enums import enum_members
from jsonfoundry.generation.generators.array import ItemLayout
from jsonfoundry.generation.generators.composition import branch_keyword
from jsonfoundry.generation.generators.enumeration import admissible_indices
from jsonfoundry.generation.merge import flatten_all_of, merge_schemas

logger = logging.getLogger(__name__)

DEFINITION_CONTAINERS = ("$defs", "definitions")
BRANCH_KINDS = {"oneOf": TargetKind.ONEOF_BRANCH, "anyOf": TargetKind.ANYOF_BRANCH}
BOUNDARY_KEYWORDS = {
    SchemaKind.INTEGER: (
        (("minimum", "exclusiveMinimum"), TargetKind.NUMERIC_MIN_HIT),
        (("maximum", "exclusiveMaximum"), TargetKind.NUMERIC_MAX_HIT),
    ),
    SchemaKind.NUMBER: (
        (("minimum", "exclusiveMinimum"), TargetKind.NUMERIC_MIN_HIT),
        (("maximum", "exclusiveMaximum"), TargetKind.NUMERIC_MAX_HIT),
    ),
    SchemaKind.STRING: (
        (("minLength",), TargetKind.STRING_MIN_LENGTH_HIT),
        (("maxLength",), TargetKind.STRING_MAX_LENGTH_HIT),
    ),
    SchemaKind.ARRAY: (
        (("minItems",), TargetKind.ARRAY_MIN_ITEMS_HIT),
        (("maxItems",), TargetKind.ARRAY_MAX_ITEMS_HIT),
    ),
}


@dataclass
class Operation:
    """Request and response schemas of one API operation, extracted by the caller."""

    key: str
    request: JsonSchema | None
    response: JsonSchema | None

    __slots__ = ("key", "request", "response")

    def canon_path(self, part: str) -> str:
        return append_pointer(ROOT_POINTER, "operations", self.key, part)


class SchemaAnalyzer:
    __slots__ = ("root", "operation_key", "dimensions", "_targets", "_visited")

    def __init__(
        self,
        root: JsonSchema,
        *,
        dimensions: list[CoverageDimension],
        operation_key: str | None = None,
    ) -> None:
        self.root = root
        self.operation_key = operation_key
        self.dimensions = set(dimensions)
        self._targets: dict[str, CoverageTarget] = {}
        self._visited: set[str] = set()

    def analyze(self, canon_path: str = ROOT_POINTER) -> list[CoverageTarget]:
        self._visit(self.root, canon_path)
        return sort_targets(list(self._targets.values()))

    def _add(
        self, kind: TargetKind, canon_path: str, params: dict[str, Any] | None = None, **meta: Any
    ) -> CoverageTarget | None:
        if kind.dimension not in self.dimensions:
            return None
        target = CoverageTarget.create(
            kind, canon_path, operation_key=self.operation_key, params=params, meta=dict(meta)
        )
        return self._targets.setdefault(target.key, target)

    def _visit(self, schema: JsonSchema, canon_path: str) -> None:
        if canon_path in self._visited or not isinstance(schema, (dict, bool)):
            return
        self._visited.add(canon_path)
        if schema is False:
            return
        self._add(TargetKind.SCHEMA_NODE, canon_path)
        if schema is True:
            return
        for container in DEFINITION_CONTAINERS:
            definitions = schema.get(container)
            if isinstance(definitions, dict):
                for name, subschema in definitions.items():
                    self._visit(subschema, append_pointer(canon_path, container, name))
        self._visit_location(schema, canon_path)

    def _visit_location(self, schema: JsonSchema, canon_path: str) -> None:
        kind = classify(schema)
        if kind in (SchemaKind.REF, SchemaKind.CONST, SchemaKind.NEVER, SchemaKind.ANY, SchemaKind.UNKNOWN):
            # References are covered where their targets live
            return
        assert isinstance(schema, dict)
        if kind == SchemaKind.ENUM:
            self._visit_enum(schema, canon_path)
        elif kind == SchemaKind.COMPOSITION:
            self._visit_composition(schema, canon_path)
        else:
            self._visit_typed(schema, kind, canon_path)

    def _visit_enum(self, schema: dict[str, Any], canon_path: str) -> None:
        admissible = set(admissible_indices(schema))
        for idx, member in enumerate(enum_members(schema)):
            target = self._add(TargetKind.ENUM_VALUE_HIT, canon_path, {"valueIndex": idx}, value=member)
            if target is not None and idx not in admissible:
                target.status = TargetStatus.UNREACHABLE
                target.meta["unreachableReason"] = "enum-constraints"

    def _visit_composition(self, schema: dict[str, Any], canon_path: str) -> None:
        if "allOf" in schema:
            if not isinstance(schema["allOf"], list):
                return
            merged = flatten_all_of(self.root, schema)
            if isinstance(merged, dict):
                self._visit_location(merged, canon_path)
            return
        keyword = branch_keyword(schema)
        if keyword is None:
            return
        siblings = {key: value for key, value in schema.items() if key != keyword}
        for idx, branch in enumerate(schema[keyword]):
            self._add(BRANCH_KINDS[keyword], canon_path, {"branchIndex": idx})
            candidate = merge_schemas(branch, siblings) if siblings else branch
            self._visit(candidate, append_pointer(canon_path, keyword, idx))

    def _visit_typed(self, schema: dict[str, Any], kind: SchemaKind, canon_path: str) -> None:
        for keywords, target_kind in BOUNDARY_KEYWORDS.get(kind, ()):
            if any(keyword in schema for keyword in keywords):
                self._add(target_kind, canon_path)
        if kind == SchemaKind.OBJECT:
            self._visit_object(schema, canon_path)
        elif kind == SchemaKind.ARRAY:
            self._visit_array(schema, canon_path)

    def _visit_object(self, schema: dict[str, Any], canon_path: str) -> None:
        properties = schema.get("properties")
        for name, subschema in (properties if isinstance(properties, dict) else {}).items():
            if subschema is False:
                continue
            self._add(TargetKind.PROPERTY_PRESENT, canon_path, {"propertyName": name})
            self._visit(subschema, append_pointer(canon_path, "properties", name))
        pattern_properties = schema.get("patternProperties")
        for pattern, subschema in (pattern_properties if isinstance(pattern_properties, dict) else {}).items():
            self._visit_optional(subschema, append_pointer(canon_path, "patternProperties", pattern))
        self._visit_optional(schema.get("additionalProperties"), append_pointer(canon_path, "additionalProperties"))

    def _visit_array(self, schema: dict[str, Any], canon_path: str) -> None:
        layout = ItemLayout.from_schema(schema)
        for idx, subschema in enumerate(layout.prefix):
            self._visit(subschema, append_pointer(canon_path, layout.prefix_keyword, idx))
        max_items = schema.get("maxItems")
        if not isinstance(max_items, int):
            max_items = None
        if not layout.is_closed and (max_items is None or max_items > len(layout.prefix)):
            self._visit_optional(layout.rest, append_pointer(canon_path, layout.rest_keyword))
        if not layout.prefix:
            self._visit_optional(schema.get("contains"), append_pointer(canon_path, "contains"))

    def _visit_optional(self, schema: Any, canon_path: str) -> None:
        # Only explicit subschemas produce targets, `true` and absent keywords do not
        if isinstance(schema, dict) and schema:
            self._visit(schema, canon_path)


def collect_targets(
    schema: JsonSchema,
    *,
    dimensions: list[CoverageDimension],
    operations: list[Operation] | None = None,
) -> list[CoverageTarget]:
    """All targets of a schema and of the operations supplied alongside it."""
    targets = SchemaAnalyzer(schema, dimensions=dimensions).analyze()
    for operation in sorted(operations or [], key=lambda operation: operation.key):
        targets.extend(operation_targets(operation, dimensions=dimensions))
    logger.debug("Collected %d coverage targets", len(targets))
    return sort_targets(targets)


def operation_targets(operation: Operation, *, dimensions: list[CoverageDimension]) -> list[CoverageTarget]:
    targets = []
    for part, kind, schema in (
        ("request", TargetKind.OP_REQUEST_COVERED, operation.request),
        ("response", TargetKind.OP_RESPONSE_COVERED, operation.response),
    ):
        if schema is None:
            continue
        canon_path = operation.canon_path(part)
        if CoverageDimension.OPERATIONS in dimensions:
            targets.append(CoverageTarget.create(kind, canon_path, operation_key=operation.key))
        analyzer = SchemaAnalyzer(schema, dimensions=dimensions, operation_key=operation.key)
        targets.extend(analyzer.analyze(canon_path))
    return targets
