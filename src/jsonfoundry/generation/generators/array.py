from __future__ import annotations

from typing import Any

from jsonfoundry.core.canonical import canonical_json
from jsonfoundry.core.errors import GenerationError
from jsonfoundry.core.jsonschema.pointers import append_index, append_pointer
from jsonfoundry.core.jsonschema.types import JsonSchema, get_type
from jsonfoundry.core.result import Err, Ok, Result
from jsonfoundry.coverage.hints import HintKind
from jsonfoundry.coverage.targets import TargetKind
from jsonfoundry.generation.constraints import satisfies
from jsonfoundry.generation.context import GenerationContext
from jsonfoundry.generation.generators.base import ARRAY_PRIORITY, ValueGenerator, normalize_keywords
from jsonfoundry.generation.modes import Scenario

ARRAY_KEYWORDS = ("minItems", "maxItems", "prefixItems")
DEFAULT_MAX_ITEMS = 10
MIN_UNIQUE_ATTEMPTS = 50
UNIQUE_ATTEMPTS_PER_ITEM = 10


class ItemLayout:
    """Where the schema of each array position comes from."""

    __slots__ = ("prefix", "prefix_keyword", "rest", "rest_keyword")

    def __init__(self, prefix: list[JsonSchema], prefix_keyword: str, rest: JsonSchema, rest_keyword: str) -> None:
        self.prefix = prefix
        self.prefix_keyword = prefix_keyword
        self.rest = rest
        self.rest_keyword = rest_keyword

    @classmethod
    def from_schema(cls, schema: dict[str, Any]) -> ItemLayout:
        prefix_items = schema.get("prefixItems")
        items = schema.get("items", True)
        if isinstance(prefix_items, list):
            # 2019-09+ tuples: `items` applies after the prefix
            return cls(prefix_items, "prefixItems", items if not isinstance(items, list) else True, "items")
        if isinstance(items, list):
            # Draft 7 tuples: `additionalItems` applies after the tuple
            return cls(items, "items", schema.get("additionalItems", True), "additionalItems")
        return cls([], "prefixItems", items, "items")

    @property
    def is_closed(self) -> bool:
        return self.rest is False

    def schema_at(self, position: int, canon_path: str) -> tuple[JsonSchema, str]:
        if position < len(self.prefix):
            return self.prefix[position], append_pointer(canon_path, self.prefix_keyword, position)
        return self.rest, append_pointer(canon_path, self.rest_keyword)


def unique_capacity(schema: JsonSchema) -> int | None:
    """How many distinct values a schema admits, when it is small enough to know statically."""
    if schema is False:
        return 0
    if not isinstance(schema, dict):
        return None
    if "const" in schema:
        return 1
    if isinstance(schema.get("enum"), list):
        return len({canonical_json(member) for member in schema["enum"]})
    types = get_type(schema)
    if "type" in schema and set(types) <= {"null", "boolean"}:
        return ("null" in types) + 2 * ("boolean" in types)
    return None


class ArrayGenerator(ValueGenerator):
    name = "array"
    priority = ARRAY_PRIORITY

    def supports(self, schema: JsonSchema) -> bool:
        return isinstance(schema, dict) and "array" in get_type(schema)

    def generate(self, schema: Any, context: GenerationContext) -> Result[Any, GenerationError]:
        normalized = normalize_keywords(schema, ARRAY_KEYWORDS, context)
        if isinstance(normalized, Err):
            return normalized
        schema = normalized.ok()
        min_items = schema.get("minItems", 0)
        max_items = schema.get("maxItems")
        if max_items is not None and min_items > max_items:
            return Err(
                GenerationError.constraint_violation(
                    f"`minItems` ({min_items}) is greater than `maxItems` ({max_items})",
                    constraint="range",
                    path=context.path,
                    canon_path=context.canon_path,
                )
            )
        layout = ItemLayout.from_schema(schema)
        high = max_items if max_items is not None else max(min_items, DEFAULT_MAX_ITEMS)
        if layout.is_closed:
            high = min(high, len(layout.prefix))
            if min_items > high:
                return Err(
                    GenerationError.constraint_violation(
                        f"At least {min_items} items are required, but only {len(layout.prefix)} positions are allowed",
                        constraint="items",
                        path=context.path,
                        canon_path=context.canon_path,
                    )
                )
        unique = schema.get("uniqueItems") is True
        if unique and not layout.prefix:
            capacity = unique_capacity(layout.rest)
            if capacity is not None:
                if min_items > capacity:
                    return Err(
                        GenerationError.constraint_violation(
                            f"`uniqueItems` allows at most {capacity} distinct items, but `minItems` is {min_items}",
                            constraint="uniqueItems",
                            path=context.path,
                            canon_path=context.canon_path,
                            hint="Lower `minItems` or widen the item schema",
                            context={"capacity": capacity, "minItems": min_items},
                        )
                    )
                high = min(high, capacity)
        if context.depth_exhausted:
            return Ok([])

        if layout.is_closed:
            # Closed tuples are generated at full length
            length = high
        else:
            length = self._pick_length(min_items, high, context)
        contains = schema.get("contains") if not layout.prefix else None
        if contains is not None and length == 0 and high > 0:
            length = 1

        items: list[Any] = []
        seen: set[str] = set()
        budget = max(UNIQUE_ATTEMPTS_PER_ITEM * length, MIN_UNIQUE_ATTEMPTS)
        attempts = 0
        while len(items) < length and attempts < budget:
            attempts += 1
            position = len(items)
            if position == 0 and contains is not None:
                subschema, canon_path = contains, append_pointer(context.canon_path, "contains")
            else:
                subschema, canon_path = layout.schema_at(position, context.canon_path)
            mark = context.checkpoint()
            result = context.generate_child(subschema, path=append_index(context.path, position), canon_path=canon_path)
            if isinstance(result, Err):
                context.rollback(mark)
                if position >= min_items and position >= len(layout.prefix) and contains is None:
                    # Optional trailing items can be dropped
                    break
                return result
            value = result.ok()
            if unique:
                key = canonical_json(value)
                if key in seen:
                    context.rollback(mark)
                    continue
                seen.add(key)
            items.append(value)

        if len(items) < min_items:
            return Err(
                GenerationError.constraint_violation(
                    f"Could only produce {len(items)} distinct items out of the required {min_items}",
                    constraint="uniqueItems",
                    path=context.path,
                    canon_path=context.canon_path,
                    hint="The item schema admits too few distinct values",
                    context={"generated": len(items), "minItems": min_items, "attempts": attempts},
                )
            )
        if "minItems" in schema and len(items) == min_items:
            context.record(TargetKind.ARRAY_MIN_ITEMS_HIT)
        if "maxItems" in schema and len(items) == max_items:
            context.record(TargetKind.ARRAY_MAX_ITEMS_HIT)
        return Ok(items)

    def _pick_length(self, low: int, high: int, context: GenerationContext) -> int:
        hint = context.take_hint(HintKind.COVER_BOUNDARY)
        wanted = hint.params.get("bound") if hint is not None else None
        if wanted == "minItems":
            return low
        if wanted == "maxItems":
            return high
        rng = context.rng()
        if context.scenario == Scenario.EDGE:
            return rng.choice([low, high])
        if context.scenario == Scenario.PEAK:
            return rng.next_int((low + high) // 2, high)
        return rng.next_int(low, high)

    def validate(self, value: Any, schema: Any) -> bool:
        if not isinstance(value, list) or not satisfies(value, schema, check_enum=True):
            return False
        layout = ItemLayout.from_schema(schema)
        if layout.is_closed and len(value) > len(layout.prefix):
            return False
        return True

    def get_examples(self, schema: Any) -> list[Any]:
        examples = super().get_examples(schema)
        if examples:
            return examples
        return [[]] if self.validate([], schema) else []
