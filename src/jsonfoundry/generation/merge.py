"""Shallow intersection of JSON schemas, used for `allOf`, branch siblings and `$ref` siblings."""

from __future__ import annotations

import math
from typing import Any

from jsonfoundry.core.canonical import json_contains, json_equal
from jsonfoundry.core.jsonschema.references import resolve_local_reference
from jsonfoundry.core.jsonschema.types import ALL_TYPES, JsonSchema, JsonSchemaObject
from jsonfoundry.core.numbers import is_finite_number, is_multiple_of_strict
from jsonfoundry.core.transforms import merge_unique

LOWER_BOUNDS = ("minimum", "exclusiveMinimum", "minLength", "minItems", "minProperties", "minContains")
UPPER_BOUNDS = ("maximum", "exclusiveMaximum", "maxLength", "maxItems", "maxProperties", "maxContains")
SUBSCHEMA_MAPS = ("properties", "patternProperties", "$defs", "definitions", "dependentSchemas")
SUBSCHEMAS = ("items", "additionalProperties", "additionalItems", "contains", "propertyNames", "unevaluatedProperties")
COMPOSITION_KEYWORDS = ("oneOf", "anyOf", "allOf")
MAX_REFERENCE_HOPS = 32


def _as_types(value: Any) -> list[Any]:
    if isinstance(value, str):
        return [value]
    return list(value) if isinstance(value, list) else []


def _merge_types(left: Any, right: Any) -> list[str]:
    left_types = _as_types(left)
    right_types = _as_types(right)
    output = []
    for ty in left_types:
        if ty in right_types:
            output.append(ty)
        elif ty == "number" and "integer" in right_types:
            output.append("integer")
        elif ty == "integer" and "number" in right_types:
            output.append("integer")
    return [ty for ty in ALL_TYPES if ty in output]


def _merge_multiple_of(left: Any, right: Any) -> Any:
    if isinstance(left, int) and isinstance(right, int):
        return left * right // math.gcd(left, right)
    if is_finite_number(left) and is_finite_number(right):
        if is_multiple_of_strict(left, right):
            return left
        if is_multiple_of_strict(right, left):
            return right
    return left


def merge_schemas(left: JsonSchema, right: JsonSchema) -> JsonSchema:
    """Schema accepting values valid against both inputs, as far as a shallow merge can express it."""
    if left is False or right is False:
        return False
    if left is True or left == {}:
        return right
    if right is True or right == {}:
        return left
    assert isinstance(left, dict) and isinstance(right, dict)
    merged: JsonSchemaObject = dict(left)
    for key, value in right.items():
        if key not in merged:
            merged[key] = value
            continue
        current = merged[key]
        if key == "type":
            merged[key] = _merge_types(current, value)
        elif key in LOWER_BOUNDS and is_finite_number(current) and is_finite_number(value):
            merged[key] = max(current, value)
        elif key in UPPER_BOUNDS and is_finite_number(current) and is_finite_number(value):
            merged[key] = min(current, value)
        elif key == "multipleOf":
            merged[key] = _merge_multiple_of(current, value)
        elif key == "required" and isinstance(current, list) and isinstance(value, list):
            merged[key] = merge_unique(current, value)
        elif key == "enum" and isinstance(current, list) and isinstance(value, list):
            merged[key] = [item for item in current if json_contains(value, item)]
        elif key == "const" and not json_equal(current, value):
            # Contradicting constants leave nothing to choose from
            del merged["const"]
            merged["enum"] = []
        elif key == "uniqueItems":
            merged[key] = bool(current) or bool(value)
        elif key in SUBSCHEMA_MAPS and isinstance(current, dict) and isinstance(value, dict):
            combined = dict(current)
            for name, subschema in value.items():
                combined[name] = merge_schemas(combined[name], subschema) if name in combined else subschema
            merged[key] = combined
        elif key in SUBSCHEMAS and isinstance(current, (dict, bool)) and isinstance(value, (dict, bool)):
            merged[key] = merge_schemas(current, value)
        elif key == "allOf" and isinstance(current, list) and isinstance(value, list):
            merged[key] = current + value
        # Otherwise the left-hand value wins, the oracle catches the rest
    return merged


def resolve_reference_chain(root: JsonSchema, schema: JsonSchemaObject) -> tuple[str, JsonSchema] | None:
    """Follow `$ref` until a schema without one is reached, merging sibling keywords on the way."""
    siblings: JsonSchemaObject = {}
    current: JsonSchema = schema
    pointer = None
    for _ in range(MAX_REFERENCE_HOPS):
        if not isinstance(current, dict) or "$ref" not in current:
            break
        resolved = resolve_local_reference(root, current["$ref"])
        if resolved is None:
            return None
        siblings = merge_schemas({key: value for key, value in current.items() if key != "$ref"}, siblings)  # type: ignore[assignment]
        pointer, current = resolved
    else:
        return None
    if pointer is None:
        return None
    if siblings and siblings is not True:
        current = merge_schemas(current, siblings)
    return pointer, current


def flatten_all_of(root: JsonSchema, schema: JsonSchemaObject) -> JsonSchema:
    """Merge `allOf` subschemas (resolving local references) into their parent."""
    if "allOf" not in schema:
        return schema
    merged: JsonSchema = {key: value for key, value in schema.items() if key != "allOf"}
    for subschema in schema["allOf"]:
        if isinstance(subschema, dict) and "$ref" in subschema:
            resolved = resolve_reference_chain(root, subschema)
            if resolved is not None:
                subschema = resolved[1]
        if isinstance(subschema, dict) and "allOf" in subschema:
            subschema = flatten_all_of(root, subschema)
        merged = merge_schemas(merged, subschema)
        if merged is False:
            return False
    return merged
