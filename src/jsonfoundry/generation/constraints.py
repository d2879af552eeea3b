"""Local re-derivation of JSON Schema constraint checks.

Used by generators to validate their own output and to filter `enum`/`const` candidates.
The strict variant mirrors what an external validator accepts for `multipleOf`; the
tolerant one absorbs floating-point rounding.
"""

from __future__ import annotations

from typing import Any

from jsonfoundry.core.canonical import canonical_json, json_contains, json_equal
from jsonfoundry.core.jsonschema.types import matches_type
from jsonfoundry.core.numbers import is_finite_number, is_multiple_of, is_multiple_of_strict
from jsonfoundry.generation import patterns


def check_numeric(value: Any, schema: dict[str, Any], *, strict: bool) -> bool:
    if not is_finite_number(value):
        return True
    minimum = schema.get("minimum")
    if is_finite_number(minimum) and value < minimum:
        return False
    maximum = schema.get("maximum")
    if is_finite_number(maximum) and value > maximum:
        return False
    # `-0 > 0` is false, so negative zero fails `exclusiveMinimum: 0`
    exclusive_minimum = schema.get("exclusiveMinimum")
    if is_finite_number(exclusive_minimum) and not value > exclusive_minimum:
        return False
    exclusive_maximum = schema.get("exclusiveMaximum")
    if is_finite_number(exclusive_maximum) and not value < exclusive_maximum:
        return False
    step = schema.get("multipleOf")
    if is_finite_number(step) and step > 0:
        check = is_multiple_of_strict if strict else is_multiple_of
        if not check(value, step):
            return False
    return True


def check_string(value: Any, schema: dict[str, Any]) -> bool:
    if not isinstance(value, str):
        return True
    min_length = schema.get("minLength")
    if isinstance(min_length, int) and len(value) < min_length:
        return False
    max_length = schema.get("maxLength")
    if isinstance(max_length, int) and len(value) > max_length:
        return False
    pattern = schema.get("pattern")
    if isinstance(pattern, str):
        try:
            if not patterns.matches(pattern, value):
                return False
        except patterns.PatternError:
            return False
    return True


def check_array(value: Any, schema: dict[str, Any]) -> bool:
    if not isinstance(value, list):
        return True
    min_items = schema.get("minItems")
    if isinstance(min_items, int) and len(value) < min_items:
        return False
    max_items = schema.get("maxItems")
    if isinstance(max_items, int) and len(value) > max_items:
        return False
    if schema.get("uniqueItems") is True:
        keys = [canonical_json(item) for item in value]
        if len(set(keys)) != len(keys):
            return False
    return True


def check_object(value: Any, schema: dict[str, Any]) -> bool:
    if not isinstance(value, dict):
        return True
    min_properties = schema.get("minProperties")
    if isinstance(min_properties, int) and len(value) < min_properties:
        return False
    max_properties = schema.get("maxProperties")
    if isinstance(max_properties, int) and len(value) > max_properties:
        return False
    required = schema.get("required")
    if isinstance(required, list) and any(name not in value for name in required):
        return False
    if schema.get("additionalProperties") is False:
        declared = schema.get("properties", {})
        if any(name not in declared for name in value):
            return False
    return True


def satisfies(value: Any, schema: Any, *, strict: bool = True, check_enum: bool = False) -> bool:
    """Whether `value` passes the local keywords of `schema`, without descending into subschemas."""
    if schema is True:
        return True
    if schema is False or not isinstance(schema, dict):
        return False
    if not matches_type(value, schema):
        return False
    if check_enum:
        if "const" in schema and not json_equal(schema["const"], value):
            return False
        if isinstance(schema.get("enum"), list) and not json_contains(schema["enum"], value):
            return False
    return (
        check_numeric(value, schema, strict=strict)
        and check_string(value, schema)
        and check_array(value, schema)
        and check_object(value, schema)
    )
