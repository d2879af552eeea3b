from __future__ import annotations

from typing import Any

JsonSchemaObject = dict[str, Any]
JsonSchema = JsonSchemaObject | bool

ANY_TYPE = ["null", "boolean", "number", "string", "array", "object"]
ALL_TYPES = ["null", "boolean", "integer", "number", "string", "array", "object"]


def get_type(schema: JsonSchema) -> list[str]:
    """Declared types of a schema, in declaration order and without duplicates."""
    if isinstance(schema, bool):
        return list(ANY_TYPE)
    ty = schema.get("type", ANY_TYPE)
    if isinstance(ty, str):
        return [ty]
    if ty is ANY_TYPE:
        return list(ty)
    if not isinstance(ty, list):
        return []
    types: list[str] = []
    for item in ty:
        if item in ALL_TYPES and item not in types:
            types.append(item)
    return types


def to_json_type_name(v: Any) -> str:
    if v is None:
        return "null"
    if isinstance(v, bool):
        return "boolean"
    if isinstance(v, dict):
        return "object"
    if isinstance(v, list):
        return "array"
    if isinstance(v, (int, float)):
        return "number"
    if isinstance(v, str):
        return "string"
    return type(v).__name__


def is_of_type(value: Any, ty: str) -> bool:
    """Check a value against a single JSON Schema type name."""
    if ty == "null":
        return value is None
    if ty == "boolean":
        return isinstance(value, bool)
    if ty == "integer":
        if isinstance(value, bool):
            return False
        return isinstance(value, int) or (isinstance(value, float) and value.is_integer())
    if ty == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if ty == "string":
        return isinstance(value, str)
    if ty == "array":
        return isinstance(value, list)
    if ty == "object":
        return isinstance(value, dict)
    return False


def matches_type(value: Any, schema: JsonSchemaObject) -> bool:
    if "type" not in schema:
        return True
    return any(is_of_type(value, ty) for ty in get_type(schema))
