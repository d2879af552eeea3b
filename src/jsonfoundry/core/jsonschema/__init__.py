from .pointers import ROOT_PATH, ROOT_POINTER, append_pointer, resolve_pointer
from .types import JsonSchema, JsonSchemaObject, get_type, to_json_type_name
from .validation import Validator, check_schema

__all__ = [
    "JsonSchema",
    "JsonSchemaObject",
    "ROOT_PATH",
    "ROOT_POINTER",
    "Validator",
    "append_pointer",
    "check_schema",
    "get_type",
    "resolve_pointer",
    "to_json_type_name",
]
