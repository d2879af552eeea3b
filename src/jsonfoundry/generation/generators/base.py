from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from jsonfoundry.core.errors import GenerationError
from jsonfoundry.core.result import Err, Ok, Result

if TYPE_CHECKING:
    from jsonfoundry.core.jsonschema.types import JsonSchema
    from jsonfoundry.generation.context import GenerationContext

TYPE_PRIORITY = 10
ARRAY_PRIORITY = 15
ENUM_PRIORITY = 20
CONST_PRIORITY = 25

COUNT = "a non-negative integer"
NAMES = "an array of strings"
KEYWORD_SHAPES: dict[str, tuple[str, Any]] = {
    "minLength": (COUNT, int),
    "maxLength": (COUNT, int),
    "minItems": (COUNT, int),
    "maxItems": (COUNT, int),
    "minProperties": (COUNT, int),
    "maxProperties": (COUNT, int),
    "required": (NAMES, list),
    "pattern": ("a string", str),
    "prefixItems": ("an array", list),
    "allOf": ("an array", list),
    "anyOf": ("an array", list),
    "oneOf": ("an array", list),
    "properties": ("an object", dict),
    "patternProperties": ("an object", dict),
    "dependentRequired": ("an object", dict),
    "dependentSchemas": ("an object", dict),
    "dependencies": ("an object", dict),
}


def _normalize_keyword(keyword: str, value: Any) -> tuple[bool, Any]:
    description, expected = KEYWORD_SHAPES[keyword]
    if description == COUNT:
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return isinstance(value, int) and not isinstance(value, bool) and value >= 0, value
    if description == NAMES:
        return isinstance(value, list) and all(isinstance(name, str) for name in value), value
    return isinstance(value, expected), value


def normalize_keywords(
    schema: dict[str, Any], keywords: tuple[str, ...], context: GenerationContext
) -> Result[dict[str, Any], GenerationError]:
    """Check the shape of the keywords a generator reads, turning integral floats into integers.

    Malformed schemas reach generators in lax mode, so a wrong shape is a local failure.
    """
    normalized = schema
    for keyword in keywords:
        if keyword not in schema:
            continue
        is_valid, value = _normalize_keyword(keyword, schema[keyword])
        if not is_valid:
            return Err(
                GenerationError.schema_structure(
                    f"`{keyword}` must be {KEYWORD_SHAPES[keyword][0]}, got {schema[keyword]!r}",
                    constraint=keyword,
                    path=context.path,
                    canon_path=context.canon_path,
                )
            )
        if value is not schema[keyword]:
            if normalized is schema:
                normalized = dict(schema)
            normalized[keyword] = value
    return Ok(normalized)


class ValueGenerator(ABC):
    """Turns one kind of schema into a concrete value."""

    name: str = ""
    priority: int = TYPE_PRIORITY

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} priority={self.priority}>"

    def get_priority(self) -> int:
        return self.priority

    @abstractmethod
    def supports(self, schema: JsonSchema) -> bool: ...

    @abstractmethod
    def generate(self, schema: Any, context: GenerationContext) -> Result[Any, GenerationError]: ...

    @abstractmethod
    def validate(self, value: Any, schema: Any) -> bool: ...

    def get_examples(self, schema: Any) -> list[Any]:
        """Explicit `examples` and `default` that satisfy the schema."""
        if not isinstance(schema, dict):
            return []
        candidates = list(schema.get("examples") or [])
        if "default" in schema:
            candidates.append(schema["default"])
        return [value for value in candidates if self.validate(value, schema)]

    def type_mismatch(self, schema: Any, context: GenerationContext) -> GenerationError:
        return GenerationError.type_mismatch(
            f"{self.__class__.__name__} can not handle this schema",
            path=context.path,
            canon_path=context.canon_path,
        )
