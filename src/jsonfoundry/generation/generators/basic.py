"""Generators for schemas without constraints to solve: `null`, `true`/`{}` and `false`."""

from __future__ import annotations

import string
from typing import Any

from jsonfoundry.core.errors import GenerationError
from jsonfoundry.core.jsonschema.types import JsonSchema, get_type
from jsonfoundry.core.result import Err, Ok, Result
from jsonfoundry.generation.context import GenerationContext
from jsonfoundry.generation.generators.base import ValueGenerator

ANY_VALUE_KINDS = ("null", "boolean", "integer", "number", "string", "array", "object")
ANY_STRING_ALPHABET = string.ascii_lowercase + string.digits
ANY_MAX_STRING_LENGTH = 8
ANY_MAX_CONTAINER_SIZE = 3


class NullGenerator(ValueGenerator):
    name = "null"

    def supports(self, schema: JsonSchema) -> bool:
        return isinstance(schema, dict) and "null" in get_type(schema)

    def generate(self, schema: Any, context: GenerationContext) -> Result[Any, GenerationError]:
        return Ok(None)

    def validate(self, value: Any, schema: Any) -> bool:
        return value is None


class AnyGenerator(ValueGenerator):
    """Any JSON value, for `true` and for schemas without type-specific keywords."""

    name = "any"

    def supports(self, schema: JsonSchema) -> bool:
        return schema is True or schema == {}

    def generate(self, schema: Any, context: GenerationContext) -> Result[Any, GenerationError]:
        rng = context.rng()
        # Containers only hold scalars, so nesting stops after one level
        allow_containers = not context.depth_exhausted
        kinds = ANY_VALUE_KINDS if allow_containers else ANY_VALUE_KINDS[:5]
        return Ok(self._value(rng.choice(kinds), rng))

    def _value(self, kind: str, rng: Any) -> Any:
        if kind == "null":
            return None
        if kind == "boolean":
            return rng.next_bool()
        if kind == "integer":
            return rng.next_int(-1000, 1000)
        if kind == "number":
            return round(rng.next_float(-1000.0, 1000.0), 3)
        if kind == "string":
            length = rng.next_int(0, ANY_MAX_STRING_LENGTH)
            return "".join(rng.choice(ANY_STRING_ALPHABET) for _ in range(length))
        size = rng.next_int(0, ANY_MAX_CONTAINER_SIZE)
        if kind == "array":
            return [self._value(rng.choice(ANY_VALUE_KINDS[:5]), rng) for _ in range(size)]
        return {f"key{idx}": self._value(rng.choice(ANY_VALUE_KINDS[:5]), rng) for idx in range(size)}

    def validate(self, value: Any, schema: Any) -> bool:
        return True


class NeverGenerator(ValueGenerator):
    """The `false` schema accepts nothing."""

    name = "never"

    def supports(self, schema: JsonSchema) -> bool:
        return schema is False

    def generate(self, schema: Any, context: GenerationContext) -> Result[Any, GenerationError]:
        return Err(
            GenerationError.type_mismatch(
                "The `false` schema does not accept any value",
                path=context.path,
                canon_path=context.canon_path,
                hint="Remove the `false` schema or make the location optional",
            )
        )

    def validate(self, value: Any, schema: Any) -> bool:
        return False
