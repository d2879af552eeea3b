from __future__ import annotations

from typing import Any

from jsonfoundry.core.canonical import json_equal
from jsonfoundry.core.errors import GenerationError
from jsonfoundry.core.jsonschema.types import JsonSchema
from jsonfoundry.core.result import Err, Ok, Result
from jsonfoundry.core.transforms import deepclone
from jsonfoundry.generation.constraints import satisfies
from jsonfoundry.generation.context import GenerationContext
from jsonfoundry.generation.generators.base import CONST_PRIORITY, ValueGenerator


def _siblings(schema: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in schema.items() if key != "const"}


class ConstGenerator(ValueGenerator):
    name = "const"
    priority = CONST_PRIORITY

    def supports(self, schema: JsonSchema) -> bool:
        return isinstance(schema, dict) and "const" in schema

    def generate(self, schema: Any, context: GenerationContext) -> Result[Any, GenerationError]:
        value = schema["const"]
        if not satisfies(value, _siblings(schema), strict=True, check_enum=True):
            return Err(
                GenerationError.constraint_violation(
                    f"`const` value {value!r} violates the other constraints of the schema",
                    constraint="const-constraints",
                    path=context.path,
                    canon_path=context.canon_path,
                    hint="Remove the conflicting keywords or change `const`",
                    context={"const": value},
                )
            )
        return Ok(deepclone(value))

    def validate(self, value: Any, schema: Any) -> bool:
        return json_equal(value, schema.get("const"))

    def get_examples(self, schema: Any) -> list[Any]:
        return [schema["const"]] if satisfies(schema["const"], _siblings(schema), check_enum=True) else []
