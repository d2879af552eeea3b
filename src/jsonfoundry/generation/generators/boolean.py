from __future__ import annotations

from typing import Any

from jsonfoundry.core.errors import GenerationError
from jsonfoundry.core.jsonschema.types import JsonSchema, get_type
from jsonfoundry.core.result import Ok, Result
from jsonfoundry.generation.constraints import satisfies
from jsonfoundry.generation.context import GenerationContext
from jsonfoundry.generation.generators.base import ValueGenerator
from jsonfoundry.generation.modes import Scenario

TRUE_PROBABILITY = {
    Scenario.NORMAL: 0.5,
    Scenario.EDGE: 0.5,
    Scenario.PEAK: 0.6,
}


class BooleanGenerator(ValueGenerator):
    name = "boolean"

    def supports(self, schema: JsonSchema) -> bool:
        return isinstance(schema, dict) and "boolean" in get_type(schema)

    def generate(self, schema: Any, context: GenerationContext) -> Result[Any, GenerationError]:
        rng = context.rng()
        probability = TRUE_PROBABILITY.get(context.scenario)
        if probability is None:
            # Skewed, but still able to produce both values
            probability = 0.1 + rng.next_float01() * 0.8
        return Ok(rng.next_bool(probability))

    def validate(self, value: Any, schema: Any) -> bool:
        return isinstance(value, bool) and satisfies(value, schema, check_enum=True)

    def get_examples(self, schema: Any) -> list[Any]:
        return super().get_examples(schema) or [True, False]
