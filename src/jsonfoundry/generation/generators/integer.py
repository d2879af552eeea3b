from __future__ import annotations

from typing import Any

from jsonfoundry.core.errors import GenerationError
from jsonfoundry.core.jsonschema.types import JsonSchema, get_type
from jsonfoundry.core.result import Err, Ok, Result
from jsonfoundry.coverage.hints import HintKind
from jsonfoundry.generation.constraints import satisfies
from jsonfoundry.generation.context import GenerationContext
from jsonfoundry.generation.generators.base import ValueGenerator
from jsonfoundry.generation.generators.numeric import (
    MultipleSampler,
    get_step,
    integer_bounds,
    integer_step,
    no_multiple_error,
    record_boundaries,
)
from jsonfoundry.generation.modes import Scenario


class IntegerGenerator(ValueGenerator):
    name = "integer"

    def supports(self, schema: JsonSchema) -> bool:
        return isinstance(schema, dict) and "integer" in get_type(schema)

    def generate(self, schema: Any, context: GenerationContext) -> Result[Any, GenerationError]:
        bounds = integer_bounds(schema, context)
        if isinstance(bounds, Err):
            return bounds
        step = get_step(schema, context)
        if isinstance(step, Err):
            return step
        low, high = bounds.ok().low, bounds.ok().high
        rng = context.rng()
        hint = context.take_hint(HintKind.COVER_BOUNDARY)
        wanted = hint.params.get("bound") if hint is not None else None

        declared_step = step.ok()
        if declared_step is None:
            if wanted == "minimum":
                value = low
            elif wanted == "maximum":
                value = high
            elif context.scenario == Scenario.EDGE:
                value = rng.choice(_edge_candidates(low, high))
            else:
                value = rng.next_int(low, high)
            record_boundaries(context, schema, value, low, high)
            return Ok(value)

        sampler = MultipleSampler(integer_step(declared_step), low, high, check_step=declared_step)
        if sampler.is_empty:
            return Err(no_multiple_error(context, declared_step, low, high))
        preferred = None
        if wanted == "minimum" or (context.scenario == Scenario.EDGE and rng.next_bool()):
            preferred = sampler.low_index
        elif wanted == "maximum" or context.scenario == Scenario.EDGE:
            preferred = sampler.high_index
        value = sampler.sample(rng, integral=True, preferred=preferred)
        if value is None:
            return Err(no_multiple_error(context, declared_step, low, high))
        lowest = sampler.reconstruct(sampler.low_index, integral=True)
        highest = sampler.reconstruct(sampler.high_index, integral=True)
        record_boundaries(context, schema, value, lowest, highest)
        return Ok(value)

    def validate(self, value: Any, schema: Any) -> bool:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if isinstance(value, float) and not value.is_integer():
            return False
        return satisfies(value, schema, strict=False, check_enum=True)

    def get_examples(self, schema: Any) -> list[Any]:
        examples = super().get_examples(schema)
        if examples:
            return examples
        candidates = [0, schema.get("minimum"), schema.get("maximum")]
        return [value for value in candidates if isinstance(value, int) and self.validate(value, schema)]


def _edge_candidates(low: int, high: int) -> list[int]:
    candidates = [low, high, min(low + 1, high), max(high - 1, low)]
    if low <= 0 <= high:
        candidates.append(0)
    return candidates
