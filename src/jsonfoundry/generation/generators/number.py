from __future__ import annotations

from typing import Any

from jsonfoundry.core.errors import GenerationError
from jsonfoundry.core.jsonschema.types import JsonSchema, get_type
from jsonfoundry.core.numbers import as_number, is_finite_number, next_down, next_up
from jsonfoundry.core.result import Err, Ok, Result
from jsonfoundry.coverage.hints import HintKind
from jsonfoundry.generation.constraints import check_numeric, satisfies
from jsonfoundry.generation.context import GenerationContext
from jsonfoundry.generation.generators.base import ValueGenerator
from jsonfoundry.generation.generators.numeric import (
    TINY_RANGE,
    MultipleSampler,
    get_step,
    no_multiple_error,
    number_bounds,
    record_boundaries,
)
from jsonfoundry.generation.modes import Scenario

MAX_FRACTION_DIGITS = 6


class NumberGenerator(ValueGenerator):
    name = "number"

    def supports(self, schema: JsonSchema) -> bool:
        return isinstance(schema, dict) and "number" in get_type(schema)

    def generate(self, schema: Any, context: GenerationContext) -> Result[Any, GenerationError]:
        bounds = number_bounds(schema, context)
        if isinstance(bounds, Err):
            return bounds
        step = get_step(schema, context)
        if isinstance(step, Err):
            return step
        low, high = bounds.ok().low, bounds.ok().high
        declared_step = step.ok()
        rng = context.rng()
        hint = context.take_hint(HintKind.COVER_BOUNDARY)
        wanted = hint.params.get("bound") if hint is not None else None

        if declared_step is not None:
            sampler = MultipleSampler(declared_step, low, high)
            if sampler.is_empty:
                return Err(no_multiple_error(context, declared_step, low, high))
            preferred = None
            if wanted == "minimum" or (context.scenario == Scenario.EDGE and rng.next_bool()):
                preferred = sampler.low_index
            elif wanted == "maximum" or context.scenario == Scenario.EDGE:
                preferred = sampler.high_index
            value = sampler.sample(rng, integral=False, preferred=preferred)
            if value is None:
                return Err(no_multiple_error(context, declared_step, low, high))
            lowest = sampler.reconstruct(sampler.low_index, integral=False)
            highest = sampler.reconstruct(sampler.high_index, integral=False)
            record_boundaries(context, schema, value, lowest, highest)
            return Ok(value)

        if high - low <= TINY_RANGE:
            return self._generate_in_tiny_range(schema, context, low, high)

        if wanted == "minimum":
            value = low
        elif wanted == "maximum":
            value = high
        elif context.scenario == Scenario.EDGE:
            value = rng.choice(_edge_candidates(low, high))
        else:
            value = rng.next_float(low, high)
            digits = rng.next_int(0, MAX_FRACTION_DIGITS)
            rounded = round(value, digits)
            if low <= rounded <= high:
                value = rounded
        record_boundaries(context, schema, value, low, high)
        return Ok(as_number(value))

    def _generate_in_tiny_range(
        self, schema: dict[str, Any], context: GenerationContext, low: float, high: float
    ) -> Result[Any, GenerationError]:
        for candidate in (low, high, (low + high) / 2, 0.0):
            if low <= candidate <= high and check_numeric(candidate, schema, strict=True):
                record_boundaries(context, schema, candidate, low, high)
                return Ok(candidate)
        return Err(
            GenerationError.precision_limit(
                f"The range [{low!r}, {high!r}] is too narrow to represent a valid value",
                path=context.path,
                canon_path=context.canon_path,
                context={"low": low, "high": high},
            )
        )

    def validate(self, value: Any, schema: Any) -> bool:
        return is_finite_number(value) and satisfies(value, schema, strict=False, check_enum=True)

    def get_examples(self, schema: Any) -> list[Any]:
        examples = super().get_examples(schema)
        if examples:
            return examples
        candidates = [0, schema.get("minimum"), schema.get("maximum")]
        return [value for value in candidates if is_finite_number(value) and self.validate(value, schema)]


def _edge_candidates(low: float, high: float) -> list[float]:
    candidates = [low, high, min(next_up(low), high), max(next_down(high), low)]
    if low <= 0 <= high:
        candidates.append(0.0)
    return candidates
