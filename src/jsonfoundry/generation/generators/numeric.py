"""Bound normalization and `multipleOf` sampling shared by integer and number generators."""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from jsonfoundry.core.errors import GenerationError
from jsonfoundry.core.numbers import (
    as_number,
    decimal_places,
    is_finite_number,
    is_multiple_of_strict,
    next_down,
    next_up,
)
from jsonfoundry.core.result import Err, Ok, Result
from jsonfoundry.core.rng import XorShift32
from jsonfoundry.coverage.targets import TargetKind
from jsonfoundry.generation.context import GenerationContext

DEFAULT_SPAN = 1_000_000
# Above this many candidate multiples, pick a segment first and then a multiple inside it
SEGMENTED_SAMPLING_THRESHOLD = 1_000_000
SEGMENTS = 1000
MULTIPLE_REDRAWS = 32
MULTIPLE_SCAN_RADIUS = 64
TINY_RANGE = 1e-100


@dataclass
class NumericBounds:
    low: int | float
    high: int | float
    # Whether `low` / `high` come from the schema rather than from the default span
    has_low: bool
    has_high: bool

    __slots__ = ("low", "high", "has_low", "has_high")


def _reject_boolean_exclusive(schema: dict[str, Any], context: GenerationContext) -> GenerationError | None:
    for keyword in ("exclusiveMinimum", "exclusiveMaximum"):
        if isinstance(schema.get(keyword), bool):
            return GenerationError.schema_structure(
                f"Boolean `{keyword}` is not supported",
                constraint="exclusive-bounds",
                path=context.path,
                canon_path=context.canon_path,
                hint=f"Use a numeric `{keyword}` (Draft 6 and later) instead of the Draft 4 boolean form",
            )
    for keyword in ("minimum", "maximum", "exclusiveMinimum", "exclusiveMaximum"):
        if keyword in schema and not is_finite_number(schema[keyword]):
            return GenerationError.schema_structure(
                f"`{keyword}` must be a finite number, got {schema[keyword]!r}",
                constraint=keyword,
                path=context.path,
                canon_path=context.canon_path,
            )
    return None


def _empty_range(schema: dict[str, Any], context: GenerationContext, low: Any, high: Any) -> GenerationError:
    exclusive = "exclusiveMinimum" in schema or "exclusiveMaximum" in schema
    constraint = "exclusive-bounds" if exclusive else "range"
    return GenerationError.constraint_violation(
        f"No value satisfies the bounds: lowest admissible value {low} is above the highest {high}",
        constraint=constraint,
        path=context.path,
        canon_path=context.canon_path,
        hint="Check that the minimum is below the maximum",
        context={"low": low, "high": high},
    )


def _fill_defaults(low: Any, high: Any) -> tuple[Any, Any]:
    if low is None and high is None:
        return -DEFAULT_SPAN, DEFAULT_SPAN
    if low is None:
        return high - DEFAULT_SPAN, high
    if high is None:
        return low, low + DEFAULT_SPAN
    return low, high


def integer_bounds(schema: dict[str, Any], context: GenerationContext) -> Result[NumericBounds, GenerationError]:
    error = _reject_boolean_exclusive(schema, context)
    if error is not None:
        return Err(error)
    lows = []
    if "minimum" in schema:
        lows.append(math.ceil(schema["minimum"]))
    if "exclusiveMinimum" in schema:
        lows.append(math.floor(schema["exclusiveMinimum"]) + 1)
    highs = []
    if "maximum" in schema:
        highs.append(math.floor(schema["maximum"]))
    if "exclusiveMaximum" in schema:
        highs.append(math.ceil(schema["exclusiveMaximum"]) - 1)
    low, high = _fill_defaults(max(lows) if lows else None, min(highs) if highs else None)
    if low > high:
        return Err(_empty_range(schema, context, low, high))
    return Ok(NumericBounds(low=low, high=high, has_low=bool(lows), has_high=bool(highs)))


def number_bounds(schema: dict[str, Any], context: GenerationContext) -> Result[NumericBounds, GenerationError]:
    error = _reject_boolean_exclusive(schema, context)
    if error is not None:
        return Err(error)
    lows = []
    if "minimum" in schema:
        lows.append(float(schema["minimum"]))
    if "exclusiveMinimum" in schema:
        # One ULP scales with magnitude, unlike a fixed epsilon
        lows.append(next_up(float(schema["exclusiveMinimum"])))
    highs = []
    if "maximum" in schema:
        highs.append(float(schema["maximum"]))
    if "exclusiveMaximum" in schema:
        highs.append(next_down(float(schema["exclusiveMaximum"])))
    low, high = _fill_defaults(max(lows) if lows else None, min(highs) if highs else None)
    if low > high:
        return Err(_empty_range(schema, context, low, high))
    return Ok(NumericBounds(low=float(low), high=float(high), has_low=bool(lows), has_high=bool(highs)))


def get_step(schema: dict[str, Any], context: GenerationContext) -> Result[int | float | None, GenerationError]:
    if "multipleOf" not in schema:
        return Ok(None)
    step = schema["multipleOf"]
    if not is_finite_number(step) or step <= 0:
        return Err(
            GenerationError.schema_structure(
                f"`multipleOf` must be a finite positive number, got {step!r}",
                constraint="multipleOf",
                path=context.path,
                canon_path=context.canon_path,
            )
        )
    return Ok(step)


def integer_step(step: int | float) -> int:
    """Smallest positive integer that is a multiple of `step`."""
    if isinstance(step, int):
        return step
    if step.is_integer():
        return int(step)
    places = decimal_places(step)
    scale = 10**places
    scaled = int(Decimal(repr(step)) * scale)
    return scaled // math.gcd(scaled, scale)


class MultipleSampler:
    """Uniform choice among the multiples of `step` inside `[low, high]`."""

    __slots__ = ("step", "check_step", "low", "high", "low_index", "high_index")

    def __init__(
        self, step: int | float, low: int | float, high: int | float, *, check_step: int | float | None = None
    ) -> None:
        self.step = step
        # The division check runs against the declared `multipleOf`, which may differ from the sampling step
        self.check_step = step if check_step is None else check_step
        self.low = low
        self.high = high
        if isinstance(step, int) and isinstance(low, int) and isinstance(high, int):
            self.low_index = -(-low // step)
            self.high_index = high // step
        else:
            low_quotient = low / step
            high_quotient = high / step
            if math.isfinite(low_quotient) and math.isfinite(high_quotient):
                self.low_index = math.ceil(low_quotient)
                self.high_index = math.floor(high_quotient)
            else:
                # Too many multiples to index, treated as empty
                self.low_index, self.high_index = 1, 0

    @property
    def is_empty(self) -> bool:
        return self.low_index > self.high_index

    @property
    def size(self) -> int:
        return self.high_index - self.low_index + 1

    def draw_index(self, rng: XorShift32) -> int:
        size = self.size
        if size > SEGMENTED_SAMPLING_THRESHOLD:
            segment_size = -(-size // SEGMENTS)
            segment = rng.next_int(0, SEGMENTS - 1)
            start = self.low_index + segment * segment_size
            end = min(start + segment_size - 1, self.high_index)
            if start > self.high_index:
                start = self.high_index - segment_size + 1
                end = self.high_index
            return rng.next_int(max(start, self.low_index), end)
        return rng.next_int(self.low_index, self.high_index)

    def reconstruct(self, index: int, *, integral: bool) -> int | float | None:
        """Value of the `index`-th multiple, or `None` if it does not survive the division check."""
        value: int | float
        if isinstance(self.step, int):
            value = index * self.step
        else:
            # The raw product carries float noise (`0.27477834500000003`) that decimal-exact validators reject
            value = round(index * self.step, decimal_places(self.step))
        if integral:
            if isinstance(value, float):
                if not value.is_integer():
                    return None
                value = int(value)
        elif isinstance(value, float):
            value = as_number(value)
        if self.low <= value <= self.high and is_multiple_of_strict(value, self.check_step):
            return value
        return None

    def sample(self, rng: XorShift32, *, integral: bool, preferred: int | None = None) -> int | float | None:
        if self.is_empty:
            return None
        if preferred is not None:
            value = self._scan(preferred, integral=integral)
            if value is not None:
                return value
        index = self.low_index
        for _ in range(MULTIPLE_REDRAWS):
            index = self.draw_index(rng)
            value = self.reconstruct(index, integral=integral)
            if value is not None:
                return value
        return self._scan(index, integral=integral)

    def _scan(self, start: int, *, integral: bool) -> int | float | None:
        for offset in range(MULTIPLE_SCAN_RADIUS + 1):
            for index in (start + offset, start - offset):
                if self.low_index <= index <= self.high_index:
                    value = self.reconstruct(index, integral=integral)
                    if value is not None:
                        return value
        return None


def no_multiple_error(context: GenerationContext, step: Any, low: Any, high: Any) -> GenerationError:
    return GenerationError.constraint_violation(
        f"No multiple of {step} fits into [{low}, {high}]",
        constraint="multipleOf-range",
        path=context.path,
        canon_path=context.canon_path,
        hint="Widen the range or use a smaller `multipleOf`",
        context={"multipleOf": step, "low": low, "high": high},
    )


def record_boundaries(
    context: GenerationContext,
    schema: dict[str, Any],
    value: int | float,
    lowest: int | float | None,
    highest: int | float | None,
) -> None:
    if lowest is not None and ("minimum" in schema or "exclusiveMinimum" in schema) and value == lowest:
        context.record(TargetKind.NUMERIC_MIN_HIT)
    if highest is not None and ("maximum" in schema or "exclusiveMaximum" in schema) and value == highest:
        context.record(TargetKind.NUMERIC_MAX_HIT)
