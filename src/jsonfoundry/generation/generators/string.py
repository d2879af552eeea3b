from __future__ import annotations

import string
from typing import Any

from jsonfoundry.core.errors import GenerationError
from jsonfoundry.core.jsonschema.types import JsonSchema, get_type
from jsonfoundry.core.result import Err, Ok, Result
from jsonfoundry.core.rng import XorShift32
from jsonfoundry.coverage.hints import HintKind
from jsonfoundry.coverage.targets import TargetKind
from jsonfoundry.diagnostics import DiagnosticCode
from jsonfoundry.generation import patterns
from jsonfoundry.generation.constraints import satisfies
from jsonfoundry.generation.context import GenerationContext
from jsonfoundry.generation.generators.base import ValueGenerator, normalize_keywords
from jsonfoundry.generation.modes import Scenario

STRING_KEYWORDS = ("minLength", "maxLength", "pattern")
DEFAULT_LENGTH_SPAN = 49
ALPHANUMERIC = string.ascii_letters + string.digits
WORDS = (
    "alpha",
    "beta",
    "delta",
    "fixture",
    "foundry",
    "gamma",
    "lorem",
    "ipsum",
    "sample",
    "schema",
    "value",
    "widget",
)


class StringGenerator(ValueGenerator):
    name = "string"

    def supports(self, schema: JsonSchema) -> bool:
        return isinstance(schema, dict) and "string" in get_type(schema)

    def generate(self, schema: Any, context: GenerationContext) -> Result[Any, GenerationError]:
        normalized = normalize_keywords(schema, STRING_KEYWORDS, context)
        if isinstance(normalized, Err):
            return normalized
        schema = normalized.ok()
        min_length = schema.get("minLength", 0)
        max_length = schema.get("maxLength")
        if max_length is not None and min_length > max_length:
            return Err(
                GenerationError.constraint_violation(
                    f"`minLength` ({min_length}) is greater than `maxLength` ({max_length})",
                    constraint="range",
                    path=context.path,
                    canon_path=context.canon_path,
                )
            )
        format_ = schema.get("format")
        if isinstance(format_, str):
            if context.formats.supports(format_):
                result = self._from_format(format_, schema, context)
                if isinstance(result, Ok) or "pattern" not in schema:
                    return result
            elif context.config.validate.validate_formats:
                context.diagnostics.emit(DiagnosticCode.UNSUPPORTED_FORMAT, context.canon_path, {"format": format_})
                error = GenerationError.unsupported_format(format_, path=context.path, canon_path=context.canon_path)
                return Err(error)
        pattern = schema.get("pattern")
        if isinstance(pattern, str):
            return self._from_pattern(pattern, schema, context)
        length = self._pick_length(schema, context)
        value = _random_text(context.rng(), length)
        self._record_boundaries(schema, value, context)
        return Ok(value)

    def _pick_length(self, schema: dict[str, Any], context: GenerationContext) -> int:
        min_length = schema.get("minLength", 0)
        max_length = schema.get("maxLength")
        low = min_length if min_length > 0 or max_length == 0 else 1
        high = max_length if max_length is not None else max(min_length, 1) + DEFAULT_LENGTH_SPAN
        low = min(low, high)
        rng = context.rng()
        hint = context.take_hint(HintKind.COVER_BOUNDARY)
        wanted = hint.params.get("bound") if hint is not None else None
        if wanted == "minLength":
            return min_length
        if wanted == "maxLength" and max_length is not None:
            return max_length
        if context.scenario == Scenario.EDGE:
            return rng.choice([min_length, high])
        if context.scenario == Scenario.PEAK:
            return rng.next_int((low + high) // 2, high)
        return rng.next_int(low, high)

    def _from_format(self, name: str, schema: dict[str, Any], context: GenerationContext) -> Result[Any, GenerationError]:
        result = context.formats.generate(name)
        if isinstance(result, Err):
            return result
        value = result.ok()
        if not self.validate(value, schema):
            return Err(
                GenerationError.constraint_violation(
                    f"Generated `{name}` value {value!r} does not fit the length or pattern constraints",
                    constraint="format",
                    path=context.path,
                    canon_path=context.canon_path,
                    hint="Relax `minLength` / `maxLength` for formatted strings",
                )
            )
        self._record_boundaries(schema, value, context)
        return Ok(value)

    def _from_pattern(self, pattern: str, schema: dict[str, Any], context: GenerationContext) -> Result[Any, GenerationError]:
        try:
            value = patterns.generate_matching(
                pattern, context.rng(), min_length=schema.get("minLength", 0), max_length=schema.get("maxLength")
            )
        except patterns.PatternError as exc:
            return Err(
                GenerationError.schema_structure(
                    str(exc), constraint="pattern", path=context.path, canon_path=context.canon_path
                )
            )
        if value is None:
            return Err(
                GenerationError.constraint_violation(
                    f"Could not produce a string matching {pattern!r} within the length bounds",
                    constraint="pattern",
                    path=context.path,
                    canon_path=context.canon_path,
                    hint="Check that the pattern admits strings of the allowed lengths",
                )
            )
        self._record_boundaries(schema, value, context)
        return Ok(value)

    def _record_boundaries(self, schema: dict[str, Any], value: str, context: GenerationContext) -> None:
        if "minLength" in schema and len(value) == schema["minLength"]:
            context.record(TargetKind.STRING_MIN_LENGTH_HIT)
        if "maxLength" in schema and len(value) == schema["maxLength"]:
            context.record(TargetKind.STRING_MAX_LENGTH_HIT)

    def validate(self, value: Any, schema: Any) -> bool:
        return isinstance(value, str) and satisfies(value, schema, check_enum=True)

    def get_examples(self, schema: Any) -> list[Any]:
        examples = super().get_examples(schema)
        if examples:
            return examples
        min_length = schema.get("minLength", 0)
        candidate = "a" * max(min_length, 1)
        return [candidate] if self.validate(candidate, schema) else []


def _random_text(rng: XorShift32, length: int) -> str:
    if length == 0:
        return ""
    if rng.next_bool(0.5):
        # Words separated by spaces, trimmed or padded to the exact length
        words: list[str] = []
        while len(" ".join(words)) < length:
            words.append(rng.choice(WORDS))
        text = " ".join(words)[:length]
        if text.endswith(" "):
            text = text[:-1] + rng.choice(ALPHANUMERIC)
        return text
    return "".join(rng.choice(ALPHANUMERIC) for _ in range(length))
