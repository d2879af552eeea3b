from __future__ import annotations

from typing import Any

from jsonfoundry.core.canonical import json_contains
from jsonfoundry.core.errors import GenerationError
from jsonfoundry.core.jsonschema.types import JsonSchema
from jsonfoundry.core.result import Err, Ok, Result
from jsonfoundry.core.transforms import deepclone
from jsonfoundry.coverage.hints import HintKind
from jsonfoundry.coverage.targets import TargetKind
from jsonfoundry.diagnostics import DiagnosticCode
from jsonfoundry.generation.constraints import satisfies
from jsonfoundry.generation.context import GenerationContext
from jsonfoundry.generation.enums import enum_members, normalize_weights, select_index
from jsonfoundry.generation.generators.base import ENUM_PRIORITY, ValueGenerator
from jsonfoundry.generation.modes import EnumDistribution


def admissible_indices(schema: dict[str, Any]) -> list[int]:
    """Positions of `enum` members that also pass the sibling constraints, checked strictly."""
    siblings = {key: value for key, value in schema.items() if key != "enum"}
    return [idx for idx, member in enumerate(enum_members(schema)) if satisfies(member, siblings, strict=True)]


class EnumGenerator(ValueGenerator):
    name = "enum"
    priority = ENUM_PRIORITY

    def supports(self, schema: JsonSchema) -> bool:
        return isinstance(schema, dict) and "enum" in schema

    def generate(self, schema: Any, context: GenerationContext) -> Result[Any, GenerationError]:
        members = enum_members(schema)
        if not members:
            return Err(
                GenerationError.constraint_violation(
                    "`enum` has no members",
                    constraint="enum-constraints",
                    path=context.path,
                    canon_path=context.canon_path,
                    hint="Add at least one value to `enum`",
                )
            )
        indices = admissible_indices(schema)
        if not indices:
            return Err(
                GenerationError.constraint_violation(
                    "No `enum` member satisfies the other constraints of the schema",
                    constraint="enum-constraints",
                    path=context.path,
                    canon_path=context.canon_path,
                    hint="Check `enum` against `type`, bounds and length constraints",
                    context={"enum": members},
                )
            )
        position = self._choose(schema, indices, context)
        index = indices[position]
        context.record(TargetKind.ENUM_VALUE_HIT, {"valueIndex": index})
        return Ok(deepclone(members[index]))

    def _choose(self, schema: dict[str, Any], indices: list[int], context: GenerationContext) -> int:
        hint = context.take_hint(HintKind.COVER_ENUM_VALUE)
        if hint is not None and hint.params.get("valueIndex") in indices:
            return indices.index(hint.params["valueIndex"])
        config = context.config.enum
        distribution = config.distribution
        key = context.canon_path if context.operation_key is None else f"{context.operation_key}:{context.canon_path}"
        state = context.get_enum_state()
        if config.caching:
            cached = state.cached(key)
            if cached is not None and cached < len(indices):
                return cached
        weights = None
        if distribution == EnumDistribution.WEIGHTED:
            declared = config.weights_for(context.canon_path)
            all_weights = normalize_weights(declared, len(enum_members(schema)))
            if all_weights is not None:
                weights = normalize_weights([all_weights[idx] for idx in indices], len(indices))
            if weights is None:
                context.diagnostics.emit(
                    DiagnosticCode.ENUM_WEIGHTS_IGNORED,
                    context.canon_path,
                    {"weights": declared, "members": len(enum_members(schema))},
                )
        position = select_index(len(indices), distribution, context.rng(), weights=weights, state=state, key=key)
        if config.caching:
            state.remember(key, position)
        return position

    def validate(self, value: Any, schema: Any) -> bool:
        return json_contains(enum_members(schema), value) and satisfies(
            value, {key: item for key, item in schema.items() if key != "enum"}, strict=False
        )

    def get_examples(self, schema: Any) -> list[Any]:
        members = enum_members(schema)
        return [members[idx] for idx in admissible_indices(schema)]
