from __future__ import annotations

from typing import Any

from jsonfoundry.core.errors import GenerationError
from jsonfoundry.core.jsonschema.pointers import append_pointer, append_property
from jsonfoundry.core.jsonschema.types import JsonSchema, get_type
from jsonfoundry.core.result import Err, Ok, Result
from jsonfoundry.coverage.hints import HintKind
from jsonfoundry.coverage.targets import TargetKind
from jsonfoundry.generation import patterns
from jsonfoundry.generation.constraints import satisfies
from jsonfoundry.generation.context import GenerationContext
from jsonfoundry.generation.generators.base import ValueGenerator, normalize_keywords
from jsonfoundry.generation.merge import merge_schemas
from jsonfoundry.generation.modes import Scenario

ADDITIONAL_PROPERTY_PREFIX = "additionalProp"
MAX_EDGE_ADDITIONAL_PROPERTIES = 2
PATTERN_KEY_MAX_LENGTH = 20
PATTERN_KEY_ATTEMPTS = 10
ANY_STRING = {"type": "string"}
OBJECT_KEYWORDS = (
    "minProperties",
    "maxProperties",
    "required",
    "properties",
    "patternProperties",
    "dependentRequired",
    "dependentSchemas",
    "dependencies",
)


def dependent_required(schema: dict[str, Any]) -> dict[str, list[str]]:
    """`dependentRequired` together with the array form of Draft 7 `dependencies`."""
    output: dict[str, list[str]] = {}
    for keyword in ("dependencies", "dependentRequired"):
        for name, value in (schema.get(keyword) or {}).items():
            if isinstance(value, list):
                output.setdefault(name, []).extend(item for item in value if isinstance(item, str))
    return output


def dependent_schemas(schema: dict[str, Any]) -> dict[str, JsonSchema]:
    """`dependentSchemas` together with the schema form of Draft 7 `dependencies`."""
    output: dict[str, JsonSchema] = {}
    for keyword in ("dependencies", "dependentSchemas"):
        for name, value in (schema.get(keyword) or {}).items():
            if isinstance(value, (dict, bool)):
                output[name] = merge_schemas(output[name], value) if name in output else value
    return output


def _with_dependencies(names: list[str], dependencies: dict[str, list[str]]) -> list[str]:
    output = list(names)
    idx = 0
    while idx < len(output):
        for dependent in dependencies.get(output[idx], []):
            if dependent not in output:
                output.append(dependent)
        idx += 1
    return output


class ObjectGenerator(ValueGenerator):
    name = "object"

    def supports(self, schema: JsonSchema) -> bool:
        return isinstance(schema, dict) and "object" in get_type(schema)

    def generate(self, schema: Any, context: GenerationContext) -> Result[Any, GenerationError]:
        normalized = normalize_keywords(schema, OBJECT_KEYWORDS, context)
        if isinstance(normalized, Err):
            return normalized
        schema = normalized.ok()
        error = self._check_structure(schema, context)
        if error is not None:
            return Err(error)
        if context.depth_exhausted:
            return Ok({})

        dependencies = dependent_required(schema)
        required = _with_dependencies(list(dict.fromkeys(schema.get("required", []))), dependencies)
        chosen = self._select_optional(schema, required, dependencies, context)

        extra = dependent_schemas(schema)
        effective = schema
        for trigger, subschema in extra.items():
            if trigger in chosen:
                effective = merge_schemas(effective, subschema)
        if effective is False:
            return Err(
                GenerationError.constraint_violation(
                    "`dependentSchemas` contradict the object schema",
                    constraint="dependentSchemas",
                    path=context.path,
                    canon_path=context.canon_path,
                )
            )
        mandatory = set(required)
        for name in effective.get("required", []):
            if name not in chosen:
                chosen.append(name)
            mandatory.add(name)

        instance: dict[str, Any] = {}
        properties = effective.get("properties") or {}
        for name in chosen:
            subschema, canon_path = self._property_schema(effective, name, context.canon_path)
            if subschema is False:
                if name in mandatory:
                    return Err(
                        GenerationError.constraint_violation(
                            f"Required property {name!r} is forbidden by the schema",
                            constraint="required",
                            path=context.path,
                            canon_path=context.canon_path,
                        )
                    )
                continue
            mark = context.checkpoint()
            result = context.generate_child(subschema, path=append_property(context.path, name), canon_path=canon_path)
            if isinstance(result, Err):
                context.rollback(mark)
                if name in mandatory:
                    return result
                # Optional properties that can not be produced are left out
                continue
            instance[name] = result.ok()
            if name in properties:
                context.record(TargetKind.PROPERTY_PRESENT, {"propertyName": name})

        result = self._fill_additional(effective, instance, context)
        if isinstance(result, Err):
            return result
        return Ok(instance)

    def _check_structure(self, schema: dict[str, Any], context: GenerationContext) -> GenerationError | None:
        min_properties = schema.get("minProperties", 0)
        max_properties = schema.get("maxProperties")
        required = list(dict.fromkeys(schema.get("required", [])))
        if max_properties is not None and min_properties > max_properties:
            return GenerationError.schema_structure(
                f"`minProperties` ({min_properties}) is greater than `maxProperties` ({max_properties})",
                constraint="minProperties",
                path=context.path,
                canon_path=context.canon_path,
            )
        if max_properties is not None and len(required) > max_properties:
            return GenerationError.schema_structure(
                f"{len(required)} properties are required, but `maxProperties` is {max_properties}",
                constraint="maxProperties",
                path=context.path,
                canon_path=context.canon_path,
                hint="Lower the number of required properties or raise `maxProperties`",
            )
        if "properties" in schema and schema.get("additionalProperties") is False:
            declared = schema["properties"]
            pattern_properties = schema.get("patternProperties") or {}
            for name in required:
                if name not in declared and not _matching_patterns(pattern_properties, name):
                    return GenerationError.schema_structure(
                        f"Required property {name!r} is not declared and additional properties are forbidden",
                        constraint="required",
                        path=context.path,
                        canon_path=context.canon_path,
                        hint=f"Declare {name!r} under `properties`",
                    )
        return None

    def _select_optional(
        self,
        schema: dict[str, Any],
        required: list[str],
        dependencies: dict[str, list[str]],
        context: GenerationContext,
    ) -> list[str]:
        rng = context.rng()
        max_properties = schema.get("maxProperties")
        optional = [name for name in schema.get("properties") or {} if name not in required]
        rng.shuffle(optional)

        forced_present: list[str] = []
        forced_absent: set[str] = set()
        for hint in context.take_hints(HintKind.ENSURE_PROPERTY_PRESENCE):
            name = hint.params.get("propertyName")
            if name not in optional:
                continue
            if hint.params.get("present", True):
                forced_present.append(name)
            else:
                forced_absent.add(name)

        remaining = [name for name in optional if name not in forced_present and name not in forced_absent]
        if context.scenario == Scenario.EDGE:
            count = rng.choice([0, len(remaining)])
        elif context.scenario == Scenario.PEAK:
            count = rng.next_int(len(remaining) // 2, len(remaining))
        else:
            count = rng.next_int(0, len(remaining))

        chosen = list(required)
        for name in forced_present + remaining[:count]:
            candidate = _with_dependencies([*chosen, name], dependencies)
            if max_properties is None or len(candidate) <= max_properties:
                chosen = candidate
        return chosen

    def _property_schema(self, schema: dict[str, Any], name: str, canon_path: str) -> tuple[JsonSchema, str]:
        properties = schema.get("properties") or {}
        if name in properties:
            return properties[name], append_pointer(canon_path, "properties", name)
        matched = _matching_patterns(schema.get("patternProperties") or {}, name)
        if matched:
            pattern = matched[0]
            return schema["patternProperties"][pattern], append_pointer(canon_path, "patternProperties", pattern)
        additional = schema.get("additionalProperties", True)
        if additional is True:
            additional = ANY_STRING
        return additional, append_pointer(canon_path, "additionalProperties")

    def _fill_additional(
        self, schema: dict[str, Any], instance: dict[str, Any], context: GenerationContext
    ) -> Result[None, GenerationError]:
        min_properties = schema.get("minProperties", 0)
        max_properties = schema.get("maxProperties")
        additional = schema.get("additionalProperties", True)
        target = min_properties
        if context.scenario == Scenario.EDGE and additional is not False:
            target = max(target, len(instance) + context.rng().next_int(1, MAX_EDGE_ADDITIONAL_PROPERTIES))
        if max_properties is not None:
            target = min(target, max_properties)
        if len(instance) >= target:
            return Ok(None)

        pattern_properties = schema.get("patternProperties") or {}
        counter = 1
        while len(instance) < target:
            if additional is not False:
                name = f"{ADDITIONAL_PROPERTY_PREFIX}{counter}"
                counter += 1
                if name in instance or name in (schema.get("properties") or {}):
                    continue
            elif pattern_properties:
                name = self._pattern_key(pattern_properties, instance, context)
                if name is None:
                    break
            else:
                break
            subschema, canon_path = self._property_schema(schema, name, context.canon_path)
            result = context.generate_child(subschema, path=append_property(context.path, name), canon_path=canon_path)
            if isinstance(result, Err):
                return result
            instance[name] = result.ok()

        if len(instance) < min_properties:
            return Err(
                GenerationError.constraint_violation(
                    f"Only {len(instance)} properties can be produced, but `minProperties` is {min_properties}",
                    constraint="minProperties",
                    path=context.path,
                    canon_path=context.canon_path,
                    hint="Allow additional properties or declare more properties",
                )
            )
        return Ok(None)

    def _pattern_key(
        self, pattern_properties: dict[str, Any], instance: dict[str, Any], context: GenerationContext
    ) -> str | None:
        rng = context.rng()
        for pattern in pattern_properties:
            for _ in range(PATTERN_KEY_ATTEMPTS):
                try:
                    name = patterns.generate_matching(pattern, rng, min_length=1, max_length=PATTERN_KEY_MAX_LENGTH)
                except patterns.PatternError:
                    break
                if name is not None and name not in instance:
                    return name
        return None

    def validate(self, value: Any, schema: Any) -> bool:
        if not isinstance(value, dict) or not satisfies(value, schema, check_enum=True):
            return False
        for trigger, dependents in dependent_required(schema).items():
            if trigger in value and any(name not in value for name in dependents):
                return False
        return True

    def get_examples(self, schema: Any) -> list[Any]:
        examples = super().get_examples(schema)
        if examples:
            return examples
        return [{}] if self.validate({}, schema) else []


def _matching_patterns(pattern_properties: dict[str, Any], name: str) -> list[str]:
    matched = []
    for pattern in pattern_properties:
        try:
            if patterns.matches(pattern, name):
                matched.append(pattern)
        except patterns.PatternError:
            continue
    return matched
