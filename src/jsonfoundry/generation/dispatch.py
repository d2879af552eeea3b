"""Classification of schemas into a closed set of kinds and the generator table behind it."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from jsonfoundry.core.errors import GenerationError
from jsonfoundry.core.jsonschema.types import JsonSchema, get_type
from jsonfoundry.core.result import Err, Ok, Result
from jsonfoundry.coverage.targets import TargetKind
from jsonfoundry.generation.context import GenerationContext
from jsonfoundry.generation.generators.array import ArrayGenerator
from jsonfoundry.generation.generators.base import ValueGenerator
from jsonfoundry.generation.generators.basic import AnyGenerator, NeverGenerator, NullGenerator
from jsonfoundry.generation.generators.boolean import BooleanGenerator
from jsonfoundry.generation.generators.composition import CompositionGenerator
from jsonfoundry.generation.generators.const import ConstGenerator
from jsonfoundry.generation.generators.enumeration import EnumGenerator
from jsonfoundry.generation.generators.integer import IntegerGenerator
from jsonfoundry.generation.generators.number import NumberGenerator
from jsonfoundry.generation.generators.objects import ObjectGenerator
from jsonfoundry.generation.generators.reference import ReferenceGenerator
from jsonfoundry.generation.generators.string import StringGenerator

logger = logging.getLogger(__name__)


class SchemaKind(str, Enum):
    NEVER = "never"
    ANY = "any"
    REF = "ref"
    CONST = "const"
    ENUM = "enum"
    COMPOSITION = "composition"
    NULL = "null"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"
    # `type` names nothing generatable, or the schema is not a schema at all
    UNKNOWN = "unknown"


TYPE_KINDS = {
    "null": SchemaKind.NULL,
    "boolean": SchemaKind.BOOLEAN,
    "integer": SchemaKind.INTEGER,
    "number": SchemaKind.NUMBER,
    "string": SchemaKind.STRING,
    "array": SchemaKind.ARRAY,
    "object": SchemaKind.OBJECT,
}
COMPOSITION_KEYWORDS = ("oneOf", "anyOf", "allOf")
OBJECT_KEYWORDS = (
    "properties",
    "required",
    "additionalProperties",
    "patternProperties",
    "minProperties",
    "maxProperties",
    "dependentRequired",
    "dependentSchemas",
    "dependencies",
)
ARRAY_KEYWORDS = ("items", "prefixItems", "additionalItems", "contains", "minItems", "maxItems", "uniqueItems")
STRING_KEYWORDS = ("minLength", "maxLength", "pattern", "format")
NUMBER_KEYWORDS = ("minimum", "maximum", "exclusiveMinimum", "exclusiveMaximum", "multipleOf")
INFERRED_KINDS = (
    (OBJECT_KEYWORDS, SchemaKind.OBJECT),
    (ARRAY_KEYWORDS, SchemaKind.ARRAY),
    (STRING_KEYWORDS, SchemaKind.STRING),
    (NUMBER_KEYWORDS, SchemaKind.NUMBER),
)


def classify(schema: JsonSchema) -> SchemaKind:
    if schema is False:
        return SchemaKind.NEVER
    if schema is True:
        return SchemaKind.ANY
    if not isinstance(schema, dict):
        return SchemaKind.UNKNOWN
    if not schema:
        return SchemaKind.ANY
    if isinstance(schema.get("$ref"), str):
        return SchemaKind.REF
    if "const" in schema:
        return SchemaKind.CONST
    if "enum" in schema:
        return SchemaKind.ENUM
    if any(keyword in schema for keyword in COMPOSITION_KEYWORDS):
        return SchemaKind.COMPOSITION
    if "type" in schema:
        for ty in get_type(schema):
            if ty in TYPE_KINDS:
                return TYPE_KINDS[ty]
        return SchemaKind.UNKNOWN
    for keywords, kind in INFERRED_KINDS:
        if any(keyword in schema for keyword in keywords):
            return kind
    return SchemaKind.ANY


def with_inferred_type(schema: dict[str, Any], kind: SchemaKind) -> dict[str, Any]:
    """Make a keyword-inferred kind explicit so the type generator recognizes the schema."""
    if "type" in schema:
        return schema
    return {**schema, "type": kind.value}


class GeneratorRegistry:
    """Generators by schema kind, with a priority-ordered view for schemas that several generators claim."""

    __slots__ = ("_by_kind",)

    def __init__(self) -> None:
        self._by_kind: dict[SchemaKind, ValueGenerator] = {}

    def register(self, kind: SchemaKind, generator: ValueGenerator) -> None:
        self._by_kind[kind] = generator

    def get(self, kind: SchemaKind) -> ValueGenerator | None:
        return self._by_kind.get(kind)

    def candidates(self, schema: JsonSchema) -> list[ValueGenerator]:
        generators = [generator for generator in self._by_kind.values() if generator.supports(schema)]
        return sorted(generators, key=lambda generator: -generator.get_priority())

    def resolve(self, schema: JsonSchema) -> tuple[SchemaKind, ValueGenerator | None]:
        kind = classify(schema)
        return kind, self.get(kind)


REGISTRY = GeneratorRegistry()
for _kind, _generator in (
    (SchemaKind.NEVER, NeverGenerator()),
    (SchemaKind.ANY, AnyGenerator()),
    (SchemaKind.REF, ReferenceGenerator()),
    (SchemaKind.CONST, ConstGenerator()),
    (SchemaKind.ENUM, EnumGenerator()),
    (SchemaKind.COMPOSITION, CompositionGenerator()),
    (SchemaKind.NULL, NullGenerator()),
    (SchemaKind.BOOLEAN, BooleanGenerator()),
    (SchemaKind.INTEGER, IntegerGenerator()),
    (SchemaKind.NUMBER, NumberGenerator()),
    (SchemaKind.STRING, StringGenerator()),
    (SchemaKind.ARRAY, ArrayGenerator()),
    (SchemaKind.OBJECT, ObjectGenerator()),
):
    REGISTRY.register(_kind, _generator)


def generate_value(schema: JsonSchema, context: GenerationContext) -> Result[Any, GenerationError]:
    kind, generator = REGISTRY.resolve(schema)
    if generator is None:
        if isinstance(schema, dict):
            error = GenerationError.type_mismatch(
                f"No generator for type {schema.get('type')!r}",
                path=context.path,
                canon_path=context.canon_path,
                hint=f"Use one of: {', '.join(TYPE_KINDS)}",
            )
        else:
            error = GenerationError.schema_structure(
                f"Schema must be an object or a boolean, got {type(schema).__name__}",
                constraint="schema",
                path=context.path,
                canon_path=context.canon_path,
            )
        return Err(error)
    if kind in TYPE_KINDS.values() and isinstance(schema, dict):
        schema = with_inferred_type(schema, kind)
    result = generator.generate(schema, context)
    if isinstance(result, Ok):
        context.record(TargetKind.SCHEMA_NODE)
    else:
        error = result.err()
        logger.debug("Generation failed at %s: %s", error.path, error.message)
        context.report_unsatisfiable(error)
    return result
