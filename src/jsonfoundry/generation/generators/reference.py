from __future__ import annotations

from typing import Any

from jsonfoundry.core.errors import GenerationError
from jsonfoundry.core.jsonschema.references import is_local_reference
from jsonfoundry.core.jsonschema.types import JsonSchema
from jsonfoundry.core.jsonschema.validation import Validator
from jsonfoundry.core.result import Err, Result
from jsonfoundry.generation.context import GenerationContext
from jsonfoundry.generation.generators.base import ValueGenerator
from jsonfoundry.generation.generators.composition import standalone_branch
from jsonfoundry.generation.merge import resolve_reference_chain

# Objects and arrays stop at the depth limit, reference cycles through branches get this much slack
MAX_REFERENCE_OVERSHOOT = 8


class ReferenceGenerator(ValueGenerator):
    """Follows local `$ref` chains; the target is generated one level deeper, at its own schema location."""

    name = "reference"

    def supports(self, schema: JsonSchema) -> bool:
        return isinstance(schema, dict) and isinstance(schema.get("$ref"), str)

    def generate(self, schema: Any, context: GenerationContext) -> Result[Any, GenerationError]:
        reference = schema["$ref"]
        resolved = resolve_reference_chain(context.root, schema) if is_local_reference(reference) else None
        if resolved is None:
            return Err(
                GenerationError.schema_structure(
                    f"Unresolvable reference: {reference!r}",
                    constraint="$ref",
                    path=context.path,
                    canon_path=context.canon_path,
                    hint="Only local references (`#/...`) that lead to a schema without reference cycles are supported",
                )
            )
        pointer, target = resolved
        if context.current_depth >= context.max_depth + MAX_REFERENCE_OVERSHOOT:
            return Err(
                GenerationError.depth_limit(
                    f"Reference {reference!r} recurses past the depth limit",
                    path=context.path,
                    canon_path=context.canon_path,
                )
            )
        return context.generate_child(target, path=context.path, canon_path=context.base_pointer + pointer[1:])

    def validate(self, value: Any, schema: Any, root: JsonSchema | None = None) -> bool:
        """Validate against the reference target, resolved in `root` (the schema itself by default)."""
        root = schema if root is None else root
        if not self.supports(schema) or not is_local_reference(schema["$ref"]):
            return False
        resolved = resolve_reference_chain(root, schema)
        if resolved is None:
            return False
        return Validator(standalone_branch(root, resolved[1])).is_valid(value)
