from __future__ import annotations

import logging
from functools import partial
from typing import Any

from jsonfoundry.core.errors import GenerationError
from jsonfoundry.core.jsonschema.pointers import append_pointer
from jsonfoundry.core.jsonschema.types import JsonSchema
from jsonfoundry.core.jsonschema.validation import Validator
from jsonfoundry.core.result import Err, Result
from jsonfoundry.coverage.hints import HintKind
from jsonfoundry.coverage.targets import TargetKind
from jsonfoundry.generation.context import GenerationContext
from jsonfoundry.generation.generators.base import ValueGenerator, normalize_keywords
from jsonfoundry.generation.merge import flatten_all_of, merge_schemas

logger = logging.getLogger(__name__)

BRANCH_KEYWORDS = ("oneOf", "anyOf")
BRANCH_KINDS = {"oneOf": TargetKind.ONEOF_BRANCH, "anyOf": TargetKind.ANYOF_BRANCH}
# Root keywords a standalone branch needs to resolve local references
REFERENCE_CONTAINERS = ("$schema", "$defs", "definitions")


def branch_keyword(schema: dict[str, Any]) -> str | None:
    for keyword in BRANCH_KEYWORDS:
        if isinstance(schema.get(keyword), list):
            return keyword
    return None


def standalone_branch(root: JsonSchema, branch: JsonSchema) -> JsonSchema:
    if not isinstance(root, dict):
        return branch
    wrapper: dict[str, Any] = {key: root[key] for key in REFERENCE_CONTAINERS if key in root}
    if not wrapper:
        return branch
    wrapper["allOf"] = [branch]
    return wrapper


class CompositionGenerator(ValueGenerator):
    """`allOf` is merged into its parent, `oneOf` / `anyOf` pick a branch and merge the parent into it."""

    name = "composition"

    def supports(self, schema: JsonSchema) -> bool:
        return isinstance(schema, dict) and ("allOf" in schema or branch_keyword(schema) is not None)

    def generate(self, schema: Any, context: GenerationContext) -> Result[Any, GenerationError]:
        normalized = normalize_keywords(schema, ("allOf", *BRANCH_KEYWORDS), context)
        if isinstance(normalized, Err):
            return normalized
        if "allOf" in schema:
            merged = flatten_all_of(context.root, schema)
            if merged is False:
                return Err(
                    GenerationError.schema_structure(
                        "`allOf` subschemas contradict each other",
                        constraint="allOf",
                        path=context.path,
                        canon_path=context.canon_path,
                    )
                )
            return context.sibling(merged, canon_path=context.canon_path).generate()
        keyword = branch_keyword(schema)
        assert keyword is not None
        return self._generate_branch(schema, keyword, context)

    def _generate_branch(self, schema: dict[str, Any], keyword: str, context: GenerationContext) -> Result[Any, GenerationError]:
        branches = schema[keyword]
        if not branches:
            return Err(
                GenerationError.schema_structure(
                    f"`{keyword}` has no subschemas",
                    constraint=keyword,
                    path=context.path,
                    canon_path=context.canon_path,
                )
            )
        siblings = {key: value for key, value in schema.items() if key != keyword}
        order = list(range(len(branches)))
        context.rng().shuffle(order)
        hint = context.take_hint(HintKind.PREFER_BRANCH)
        if hint is not None:
            preferred = hint.params.get("branchIndex")
            if preferred in order:
                order.remove(preferred)
                order.insert(0, preferred)

        failures: list[GenerationError] = []
        for index in order:
            mark = context.checkpoint()
            candidate = merge_schemas(branches[index], siblings) if siblings else branches[index]
            result = context.sibling(candidate, canon_path=append_pointer(context.canon_path, keyword, index)).generate()
            if isinstance(result, Err):
                context.rollback(mark)
                failures.append(result.err())
                continue
            value = result.ok()
            if keyword == "oneOf" and not self._matches_exactly_one(value, index, branches, context):
                logger.debug("Value for %s/%s/%d matched several branches", context.canon_path, keyword, index)
                context.rollback(mark)
                continue
            context.record(BRANCH_KINDS[keyword], {"branchIndex": index})
            return result
        for failure in failures:
            if not failure.is_unsatisfiable:
                return Err(failure)
        return Err(
            GenerationError.schema_structure(
                f"None of the {len(branches)} `{keyword}` branches produced a valid value",
                constraint=keyword,
                path=context.path,
                canon_path=context.canon_path,
                hint="; ".join(failure.message for failure in failures) or None,
            )
        )

    def _matches_exactly_one(self, value: Any, index: int, branches: list[JsonSchema], context: GenerationContext) -> bool:
        for other, branch in enumerate(branches):
            if other == index:
                continue
            standalone = standalone_branch(context.root, branch)
            validator = context.memo("branch-validator", standalone, partial(Validator, standalone))
            if validator.is_valid(value):
                return False
        return True

    def validate(self, value: Any, schema: Any) -> bool:
        return Validator(schema).is_valid(value)
