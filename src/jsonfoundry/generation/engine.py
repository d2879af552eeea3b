"""Batch generation on top of the per-location generators.

Every value leaves the engine only after the external validator accepted it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from jsonfoundry.config import FoundryConfig
from jsonfoundry.core.errors import GenerationError
from jsonfoundry.core.jsonschema.pointers import ROOT_PATH, ROOT_POINTER
from jsonfoundry.core.jsonschema.types import JsonSchema
from jsonfoundry.core.jsonschema.validation import Validator, check_schema
from jsonfoundry.core.result import Err, Ok, Result, partition
from jsonfoundry.coverage.hints import HintSet
from jsonfoundry.diagnostics import DiagnosticCode, DiagnosticsCollector
from jsonfoundry.generation.context import GenerationContext
from jsonfoundry.generation.enums import EnumState
from jsonfoundry.generation.modes import CompatMode

if TYPE_CHECKING:
    from jsonfoundry.coverage.events import InstanceCoverage
    from jsonfoundry.coverage.hints import CoverageHint

logger = logging.getLogger(__name__)

MAX_REPORTED_ORACLE_ERRORS = 3


def attempt_path(path: str, attempt: int) -> str:
    return path if attempt == 0 else f"{path}#attempt{attempt}"


@dataclass
class InstanceOutcome:
    """One generated instance together with what it took to produce it."""

    result: Result[Any, GenerationError]
    attempts: int
    hints: HintSet | None

    __slots__ = ("result", "attempts", "hints")

    @property
    def repaired(self) -> bool:
        return self.attempts > 1


class GenerationBatch:
    """Per-item results of a batch; failed items never abort the batch."""

    __slots__ = ("results", "diagnostics")

    def __init__(self, results: list[Result[Any, GenerationError]], diagnostics: DiagnosticsCollector) -> None:
        self.results = results
        self.diagnostics = diagnostics

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self):
        return iter(self.results)

    @property
    def items(self) -> list[Any]:
        return partition(self.results)[0]

    @property
    def failures(self) -> list[tuple[int, GenerationError]]:
        return partition(self.results)[1]

    @property
    def is_ok(self) -> bool:
        return not self.failures


class Generator:
    """Draws successive instances of one schema from a single generation context.

    Each instance is generated from the same top-level context, so the sequence of
    the first `M` instances does not depend on how many are requested in total.
    """

    __slots__ = ("schema", "config", "context", "diagnostics", "oracle", "schema_error", "validation_skipped")

    def __init__(
        self,
        schema: JsonSchema,
        config: FoundryConfig | None = None,
        *,
        enum_state: EnumState | None = None,
        diagnostics: DiagnosticsCollector | None = None,
        operation_key: str | None = None,
        canon_path: str = ROOT_POINTER,
    ) -> None:
        self.schema = schema
        self.config = config or FoundryConfig()
        self.diagnostics = DiagnosticsCollector() if diagnostics is None else diagnostics
        if enum_state is None and self.config.enum.caching:
            enum_state = EnumState()
        self.context = GenerationContext.from_config(
            schema,
            self.config,
            enum_state=enum_state,
            diagnostics=self.diagnostics,
            operation_key=operation_key,
            canon_path=canon_path,
        )
        self.schema_error = check_schema(schema)
        self.validation_skipped = False
        self.oracle: Validator | None = None
        if self.schema_error is None:
            self.oracle = Validator(schema, validate_formats=self.config.validate.validate_formats)
        elif self.config.compat == CompatMode.LAX:
            self.validation_skipped = True
            logger.debug("Schema is malformed, validation is skipped: %s", self.schema_error)
            self.diagnostics.emit(
                DiagnosticCode.VALIDATION_SKIPPED,
                canon_path,
                details={"skippedValidation": True, "reason": self.schema_error},
                metrics={"validationsPerRow": 0},
            )
        logger.debug(
            "Generator ready: seed=%s scenario=%s max_depth=%s",
            self.context.seed,
            self.context.scenario.value,
            self.context.max_depth,
        )

    def __repr__(self) -> str:
        return f"Generator(seed={self.context.seed}, scenario={self.context.scenario.value!r})"

    @property
    def repair_attempts(self) -> int:
        return self.config.generate.repair_attempts

    def generate_one(self) -> Result[Any, GenerationError]:
        return self.generate_instance().result

    def generate(self, count: int | None = None) -> GenerationBatch:
        total = self.config.generate.count if count is None else count
        results = [self.generate_one() for _ in range(total)]
        return GenerationBatch(results, self.diagnostics)

    def generate_instance(
        self,
        *,
        path: str = ROOT_PATH,
        hints: list[CoverageHint] | None = None,
        coverage: InstanceCoverage | None = None,
    ) -> InstanceOutcome:
        """Generate one instance, retrying on derived paths while the validator rejects it."""
        if self.schema_error is not None and not self.validation_skipped:
            error = GenerationError.schema_structure(
                f"Invalid schema: {self.schema_error}",
                constraint="schema",
                path=path,
                canon_path=self.context.canon_path,
                hint="Fix the schema or use the `lax` compat mode",
            )
            return InstanceOutcome(Err(error), 0, None)

        mark = coverage.checkpoint() if coverage is not None else 0
        last: Result[Any, GenerationError] | None = None
        hint_set = None
        rejections: list[str] = []
        attempts = 0
        for attempt in range(self.repair_attempts + 1):
            attempts = attempt + 1
            if coverage is not None:
                coverage.rollback(mark)
            hint_set = HintSet(hints) if hints else None
            instance_context = self.context.for_instance(
                path=attempt_path(path, attempt), hints=hint_set, coverage=coverage
            )
            last = instance_context.generate()
            if isinstance(last, Err):
                continue
            rejections = self._check(last.ok())
            if not rejections:
                if attempt > 0:
                    logger.debug("Instance at %s accepted after %d attempts", path, attempts)
                return InstanceOutcome(last, attempts, hint_set)
            logger.debug("Validator rejected the instance at %s: %s", attempt_path(path, attempt), rejections)

        if coverage is not None:
            coverage.rollback(mark)
        assert last is not None
        if isinstance(last, Ok):
            error = GenerationError.constraint_violation(
                f"Generated value was rejected by the validator after {attempts} attempts",
                constraint="oracle",
                path=path,
                canon_path=self.context.canon_path,
                hint="The schema combines constraints the generator does not solve together",
                context={"errors": rejections[:MAX_REPORTED_ORACLE_ERRORS]},
            )
            self.diagnostics.emit(
                DiagnosticCode.ORACLE_REJECTED,
                self.context.canon_path,
                details={"errors": rejections[:MAX_REPORTED_ORACLE_ERRORS]},
            )
            return InstanceOutcome(Err(error), attempts, hint_set)
        error = last.err()
        self.diagnostics.emit(
            DiagnosticCode.GENERATION_FAILED,
            error.canon_path,
            details={"kind": error.kind.value, "constraint": error.constraint, "message": error.message},
        )
        return InstanceOutcome(last, attempts, hint_set)

    def _check(self, value: Any) -> list[str]:
        if self.oracle is None or self.oracle.is_valid(value):
            return []
        return self.oracle.iter_error_messages(value) or ["rejected"]
