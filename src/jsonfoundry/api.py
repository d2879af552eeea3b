from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from jsonfoundry.config import FoundryConfig
from jsonfoundry.core.jsonschema.types import JsonSchema
from jsonfoundry.coverage.analyzer import Operation
from jsonfoundry.coverage.report import CoverageReport
from jsonfoundry.diagnostics import DiagnosticsCollector
from jsonfoundry.generation.engine import GenerationBatch, Generator
from jsonfoundry.generation.enums import EnumState

logger = logging.getLogger(__name__)


@dataclass
class GenerationOutput:
    """Instances of the schema, of each operation, and the coverage report when coverage is on."""

    batch: GenerationBatch
    operations: dict[str, dict[str, GenerationBatch]]
    report: CoverageReport | None
    diagnostics: DiagnosticsCollector

    __slots__ = ("batch", "operations", "report", "diagnostics")

    @property
    def items(self) -> list[Any]:
        return self.batch.items


def generate(
    schema: JsonSchema,
    options: FoundryConfig | Mapping[str, Any] | None = None,
    *,
    operations: list[Operation] | None = None,
    enum_state: EnumState | None = None,
) -> GenerationOutput:
    """Generate `generate.count` instances of `schema`.

    `options` is either a `FoundryConfig` or a camelCase options mapping such as
    `{"seed": 42, "coverage": {"mode": "guided"}}`. Operations are request / response
    schema pairs extracted by the caller; they are generated alongside the schema.
    """
    config = options if isinstance(options, FoundryConfig) else FoundryConfig.from_options(options)
    diagnostics = DiagnosticsCollector()
    logger.debug("Generating %d instances with seed %d", config.generate.count, config.effective_seed)
    if config.coverage.is_enabled:
        from jsonfoundry.coverage.runtime import run_coverage

        outcome = run_coverage(schema, config, operations=operations, enum_state=enum_state, diagnostics=diagnostics)
        return GenerationOutput(
            batch=outcome.batch, operations=outcome.operations, report=outcome.report, diagnostics=diagnostics
        )
    batch = Generator(schema, config, enum_state=enum_state, diagnostics=diagnostics).generate()
    generated: dict[str, dict[str, GenerationBatch]] = {}
    for operation in sorted(operations or [], key=lambda operation: operation.key):
        for part, part_schema in (("request", operation.request), ("response", operation.response)):
            if part_schema is None:
                continue
            generator = Generator(
                part_schema,
                config,
                enum_state=enum_state,
                diagnostics=diagnostics,
                operation_key=operation.key,
                canon_path=operation.canon_path(part),
            )
            generated.setdefault(operation.key, {})[part] = generator.generate()
    return GenerationOutput(batch=batch, operations=generated, report=None, diagnostics=diagnostics)
