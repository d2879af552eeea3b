from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

from jsonfoundry.config import DEFAULT_MAX_DEPTH, ConfigError, FoundryConfig
from jsonfoundry.core import DEFAULT_SEED, normalize_seed
from jsonfoundry.core.canonical import canonical_json
from jsonfoundry.core.jsonschema.pointers import ROOT_PATH, ROOT_POINTER
from jsonfoundry.core.jsonschema.types import JsonSchema
from jsonfoundry.core.rng import XorShift32
from jsonfoundry.diagnostics import DiagnosticsCollector
from jsonfoundry.generation.enums import EnumState
from jsonfoundry.generation.formats import FormatRegistry
from jsonfoundry.generation.modes import Scenario

if TYPE_CHECKING:
    from jsonfoundry.core.errors import GenerationError
    from jsonfoundry.core.result import Result
    from jsonfoundry.coverage.events import InstanceCoverage
    from jsonfoundry.coverage.hints import CoverageHint, HintKind, HintSet
    from jsonfoundry.coverage.targets import TargetKind

logger = logging.getLogger(__name__)

T = TypeVar("T")

RNG_CACHE_PREFIX = "rng:"
ENUM_STATE_CACHE_KEY = "enum-state"


def validate_max_depth(max_depth: Any) -> int:
    if isinstance(max_depth, bool) or not isinstance(max_depth, int):
        raise ConfigError(f"`max_depth` must be a non-negative integer, got {max_depth!r}")
    if max_depth < 0:
        raise ConfigError(f"`max_depth` must be a non-negative integer, got {max_depth}")
    return max_depth


class GenerationContext:
    """State of one generation call tree.

    Children share the cache, so every schema location keeps a single RNG stream for the
    whole lifetime of the top-level context.
    """

    __slots__ = (
        "root",
        "schema",
        "path",
        "canon_path",
        "base_pointer",
        "operation_key",
        "seed",
        "scenario",
        "current_depth",
        "max_depth",
        "config",
        "cache",
        "formats",
        "enum_state",
        "hints",
        "coverage",
        "diagnostics",
    )

    def __init__(
        self,
        schema: JsonSchema,
        *,
        seed: int | None = None,
        scenario: Scenario = Scenario.NORMAL,
        max_depth: int = DEFAULT_MAX_DEPTH,
        config: FoundryConfig | None = None,
        root: JsonSchema | None = None,
        path: str = ROOT_PATH,
        canon_path: str = ROOT_POINTER,
        base_pointer: str | None = None,
        operation_key: str | None = None,
        current_depth: int = 0,
        cache: dict[str, Any] | None = None,
        formats: FormatRegistry | None = None,
        enum_state: EnumState | None = None,
        hints: HintSet | None = None,
        coverage: InstanceCoverage | None = None,
        diagnostics: DiagnosticsCollector | None = None,
    ) -> None:
        self.root = schema if root is None else root
        self.schema = schema
        self.path = path
        self.canon_path = canon_path
        # Location of `root` itself; local references resolve below it
        self.base_pointer = canon_path if base_pointer is None else base_pointer
        self.operation_key = operation_key
        self.seed = normalize_seed(DEFAULT_SEED if seed is None else seed)
        self.scenario = scenario
        self.current_depth = current_depth
        self.max_depth = validate_max_depth(max_depth)
        self.config = config or FoundryConfig()
        self.cache = {} if cache is None else cache
        self.formats = formats or FormatRegistry(self.seed)
        self.enum_state = enum_state
        self.hints = hints
        self.coverage = coverage
        self.diagnostics = diagnostics or DiagnosticsCollector()

    def __repr__(self) -> str:
        return (
            f"GenerationContext(path={self.path!r}, canon_path={self.canon_path!r}, seed={self.seed}, "
            f"depth={self.current_depth}/{self.max_depth}, scenario={self.scenario.value!r})"
        )

    @classmethod
    def from_config(
        cls,
        schema: JsonSchema,
        config: FoundryConfig,
        *,
        enum_state: EnumState | None = None,
        diagnostics: DiagnosticsCollector | None = None,
        operation_key: str | None = None,
        canon_path: str = ROOT_POINTER,
    ) -> GenerationContext:
        seed = config.effective_seed
        return cls(
            schema,
            seed=seed,
            operation_key=operation_key,
            canon_path=canon_path,
            scenario=config.scenario or Scenario.infer(schema),
            max_depth=config.max_depth,
            config=config,
            enum_state=enum_state,
            diagnostics=diagnostics,
        )

    @property
    def depth_exhausted(self) -> bool:
        return self.current_depth >= self.max_depth

    def rng(self) -> XorShift32:
        """RNG stream of the current location."""
        key = RNG_CACHE_PREFIX + self.path
        stream = self.cache.get(key)
        if stream is None:
            stream = XorShift32(self.seed, self.path)
            self.cache[key] = stream
        return stream

    def memo(self, prefix: str, schema: Any, factory: Callable[[], T]) -> T:
        key = f"{prefix}:{canonical_json(schema)}"
        if key not in self.cache:
            self.cache[key] = factory()
        return self.cache[key]

    def get_enum_state(self) -> EnumState:
        """The injected enum state, or one scoped to this context's cache."""
        if self.enum_state is not None:
            return self.enum_state
        state = self.cache.get(ENUM_STATE_CACHE_KEY)
        if state is None:
            state = EnumState()
            self.cache[ENUM_STATE_CACHE_KEY] = state
        return state

    def _derive(
        self, schema: JsonSchema, *, path: str, canon_path: str, depth: int, **overrides: Any
    ) -> GenerationContext:
        kwargs: dict[str, Any] = {
            "seed": self.seed,
            "scenario": self.scenario,
            "max_depth": self.max_depth,
            "config": self.config,
            "root": self.root,
            "path": path,
            "canon_path": canon_path,
            "base_pointer": self.base_pointer,
            "operation_key": self.operation_key,
            "current_depth": depth,
            "cache": self.cache,
            "formats": self.formats,
            "enum_state": self.enum_state,
            "hints": self.hints,
            "coverage": self.coverage,
            "diagnostics": self.diagnostics,
        }
        kwargs.update(overrides)
        return GenerationContext(schema, **kwargs)

    def child(self, schema: JsonSchema, *, path: str, canon_path: str) -> GenerationContext:
        """Context for a nested property, array item or referenced schema."""
        return self._derive(schema, path=path, canon_path=canon_path, depth=self.current_depth + 1)

    def sibling(self, schema: JsonSchema, *, canon_path: str) -> GenerationContext:
        """Context for an alternative view of the same location, e.g. a `oneOf` branch."""
        return self._derive(schema, path=self.path, canon_path=canon_path, depth=self.current_depth)

    def for_instance(
        self,
        *,
        path: str = ROOT_PATH,
        hints: HintSet | None = None,
        coverage: InstanceCoverage | None = None,
    ) -> GenerationContext:
        """Fresh top-level context for one generated instance, sharing this context's streams."""
        return self._derive(
            self.schema, path=path, canon_path=self.canon_path, depth=0, hints=hints, coverage=coverage
        )

    def generate(self) -> Result[Any, GenerationError]:
        from jsonfoundry.generation.dispatch import generate_value

        return generate_value(self.schema, self)

    def generate_child(self, schema: JsonSchema, *, path: str, canon_path: str) -> Result[Any, GenerationError]:
        return self.child(schema, path=path, canon_path=canon_path).generate()

    def record(self, kind: TargetKind, params: dict[str, Any] | None = None, *, canon_path: str | None = None) -> None:
        """Emit a coverage event for the current location."""
        if self.coverage is not None:
            self.coverage.record(
                kind, self.canon_path if canon_path is None else canon_path, params or {}, self.operation_key
            )

    def checkpoint(self) -> int:
        return self.coverage.checkpoint() if self.coverage is not None else 0

    def rollback(self, mark: int) -> None:
        if self.coverage is not None:
            self.coverage.rollback(mark)

    def report_unsatisfiable(self, error: GenerationError) -> None:
        """Remember that a location can never produce a value."""
        if self.coverage is not None and error.is_unsatisfiable:
            self.coverage.mark_unreachable(error.canon_path, self.operation_key, error.constraint)

    def take_hint(self, kind: HintKind) -> CoverageHint | None:
        if self.hints is None:
            return None
        return self.hints.take(kind, self.canon_path)

    def take_hints(self, kind: HintKind) -> list[CoverageHint]:
        if self.hints is None:
            return []
        return self.hints.take_all(kind, self.canon_path)
