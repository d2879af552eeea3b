from __future__ import annotations

import os
import re
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import Any

from jsonfoundry.config._coverage import CoverageConfig, PlannerConfig
from jsonfoundry.config._diff_base import DiffBase
from jsonfoundry.config._enum import EnumConfig
from jsonfoundry.config._error import ConfigError
from jsonfoundry.config._generate import GenerateConfig, ValidateConfig
from jsonfoundry.core import normalize_seed
from jsonfoundry.generation.modes import CompatMode, Scenario

if sys.version_info < (3, 11):
    import tomli
else:
    import tomllib as tomli

__all__ = [
    "ConfigError",
    "CoverageConfig",
    "EnumConfig",
    "FoundryConfig",
    "GenerateConfig",
    "PlannerConfig",
    "ValidateConfig",
]

CONFIG_FILENAME = "jsonfoundry.toml"
DEFAULT_MAX_DEPTH = 8
DEFAULT_LOCALE = "en"


@dataclass(repr=False)
class FoundryConfig(DiffBase):
    seed: int | None
    # `None` lets the engine infer the scenario from the schema's `$comment`
    scenario: Scenario | None
    max_depth: int
    locale: str
    compat: CompatMode
    generate: GenerateConfig
    validate: ValidateConfig
    coverage: CoverageConfig
    enum: EnumConfig
    _config_path: str | None

    __slots__ = (
        "seed",
        "scenario",
        "max_depth",
        "locale",
        "compat",
        "generate",
        "validate",
        "coverage",
        "enum",
        "_config_path",
    )

    def __init__(
        self,
        *,
        seed: int | None = None,
        scenario: Scenario | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        locale: str = DEFAULT_LOCALE,
        compat: CompatMode = CompatMode.STRICT,
        generate: GenerateConfig | None = None,
        validate: ValidateConfig | None = None,
        coverage: CoverageConfig | None = None,
        enum: EnumConfig | None = None,
    ) -> None:
        self.seed = seed
        self.scenario = scenario
        self.max_depth = max_depth
        self.locale = locale
        self.compat = compat
        self.generate = generate or GenerateConfig()
        self.validate = validate or ValidateConfig()
        self.coverage = coverage or CoverageConfig()
        self.enum = enum or EnumConfig()
        self._config_path = None

    @property
    def config_path(self) -> str | None:
        """Filesystem path to the loaded configuration file, if any."""
        return self._config_path

    @property
    def effective_seed(self) -> int:
        """Seed of the batch: `generate.seed`, else the top-level seed, else the built-in default."""
        if self.generate.seed is not None:
            return normalize_seed(self.generate.seed)
        return normalize_seed(self.seed)

    @classmethod
    def discover(cls) -> FoundryConfig:
        """Discover the `jsonfoundry.toml` file by walking up from the current directory."""
        current_dir = os.getcwd()
        while True:
            config_file = os.path.join(current_dir, CONFIG_FILENAME)
            if os.path.isfile(config_file):
                return cls.from_path(config_file)
            parent = os.path.dirname(current_dir)
            if parent == current_dir:
                return cls()
            current_dir = parent

    @classmethod
    def from_path(cls, path: PathLike | str) -> FoundryConfig:
        with open(path) as fd:
            config = cls.from_str(fd.read())
        config._config_path = str(Path(path).resolve())
        return config

    @classmethod
    def from_str(cls, data: str) -> FoundryConfig:
        try:
            parsed = tomli.loads(data)
        except tomli.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML: {exc}") from None
        return cls.from_dict(parsed)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FoundryConfig:
        from jsonfoundry.config._validator import validate_config

        validate_config(data)
        scenario = data.get("scenario")
        return cls(
            seed=data.get("seed"),
            scenario=Scenario(scenario) if scenario is not None else None,
            max_depth=data.get("max-depth", DEFAULT_MAX_DEPTH),
            locale=data.get("locale", DEFAULT_LOCALE),
            compat=CompatMode(data.get("compat", CompatMode.STRICT.value)),
            generate=GenerateConfig.from_dict(data.get("generate", {})),
            validate=ValidateConfig.from_dict(data.get("validate", {})),
            coverage=CoverageConfig.from_dict(data.get("coverage", {})),
            enum=EnumConfig.from_dict(data.get("enum", {})),
        )

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None) -> FoundryConfig:
        """Build a config from a camelCase options object, e.g. `{"maxDepth": 4, "coverage": {"mode": "guided"}}`."""
        if not options:
            return cls()
        return cls.from_dict(_to_kebab_keys(options))


# Mappings whose keys are user data rather than option names
OPAQUE_KEYS = frozenset({"weights"})


def _to_kebab_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    output: dict[str, Any] = {}
    for key, value in data.items():
        name = _camel_to_kebab(key)
        if isinstance(value, Mapping) and name not in OPAQUE_KEYS:
            value = _to_kebab_keys(value)
        output[name] = value
    return output


def _camel_to_kebab(name: str) -> str:
    return re.sub(r"(?<=[a-z0-9])([A-Z])", r"-\1", name).lower()
