from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from jsonfoundry.config._diff_base import DiffBase

DEFAULT_COUNT = 1
DEFAULT_REPAIR_ATTEMPTS = 3


@dataclass(repr=False)
class GenerateConfig(DiffBase):
    # Number of instances per batch
    count: int
    # Overrides the top-level seed for this batch
    seed: int | None
    # Regenerations of an instance the oracle rejected
    repair_attempts: int

    __slots__ = ("count", "seed", "repair_attempts")

    def __init__(
        self,
        *,
        count: int = DEFAULT_COUNT,
        seed: int | None = None,
        repair_attempts: int = DEFAULT_REPAIR_ATTEMPTS,
    ) -> None:
        self.count = count
        self.seed = seed
        self.repair_attempts = repair_attempts

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GenerateConfig:
        return cls(
            count=data.get("count", DEFAULT_COUNT),
            seed=data.get("seed"),
            repair_attempts=data.get("repair-attempts", DEFAULT_REPAIR_ATTEMPTS),
        )


@dataclass(repr=False)
class ValidateConfig(DiffBase):
    # Whether `format` is asserted, by the generators and by the oracle
    validate_formats: bool

    __slots__ = ("validate_formats",)

    def __init__(self, *, validate_formats: bool = False) -> None:
        self.validate_formats = validate_formats

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ValidateConfig:
        return cls(validate_formats=data.get("validate-formats", False))
