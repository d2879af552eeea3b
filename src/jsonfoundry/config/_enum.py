from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from jsonfoundry.config._diff_base import DiffBase
from jsonfoundry.generation.modes import EnumDistribution


@dataclass(repr=False)
class EnumConfig(DiffBase):
    distribution: EnumDistribution
    # Selection weights keyed by the canonical pointer of the enum's schema
    weights: dict[str, list[float]]
    # Reuse the first selected value per location across calls
    caching: bool

    __slots__ = ("distribution", "weights", "caching")

    def __init__(
        self,
        *,
        distribution: EnumDistribution = EnumDistribution.UNIFORM,
        weights: dict[str, list[float]] | None = None,
        caching: bool = False,
    ) -> None:
        self.distribution = distribution
        self.weights = weights or {}
        self.caching = caching

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EnumConfig:
        return cls(
            distribution=EnumDistribution(data.get("distribution", EnumDistribution.UNIFORM.value)),
            weights=data.get("weights"),
            caching=data.get("caching", False),
        )

    def weights_for(self, canon_path: str) -> list[float] | None:
        return self.weights.get(canon_path)
