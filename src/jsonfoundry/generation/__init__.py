from __future__ import annotations

from jsonfoundry.generation.modes import CompatMode, EnumDistribution, Scenario

__all__ = [
    "CompatMode",
    "EnumDistribution",
    "Scenario",
]
