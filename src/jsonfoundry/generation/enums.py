"""Enum member selection strategies."""

from __future__ import annotations

from typing import Any

from jsonfoundry.core.rng import XorShift32
from jsonfoundry.generation.modes import EnumDistribution


class EnumState:
    """Cross-call enum state: round-robin counters and the optional selection cache.

    Owned by whoever creates it; pass the same instance to several generators to share
    rotation, or call `reset` between independent runs.
    """

    __slots__ = ("_counters", "_cache")

    def __init__(self) -> None:
        self._counters: dict[str, int] = {}
        self._cache: dict[str, int] = {}

    def next_counter(self, key: str) -> int:
        value = self._counters.get(key, 0)
        self._counters[key] = value + 1
        return value

    def cached(self, key: str) -> int | None:
        return self._cache.get(key)

    def remember(self, key: str, index: int) -> None:
        self._cache[key] = index

    def reset(self) -> None:
        self._counters.clear()
        self._cache.clear()


def normalize_weights(weights: list[float] | None, size: int) -> list[float] | None:
    """Normalized weights, or `None` when they can not be used for `size` candidates."""
    if weights is None or len(weights) != size:
        return None
    if any(weight < 0 for weight in weights):
        return None
    total = sum(weights)
    if total <= 0:
        return None
    return [weight / total for weight in weights]


def select_index(
    size: int,
    distribution: EnumDistribution,
    rng: XorShift32,
    *,
    weights: list[float] | None = None,
    state: EnumState | None = None,
    key: str = "",
) -> int:
    """Pick a candidate position; `weights` must already be normalized."""
    if size == 1:
        return 0
    if distribution == EnumDistribution.FIRST:
        return 0
    if distribution == EnumDistribution.LAST:
        return size - 1
    if distribution == EnumDistribution.ROUND_ROBIN and state is not None:
        return state.next_counter(f"{key}:round-robin") % size
    if distribution == EnumDistribution.WEIGHTED and weights is not None:
        point = rng.next_float01()
        cumulative = 0.0
        for idx, weight in enumerate(weights):
            cumulative += weight
            if point < cumulative:
                return idx
        return size - 1
    return rng.next_int(0, size - 1)


def enum_members(schema: dict[str, Any]) -> list[Any]:
    members = schema.get("enum")
    return list(members) if isinstance(members, list) else []
