"""Seeded xorshift32 streams keyed by a schema location."""

from __future__ import annotations

from collections.abc import MutableSequence, Sequence
from typing import TypeVar

from jsonfoundry.core import UINT32_MASK

T = TypeVar("T")

FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619
# Replaces an all-zero state, which is a fixed point of xorshift
ZERO_STATE_REPLACEMENT = 0x9E3779B9
TWO_POW_32 = 2**32
MAX_REJECTIONS = 64


def fnv1a32(text: str) -> int:
    hash_ = FNV_OFFSET_BASIS
    for byte in text.encode("utf-8"):
        hash_ ^= byte
        hash_ = (hash_ * FNV_PRIME) & UINT32_MASK
    return hash_


class XorShift32:
    """Independent pseudo-random stream for one `(seed, path)` pair."""

    __slots__ = ("seed", "path", "_state")

    def __init__(self, seed: int, path: str) -> None:
        self.seed = seed & UINT32_MASK
        self.path = path
        state = self.seed ^ fnv1a32(path)
        self._state = state or ZERO_STATE_REPLACEMENT

    def __repr__(self) -> str:
        return f"XorShift32(seed={self.seed}, path={self.path!r})"

    @property
    def state(self) -> int:
        return self._state

    def next(self) -> int:
        x = self._state
        x ^= (x << 13) & UINT32_MASK
        x ^= x >> 17
        x ^= (x << 5) & UINT32_MASK
        self._state = x
        return x

    def next_float01(self) -> float:
        return self.next() / TWO_POW_32

    def next_int(self, low: int, high: int) -> int:
        """Uniform integer in the inclusive `[low, high]` range."""
        if high < low:
            raise ValueError(f"Empty range: [{low}, {high}]")
        span = high - low + 1
        if span == 1:
            return low
        words = max(1, (span.bit_length() + 31) // 32)
        space = 1 << (32 * words)
        # Largest multiple of `span` that fits into the sampled space
        limit = space - space % span
        value = 0
        for _ in range(MAX_REJECTIONS):
            value = self._draw_words(words)
            if value < limit:
                return low + value % span
        return low + value % span

    def _draw_words(self, words: int) -> int:
        value = 0
        for _ in range(words):
            value = (value << 32) | self.next()
        return value

    def next_bool(self, probability: float = 0.5) -> bool:
        return self.next_float01() < probability

    def next_float(self, low: float, high: float) -> float:
        """Float in `[low, high]`, never outside the bounds."""
        fraction = self.next_float01()
        value = low + (high - low) * fraction
        if value != value or value in (float("inf"), float("-inf")):
            # Span overflows, interpolate without computing it
            value = low * (1 - fraction) + high * fraction
        return min(max(value, low), high)

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise IndexError("Cannot choose from an empty sequence")
        return items[self.next_int(0, len(items) - 1)]

    def shuffle(self, items: MutableSequence[T]) -> None:
        for idx in range(len(items) - 1, 0, -1):
            other = self.next_int(0, idx)
            items[idx], items[other] = items[other], items[idx]

    def sample(self, items: Sequence[T], k: int) -> list[T]:
        pool = list(items)
        self.shuffle(pool)
        return pool[:k]
