from __future__ import annotations

from typing import Any


class NotSet:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<NOT_SET>"


NOT_SET = NotSet()

# Seed used when neither the options nor the caller provide one
DEFAULT_SEED = 123456789
UINT32_MASK = 0xFFFFFFFF


def normalize_seed(seed: Any) -> int:
    """Bring any integer-like seed into the unsigned 32-bit range."""
    if seed is None or seed is NOT_SET:
        return DEFAULT_SEED
    if isinstance(seed, float):
        seed = int(seed)
    return seed & UINT32_MASK
