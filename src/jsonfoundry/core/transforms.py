from __future__ import annotations

from typing import Any, TypeVar

T = TypeVar("T")


def deepclone(value: T) -> T:
    """Copy JSON containers, sharing immutable scalars."""
    if isinstance(value, dict):
        return {key: deepclone(item) for key, item in value.items()}  # type: ignore[return-value]
    if isinstance(value, list):
        return [deepclone(item) for item in value]  # type: ignore[return-value]
    return value


def merge_unique(left: list[Any], right: list[Any]) -> list[Any]:
    """Concatenate two lists, keeping the first occurrence of each item."""
    output = list(left)
    for item in right:
        if item not in output:
            output.append(item)
    return output
