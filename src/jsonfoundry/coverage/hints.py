"""Generation hints produced by the planner and consumed by the generators."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from jsonfoundry.core.canonical import canonical_json


class HintKind(str, Enum):
    # `{branchIndex}` for a `oneOf` / `anyOf` location
    PREFER_BRANCH = "preferBranch"
    # `{propertyName, present}` for an object location
    ENSURE_PROPERTY_PRESENCE = "ensurePropertyPresence"
    # `{valueIndex}` for an `enum` location
    COVER_ENUM_VALUE = "coverEnumValue"
    # `{bound}` for a numeric, string or array location
    COVER_BOUNDARY = "coverBoundary"


# A location can follow only one hint of these kinds per generation call
EXCLUSIVE_KINDS = frozenset({HintKind.PREFER_BRANCH, HintKind.COVER_ENUM_VALUE, HintKind.COVER_BOUNDARY})


class UnsatisfiedReason(str, Enum):
    CONFLICTING_CONSTRAINTS = "CONFLICTING_CONSTRAINTS"
    REPAIR_MODIFIED_VALUE = "REPAIR_MODIFIED_VALUE"
    UNREACHABLE_BRANCH = "UNREACHABLE_BRANCH"
    PLANNER_CAP = "PLANNER_CAP"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UNKNOWN = "UNKNOWN"


@dataclass
class CoverageHint:
    kind: HintKind
    canon_path: str
    params: dict[str, Any]
    # Target this hint aims at; `None` for hints that only open the way to it
    target_id: str | None

    __slots__ = ("kind", "canon_path", "params", "target_id")

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.kind.value, self.canon_path, canonical_json(self.params))

    def as_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "canonPath": self.canon_path, "params": self.params}


@dataclass
class UnsatisfiedHint:
    kind: HintKind
    canon_path: str
    params: dict[str, Any]
    reason_code: UnsatisfiedReason
    reason_detail: str | None

    __slots__ = ("kind", "canon_path", "params", "reason_code", "reason_detail")

    @classmethod
    def from_hint(cls, hint: CoverageHint, reason: UnsatisfiedReason, detail: str | None = None) -> UnsatisfiedHint:
        return cls(
            kind=hint.kind, canon_path=hint.canon_path, params=hint.params, reason_code=reason, reason_detail=detail
        )

    @property
    def sort_key(self) -> tuple[str, str, str]:
        return (self.canon_path, self.kind.value, canonical_json(self.params))

    def as_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "kind": self.kind.value,
            "canonPath": self.canon_path,
            "params": self.params,
            "reasonCode": self.reason_code.value,
        }
        if self.reason_detail is not None:
            data["reasonDetail"] = self.reason_detail
        return data


class HintSet:
    """Hints for one generation call, each handed out at most once."""

    __slots__ = ("_pending", "_consumed", "_keys")

    def __init__(self, hints: list[CoverageHint] | None = None) -> None:
        self._pending: dict[tuple[HintKind, str], list[CoverageHint]] = {}
        self._consumed: list[CoverageHint] = []
        self._keys: set[tuple[str, str, str]] = set()
        for hint in hints or []:
            self.add(hint)

    def __len__(self) -> int:
        return sum(len(items) for items in self._pending.values()) + len(self._consumed)

    def add(self, hint: CoverageHint) -> bool:
        """Register a hint unless it duplicates or contradicts one already present."""
        if hint.key in self._keys:
            return True
        slot = self._pending.setdefault((hint.kind, hint.canon_path), [])
        if hint.kind in EXCLUSIVE_KINDS and slot:
            return False
        if hint.kind == HintKind.ENSURE_PROPERTY_PRESENCE and any(
            other.params.get("propertyName") == hint.params.get("propertyName") for other in slot
        ):
            return False
        slot.append(hint)
        self._keys.add(hint.key)
        return True

    def accepts(self, hint: CoverageHint) -> bool:
        if hint.key in self._keys:
            return True
        slot = self._pending.get((hint.kind, hint.canon_path), [])
        if hint.kind in EXCLUSIVE_KINDS:
            return not slot
        return not any(other.params.get("propertyName") == hint.params.get("propertyName") for other in slot)

    def take(self, kind: HintKind, canon_path: str) -> CoverageHint | None:
        slot = self._pending.get((kind, canon_path))
        if not slot:
            return None
        hint = slot.pop(0)
        self._consumed.append(hint)
        return hint

    def take_all(self, kind: HintKind, canon_path: str) -> list[CoverageHint]:
        slot = self._pending.pop((kind, canon_path), [])
        self._consumed.extend(slot)
        return slot

    @property
    def consumed(self) -> list[CoverageHint]:
        return list(self._consumed)

    @property
    def pending(self) -> list[CoverageHint]:
        return [hint for slot in self._pending.values() for hint in slot]

    @property
    def all(self) -> list[CoverageHint]:
        return self.consumed + self.pending
