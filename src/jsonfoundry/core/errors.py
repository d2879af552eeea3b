"""Base error handling that is not tied to any specific generation or coverage step."""

from __future__ import annotations

import enum
from typing import Any


class JsonFoundryError(Exception):
    """Base exception class for all jsonfoundry errors."""


class InternalError(JsonFoundryError):
    """Internal error in jsonfoundry."""


class FailureKind(str, enum.Enum):
    """Categories of expected generation failures."""

    TYPE_MISMATCH = "type-mismatch"
    CONSTRAINT_VIOLATION = "constraint-violation"
    PRECISION_LIMIT = "precision-limit"
    UNSUPPORTED_FORMAT = "unsupported-format"
    SCHEMA_STRUCTURE_ERROR = "schema-structure-error"


# Failures that prove a schema location can not produce any value
UNSATISFIABLE_KINDS = frozenset(
    {FailureKind.CONSTRAINT_VIOLATION, FailureKind.PRECISION_LIMIT, FailureKind.SCHEMA_STRUCTURE_ERROR}
)
# Recursion cut short by the depth guard says nothing about the location itself
DEPTH_LIMIT_CONSTRAINT = "max-depth"


class GenerationError(JsonFoundryError):
    """A value could not be generated for a schema location.

    Generators return these inside `Err` instead of raising them, so a batch can collect
    failures item by item.
    """

    __slots__ = ("message", "kind", "constraint", "path", "canon_path", "hint", "context")

    def __init__(
        self,
        message: str,
        *,
        kind: FailureKind,
        constraint: str,
        path: str = "$",
        canon_path: str = "#",
        hint: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.constraint = constraint
        self.path = path
        self.canon_path = canon_path
        self.hint = hint
        self.context = context or {}

    def __repr__(self) -> str:
        return (
            f"GenerationError({self.message!r}, kind={self.kind.value!r}, "
            f"constraint={self.constraint!r}, path={self.path!r})"
        )

    def __str__(self) -> str:
        message = f"{self.message} (at {self.path}, constraint: {self.constraint})"
        if self.hint:
            message += f"\n    Tip: {self.hint}"
        return message

    @property
    def is_unsatisfiable(self) -> bool:
        return self.kind in UNSATISFIABLE_KINDS and self.constraint != DEPTH_LIMIT_CONSTRAINT

    def as_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
            "constraint": self.constraint,
            "path": self.path,
            "canonPath": self.canon_path,
        }
        if self.hint is not None:
            data["hint"] = self.hint
        if self.context:
            data["context"] = self.context
        return data

    @classmethod
    def type_mismatch(cls, message: str, *, path: str, canon_path: str, hint: str | None = None) -> GenerationError:
        return cls(
            message, kind=FailureKind.TYPE_MISMATCH, constraint="type", path=path, canon_path=canon_path, hint=hint
        )

    @classmethod
    def constraint_violation(
        cls,
        message: str,
        *,
        constraint: str,
        path: str,
        canon_path: str,
        hint: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> GenerationError:
        return cls(
            message,
            kind=FailureKind.CONSTRAINT_VIOLATION,
            constraint=constraint,
            path=path,
            canon_path=canon_path,
            hint=hint,
            context=context,
        )

    @classmethod
    def precision_limit(
        cls, message: str, *, path: str, canon_path: str, context: dict[str, Any] | None = None
    ) -> GenerationError:
        return cls(
            message,
            kind=FailureKind.PRECISION_LIMIT,
            constraint="precision-limit",
            path=path,
            canon_path=canon_path,
            hint="Widen the numeric range so it spans several representable floating-point values",
            context=context,
        )

    @classmethod
    def unsupported_format(cls, name: str, *, path: str = "$", canon_path: str = "#") -> GenerationError:
        return cls(
            f"Unsupported string format: {name!r}",
            kind=FailureKind.UNSUPPORTED_FORMAT,
            constraint="format",
            path=path,
            canon_path=canon_path,
            hint="Supported formats: email, uri, uuid, date-time",
            context={"format": name},
        )

    @classmethod
    def schema_structure(
        cls, message: str, *, constraint: str, path: str, canon_path: str, hint: str | None = None
    ) -> GenerationError:
        return cls(
            message,
            kind=FailureKind.SCHEMA_STRUCTURE_ERROR,
            constraint=constraint,
            path=path,
            canon_path=canon_path,
            hint=hint,
        )

    @classmethod
    def depth_limit(cls, message: str, *, path: str, canon_path: str) -> GenerationError:
        return cls(
            message,
            kind=FailureKind.CONSTRAINT_VIOLATION,
            constraint=DEPTH_LIMIT_CONSTRAINT,
            path=path,
            canon_path=canon_path,
            hint="Raise `max-depth` or give recursive schemas a non-recursive alternative",
        )
