"""Machine-readable diagnostics emitted during generation and coverage runs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

import jsonschema.validators

from jsonfoundry.core.errors import InternalError

logger = logging.getLogger(__name__)


class DiagnosticCode(str, Enum):
    GENERATION_FAILED = "GENERATION_FAILED"
    ORACLE_REJECTED = "ORACLE_REJECTED"
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"
    VALIDATION_SKIPPED = "VALIDATION_SKIPPED"
    PLANNER_CAP_HIT = "PLANNER_CAP_HIT"
    ENUM_WEIGHTS_IGNORED = "ENUM_WEIGHTS_IGNORED"
    TARGET_UNREACHABLE = "TARGET_UNREACHABLE"


# Fields reserved for runs where validation was deliberately skipped
SKIP_ONLY_CODES = frozenset({DiagnosticCode.VALIDATION_SKIPPED})

ENVELOPE_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["code", "canonPath", "details"],
    "additionalProperties": False,
    "properties": {
        "code": {"enum": [code.value for code in DiagnosticCode]},
        "canonPath": {"type": "string", "pattern": "^#"},
        "details": {"type": "object"},
        "metrics": {
            "type": "object",
            "properties": {"validationsPerRow": {"type": "integer", "minimum": 0}},
        },
    },
    "allOf": [
        {
            "if": {"properties": {"code": {"not": {"const": DiagnosticCode.VALIDATION_SKIPPED.value}}}},
            "then": {
                "properties": {
                    "details": {"not": {"required": ["skippedValidation"]}},
                    "metrics": {"not": {"required": ["validationsPerRow"]}},
                }
            },
        }
    ],
}

ENVELOPE_VALIDATOR = jsonschema.validators.Draft202012Validator(ENVELOPE_SCHEMA)


@dataclass
class DiagnosticEnvelope:
    code: DiagnosticCode
    canon_path: str
    details: dict[str, Any]
    metrics: dict[str, Any] | None

    __slots__ = ("code", "canon_path", "details", "metrics")

    def as_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"code": self.code.value, "canonPath": self.canon_path, "details": self.details}
        if self.metrics is not None:
            data["metrics"] = self.metrics
        return data


def validate_envelope(envelope: DiagnosticEnvelope | dict[str, Any]) -> list[str]:
    """Error messages for an envelope that does not follow the diagnostics contract."""
    data = envelope.as_dict() if isinstance(envelope, DiagnosticEnvelope) else envelope
    return [error.message for error in ENVELOPE_VALIDATOR.iter_errors(data)]


class DiagnosticsCollector:
    """Ordered, de-duplicated list of diagnostics for one run."""

    __slots__ = ("_items", "_seen")

    def __init__(self) -> None:
        self._items: list[DiagnosticEnvelope] = []
        self._seen: set[tuple[str, str, str]] = set()

    def __iter__(self):
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def emit(
        self,
        code: DiagnosticCode,
        canon_path: str,
        details: dict[str, Any] | None = None,
        metrics: dict[str, Any] | None = None,
    ) -> DiagnosticEnvelope:
        envelope = DiagnosticEnvelope(code=code, canon_path=canon_path, details=details or {}, metrics=metrics)
        problems = validate_envelope(envelope)
        if problems:
            raise InternalError(f"Malformed diagnostic {code.value} at {canon_path}: {'; '.join(problems)}")
        key = (code.value, canon_path, repr(sorted(envelope.details.items())))
        if key not in self._seen:
            self._seen.add(key)
            self._items.append(envelope)
            logger.debug("Diagnostic %s at %s: %s", code.value, canon_path, envelope.details)
        return envelope

    def by_code(self, code: DiagnosticCode) -> list[DiagnosticEnvelope]:
        return [item for item in self._items if item.code == code]

    def as_list(self) -> list[dict[str, Any]]:
        return [item.as_dict() for item in self._items]
