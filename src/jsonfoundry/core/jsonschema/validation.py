from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import jsonschema_rs

from jsonfoundry.core.jsonschema.types import JsonSchema

if TYPE_CHECKING:
    from jsonschema import Validator as JsonSchemaValidator

logger = logging.getLogger(__name__)


def _rust_validator_classes() -> dict[str, Any]:
    return {
        "Draft4Validator": jsonschema_rs.Draft4Validator,
        "Draft6Validator": jsonschema_rs.Draft6Validator,
        "Draft7Validator": jsonschema_rs.Draft7Validator,
        "Draft201909Validator": jsonschema_rs.Draft201909Validator,
        "Draft202012Validator": jsonschema_rs.Draft202012Validator,
    }


def get_validator_class(schema: JsonSchema) -> type[JsonSchemaValidator]:
    """Pick the validator class matching the schema's `$schema` keyword, defaulting to 2020-12."""
    import jsonschema.validators

    return jsonschema.validators.validator_for(schema, default=jsonschema.Draft202012Validator)


def check_schema(schema: JsonSchema) -> str | None:
    """Return a description of why the schema is malformed, or `None` if it is well-formed."""
    from jsonschema.exceptions import SchemaError

    validator_cls = get_validator_class(schema)
    try:
        validator_cls.check_schema(schema)
    except SchemaError as exc:
        location = "/".join(str(part) for part in exc.path)
        return f"{exc.message} (at '#/{location}')" if location else exc.message
    return None


class Validator:
    """Validator using Rust implementation with Python fallback."""

    __slots__ = ("schema", "validator_cls", "validate_formats", "_rust", "_python")

    def __init__(
        self,
        schema: JsonSchema,
        validator_cls: type[JsonSchemaValidator] | None = None,
        *,
        validate_formats: bool = False,
    ) -> None:
        self.schema = schema
        self.validator_cls = validator_cls or get_validator_class(schema)
        self.validate_formats = validate_formats
        self._rust = None
        self._python = None

        rust_cls = _rust_validator_classes().get(self.validator_cls.__name__)
        if rust_cls is not None:
            try:
                self._rust = rust_cls(schema, validate_formats=validate_formats)
            except Exception:
                logger.debug("Falling back to the Python validator for %s", self.validator_cls.__name__)

    def is_valid(self, instance: Any) -> bool:
        if self._rust is not None:
            try:
                return self._rust.is_valid(instance)
            except Exception:
                pass

        if self._python is None:
            format_checker = self.validator_cls.FORMAT_CHECKER if self.validate_formats else None
            self._python = self.validator_cls(self.schema, format_checker=format_checker)

        return self._python.is_valid(instance)  # type: ignore[attr-defined]

    def iter_error_messages(self, instance: Any) -> list[str]:
        """Human-readable reasons why `instance` is rejected."""
        if self._python is None:
            format_checker = self.validator_cls.FORMAT_CHECKER if self.validate_formats else None
            self._python = self.validator_cls(self.schema, format_checker=format_checker)
        return [error.message for error in self._python.iter_errors(instance)]  # type: ignore[attr-defined]
