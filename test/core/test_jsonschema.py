import pytest

from jsonfoundry.core.jsonschema.pointers import (
    append_index,
    append_pointer,
    append_property,
    resolve_pointer,
    split_pointer,
)
from jsonfoundry.core.jsonschema.references import resolve_local_reference
from jsonfoundry.core.jsonschema.types import get_type, is_of_type
from jsonfoundry.core.jsonschema.validation import Validator, check_schema


def test_pointer_escaping():
    pointer = append_pointer("#", "properties", "a/b", "c~d")
    assert pointer == "#/properties/a~1b/c~0d"
    assert split_pointer(pointer) == ["properties", "a/b", "c~d"]
    assert split_pointer("#") == []


def test_resolve_pointer():
    document = {"$defs": {"x": {"items": [{"type": "null"}]}}}
    assert resolve_pointer(document, "#/$defs/x/items/0") == {"type": "null"}
    with pytest.raises(LookupError):
        resolve_pointer(document, "#/$defs/y")


def test_instance_paths():
    assert append_property("$", "name") == "$.name"
    assert append_property("$", "a-b") == "$['a-b']"
    assert append_index("$.items", 2) == "$.items[2]"


@pytest.mark.parametrize(
    ["reference", "expected"],
    [
        ("#/definitions/a", ("#/definitions/a", {"type": "null"})),
        ("#/$defs/b", ("#/$defs/b", True)),
        ("#/definitions/missing", None),
        ("https://example.com/schema.json", None),
    ],
)
def test_local_references(reference, expected):
    root = {"definitions": {"a": {"type": "null"}}, "$defs": {"b": True}}
    assert resolve_local_reference(root, reference) == expected


def test_types():
    assert get_type({"type": ["string", "null", "string"]}) == ["string", "null"]
    assert get_type(True) == ["null", "boolean", "number", "string", "array", "object"]
    assert is_of_type(1.0, "integer")
    assert not is_of_type(True, "integer")
    assert not is_of_type(1, "boolean")


def test_check_schema():
    assert check_schema({"type": "string"}) is None
    assert "minimum" in check_schema({"type": "integer", "minimum": "zero"})


@pytest.mark.parametrize("validate_formats", [True, False])
def test_validator(validate_formats):
    validator = Validator({"type": "string", "format": "email"}, validate_formats=validate_formats)
    assert validator.is_valid("user@example.test")
    assert validator.is_valid("not an email") is not validate_formats
    assert not validator.is_valid(1)


def test_validator_error_messages():
    validator = Validator({"type": "integer", "maximum": 3})
    assert validator.iter_error_messages(4) == ["4 is greater than the maximum of 3"]


def test_validator_draft_is_picked_from_schema():
    schema = {"$schema": "http://json-schema.org/draft-07/schema#", "items": [{"type": "integer"}], "additionalItems": False}
    validator = Validator(schema)
    assert validator.validator_cls.__name__ == "Draft7Validator"
    assert validator.is_valid([1])
    assert not validator.is_valid([1, 2])
