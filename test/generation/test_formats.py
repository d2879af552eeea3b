import re
import uuid

import pytest

from jsonfoundry.core.errors import FailureKind
from jsonfoundry.generation.formats import FormatRegistry, to_base36

UUID_V4 = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")
DATE_TIME = re.compile(r"^2024-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.000Z$|^2025-01-0[1-9]T\d{2}:\d{2}:\d{2}\.000Z$")


def test_base36():
    assert to_base36(0) == "0"
    assert to_base36(35) == "z"
    assert to_base36(36) == "10"


def test_email():
    value = FormatRegistry(1).generate("email").ok()
    assert re.fullmatch(r"user\.[0-9a-z]{6,7}@example\.test", value)


def test_uri():
    assert FormatRegistry(1).generate("uri").ok().startswith("https://example.test/resource/")


def test_uuid_version_and_variant():
    registry = FormatRegistry(99)
    for _ in range(20):
        value = registry.generate("uuid").ok()
        assert UUID_V4.match(value)
        assert uuid.UUID(value).version == 4


def test_date_time():
    registry = FormatRegistry(5)
    for _ in range(20):
        assert DATE_TIME.match(registry.generate("date-time").ok())


def test_counters_make_sequences_non_repeating():
    registry = FormatRegistry(1)
    values = [registry.generate("uuid").ok() for _ in range(10)]
    assert len(set(values)) == 10


def test_reset_restarts_the_sequence():
    registry = FormatRegistry(1)
    first = [registry.generate("email").ok() for _ in range(3)]
    registry.reset()
    assert [registry.generate("email").ok() for _ in range(3)] == first


def test_formats_have_independent_counters():
    registry = FormatRegistry(1)
    registry.generate("uri")
    assert registry.generate("email").ok() == FormatRegistry(1).generate("email").ok()


@pytest.mark.parametrize("name", ["hostname", "ipv4", ""])
def test_unsupported(name):
    registry = FormatRegistry(1)
    assert not registry.supports(name)
    assert registry.generate(name).err().kind == FailureKind.UNSUPPORTED_FORMAT
