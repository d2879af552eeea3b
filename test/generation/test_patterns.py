import re

import pytest

from jsonfoundry.core.rng import XorShift32
from jsonfoundry.generation.patterns import PatternError, generate_matching, is_anchored


@pytest.mark.parametrize(
    "pattern",
    [
        "^[a-z]+$",
        "^\\d{3}-\\d{4}$",
        "^(foo|bar)baz?$",
        "^[A-Z][a-z]{2,5}\\s\\w+$",
        "^[^0-9]{4}$",
        "abc",
        "^(ab)+\\1?$",
        "^\\S+@\\S+$",
    ],
)
def test_generated_strings_match(pattern):
    rng = XorShift32(7, "$")
    for _ in range(10):
        value = generate_matching(pattern, rng)
        assert value is not None
        assert re.search(pattern, value)


def test_length_bounds_are_honoured():
    rng = XorShift32(3, "$")
    value = generate_matching("x", rng, min_length=5, max_length=5)
    assert value is not None
    assert len(value) == 5
    assert "x" in value


def test_anchored_pattern_can_not_be_padded():
    assert generate_matching("^x$", XorShift32(3, "$"), min_length=2) is None


def test_anchors():
    assert is_anchored("^a$") == (True, True)
    assert is_anchored("a$") == (False, True)
    assert is_anchored("\\Aa") == (True, False)


def test_invalid_pattern():
    with pytest.raises(PatternError, match="Invalid regular expression"):
        generate_matching("(", XorShift32(1, "$"))


def test_open_end_gets_filler_of_varying_length():
    rng = XorShift32(11, "$")
    values = [generate_matching("^x", rng, min_length=1, max_length=6) for _ in range(40)]
    assert all(value is not None and value.startswith("x") and len(value) <= 6 for value in values)
    assert len({len(value) for value in values}) > 1
    assert len(set(values)) > 10


def test_filler_respects_the_minimum_length():
    rng = XorShift32(5, "$")
    for _ in range(20):
        value = generate_matching("y$", rng, min_length=4, max_length=9)
        assert value is not None
        assert 4 <= len(value) <= 9
        assert value.endswith("y")
