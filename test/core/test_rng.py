import pytest
from hypothesis import given
from hypothesis import strategies as st

from jsonfoundry.core.rng import ZERO_STATE_REPLACEMENT, XorShift32, fnv1a32


@pytest.mark.parametrize(
    ["text", "expected"],
    [
        ("", 2166136261),
        ("a", 0xE40C292C),
        ("foobar", 0xBF9CF968),
    ],
)
def test_fnv1a32(text, expected):
    assert fnv1a32(text) == expected


def test_fnv1a32_hashes_utf8_bytes():
    assert fnv1a32("é") == fnv1a32("\xc3\xa9".encode("latin-1").decode("utf-8"))
    assert fnv1a32("é") != fnv1a32("e")


def test_first_draw_from_unit_state():
    rng = XorShift32(fnv1a32("$") ^ 1, "$")
    assert rng.state == 1
    assert rng.next() == 270369


def test_zero_state_is_replaced():
    rng = XorShift32(fnv1a32("$.x"), "$.x")
    assert rng.state == ZERO_STATE_REPLACEMENT
    assert rng.next() != 0


def test_seed_is_masked():
    assert XorShift32(2**32 + 5, "$").state == XorShift32(5, "$").state


def test_streams_are_keyed_by_path():
    first = [XorShift32(1, "$.a").next() for _ in range(3)]
    second = [XorShift32(1, "$.b").next() for _ in range(3)]
    assert first != second


@given(seed=st.integers(min_value=0, max_value=2**32 - 1), path=st.text(max_size=20))
def test_same_seed_and_path_give_same_sequence(seed, path):
    left, right = XorShift32(seed, path), XorShift32(seed, path)
    assert [left.next() for _ in range(5)] == [right.next() for _ in range(5)]


@given(seed=st.integers(min_value=0, max_value=2**32 - 1))
def test_float01_range(seed):
    rng = XorShift32(seed, "$")
    for _ in range(20):
        assert 0.0 <= rng.next_float01() < 1.0


@given(
    seed=st.integers(min_value=0, max_value=2**32 - 1),
    low=st.integers(min_value=-(2**70), max_value=2**70),
    span=st.integers(min_value=0, max_value=2**70),
)
def test_next_int_is_inclusive_and_in_range(seed, low, span):
    rng = XorShift32(seed, "$")
    value = rng.next_int(low, low + span)
    assert low <= value <= low + span


def test_next_int_rejects_empty_range():
    with pytest.raises(ValueError, match="Empty range"):
        XorShift32(1, "$").next_int(5, 4)


def test_next_int_covers_small_range():
    rng = XorShift32(7, "$")
    assert {rng.next_int(0, 2) for _ in range(200)} == {0, 1, 2}


@given(seed=st.integers(min_value=0, max_value=2**32 - 1))
def test_next_float_stays_within_extreme_bounds(seed):
    rng = XorShift32(seed, "$")
    value = rng.next_float(-1.7e308, 1.7e308)
    assert -1.7e308 <= value <= 1.7e308


def test_shuffle_is_a_permutation():
    items = list(range(10))
    XorShift32(3, "$").shuffle(items)
    assert sorted(items) == list(range(10))


def test_choice_from_empty():
    with pytest.raises(IndexError):
        XorShift32(3, "$").choice([])


def test_sample():
    sample = XorShift32(3, "$").sample("abcdef", 3)
    assert len(sample) == 3
    assert len(set(sample)) == 3


@pytest.mark.parametrize("seed", [1, 424242, 2**32 - 1])
def test_floats_are_uniform(seed):
    rng = XorShift32(seed, "$")
    buckets = [0] * 10
    for _ in range(10_000):
        buckets[int(rng.next_float01() * 10)] += 1
    assert all(700 <= count <= 1300 for count in buckets)


@pytest.mark.parametrize("seed", [1, 424242])
def test_integers_are_uniform(seed):
    rng = XorShift32(seed, "$.items[0]")
    buckets = [0] * 10
    for _ in range(10_000):
        buckets[rng.next_int(0, 9)] += 1
    assert all(700 <= count <= 1300 for count in buckets)
