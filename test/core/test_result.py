from jsonfoundry.core.result import Err, Ok, partition


def test_partition_keeps_positions_of_failures():
    values, errors = partition([Ok(1), Err("a"), Ok(None), Err("b")])
    assert values == [1, None]
    assert errors == [(1, "a"), (3, "b")]


def test_partition_empty():
    assert partition([]) == ([], [])


def test_ok_and_err_accessors():
    assert Ok(5).ok() == 5
    assert Err("boom").err() == "boom"
