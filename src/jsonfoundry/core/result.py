from typing import Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E", bound=Exception)


class Ok(Generic[T]):
    __slots__ = ("_value",)

    def __init__(self, value: T):
        self._value = value

    def __repr__(self) -> str:
        return f"Ok({self._value!r})"

    def ok(self) -> T:
        return self._value


class Err(Generic[E]):
    __slots__ = ("_error",)

    def __init__(self, error: E):
        self._error = error

    def __repr__(self) -> str:
        return f"Err({self._error!r})"

    def err(self) -> E:
        return self._error


Result = Ok[T] | Err[E]


def partition(results: list[Result[T, E]]) -> tuple[list[T], list[tuple[int, E]]]:
    """Split results into successful values and failures keyed by their position."""
    values: list[T] = []
    errors: list[tuple[int, E]] = []
    for idx, result in enumerate(results):
        if isinstance(result, Ok):
            values.append(result.ok())
        else:
            errors.append((idx, result.err()))
    return values, errors
