"""JSON pointers for schema locations and JSONPath-like paths for instance locations."""

from __future__ import annotations

from typing import Any

ROOT_POINTER = "#"
ROOT_PATH = "$"


def escape(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")


def unescape(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def append_pointer(base: str, *tokens: str | int) -> str:
    pointer = base
    for token in tokens:
        pointer += "/" + escape(str(token))
    return pointer


def split_pointer(pointer: str) -> list[str]:
    if pointer.startswith("#"):
        pointer = pointer[1:]
    if not pointer:
        return []
    return [unescape(token) for token in pointer.lstrip("/").split("/")]


def resolve_pointer(document: Any, pointer: str) -> Any:
    """Resolve a pointer inside a document, raising `LookupError` if it leads nowhere."""
    current = document
    for token in split_pointer(pointer):
        if isinstance(current, dict):
            if token not in current:
                raise LookupError(f"Unresolvable JSON pointer: {pointer!r}")
            current = current[token]
        elif isinstance(current, list):
            try:
                current = current[int(token)]
            except (ValueError, IndexError):
                raise LookupError(f"Unresolvable JSON pointer: {pointer!r}") from None
        else:
            raise LookupError(f"Unresolvable JSON pointer: {pointer!r}")
    return current


def append_property(path: str, name: str) -> str:
    if name.isidentifier():
        return f"{path}.{name}"
    return f"{path}[{name!r}]"


def append_index(path: str, index: int) -> str:
    return f"{path}[{index}]"
