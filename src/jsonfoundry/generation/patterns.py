"""Strings matching a regular expression, driven by a seeded stream."""

from __future__ import annotations

import re
import string
from functools import lru_cache
from typing import Any

from jsonfoundry.core.rng import XorShift32

try:  # pragma: no cover
    import re._constants as sre
    import re._parser as sre_parse
except ImportError:
    import sre_constants as sre
    import sre_parse

REPEATS: tuple
if hasattr(sre, "POSSESSIVE_REPEAT"):
    REPEATS = (sre.MIN_REPEAT, sre.MAX_REPEAT, sre.POSSESSIVE_REPEAT)
else:
    REPEATS = (sre.MIN_REPEAT, sre.MAX_REPEAT)
MAXREPEAT = sre_parse.MAXREPEAT
# Extra repetitions allowed on top of the minimum for unbounded quantifiers
UNBOUNDED_REPEAT_SPAN = 8
MAX_ATTEMPTS = 8

PRINTABLE = string.ascii_letters + string.digits + "_-. "
DIGITS = string.digits
WORD = string.ascii_letters + string.digits + "_"
SPACE = " \t"
FILLER = string.ascii_lowercase + string.digits

CATEGORIES = {
    sre.CATEGORY_DIGIT: DIGITS,
    sre.CATEGORY_NOT_DIGIT: "".join(c for c in PRINTABLE if c not in DIGITS),
    sre.CATEGORY_WORD: WORD,
    sre.CATEGORY_NOT_WORD: "-. ",
    sre.CATEGORY_SPACE: SPACE,
    sre.CATEGORY_NOT_SPACE: "".join(c for c in PRINTABLE if c not in SPACE),
}


class PatternError(ValueError):
    """The pattern can not be compiled or synthesized."""


@lru_cache
def parse(pattern: str) -> Any:
    try:
        re.compile(pattern)
        return sre_parse.parse(pattern)
    except re.error as exc:
        raise PatternError(f"Invalid regular expression {pattern!r}: {exc}") from None


@lru_cache
def compiled(pattern: str) -> re.Pattern:
    return re.compile(pattern)


def is_anchored(pattern: str) -> tuple[bool, bool]:
    """Whether the pattern is anchored at the start and at the end."""
    parsed = parse(pattern)
    items = list(parsed)
    starts = bool(items) and items[0][0] == sre.AT and items[0][1] in (sre.AT_BEGINNING, sre.AT_BEGINNING_STRING)
    ends = bool(items) and items[-1][0] == sre.AT and items[-1][1] in (sre.AT_END, sre.AT_END_STRING)
    return starts, ends


def matches(pattern: str, value: str) -> bool:
    return compiled(pattern).search(value) is not None


def generate_matching(
    pattern: str, rng: XorShift32, *, min_length: int = 0, max_length: int | None = None
) -> str | None:
    """A string that `re.search` matches and that fits the length bounds, or `None`."""
    parsed = parse(pattern)
    starts, ends = is_anchored(pattern)
    for _ in range(MAX_ATTEMPTS):
        value = _Synthesizer(rng).render(parsed)
        value = _fit_length(value, rng, min_length, max_length, can_prepend=not starts, can_append=not ends)
        if value is None:
            continue
        if len(value) >= min_length and (max_length is None or len(value) <= max_length) and matches(pattern, value):
            return value
    return None


def _fit_length(
    value: str, rng: XorShift32, min_length: int, max_length: int | None, *, can_prepend: bool, can_append: bool
) -> str | None:
    if max_length is not None and len(value) > max_length:
        return None
    if not can_append and not can_prepend:
        return value if len(value) >= min_length else None
    # An open end takes filler of random length, within the bounds
    low = max(min_length, len(value))
    high = low + UNBOUNDED_REPEAT_SPAN
    if max_length is not None:
        high = min(high, max_length)
    if low > high:
        return None
    padding = "".join(rng.choice(FILLER) for _ in range(rng.next_int(low, high) - len(value)))
    return value + padding if can_append else padding + value


class _Synthesizer:
    __slots__ = ("rng", "groups")

    def __init__(self, rng: XorShift32) -> None:
        self.rng = rng
        self.groups: dict[int, str] = {}

    def render(self, parsed: Any) -> str:
        return "".join(self._node(op, value) for op, value in parsed)

    def _node(self, op: Any, value: Any) -> str:
        if op == sre.LITERAL:
            return chr(value)
        if op == sre.NOT_LITERAL:
            return self.rng.choice([c for c in PRINTABLE if ord(c) != value])
        if op == sre.ANY:
            return self.rng.choice(PRINTABLE)
        if op == sre.IN:
            return self._in(value)
        if op in REPEATS:
            low, high, subpattern = value
            if high == MAXREPEAT:
                high = low + UNBOUNDED_REPEAT_SPAN
            count = self.rng.next_int(low, max(low, high))
            return "".join(self.render(subpattern) for _ in range(count))
        if op == sre.SUBPATTERN:
            group, subpattern = value[0], value[-1]
            text = self.render(subpattern)
            if group is not None:
                self.groups[group] = text
            return text
        if op == sre.BRANCH:
            _, alternatives = value
            return self.render(self.rng.choice(alternatives))
        if op == sre.GROUPREF:
            return self.groups.get(value, "")
        # Anchors, lookarounds and other zero-width nodes
        return ""

    def _in(self, items: list) -> str:
        negate = False
        chars: list[str] = []
        for op, value in items:
            if op == sre.NEGATE:
                negate = True
            elif op == sre.LITERAL:
                chars.append(chr(value))
            elif op == sre.RANGE:
                low, high = value
                # Cap huge ranges so the candidate list stays small
                chars.extend(chr(code) for code in range(low, min(high, low + 255) + 1))
            elif op == sre.CATEGORY:
                chars.extend(CATEGORIES.get(value, ""))
        if negate:
            excluded = set(chars)
            candidates = [c for c in PRINTABLE if c not in excluded]
        else:
            candidates = chars
        if not candidates:
            return ""
        return self.rng.choice(candidates)
