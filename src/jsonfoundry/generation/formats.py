"""Deterministic generators for well-known string formats."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from jsonfoundry.core.errors import GenerationError
from jsonfoundry.core.result import Err, Ok, Result
from jsonfoundry.core.rng import XorShift32

BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
BASE = len(BASE36_ALPHABET)
DATE_TIME_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)
DAYS_RANGE = 365
SECONDS_PER_DAY = 86400
EMAIL_LOCAL_WIDTH = 6

FormatGenerator = Callable[[XorShift32], str]


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    output = ""
    while number > 0:
        number, rem = divmod(number, BASE)
        output = BASE36_ALPHABET[rem] + output
    return output


def _email(rng: XorShift32) -> str:
    return f"user.{to_base36(rng.next()).rjust(EMAIL_LOCAL_WIDTH, '0')}@example.test"


def _uri(rng: XorShift32) -> str:
    return f"https://example.test/resource/{to_base36(rng.next())}"


def _uuid(rng: XorShift32) -> str:
    data = bytearray()
    for _ in range(4):
        data.extend(rng.next().to_bytes(4, "little"))
    # RFC 4122 version 4, variant 10xx
    data[6] = (data[6] & 0x0F) | 0x40
    data[8] = (data[8] & 0x3F) | 0x80
    digits = data.hex()
    return f"{digits[:8]}-{digits[8:12]}-{digits[12:16]}-{digits[16:20]}-{digits[20:]}"


def _date_time(rng: XorShift32) -> str:
    days = rng.next() % DAYS_RANGE
    seconds = rng.next() % SECONDS_PER_DAY
    moment = DATE_TIME_EPOCH + timedelta(days=days, seconds=seconds)
    return moment.strftime("%Y-%m-%dT%H:%M:%S") + ".000Z"


FORMATS: dict[str, FormatGenerator] = {
    "email": _email,
    "uri": _uri,
    "uuid": _uuid,
    "date-time": _date_time,
}


class FormatRegistry:
    """Format generators with per-format call counters.

    The Nth call for format F draws from the `format:F:N` stream, so a registry yields the
    same sequence for the same seed until it is reset.
    """

    __slots__ = ("seed", "_counters")

    def __init__(self, seed: int) -> None:
        self.seed = seed
        self._counters: dict[str, int] = {}

    @staticmethod
    def supports(name: str) -> bool:
        return name in FORMATS

    @staticmethod
    def names() -> list[str]:
        return list(FORMATS)

    def generate(self, name: str) -> Result[str, GenerationError]:
        generator = FORMATS.get(name)
        if generator is None:
            return Err(GenerationError.unsupported_format(name))
        counter = self._counters.get(name, 0)
        self._counters[name] = counter + 1
        return Ok(generator(XorShift32(self.seed, f"format:{name}:{counter}")))

    def reset(self) -> None:
        self._counters.clear()
