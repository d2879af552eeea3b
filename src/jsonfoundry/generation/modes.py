from __future__ import annotations

import re
from enum import Enum
from typing import Any


class Scenario(str, Enum):
    """Shape of the values a generation run prefers."""

    # Uniform values across the admissible range
    NORMAL = "normal"
    # Boundary values: minimums, maximums and their neighbours
    EDGE = "edge"
    # Large values: long strings, full arrays, many properties
    PEAK = "peak"
    # Unbalanced choices, e.g. skewed boolean distributions
    ERROR = "error"

    @classmethod
    def infer(cls, schema: Any) -> Scenario:
        """Pick a scenario from a `$comment` annotation, defaulting to `normal`."""
        if isinstance(schema, dict):
            comment = schema.get("$comment")
            if isinstance(comment, str):
                for scenario in (cls.EDGE, cls.PEAK, cls.ERROR):
                    if re.search(rf"\b{scenario.value}\b", comment, re.IGNORECASE):
                        return scenario
        return cls.NORMAL


class CompatMode(str, Enum):
    """How strictly schemas are checked before generation."""

    # Malformed schemas fail every item and every value is validated
    STRICT = "strict"
    # Malformed schemas are used as-is and validation is skipped for them
    LAX = "lax"


class EnumDistribution(str, Enum):
    UNIFORM = "uniform"
    WEIGHTED = "weighted"
    ROUND_ROBIN = "round-robin"
    FIRST = "first"
    LAST = "last"
