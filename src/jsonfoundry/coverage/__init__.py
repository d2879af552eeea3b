from __future__ import annotations

from jsonfoundry.coverage.targets import (
    DEFAULT_DIMENSIONS,
    CoverageDimension,
    CoverageMode,
    CoverageTarget,
    ReportMode,
    TargetKind,
    TargetStatus,
)

__all__ = [
    "DEFAULT_DIMENSIONS",
    "CoverageDimension",
    "CoverageMode",
    "CoverageTarget",
    "ReportMode",
    "TargetKind",
    "TargetStatus",
]
