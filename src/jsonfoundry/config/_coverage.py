from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from jsonfoundry.config._diff_base import DiffBase
from jsonfoundry.coverage.targets import DEFAULT_DIMENSIONS, CoverageDimension, CoverageMode, ReportMode

DEFAULT_DIMENSION_PRIORITY = [
    CoverageDimension.BRANCHES,
    CoverageDimension.ENUM,
    CoverageDimension.STRUCTURE,
    CoverageDimension.BOUNDARIES,
]
DEFAULT_MAX_HINTS_PER_INSTANCE = 16


@dataclass(repr=False)
class PlannerConfig(DiffBase):
    dimension_priority: list[CoverageDimension]
    max_targets_per_dimension: int | None
    max_targets_per_schema: int | None
    max_targets_per_operation: int | None
    # Hint fan-out for one regenerated instance
    max_hints_per_instance: int

    __slots__ = (
        "dimension_priority",
        "max_targets_per_dimension",
        "max_targets_per_schema",
        "max_targets_per_operation",
        "max_hints_per_instance",
    )

    def __init__(
        self,
        *,
        dimension_priority: list[CoverageDimension] | None = None,
        max_targets_per_dimension: int | None = None,
        max_targets_per_schema: int | None = None,
        max_targets_per_operation: int | None = None,
        max_hints_per_instance: int = DEFAULT_MAX_HINTS_PER_INSTANCE,
    ) -> None:
        self.dimension_priority = dimension_priority or list(DEFAULT_DIMENSION_PRIORITY)
        self.max_targets_per_dimension = max_targets_per_dimension
        self.max_targets_per_schema = max_targets_per_schema
        self.max_targets_per_operation = max_targets_per_operation
        self.max_hints_per_instance = max_hints_per_instance

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PlannerConfig:
        priority = data.get("dimension-priority")
        return cls(
            dimension_priority=[CoverageDimension(item) for item in priority] if priority else None,
            max_targets_per_dimension=data.get("max-targets-per-dimension"),
            max_targets_per_schema=data.get("max-targets-per-schema"),
            max_targets_per_operation=data.get("max-targets-per-operation"),
            max_hints_per_instance=data.get("max-hints-per-instance", DEFAULT_MAX_HINTS_PER_INSTANCE),
        )

    def priority_of(self, dimension: CoverageDimension) -> int:
        """Position of a dimension in the planning order; unlisted dimensions go last."""
        try:
            return self.dimension_priority.index(dimension)
        except ValueError:
            return len(self.dimension_priority) + dimension.order


@dataclass(repr=False)
class CoverageConfig(DiffBase):
    mode: CoverageMode
    dimensions_enabled: list[CoverageDimension]
    # Leave targets proven unreachable out of the ratios
    exclude_unreachable: bool
    report_mode: ReportMode
    min_coverage: float | None
    planner: PlannerConfig

    __slots__ = ("mode", "dimensions_enabled", "exclude_unreachable", "report_mode", "min_coverage", "planner")

    def __init__(
        self,
        *,
        mode: CoverageMode = CoverageMode.OFF,
        dimensions_enabled: list[CoverageDimension] | None = None,
        exclude_unreachable: bool = True,
        report_mode: ReportMode = ReportMode.FULL,
        min_coverage: float | None = None,
        planner: PlannerConfig | None = None,
    ) -> None:
        self.mode = mode
        self.dimensions_enabled = dimensions_enabled or list(DEFAULT_DIMENSIONS)
        self.exclude_unreachable = exclude_unreachable
        self.report_mode = report_mode
        self.min_coverage = min_coverage
        self.planner = planner or PlannerConfig()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CoverageConfig:
        dimensions = data.get("dimensions-enabled")
        return cls(
            mode=CoverageMode(data.get("mode", CoverageMode.OFF.value)),
            dimensions_enabled=[CoverageDimension(item) for item in dimensions] if dimensions else None,
            exclude_unreachable=data.get("exclude-unreachable", True),
            report_mode=ReportMode(data.get("report-mode", ReportMode.FULL.value)),
            min_coverage=data.get("min-coverage"),
            planner=PlannerConfig.from_dict(data.get("planner", {})),
        )

    @property
    def is_enabled(self) -> bool:
        return self.mode != CoverageMode.OFF

    def dimension_enabled(self, dimension: CoverageDimension) -> bool:
        return dimension in self.dimensions_enabled
