from __future__ import annotations

from jsonfoundry.api import GenerationOutput, generate
from jsonfoundry.config import ConfigError, FoundryConfig
from jsonfoundry.core.errors import FailureKind, GenerationError, InternalError, JsonFoundryError
from jsonfoundry.core.result import Err, Ok, Result
from jsonfoundry.core.version import JSONFOUNDRY_VERSION
from jsonfoundry.coverage import CoverageDimension, CoverageMode, ReportMode
from jsonfoundry.coverage.analyzer import Operation
from jsonfoundry.coverage.report import CoverageReport, diff_reports
from jsonfoundry.diagnostics import DiagnosticCode
from jsonfoundry.generation import CompatMode, EnumDistribution, Scenario
from jsonfoundry.generation.engine import GenerationBatch, Generator
from jsonfoundry.generation.enums import EnumState

__version__ = JSONFOUNDRY_VERSION

__all__ = [
    "__version__",
    # Entry points
    "generate",
    "Generator",
    "GenerationOutput",
    "GenerationBatch",
    "Operation",
    # Configuration
    "FoundryConfig",
    "CompatMode",
    "EnumDistribution",
    "EnumState",
    "Scenario",
    # Results and errors
    "Ok",
    "Err",
    "Result",
    "FailureKind",
    "GenerationError",
    "ConfigError",
    "InternalError",
    "JsonFoundryError",
    # Coverage
    "CoverageDimension",
    "CoverageMode",
    "CoverageReport",
    "ReportMode",
    "diff_reports",
    "DiagnosticCode",
]
