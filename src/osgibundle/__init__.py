"""Public package entrypoint for the OSGi bundle builder."""

from .adapter import BuildResult, BundleBuildAdapter
from .archive import write_archive
from .classification import DEFAULT_RULES, ClassificationRule, Diagnostic, RuleSet, Severity
from .config import BundleConfig, load_config
from .context import BuildContext, OutputLocation
from .diagnostics import DiagnosticsReporter
from .engine import ArchiveEntry, BuildEngine, Builder, EngineMessage, EngineOutput, EngineRequest
from .errors import (
    BundleError,
    ConfigError,
    ErrorCode,
    FatalBuildError,
    HostIOFailure,
    ValidationError,
)
from .instructions import InstructionSet, Layer
from .observability import BuildReport, StructuredLogger
from .resolver import project_defaults, resolve_instructions
from .task import BundleExtension, BundleJarTask, JarSpec, ProjectLayout, TaskOutcome

__all__ = [
    "ArchiveEntry",
    "BuildContext",
    "BuildEngine",
    "BuildReport",
    "BuildResult",
    "Builder",
    "BundleBuildAdapter",
    "BundleConfig",
    "BundleError",
    "BundleExtension",
    "BundleJarTask",
    "ClassificationRule",
    "ConfigError",
    "DEFAULT_RULES",
    "Diagnostic",
    "DiagnosticsReporter",
    "EngineMessage",
    "EngineOutput",
    "EngineRequest",
    "ErrorCode",
    "FatalBuildError",
    "HostIOFailure",
    "InstructionSet",
    "JarSpec",
    "Layer",
    "OutputLocation",
    "ProjectLayout",
    "RuleSet",
    "Severity",
    "StructuredLogger",
    "TaskOutcome",
    "ValidationError",
    "load_config",
    "project_defaults",
    "resolve_instructions",
    "write_archive",
]
