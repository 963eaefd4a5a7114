"""Project-facing bundle jar task.

Mirrors the two configuration blocks a build script declares::

    jar    { manifest { attributes("Built-By": "abc") }; baseName = "xyz" }
    bundle { instructions << ["Bundle-Activator": "org.foo.Activator"]; trace = true }

and runs resolve -> build -> report -> write for one invocation.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Self

from osgibundle.adapter import BuildResult, BundleBuildAdapter, EngineFactory
from osgibundle.archive import write_archive
from osgibundle.classification import DEFAULT_RULES, RuleSet
from osgibundle.context import BuildContext, OutputLocation
from osgibundle.diagnostics import DiagnosticsReporter
from osgibundle.engine import Builder
from osgibundle.errors import FatalBuildError, ValidationError
from osgibundle.instructions import InstructionSet
from osgibundle.observability import StructuredLogger
from osgibundle.resolver import UNSPECIFIED_VERSION, project_defaults, resolve_instructions

DEFAULT_DESTINATION = Path("build") / "libs"


@dataclass(frozen=True, slots=True)
class ProjectLayout:
    """Where a project keeps its compiled output, resources and sources."""

    root: Path
    class_dirs: tuple[str, ...] = ("build/classes",)
    resource_dirs: tuple[str, ...] = ("src/main/resources",)
    source_dirs: tuple[str, ...] = ("src/main/java",)
    classpath: tuple[str, ...] = ()

    def resolve(self, items: Iterable[str]) -> tuple[Path, ...]:
        return tuple(self.root / item for item in items)


@dataclass(slots=True)
class JarSpec:
    base_name: str
    appendix: str = ""
    version: str = ""
    classifier: str = ""
    extension: str = "jar"
    destination_dir: Path | None = None
    manifest_attributes: dict[str, object] = field(default_factory=dict)

    def attributes(self, attributes: Mapping[str, object]) -> Self:
        self.manifest_attributes.update(attributes)
        return self

    @property
    def archive_file_name(self) -> str:
        parts = (self.base_name, self.appendix, self.version, self.classifier)
        return "-".join(part for part in parts if part)

    def output_location(self, root: Path) -> OutputLocation:
        destination = self.destination_dir or DEFAULT_DESTINATION
        if not destination.is_absolute():
            destination = root / destination
        return OutputLocation(
            directory=destination,
            file_name=self.archive_file_name,
            extension=self.extension,
        )


@dataclass(slots=True)
class BundleExtension:
    instructions: InstructionSet = field(default_factory=InstructionSet)
    trace: bool = False

    def instruction(self, key: str, *values: object) -> Self:
        """Legacy form: every value becomes its own fragment under ``key``."""
        self.instructions.add_instruction_fragments(key, values)
        return self


@dataclass(frozen=True, slots=True)
class TaskOutcome:
    archive: Path
    result: BuildResult


@dataclass(slots=True)
class BundleJarTask:
    layout: ProjectLayout
    jar: JarSpec
    project_name: str
    project_version: str | None = None
    bundle: BundleExtension = field(default_factory=BundleExtension)
    engine_factory: EngineFactory = Builder
    rules: RuleSet = DEFAULT_RULES
    logger: StructuredLogger = field(default_factory=StructuredLogger)

    @classmethod
    def for_project(
        cls,
        root: str | Path,
        *,
        name: str,
        version: str | None = None,
        layout: ProjectLayout | None = None,
    ) -> BundleJarTask:
        if not name:
            raise ValidationError("Project name must be non-empty.")
        project_root = Path(root)
        jar_version = version if version and version != UNSPECIFIED_VERSION else ""
        return cls(
            layout=layout or ProjectLayout(root=project_root),
            jar=JarSpec(base_name=name, version=jar_version),
            project_name=name,
            project_version=version,
        )

    def resolved_instructions(self) -> dict[str, str]:
        return resolve_instructions(
            self.jar.manifest_attributes,
            self.bundle.instructions,
            defaults=project_defaults(self.project_name, self.project_version),
        )

    def build_context(self, instructions: Mapping[str, str]) -> BuildContext:
        return BuildContext.create(
            output=self.jar.output_location(self.layout.root),
            instructions=instructions,
            classpath=self.layout.resolve(self.layout.classpath),
            class_roots=self.layout.resolve(self.layout.class_dirs),
            resource_roots=self.layout.resolve(self.layout.resource_dirs),
            source_roots=self.layout.resolve(self.layout.source_dirs),
            trace=self.bundle.trace,
        )

    def run(self, reporter: DiagnosticsReporter | None = None) -> TaskOutcome:
        reporter = reporter or DiagnosticsReporter()
        instructions = self.resolved_instructions()
        context = self.build_context(instructions)
        self.logger.log(
            operation="jar",
            phase="resolve",
            message="Resolved bundle instructions.",
            level="debug",
            extra={"instructions": dict(sorted(instructions.items()))},
        )
        adapter = BundleBuildAdapter(
            engine_factory=self.engine_factory,
            rules=self.rules,
            logger=self.logger,
        )
        try:
            result = adapter.build(context, instructions)
        except FatalBuildError as exc:
            if exc.result is not None:
                reporter.report(exc.result.diagnostics, exc.result.trace)
            raise
        reporter.report(result.diagnostics, result.trace)

        archive = write_archive(result, context.output.path)
        self.logger.log(
            operation="jar",
            phase="write",
            message="Wrote bundle archive.",
            extra={"path": str(archive)},
        )
        return TaskOutcome(archive=archive, result=result)
