"""Drive a bundle build engine and normalise what it returns."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from osgibundle.classification import DEFAULT_RULES, Diagnostic, RuleSet
from osgibundle.context import BuildContext
from osgibundle.engine import ArchiveEntry, BuildEngine, Builder, EngineRequest
from osgibundle.errors import FatalBuildError
from osgibundle.observability import StructuredLogger

TRACE_PREFIX = "# "

EngineFactory = Callable[[], BuildEngine]


@dataclass(frozen=True, slots=True)
class BuildResult:
    manifest: bytes
    entries: tuple[ArchiveEntry, ...]
    advisory: tuple[Diagnostic, ...] = ()
    fatal: tuple[Diagnostic, ...] = ()
    trace: tuple[str, ...] = ()

    @property
    def succeeded(self) -> bool:
        return not self.fatal

    @property
    def entry_names(self) -> tuple[str, ...]:
        return tuple(entry.path for entry in self.entries)

    @property
    def diagnostics(self) -> tuple[Diagnostic, ...]:
        return (*self.advisory, *self.fatal)


def classpath_summary(context: BuildContext) -> str:
    entries = ", ".join(str(entry) for entry in context.classpath)
    return f"The Builder is about to generate a jar using classpath: [{entries}]"


@dataclass(slots=True)
class BundleBuildAdapter:
    """Runs one engine build per call.

    A new engine comes from ``engine_factory`` on every :meth:`build`, so two
    builds never share engine state.
    """

    engine_factory: EngineFactory = Builder
    rules: RuleSet = DEFAULT_RULES
    logger: StructuredLogger = field(default_factory=StructuredLogger)

    def build(self, context: BuildContext, instructions: Mapping[str, str]) -> BuildResult:
        engine = self.engine_factory()
        self.logger.log(
            operation="build",
            phase="configure",
            message=classpath_summary(context),
            level="debug",
            extra={"engine": engine.name},
        )
        request = EngineRequest(
            properties=dict(instructions),
            bundle_name=context.output.file_name,
            classpath=context.classpath,
            class_roots=context.class_roots,
            resource_roots=context.resource_roots,
            source_roots=context.source_roots if context.embed_sources else (),
            embed_sources=context.embed_sources,
            trace=context.trace,
        )
        output = engine.build(request)

        advisory, fatal = self.rules.classify(output.messages)
        trace = (
            tuple(f"{TRACE_PREFIX}{line}" for line in output.trace) if context.trace else ()
        )
        result = BuildResult(
            manifest=output.manifest,
            entries=output.entries,
            advisory=advisory,
            fatal=fatal,
            trace=trace,
        )
        for diagnostic in result.diagnostics:
            self.logger.log(
                operation="build",
                phase="analyze",
                message=diagnostic.text,
                level="error" if diagnostic.fatal else "warning",
                extra={"kind": diagnostic.kind},
            )

        if fatal:
            raise FatalBuildError(
                fatal[0].text,
                result=result,
                hint="Fix the bundle instruction named in the message and rebuild.",
                context={"operation": "build", "archive": str(context.output.path)},
            )
        self.logger.log(
            operation="build",
            phase="complete",
            message="Bundle content assembled.",
            extra={"entries": len(result.entries), "advisory": len(advisory)},
        )
        return result
