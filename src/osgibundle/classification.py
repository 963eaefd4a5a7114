"""Rules deciding which engine messages abort a build.

The engine reports messages with its own ``error``/``warning`` levels, which
do not say whether a manifest could still be produced. :data:`DEFAULT_RULES`
maps every message kind the default engine emits to a :class:`Severity`;
kinds a rule set does not list fall back to its ``default``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from osgibundle.engine import EngineMessage


class Severity(StrEnum):
    ADVISORY = "advisory"
    FATAL = "fatal"


@dataclass(frozen=True, slots=True)
class ClassificationRule:
    kind: str
    severity: Severity
    description: str = ""


@dataclass(frozen=True, slots=True)
class Diagnostic:
    kind: str
    severity: Severity
    text: str
    header: str | None = None

    @property
    def fatal(self) -> bool:
        return self.severity is Severity.FATAL


@dataclass(frozen=True, slots=True)
class RuleSet:
    rules: tuple[ClassificationRule, ...]
    default: Severity = Severity.ADVISORY

    def severity_for(self, kind: str) -> Severity:
        for rule in self.rules:
            if rule.kind == kind:
                return rule.severity
        return self.default

    def classify(
        self, messages: Iterable[EngineMessage]
    ) -> tuple[tuple[Diagnostic, ...], tuple[Diagnostic, ...]]:
        """Split messages into ``(advisory, fatal)``, keeping engine order."""
        advisory: list[Diagnostic] = []
        fatal: list[Diagnostic] = []
        for message in messages:
            diagnostic = Diagnostic(
                kind=message.kind,
                severity=self.severity_for(message.kind),
                text=message.text,
                header=message.header,
            )
            (fatal if diagnostic.fatal else advisory).append(diagnostic)
        return tuple(advisory), tuple(fatal)

    def with_rule(self, rule: ClassificationRule) -> RuleSet:
        kept = tuple(existing for existing in self.rules if existing.kind != rule.kind)
        return RuleSet(rules=(*kept, rule), default=self.default)


DEFAULT_RULES = RuleSet(
    rules=(
        ClassificationRule(
            "invalid-header-name",
            Severity.FATAL,
            "Instruction key cannot be written as a manifest header.",
        ),
        ClassificationRule(
            "invalid-header-value",
            Severity.FATAL,
            "Header value would break the manifest line structure.",
        ),
        ClassificationRule(
            "malformed-header",
            Severity.FATAL,
            "Clause-structured header value does not parse.",
        ),
        ClassificationRule(
            "invalid-version",
            Severity.FATAL,
            "Bundle-Version is not an OSGi version.",
        ),
        ClassificationRule(
            "invalid-symbolic-name",
            Severity.FATAL,
            "Bundle-SymbolicName is not a single dotted name.",
        ),
        ClassificationRule(
            "activator-not-found",
            Severity.ADVISORY,
            "Bundle-Activator class is neither in the bundle nor on the classpath.",
        ),
        ClassificationRule("unused-export", Severity.ADVISORY, "Export selector matched nothing."),
        ClassificationRule(
            "unused-private", Severity.ADVISORY, "Private-Package selector matched nothing."
        ),
        ClassificationRule("empty-clause", Severity.ADVISORY, "Header contains an empty clause."),
        ClassificationRule("empty-bundle", Severity.ADVISORY, "No content was included."),
        ClassificationRule("duplicate-entry", Severity.ADVISORY, "Later root repeats a path."),
        ClassificationRule(
            "classpath-entry-missing", Severity.ADVISORY, "Classpath entry does not exist."
        ),
        ClassificationRule(
            "invalid-classpath-entry", Severity.ADVISORY, "Classpath archive is unreadable."
        ),
        ClassificationRule("invalid-class-file", Severity.ADVISORY, "Class file does not parse."),
    ),
)
