"""Immutable per-invocation build inputs."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

from osgibundle.errors import ValidationError

SOURCES_DIRECTIVE = "-sources"
FALSE_VALUES = frozenset({"false", "no", "off", "0"})


@dataclass(frozen=True, slots=True)
class OutputLocation:
    directory: Path
    file_name: str
    extension: str = "jar"

    @property
    def archive_name(self) -> str:
        if not self.extension:
            return self.file_name
        return f"{self.file_name}.{self.extension}"

    @property
    def path(self) -> Path:
        return self.directory / self.archive_name


@dataclass(frozen=True, slots=True)
class BuildContext:
    classpath: tuple[Path, ...]
    class_roots: tuple[Path, ...]
    resource_roots: tuple[Path, ...]
    source_roots: tuple[Path, ...]
    output: OutputLocation
    embed_sources: bool = False
    trace: bool = False

    @classmethod
    def create(
        cls,
        *,
        output: OutputLocation,
        instructions: Mapping[str, str],
        classpath: Iterable[str | Path] = (),
        class_roots: Iterable[str | Path] = (),
        resource_roots: Iterable[str | Path] = (),
        source_roots: Iterable[str | Path] = (),
        trace: bool = False,
    ) -> BuildContext:
        if not output.file_name:
            raise ValidationError(
                "Output archive name must be non-empty.",
                context={"directory": str(output.directory)},
            )
        return cls(
            classpath=_paths(classpath),
            class_roots=_paths(class_roots),
            resource_roots=_paths(resource_roots),
            source_roots=_paths(source_roots),
            output=output,
            embed_sources=sources_enabled(instructions),
            trace=trace,
        )


def sources_enabled(instructions: Mapping[str, str]) -> bool:
    """True when a ``-sources`` directive is present with a truthy value.

    An empty value counts as enabled: the directive has no payload.
    """
    for key, value in instructions.items():
        if key.startswith(SOURCES_DIRECTIVE) and is_truthy(value):
            return True
    return False


def is_truthy(value: str) -> bool:
    return value.strip().lower() not in FALSE_VALUES


def _paths(items: Iterable[str | Path]) -> tuple[Path, ...]:
    return tuple(Path(item) for item in items)
