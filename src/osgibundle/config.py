"""``bundle.toml`` loading.

Example::

    [project]
    name = "demo"
    version = "1.0.2"

    [jar]
    base_name = "xyz"
    extension = "baz"

    [jar.manifest]
    Built-By = "abc"

    [bundle]
    trace = true

    [bundle.instructions]
    Bundle-Activator = "org.foo.bar.TestActivator"
    Built-By = ["ab", "c"]
    -sources = true

    [layout]
    classes = ["build/classes"]
    classpath = ["lib/api.jar"]
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from osgibundle.errors import ConfigError
from osgibundle.task import BundleJarTask, ProjectLayout

CONFIG_FILE_NAME = "bundle.toml"

_SCALARS = (str, bool, int, float)


@dataclass(frozen=True, slots=True)
class JarConfig:
    base_name: str | None = None
    appendix: str = ""
    version: str | None = None
    classifier: str = ""
    extension: str = "jar"
    destination: str | None = None
    manifest: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class BundleSection:
    trace: bool = False
    instructions: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class LayoutConfig:
    classes: tuple[str, ...] = ("build/classes",)
    resources: tuple[str, ...] = ("src/main/resources",)
    sources: tuple[str, ...] = ("src/main/java",)
    classpath: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class BundleConfig:
    name: str
    version: str | None = None
    jar: JarConfig = field(default_factory=JarConfig)
    bundle: BundleSection = field(default_factory=BundleSection)
    layout: LayoutConfig = field(default_factory=LayoutConfig)

    def create_task(self, root: str | Path) -> BundleJarTask:
        project_root = Path(root)
        layout = ProjectLayout(
            root=project_root,
            class_dirs=self.layout.classes,
            resource_dirs=self.layout.resources,
            source_dirs=self.layout.sources,
            classpath=self.layout.classpath,
        )
        task = BundleJarTask.for_project(
            project_root, name=self.name, version=self.version, layout=layout
        )
        jar = task.jar
        if self.jar.base_name:
            jar.base_name = self.jar.base_name
        if self.jar.version is not None:
            jar.version = self.jar.version
        jar.appendix = self.jar.appendix
        jar.classifier = self.jar.classifier
        jar.extension = self.jar.extension
        if self.jar.destination:
            jar.destination_dir = Path(self.jar.destination)
        jar.attributes(self.jar.manifest)

        task.bundle.trace = self.bundle.trace
        for key, value in self.bundle.instructions.items():
            if isinstance(value, list):
                task.bundle.instruction(key, *value)
            else:
                task.bundle.instructions.put(key, value)
        return task


def load_config(path: str | Path) -> BundleConfig:
    config_path = Path(path)
    try:
        with config_path.open("rb") as handle:
            raw = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigError(
            "Bundle configuration does not exist.",
            hint=f"Create {CONFIG_FILE_NAME} in the project directory.",
            context={"path": str(config_path)},
        ) from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            "Bundle configuration is not valid TOML.",
            hint=str(exc),
            context={"path": str(config_path)},
        ) from exc
    return parse_config(raw, source=str(config_path))


def parse_config(raw: dict[str, Any], *, source: str = "<memory>") -> BundleConfig:
    project = _table(raw, "project", source)
    name = project.get("name")
    if not isinstance(name, str) or not name:
        raise ConfigError(
            "Invalid `project.name` value.",
            hint="Set a non-empty project name.",
            context={"path": source},
        )
    version = _optional_str(project, "version", source)

    jar_raw = _table(raw, "jar", source)
    jar = JarConfig(
        base_name=_optional_str(jar_raw, "base_name", source),
        appendix=_optional_str(jar_raw, "appendix", source) or "",
        version=_optional_str(jar_raw, "version", source),
        classifier=_optional_str(jar_raw, "classifier", source) or "",
        extension=_optional_str(jar_raw, "extension", source) or "jar",
        destination=_optional_str(jar_raw, "destination", source),
        manifest=_values(
            _table(jar_raw, "manifest", source), "jar.manifest", source, allow_lists=False
        ),
    )

    bundle_raw = _table(raw, "bundle", source)
    trace = bundle_raw.get("trace", False)
    if not isinstance(trace, bool):
        raise ConfigError("Invalid `bundle.trace` value.", context={"path": source})
    bundle = BundleSection(
        trace=trace,
        instructions=_values(
            _table(bundle_raw, "instructions", source), "bundle.instructions", source
        ),
    )

    layout_raw = _table(raw, "layout", source)
    defaults = LayoutConfig()
    layout = LayoutConfig(
        classes=_str_tuple(layout_raw, "classes", defaults.classes, source),
        resources=_str_tuple(layout_raw, "resources", defaults.resources, source),
        sources=_str_tuple(layout_raw, "sources", defaults.sources, source),
        classpath=_str_tuple(layout_raw, "classpath", defaults.classpath, source),
    )
    return BundleConfig(name=name, version=version, jar=jar, bundle=bundle, layout=layout)


def _table(payload: dict[str, Any], key: str, source: str) -> dict[str, Any]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ConfigError(f"Invalid `{key}` table.", context={"path": source})
    return value


def _optional_str(payload: dict[str, Any], key: str, source: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"Invalid `{key}` value.", context={"path": source})
    return value


def _str_tuple(
    payload: dict[str, Any], key: str, default: tuple[str, ...], source: str
) -> tuple[str, ...]:
    value = payload.get(key)
    if value is None:
        return default
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"Invalid `layout.{key}` value.", context={"path": source})
    return tuple(value)


def _values(
    payload: dict[str, Any], where: str, source: str, *, allow_lists: bool = True
) -> dict[str, object]:
    parsed: dict[str, object] = {}
    for key, value in payload.items():
        items = value if allow_lists and isinstance(value, list) else [value]
        if not items or not all(isinstance(item, _SCALARS) for item in items):
            raise ConfigError(
                f"Invalid `{where}` entry.",
                hint="Use strings, booleans, numbers or lists of them.",
                context={"path": source, "key": key},
            )
        parsed[key] = value
    return parsed
