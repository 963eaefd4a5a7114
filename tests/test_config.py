from pathlib import Path

import pytest

from osgibundle.config import load_config, parse_config
from osgibundle.errors import ConfigError


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_load_config_reads_all_sections(tmp_path: Path) -> None:
    path = _write(
        tmp_path / "bundle.toml",
        """
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
Include-Resource = ["a", "b"]
-sources = true

[layout]
classes = ["out/classes"]
classpath = ["lib/api.jar"]
""",
    )

    config = load_config(path)

    assert config.name == "demo"
    assert config.version == "1.0.2"
    assert config.jar.base_name == "xyz"
    assert config.jar.extension == "baz"
    assert config.jar.manifest == {"Built-By": "abc"}
    assert config.bundle.trace is True
    assert config.bundle.instructions["-sources"] is True
    assert config.layout.classes == ("out/classes",)
    assert config.layout.resources == ("src/main/resources",)
    assert config.layout.classpath == ("lib/api.jar",)


def test_create_task_applies_jar_and_bundle_settings(tmp_path: Path) -> None:
    config = parse_config(
        {
            "project": {"name": "demo", "version": "1.0.2"},
            "jar": {"base_name": "xyz", "manifest": {"Built-By": "abc"}},
            "bundle": {
                "trace": True,
                "instructions": {"Built-By": ["ab", "c"], "-sources": True},
            },
        }
    )

    task = config.create_task(tmp_path)

    assert task.jar.archive_file_name == "xyz-1.0.2"
    assert task.bundle.trace is True
    assert task.layout.root == tmp_path
    resolved = task.resolved_instructions()
    assert resolved["Built-By"] == "ab,c"
    assert resolved["-sources"] == "true"
    assert resolved["Bundle-Version"] == "1.0.2"


def test_missing_file_is_a_config_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError) as exc_info:
        load_config(tmp_path / "bundle.toml")

    assert exc_info.value.code == "E_CONFIG"
    assert exc_info.value.context["path"].endswith("bundle.toml")


def test_invalid_toml_is_a_config_error(tmp_path: Path) -> None:
    path = _write(tmp_path / "bundle.toml", "[project\nname = ")

    with pytest.raises(ConfigError, match="not valid TOML"):
        load_config(path)


@pytest.mark.parametrize(
    "raw",
    [
        {},
        {"project": {"name": ""}},
        {"project": {"name": "demo", "version": 1}},
        {"project": {"name": "demo"}, "jar": "xyz"},
        {"project": {"name": "demo"}, "bundle": {"trace": "yes"}},
        {"project": {"name": "demo"}, "bundle": {"instructions": {"Built-By": []}}},
        {"project": {"name": "demo"}, "bundle": {"instructions": {"Built-By": {"a": 1}}}},
        {"project": {"name": "demo"}, "jar": {"manifest": {"Built-By": ["a"]}}},
        {"project": {"name": "demo"}, "layout": {"classes": "build/classes"}},
    ],
)
def test_rejects_invalid_values(raw: dict[str, object]) -> None:
    with pytest.raises(ConfigError):
        parse_config(raw)
