"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from helpers import ACTIVATOR_SOURCE, class_bytes

ClassWriter = Callable[..., Path]


@pytest.fixture
def write_class() -> ClassWriter:
    def _write(root: Path, name: str, **kwargs: object) -> Path:
        path = root / f"{name}.class"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(class_bytes(name, **kwargs))  # type: ignore[arg-type]
        return path

    return _write


@pytest.fixture
def project(tmp_path: Path, write_class: ClassWriter) -> Path:
    """A compiled project with an activator, a plain class and their sources."""
    root = tmp_path / "demo"
    classes = root / "build" / "classes"
    write_class(
        classes,
        "org/foo/bar/TestActivator",
        references=("org/osgi/framework/BundleActivator", "org/osgi/framework/BundleContext"),
    )
    write_class(classes, "org/foo/bar/More")

    sources = root / "src" / "main" / "java" / "org" / "foo" / "bar"
    sources.mkdir(parents=True)
    (sources / "TestActivator.java").write_text(ACTIVATOR_SOURCE, encoding="utf-8")
    (sources / "More.java").write_text("package org.foo.bar;\n class More {}", encoding="utf-8")
    return root
