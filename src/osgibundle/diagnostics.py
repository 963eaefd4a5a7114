"""Render build diagnostics and trace lines on their output channels."""

from __future__ import annotations

import sys
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TextIO

from osgibundle.classification import Diagnostic


def _stderr() -> TextIO:
    return sys.stderr


@dataclass(slots=True)
class DiagnosticsReporter:
    """Writes diagnostics to ``err`` and trace lines to ``trace``.

    Severity is taken as classified; nothing is filtered or re-ranked here.
    """

    err: TextIO = field(default_factory=_stderr)
    trace: TextIO = field(default_factory=_stderr)

    def report(self, diagnostics: Iterable[Diagnostic], trace: Iterable[str] = ()) -> None:
        for line in trace:
            self.trace.write(f"{line}\n")
        for diagnostic in diagnostics:
            self.err.write(f"{render_diagnostic(diagnostic)}\n")
        self.err.flush()
        self.trace.flush()


def render_diagnostic(diagnostic: Diagnostic) -> str:
    label = "error" if diagnostic.fatal else "warning"
    return f"{label}: {diagnostic.text}"
