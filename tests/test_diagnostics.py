import io

from osgibundle.classification import Diagnostic, Severity
from osgibundle.diagnostics import DiagnosticsReporter, render_diagnostic


def test_diagnostics_and_trace_use_separate_channels() -> None:
    err = io.StringIO()
    trace = io.StringIO()
    reporter = DiagnosticsReporter(err=err, trace=trace)

    reporter.report(
        [
            Diagnostic("activator-not-found", Severity.ADVISORY, "Bundle-Activator not found"),
            Diagnostic("invalid-version", Severity.FATAL, "Invalid value for Bundle-Version"),
        ],
        trace=["# build", "# manifest"],
    )

    assert err.getvalue() == (
        "warning: Bundle-Activator not found\nerror: Invalid value for Bundle-Version\n"
    )
    assert trace.getvalue().splitlines() == ["# build", "# manifest"]


def test_every_advisory_message_is_rendered() -> None:
    err = io.StringIO()
    diagnostics = [
        Diagnostic("empty-clause", Severity.ADVISORY, f"message {i}") for i in range(3)
    ]

    DiagnosticsReporter(err=err, trace=io.StringIO()).report(diagnostics)

    assert len(err.getvalue().splitlines()) == 3


def test_render_uses_classified_severity() -> None:
    assert render_diagnostic(Diagnostic("x", Severity.FATAL, "boom")) == "error: boom"
    assert render_diagnostic(Diagnostic("x", Severity.ADVISORY, "hmm")) == "warning: hmm"
