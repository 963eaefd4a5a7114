"""Command line entry point.

Usage:
    osgibundle jar [-p PROJECT_DIR] [-c bundle.toml] [-d] [--trace] [--report PATH]
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TextIO

from osgibundle.config import CONFIG_FILE_NAME, load_config
from osgibundle.diagnostics import DiagnosticsReporter
from osgibundle.errors import BundleError, FatalBuildError, HostIOFailure
from osgibundle.observability import BuildReport, StructuredLogger

EXIT_OK = 0
EXIT_FAILED = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="osgibundle", description="OSGi bundle jar builder")
    parser.add_argument("-p", "--project-dir", type=Path, default=Path("."))
    parser.add_argument("-c", "--config", type=Path, default=None, help="Path to bundle.toml")
    parser.add_argument("-d", "--debug", action="store_true", help="Print debug log records")
    sub = parser.add_subparsers(dest="command", required=True)

    jar_p = sub.add_parser("jar", help="Build the bundle jar")
    jar_p.add_argument("--trace", action="store_true", help="Trace the engine build")
    jar_p.add_argument("--report", type=Path, default=None, help="Write a JSON build report")
    jar_p.add_argument(
        "--report-format", choices=("json", "cbor"), default="json", help="Report encoding"
    )
    jar_p.add_argument("--log-json", type=Path, default=None, help="Write log records as JSONL")
    return parser


def cmd_jar(args: argparse.Namespace, *, out: TextIO, err: TextIO) -> int:
    project_dir: Path = args.project_dir
    logger = StructuredLogger()
    failures: list[BundleError] = []
    report: BuildReport | None = None
    try:
        config = load_config(args.config or project_dir / CONFIG_FILE_NAME)
        task = config.create_task(project_dir)
        task.logger = logger
        if args.trace:
            task.bundle.trace = True
        outcome = task.run(DiagnosticsReporter(err=err, trace=err))
        report = BuildReport.from_result(outcome.result, archive=outcome.archive)
    except BundleError as exc:
        failures.append(exc)
        if isinstance(exc, FatalBuildError) and exc.result is not None:
            report = BuildReport.from_result(exc.result)

    _print_debug(logger, out, enabled=args.debug)
    try:
        if args.report and report is not None:
            _write_report(report, args)
        _write_logs(logger, args)
    except HostIOFailure as exc:
        failures.append(exc)

    if failures:
        for failure in failures:
            err.write(f"{failure}\n")
        err.write("BUILD FAILED\n")
        return EXIT_FAILED
    out.write("BUILD SUCCESSFUL\n")
    return EXIT_OK


def _print_debug(logger: StructuredLogger, out: TextIO, *, enabled: bool) -> None:
    if not enabled:
        return
    for record in logger.records_at("debug"):
        out.write(f"{record['message']}\n")


def _write_report(report: BuildReport, args: argparse.Namespace) -> None:
    if args.report_format == "cbor":
        report.to_cbor(args.report)
    else:
        report.to_json(args.report)


def _write_logs(logger: StructuredLogger, args: argparse.Namespace) -> None:
    if args.log_json:
        logger.to_json_lines(args.log_json)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    # argparse rejects unknown subcommands; "jar" is the only one.
    return cmd_jar(args, out=sys.stdout, err=sys.stderr)


if __name__ == "__main__":
    sys.exit(main())
